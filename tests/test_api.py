"""HTTP endpoint tests.

Services are swapped through ``app.dependency_overrides`` so no database or
broker is needed.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app.core.dependencies import (
    get_admin_service,
    get_catalog_service,
    get_current_user,
    get_feedback_service,
    get_moderation_service,
    get_profile_service,
    get_reading_service,
    get_suggestion_service,
)
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.entities import (
    BookRef,
    PrepSuggestion,
    ReadingState,
    ReadingStatus,
    SuggestionKind,
    SuggestionStatus,
)
from app.main import app
from app.services.feedback_service import FeedbackResult
from app.services.moderation_service import ModerationResult
from app.services.prompt_scores import summarize_aggregates


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


def _as(user):
    app.dependency_overrides[get_current_user] = lambda: user


class TestPublicCatalog:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_list_books_passes_filters(self, client, sample_book):
        catalog = AsyncMock()
        catalog.list_books.return_value = ([sample_book], 21)
        app.dependency_overrides[get_catalog_service] = lambda: catalog

        response = await client.get(
            "/api/books", params={"search": "dispossessed", "genres": "sf, utopia,", "page": 2}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"total": 21, "page": 2, "page_size": 20, "total_pages": 2}
        item = body["results"][0]
        assert item["slug"] == "the-dispossessed"
        assert item["cover_image_url"].endswith("/9780060512757-M.jpg?default=false")
        filters = catalog.list_books.await_args.args[0]
        assert filters.genre_slugs == ["sf", "utopia"]

    @pytest.mark.asyncio
    async def test_book_detail_includes_prep_votes(self, client, sample_book):
        catalog = AsyncMock()
        catalog.get_book.return_value = sample_book
        app.dependency_overrides[get_catalog_service] = lambda: catalog

        response = await client.get(f"/api/books/{sample_book.slug}")

        assert response.status_code == 200
        prep = response.json()["preps"][0]
        assert prep["votes"]["agree"] == 2
        assert prep["votes"]["disagree"] == 1
        assert len(prep["votes"]["dimensions"]) == 10
        assert response.json()["cover_image_url"].endswith("-L.jpg?default=false")

    @pytest.mark.asyncio
    async def test_unknown_book_is_404(self, client):
        catalog = AsyncMock()
        catalog.get_book.side_effect = NotFoundError("Book", "nope", message="Book not found")
        app.dependency_overrides[get_catalog_service] = lambda: catalog

        response = await client.get("/api/books/nope")

        assert response.status_code == 404
        assert response.json()["message"] == "Book not found"

    @pytest.mark.asyncio
    async def test_stats(self, client):
        catalog = AsyncMock()
        catalog.get_stats.return_value = {
            "books": 1, "authors": 1, "preps": 2, "years": {"earliest": 1974, "latest": 1974}
        }
        app.dependency_overrides[get_catalog_service] = lambda: catalog

        response = await client.get("/api/stats")

        assert response.json()["years"]["earliest"] == 1974


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_vote_without_token_is_401(self, client):
        response = await client.post(
            f"/api/books/any/preps/{uuid4()}/vote", json={"value": "AGREE"}
        )
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_valid_token_syncs_profile(self, client, reader):
        profiles = AsyncMock()
        profiles.ensure_profile.return_value = reader
        app.dependency_overrides[get_profile_service] = lambda: profiles
        token = jwt.encode(
            {"sub": reader.subject, "email": reader.email, "name": "Reader"}, "test-secret", algorithm="HS256"
        )

        response = await client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["display_name"] == "Reader"
        claims = profiles.ensure_profile.await_args.args[0]
        assert claims.subject == reader.subject

    @pytest.mark.asyncio
    async def test_bad_signature_is_401(self, client):
        token = jwt.encode({"sub": "x"}, "wrong-secret", algorithm="HS256")
        response = await client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_moderate(self, client, reader):
        _as(reader)
        response = await client.get("/api/admin/suggestions/preps")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_member_cannot_read_insights(self, client, reader):
        _as(reader)
        response = await client.get("/api/preps/feedback/insights")
        assert response.status_code == 403


class TestFeedbackEndpoint:

    @pytest.mark.asyncio
    async def test_vote_returns_refreshed_votes(self, client, reader):
        prep_id = uuid4()
        feedback = AsyncMock()
        feedback.submit_feedback.return_value = FeedbackResult(
            prep_id=prep_id, summary=summarize_aggregates([("FUN", "AGREE", 1)])
        )
        app.dependency_overrides[get_feedback_service] = lambda: feedback
        _as(reader)

        response = await client.post(
            f"/api/books/the-dispossessed/preps/{prep_id}/vote",
            json={"value": "AGREE", "dimension": "FUN", "note": "  "},
        )

        assert response.status_code == 200
        assert response.json()["votes"]["score"] == pytest.approx(0.7452)
        kwargs = feedback.submit_feedback.await_args.kwargs
        assert kwargs["note"] is None

    @pytest.mark.asyncio
    async def test_invalid_dimension_is_422(self, client, reader):
        _as(reader)
        response = await client.post(
            f"/api/books/x/preps/{uuid4()}/vote", json={"value": "AGREE", "dimension": "SPICY"}
        )
        assert response.status_code == 422


class TestSuggestionEndpoints:

    @pytest.mark.asyncio
    async def test_metadata_needs_synopsis_or_genres(self, client, reader):
        _as(reader)
        response = await client.post("/api/books/x/metadata/suggest", json={"genres": []})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_service_validation_error_is_400(self, client, reader):
        suggestions = AsyncMock()
        suggestions.suggest_metadata.side_effect = ValidationError(
            "Provide a synopsis or at least one genre.", field="synopsis"
        )
        app.dependency_overrides[get_suggestion_service] = lambda: suggestions
        _as(reader)

        response = await client.post("/api/books/x/metadata/suggest", json={"genres": ["fantasy"]})

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "synopsis"}

    @pytest.mark.asyncio
    async def test_prep_suggestion_created(self, client, reader):
        suggestion = PrepSuggestion(
            id=uuid4(), submitted_by_id=reader.id, book_id=uuid4(), title="Heading", description="Long description"
        )
        suggestions = AsyncMock()
        suggestions.suggest_prep.return_value = suggestion
        app.dependency_overrides[get_suggestion_service] = lambda: suggestions
        _as(reader)

        response = await client.post(
            "/api/books/x/preps/suggest",
            json={"title": "Heading", "description": "Long description", "keyword_hints": ["tone"]},
        )

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"
        assert response.json()["suggestion_id"] == str(suggestion.id)


class TestModerationEndpoints:

    @pytest.mark.asyncio
    async def test_list_pending(self, client, admin_user, reader):
        suggestion = PrepSuggestion(
            id=uuid4(),
            submitted_by_id=reader.id,
            submitted_by=reader,
            book_id=uuid4(),
            title="Heading",
            description="Long description",
            book=BookRef(id=uuid4(), title="Kindred", slug="kindred"),
        )
        moderation = AsyncMock()
        moderation.list_pending.return_value = [suggestion]
        app.dependency_overrides[get_moderation_service] = lambda: moderation
        _as(admin_user)

        response = await client.get("/api/admin/suggestions/preps")

        assert response.status_code == 200
        item = response.json()["suggestions"][0]
        assert item["kind"] == "preps"
        assert item["book"]["slug"] == "kindred"
        assert item["submitted_by"]["display_name"] == "Reader"
        moderation.list_pending.assert_awaited_once_with(SuggestionKind.PREP)

    @pytest.mark.asyncio
    async def test_unknown_kind_is_422(self, client, admin_user):
        _as(admin_user)
        response = await client.get("/api/admin/suggestions/authors")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_approve(self, client, admin_user):
        suggestion_id = uuid4()
        moderation = AsyncMock()
        moderation.approve_suggestion.return_value = ModerationResult(
            kind=SuggestionKind.BOOK,
            suggestion_id=suggestion_id,
            status=SuggestionStatus.APPROVED,
            book=BookRef(id=uuid4(), title="Piranesi", slug="piranesi"),
        )
        app.dependency_overrides[get_moderation_service] = lambda: moderation
        _as(admin_user)

        response = await client.post(
            f"/api/admin/suggestions/books/{suggestion_id}/approve", json={"note": "Welcome"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"
        moderation.approve_suggestion.assert_awaited_once_with(SuggestionKind.BOOK, suggestion_id, "Welcome")

    @pytest.mark.asyncio
    async def test_second_decision_is_409(self, client, admin_user):
        moderation = AsyncMock()
        moderation.reject_suggestion.side_effect = ConflictError()
        app.dependency_overrides[get_moderation_service] = lambda: moderation
        _as(admin_user)

        response = await client.post(f"/api/admin/suggestions/metadata/{uuid4()}/reject")

        assert response.status_code == 409
        assert response.json()["message"] == "Suggestion already processed."

    @pytest.mark.asyncio
    async def test_rebuild_scores_dispatches_task(self, client, admin_user):
        _as(admin_user)
        with patch("app.api.admin_routes.rebuild_all_prompt_scores") as mock_task:
            mock_task.delay.return_value = MagicMock(id="task-123")
            response = await client.post("/api/admin/preps/scores/rebuild")

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-123", "status": "PENDING"}


class TestAdminCatalogEndpoints:

    @pytest.mark.asyncio
    async def test_create_requires_author(self, client, admin_user):
        _as(admin_user)
        response = await client.post("/api/admin/books", json={"title": "No author"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_patch_sends_only_given_fields(self, client, admin_user, sample_book):
        admin = AsyncMock()
        admin.update_book.return_value = sample_book
        app.dependency_overrides[get_admin_service] = lambda: admin
        _as(admin_user)

        response = await client.patch(f"/api/admin/books/{sample_book.slug}", json={"subtitle": ""})

        assert response.status_code == 200
        admin.update_book.assert_awaited_once_with(sample_book.slug, subtitle=None)

    @pytest.mark.asyncio
    async def test_delete_prep(self, client, admin_user):
        admin = AsyncMock()
        app.dependency_overrides[get_admin_service] = lambda: admin
        _as(admin_user)
        prep_id = uuid4()

        response = await client.delete(f"/api/admin/books/kindred/preps/{prep_id}")

        assert response.status_code == 204
        admin.delete_prep.assert_awaited_once_with("kindred", prep_id)


class TestReadingEndpoints:

    @pytest.mark.asyncio
    async def test_shelf_requires_login(self, client):
        response = await client.get("/api/reading")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_shelf_lists_entries_with_books(self, client, reader, sample_book):
        reading = AsyncMock()
        reading.list_shelf.return_value = [
            ReadingStatus(id=uuid4(), user_id=reader.id, book_id=sample_book.id, book=sample_book)
        ]
        app.dependency_overrides[get_reading_service] = lambda: reading
        _as(reader)

        response = await client.get("/api/reading")

        assert response.status_code == 200
        entry = response.json()["entries"][0]
        assert entry["status"] == "READING"
        assert entry["book"]["slug"] == "the-dispossessed"
        assert entry["book"]["prep_count"] == 1
        assert "started_at" in entry

    @pytest.mark.asyncio
    async def test_start_without_body_defaults_to_reading(self, client, reader):
        reading = AsyncMock()
        reading.start_reading.return_value = ReadingStatus(id=uuid4(), user_id=reader.id, book_id=uuid4())
        app.dependency_overrides[get_reading_service] = lambda: reading
        _as(reader)

        response = await client.post("/api/books/kindred/reading")

        assert response.status_code == 200
        assert response.json()["status"] == "READING"
        reading.start_reading.assert_awaited_once_with(reader, "kindred", ReadingState.READING)

    @pytest.mark.asyncio
    async def test_start_with_unknown_status_is_422(self, client, reader):
        app.dependency_overrides[get_reading_service] = lambda: AsyncMock()
        _as(reader)
        response = await client.post("/api/books/kindred/reading", json={"status": "PAUSED"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_finish_missing_entry_is_404(self, client, reader):
        reading = AsyncMock()
        reading.finish_reading.side_effect = NotFoundError(
            "Reading entry", "kindred", message="Book is not on your reading shelf."
        )
        app.dependency_overrides[get_reading_service] = lambda: reading
        _as(reader)

        response = await client.delete("/api/books/kindred/reading")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_finish_returns_done(self, client, reader):
        reading = AsyncMock()
        reading.finish_reading.return_value = ReadingStatus(
            id=uuid4(), user_id=reader.id, book_id=uuid4(), status=ReadingState.DONE
        )
        app.dependency_overrides[get_reading_service] = lambda: reading
        _as(reader)

        response = await client.delete("/api/books/kindred/reading")

        assert response.status_code == 200
        assert response.json()["status"] == "DONE"
