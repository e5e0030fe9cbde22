"""Admin routes: catalog management, suggestion moderation, score rebuilds.

Every endpoint requires the administrator role.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.schemas import (
    AdminBookCreateRequest,
    AdminBookUpdateRequest,
    AdminPrepUpsertRequest,
    BookDetailResponse,
    BookListItem,
    BookListResponse,
    BookRefResponse,
    ModerationNoteRequest,
    ModerationResponse,
    Pagination,
    PendingSuggestionListResponse,
    PendingSuggestionResponse,
    PrepResponse,
    TaskDispatchResponse,
)
from app.core.dependencies import get_admin_service, get_moderation_service, require_admin
from app.domain.entities import SuggestionKind, UserProfile
from app.domain.services import IAdminCatalogService, IModerationService
from app.infrastructure.tasks.score_tasks import rebuild_all_prompt_scores, rebuild_prompt_score

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])

AdminUser = Annotated[UserProfile, Depends(require_admin)]


def _moderation_response(result) -> ModerationResponse:
    return ModerationResponse(
        suggestion_id=result.suggestion_id,
        kind=result.kind,
        status=result.status,
        book=BookRefResponse.model_validate(result.book) if result.book else None,
        prep=PrepResponse.from_entity(result.prep) if result.prep else None,
    )


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
@router.get("/books", response_model=BookListResponse)
async def list_books(
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
    search: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> BookListResponse:
    books, total = await admin_service.list_books(search=search, page=page, page_size=page_size)
    return BookListResponse(
        pagination=Pagination.build(total, page, page_size),
        results=[BookListItem.from_entity(b) for b in books],
    )


@router.get("/books/{slug}", response_model=BookDetailResponse)
async def get_book(
    slug: str,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> BookDetailResponse:
    return BookDetailResponse.from_entity(await admin_service.get_book(slug))


@router.post("/books", response_model=BookDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    body: AdminBookCreateRequest,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> BookDetailResponse:
    fields = body.model_dump()
    if fields["cover_image_url"] is not None:
        fields["cover_image_url"] = str(fields["cover_image_url"])
    book = await admin_service.create_book(**fields)
    return BookDetailResponse.from_entity(book)


@router.patch("/books/{slug}", response_model=BookDetailResponse)
async def update_book(
    slug: str,
    body: AdminBookUpdateRequest,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> BookDetailResponse:
    """Partial update; omitted fields are left untouched."""
    changes = body.model_dump(exclude_unset=True)
    if changes.get("title", "") is None:
        del changes["title"]
    if changes.get("cover_image_url") is not None:
        changes["cover_image_url"] = str(changes["cover_image_url"])
    book = await admin_service.update_book(slug, **changes)
    return BookDetailResponse.from_entity(book)


# ---------------------------------------------------------------------------
# Preps
# ---------------------------------------------------------------------------
@router.post("/books/{slug}/preps", response_model=PrepResponse, status_code=status.HTTP_201_CREATED)
async def create_prep(
    slug: str,
    body: AdminPrepUpsertRequest,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> PrepResponse:
    prep = await admin_service.create_prep(slug, **body.model_dump())
    return PrepResponse.from_entity(prep)


@router.put("/books/{slug}/preps/{prep_id}", response_model=PrepResponse)
async def update_prep(
    slug: str,
    prep_id: UUID,
    body: AdminPrepUpsertRequest,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> PrepResponse:
    prep = await admin_service.update_prep(slug, prep_id, **body.model_dump())
    return PrepResponse.from_entity(prep)


@router.delete("/books/{slug}/preps/{prep_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prep(
    slug: str,
    prep_id: UUID,
    admin_service: Annotated[IAdminCatalogService, Depends(get_admin_service)],
    admin: AdminUser,
) -> Response:
    await admin_service.delete_prep(slug, prep_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/preps/scores/rebuild",
    response_model=TaskDispatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def rebuild_scores(
    admin: AdminUser,
    prep_id: Optional[UUID] = None,
) -> TaskDispatchResponse:
    """Queue a score rebuild for one prep, or for every prep when none is given.

    Poll ``GET /tasks/{task_id}`` for the outcome.
    """
    if prep_id is not None:
        task = rebuild_prompt_score.delay(str(prep_id))
    else:
        task = rebuild_all_prompt_scores.delay()
    logger.info("Score rebuild task %s dispatched by %s", task.id, admin.id)
    return TaskDispatchResponse(task_id=task.id)


# ---------------------------------------------------------------------------
# Suggestion moderation
# ---------------------------------------------------------------------------
@router.get("/suggestions/{kind}", response_model=PendingSuggestionListResponse)
async def list_pending_suggestions(
    kind: SuggestionKind,
    moderation_service: Annotated[IModerationService, Depends(get_moderation_service)],
    admin: AdminUser,
) -> PendingSuggestionListResponse:
    suggestions = await moderation_service.list_pending(kind)
    return PendingSuggestionListResponse(
        suggestions=[PendingSuggestionResponse.from_entity(s) for s in suggestions]
    )


@router.post("/suggestions/{kind}/{suggestion_id}/approve", response_model=ModerationResponse)
async def approve_suggestion(
    kind: SuggestionKind,
    suggestion_id: UUID,
    moderation_service: Annotated[IModerationService, Depends(get_moderation_service)],
    admin: AdminUser,
    body: Optional[ModerationNoteRequest] = None,
) -> ModerationResponse:
    """Apply the suggested change to the catalog and mark it APPROVED."""
    result = await moderation_service.approve_suggestion(kind, suggestion_id, body.note if body else None)
    return _moderation_response(result)


@router.post("/suggestions/{kind}/{suggestion_id}/reject", response_model=ModerationResponse)
async def reject_suggestion(
    kind: SuggestionKind,
    suggestion_id: UUID,
    moderation_service: Annotated[IModerationService, Depends(get_moderation_service)],
    admin: AdminUser,
    body: Optional[ModerationNoteRequest] = None,
) -> ModerationResponse:
    result = await moderation_service.reject_suggestion(kind, suggestion_id, body.note if body else None)
    return _moderation_response(result)
