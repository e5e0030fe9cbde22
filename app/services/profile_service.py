"""Reader profiles synced from the identity provider."""

import logging

from app.core.security import IdentityClaims, is_admin_email
from app.domain.entities import UserProfile, UserRole
from app.domain.repositories import IUnitOfWork, IUserProfileRepository
from app.domain.services import IProfileService

logger = logging.getLogger(__name__)


def fallback_email(subject: str) -> str:
    address = f"{subject}@users.bookprepper.com".lower()
    return "".join(ch for ch in address if ch.isalnum() or ch in "@.")


def fallback_display_name(claims: IdentityClaims) -> str:
    if claims.name:
        return claims.name
    if claims.email:
        return claims.email.split("@")[0]
    return f"Reader-{claims.subject[:6]}"


class ProfileService(IProfileService):

    def __init__(self, user_repository: IUserProfileRepository, unit_of_work: IUnitOfWork):
        self.user_repository = user_repository
        self.unit_of_work = unit_of_work

    async def ensure_profile(self, claims: IdentityClaims) -> UserProfile:
        """Create or refresh the profile for a verified identity.

        Only promotes to ADMIN; a demoted admin keeps the stored role until it
        is changed in the database.
        """
        email = claims.email or fallback_email(claims.subject)
        role = UserRole.ADMIN if is_admin_email(claims.email) else None
        async with self.unit_of_work.transaction():
            profile = await self.user_repository.upsert_by_subject(
                subject=claims.subject,
                email=email,
                display_name=fallback_display_name(claims),
                role=role,
            )
        return profile

    async def update_display_name(self, user: UserProfile, display_name: str) -> UserProfile:
        async with self.unit_of_work.transaction():
            profile = await self.user_repository.update_display_name(user.id, display_name.strip())
        logger.info("Profile %s renamed", user.id)
        return profile
