"""Bearer token verification.

Tokens are issued by the external identity provider; this service only
verifies them.  The claims used downstream are ``sub``, ``email`` and
``name``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    subject: str
    email: Optional[str] = None
    name: Optional[str] = None


def decode_access_token(token: str) -> Optional[dict]:
    """Return the verified payload, or None when the token is invalid."""
    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except JWTError as exc:
        logger.warning("JWT verification failed: %s", exc)
        return None


def claims_from_payload(payload: dict) -> Optional[IdentityClaims]:
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    email = payload.get("email")
    name = payload.get("name")
    return IdentityClaims(
        subject=subject,
        email=email if isinstance(email, str) else None,
        name=name if isinstance(name, str) else None,
    )


def is_admin_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() == settings.admin_email.strip().lower()
