"""SQLAlchemy unit of work."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.repositories import IUnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(IUnitOfWork):
    """Commits the request session on success, rolls it back on any error.

    Repositories built on the same session only flush, so every write made
    inside ``transaction()`` lands atomically.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            await self.session.rollback()
            raise
