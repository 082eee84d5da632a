"""Shared helpers for talking to the relational store."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)


async def commit_or_fail(session: AsyncSession, message: str) -> None:
    """Commit the session; on a store error roll back and raise ``UpstreamFailure``."""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"{message}: {e}")
        await session.rollback()
        raise UpstreamFailure(message) from e
