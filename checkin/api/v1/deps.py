"""
FastAPI dependencies — database session, store, clock and admission policy.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.core.config import settings
from checkin.db.session import async_session_factory
from checkin.services.admission import AdmissionPolicy
from checkin.services.store import CheckInStore, SqlCheckInStore


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_store(db: AsyncSession = Depends(get_db)) -> CheckInStore:
    return SqlCheckInStore(db)


# ── Policy inputs ───────────────────────────────────────────────────
def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Callable[[], datetime]:
    """Current-time source; overridden in tests to pin the wall clock."""
    return _utc_now


def get_admission_policy() -> AdmissionPolicy:
    return AdmissionPolicy.from_settings(settings)
