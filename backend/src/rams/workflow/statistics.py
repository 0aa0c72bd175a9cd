"""Dashboard statistics.

All counters are global (not scoped to the caller). Day and month
boundaries follow the business timezone.
"""

from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, tzinfo
from typing import AsyncGenerator

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import ReportStatistics, ReportStatus, utcnow
from ..schema import reports
from .periods import day_bounds, month_bounds


class StatisticsAggregator:
    """Computes the four dashboard counters in a single session."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tz: tzinfo,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._tz = tz
        self._clock = clock

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            yield session

    async def _count(self, session: AsyncSession, *conditions) -> int:
        result = await session.execute(
            select(func.count()).select_from(reports).where(*conditions)
        )
        return result.scalar_one()

    async def get_statistics(self) -> ReportStatistics:
        """Compute dashboard counters.

        - today_inquiries: reports created today
        - pending_approvals: reports awaiting a decision
        - monthly_completed: approved reports created this month
        - escalations: reports flagged for escalation, all time
        """
        now = self._clock()
        day_start, day_end = day_bounds(now, self._tz)
        month_start, _ = month_bounds(now, self._tz)

        async with self._get_session() as session:
            today = await self._count(
                session,
                reports.c.created_at >= day_start,
                reports.c.created_at < day_end,
            )
            pending = await self._count(
                session, reports.c.status == ReportStatus.PENDING_APPROVAL.value
            )
            completed = await self._count(
                session,
                reports.c.status == ReportStatus.APPROVED.value,
                reports.c.created_at >= month_start,
                reports.c.created_at < now,
            )
            escalations = await self._count(session, reports.c.escalation_required.is_(True))

        return ReportStatistics(
            today_inquiries=today,
            pending_approvals=pending,
            monthly_completed=completed,
            escalations=escalations,
        )
