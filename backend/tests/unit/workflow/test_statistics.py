"""Tests for dashboard statistics.

Run with: pytest backend/tests/unit/workflow/test_statistics.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import insert

from rams.models import ReportStatistics, ReportStatus
from rams.schema import reports
from rams.workflow import StatisticsAggregator

JST = timezone(timedelta(hours=9))


@pytest.fixture
def aggregator(session_factory, clock) -> StatisticsAggregator:
    return StatisticsAggregator(session_factory, JST, clock=clock)


class TestStatistics:
    """Tests for the four dashboard counters."""

    @pytest.mark.asyncio
    async def test_empty_database(self, aggregator):
        assert await aggregator.get_statistics() == ReportStatistics()

    @pytest.mark.asyncio
    async def test_counts_by_status(self, aggregator, make_report, clock):
        await make_report()
        await make_report(ReportStatus.PENDING_APPROVAL)
        await make_report(
            ReportStatus.APPROVED, escalation_required=True, escalation_reason="Complaint"
        )
        await make_report(ReportStatus.REJECTED)
        clock.advance(minutes=1)

        stats = await aggregator.get_statistics()

        assert stats.today_inquiries == 4
        assert stats.pending_approvals == 1
        assert stats.monthly_completed == 1
        assert stats.escalations == 1

    @pytest.mark.asyncio
    async def test_day_and_month_rollover(self, aggregator, make_report, clock):
        await make_report(ReportStatus.PENDING_APPROVAL)
        await make_report(
            ReportStatus.APPROVED, escalation_required=True, escalation_reason="Complaint"
        )

        clock.advance(days=1)
        next_day = await aggregator.get_statistics()
        clock.advance(days=31)
        next_month = await aggregator.get_statistics()

        assert next_day.today_inquiries == 0
        assert next_day.monthly_completed == 1
        assert next_month.monthly_completed == 0
        assert next_month.pending_approvals == 1
        assert next_month.escalations == 1

    @pytest.mark.asyncio
    async def test_day_boundary_follows_business_timezone(
        self, aggregator, session_factory, users, clock
    ):
        """15:30 UTC on the 14th is already the 15th in JST."""
        early = datetime(2024, 1, 14, 15, 30, 0)
        yesterday = datetime(2024, 1, 14, 14, 30, 0)
        async with session_factory() as session:
            for report_id, number, created in [
                ("r-early", "RPT-2024-01-001", early),
                ("r-yesterday", "RPT-2024-01-002", yesterday),
            ]:
                await session.execute(
                    insert(reports).values(
                        id=report_id,
                        report_number=number,
                        handler_id=users["handler"].id,
                        created_at=created,
                        updated_at=created,
                    )
                )
            await session.commit()

        stats = await aggregator.get_statistics()

        assert stats.today_inquiries == 1
