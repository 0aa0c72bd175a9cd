"""Unit tests for the sequence generator.

Run with: pytest backend/tests/unit/workflow/test_sequence.py -v
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import insert, select

from rams.errors import ValidationError
from rams.schema import reports, sequence_counters
from rams.workflow.sequence import (
    format_pdf_filename,
    format_report_number,
    max_pdf_sequence,
    parse_report_number,
    pdf_prefix,
)

JST = timezone(timedelta(hours=9))


class TestFormatting:
    """Tests for number and filename formats."""

    def test_report_number_is_zero_padded(self):
        assert format_report_number(2024, 1, 1) == "RPT-2024-01-001"
        assert format_report_number(2024, 12, 42) == "RPT-2024-12-042"

    def test_report_number_widens_past_999(self):
        assert format_report_number(2024, 1, 1000) == "RPT-2024-01-1000"

    def test_parse_report_number(self):
        assert parse_report_number("RPT-2024-03-007") == (2024, 3, 7)
        assert parse_report_number("INV-2024-03-007") is None

    def test_pdf_prefix(self):
        day = date(2024, 1, 15)
        assert pdf_prefix("0001", "001", day) == "0001_001_20240115"
        assert pdf_prefix("0001", None, day) == "0001_BULK_20240115"
        assert format_pdf_filename("0001_001_20240115", 3) == "0001_001_20240115_003.pdf"

    @pytest.mark.parametrize(
        "bank_code, branch_code, field",
        [("../x", "001", "bank_code"), ("0001", "a/b", "branch_code"), ("00_1", None, "bank_code")],
    )
    def test_pdf_prefix_rejects_unsafe_codes(self, bank_code, branch_code, field):
        with pytest.raises(ValidationError) as exc_info:
            pdf_prefix(bank_code, branch_code, date(2024, 1, 15))

        assert exc_info.value.fields == [field]

    def test_max_pdf_sequence_matches_exact_prefix(self):
        names = [
            "0001_001_20240115_001.pdf",
            "0001_001_20240115_004.pdf",
            "0001_002_20240115_009.pdf",
            "0001_001_20240116_007.pdf",
            "notes.pdf",
        ]
        assert max_pdf_sequence(names, "0001_001_20240115") == 4
        assert max_pdf_sequence(names, "0005_001_20240115") == 0


class TestSequenceGenerator:
    """Tests for atomic counter allocation."""

    @pytest.mark.asyncio
    async def test_values_increase_from_one(self, sequences):
        values = [await sequences.next_value("test:a") for _ in range(3)]

        assert values == [1, 2, 3]
        assert await sequences.current_value("test:a") == 3

    @pytest.mark.asyncio
    async def test_scopes_are_independent(self, sequences):
        await sequences.next_value("test:a")
        await sequences.next_value("test:a")

        assert await sequences.next_value("test:b") == 1
        assert await sequences.current_value("test:missing") is None

    @pytest.mark.asyncio
    async def test_seed_used_only_on_first_allocation(self, sequences):
        calls = []

        async def seed(session):
            calls.append(1)
            return 10

        assert await sequences.next_value("test:seeded", seed) == 11
        assert await sequences.next_value("test:seeded", seed) == 12
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_unique(self, sequences):
        values = await asyncio.gather(*(sequences.next_value("test:race") for _ in range(10)))

        assert sorted(values) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_report_number_uses_local_month(self, sequences):
        # 2024-01-31 20:00 UTC is already February in JST
        now = datetime(2024, 1, 31, 20, 0, 0)

        number, scope, value = await sequences.next_report_number(now, JST)

        assert number == "RPT-2024-02-001"
        assert scope == "report:2024-02"
        assert value == 1

    @pytest.mark.asyncio
    async def test_report_number_seeded_from_existing_reports(
        self, sequences, session_factory, users
    ):
        """A new counter continues after reports created earlier in the month."""
        created = datetime(2024, 1, 10, 3, 0, 0)
        async with session_factory() as session:
            for seq in (1, 2):
                await session.execute(
                    insert(reports).values(
                        id=f"legacy-{seq}",
                        report_number=format_report_number(2024, 1, seq),
                        handler_id=users["handler"].id,
                        created_at=created,
                        updated_at=created,
                    )
                )
            await session.commit()

        number, _, _ = await sequences.next_report_number(datetime(2024, 1, 15, 3, 0, 0), JST)

        assert number == "RPT-2024-01-003"

    @pytest.mark.asyncio
    async def test_pdf_filename_seeded_from_directory(self, sequences):
        existing = ["0001_001_20240115_001.pdf", "0001_001_20240115_002.pdf"]

        first, _, _ = await sequences.next_pdf_filename("0001", "001", date(2024, 1, 15), existing)
        second, _, _ = await sequences.next_pdf_filename("0001", "001", date(2024, 1, 15), existing)

        assert first == "0001_001_20240115_003.pdf"
        assert second == "0001_001_20240115_004.pdf"

    @pytest.mark.asyncio
    async def test_counter_row_persisted(self, sequences, session_factory):
        await sequences.next_value("test:persist")

        async with session_factory() as session:
            result = await session.execute(
                select(sequence_counters.c.last_value).where(sequence_counters.c.scope == "test:persist")
            )
            assert result.scalar_one() == 1
