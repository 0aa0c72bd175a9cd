"""Collision-free sequence numbers.

Report numbers (``RPT-YYYY-MM-NNN``) and archived PDF filenames
(``{bank}_{branch}_{YYYYMMDD}_NNN.pdf``) are both drawn from named
counters in the ``sequence_counters`` table. Each allocation is one
short transaction: the counter row is seeded on first use and then
incremented with ``UPDATE ... RETURNING``, which the database
serializes, so concurrent callers never receive the same value.

Seeding looks at existing data (reports created in the month, or files
already in the archive directory) so a fresh counter continues after
whatever is already there rather than restarting at 1.
"""

import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import date, datetime, tzinfo
from typing import AsyncGenerator

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import FieldError, ValidationError
from ..models import utcnow
from ..schema import reports, sequence_counters
from .periods import month_bounds, to_local

logger = logging.getLogger(__name__)

REPORT_NUMBER_PREFIX = "RPT"
REPORT_NUMBER_RE = re.compile(r"^RPT-(\d{4})-(\d{2})-(\d{3,})$")
BULK_BRANCH = "BULK"
PDF_FILENAME_RE = re.compile(r"^(?P<prefix>.+)_(?P<seq>\d{3,})\.pdf$")
# Bank and branch codes become part of archive filenames
CODE_RE = re.compile(r"^[0-9A-Za-z]+$")

Seeder = Callable[[AsyncSession], Awaitable[int]]


# =========================
# Report numbers
# =========================


def report_number_scope(year: int, month: int) -> str:
    return f"report:{year:04d}-{month:02d}"


def format_report_number(year: int, month: int, sequence: int) -> str:
    """Format a report number. Sequences beyond 999 widen the last group."""
    return f"{REPORT_NUMBER_PREFIX}-{year:04d}-{month:02d}-{sequence:03d}"


def parse_report_number(report_number: str) -> tuple[int, int, int] | None:
    """Split a report number into (year, month, sequence), or None."""
    match = REPORT_NUMBER_RE.match(report_number)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


# =========================
# PDF filenames
# =========================


def pdf_prefix(bank_code: str, branch_code: str | None, day: date) -> str:
    """Filename prefix shared by all PDFs of one bank/branch and day.

    Bulk exports use ``BULK`` in place of the branch code.

    Raises:
        ValidationError: If a code is not plain alphanumeric.
    """
    errors = [
        FieldError(field=field, message=f"Invalid {label} for a filename: {code!r}")
        for field, label, code in (
            ("bank_code", "bank code", bank_code),
            ("branch_code", "branch code", branch_code),
        )
        if code is not None and not CODE_RE.match(code)
    ]
    if errors:
        raise ValidationError(errors)
    return f"{bank_code}_{branch_code or BULK_BRANCH}_{day:%Y%m%d}"


def format_pdf_filename(prefix: str, sequence: int) -> str:
    return f"{prefix}_{sequence:03d}.pdf"


def max_pdf_sequence(filenames: Iterable[str], prefix: str) -> int:
    """Highest sequence among filenames with exactly this prefix, or 0."""
    highest = 0
    for name in filenames:
        match = PDF_FILENAME_RE.match(name)
        if match and match.group("prefix") == prefix:
            highest = max(highest, int(match.group("seq")))
    return highest


# =========================
# Generator
# =========================


class SequenceGenerator:
    """Allocates monotonically increasing values per named scope."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def next_value(self, scope: str, seed: Seeder | None = None) -> int:
        """Allocate the next value in ``scope``.

        Args:
            scope: Counter name, e.g. ``report:2024-01``.
            seed: Called once when the counter does not exist yet; its
                result is the value the counter starts from (the first
                allocation returns seed + 1).

        Returns:
            The allocated value, unique within the scope.
        """
        async with self._get_session() as session:
            existing = await session.execute(
                select(sequence_counters.c.scope).where(sequence_counters.c.scope == scope)
            )
            if existing.first() is None:
                start = await seed(session) if seed is not None else 0
                await session.execute(self._insert_if_absent(session, scope, start))
                logger.debug(f"Seeded sequence {scope} at {start}")

            result = await session.execute(
                update(sequence_counters)
                .where(sequence_counters.c.scope == scope)
                .values(
                    last_value=sequence_counters.c.last_value + 1,
                    updated_at=utcnow(),
                )
                .returning(sequence_counters.c.last_value)
            )
            return result.scalar_one()

    async def current_value(self, scope: str) -> int | None:
        """Last allocated value in ``scope`` without allocating."""
        async with self._get_session() as session:
            result = await session.execute(
                select(sequence_counters.c.last_value).where(sequence_counters.c.scope == scope)
            )
            return result.scalar_one_or_none()

    def _insert_if_absent(self, session: AsyncSession, scope: str, start: int):
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(sequence_counters)
        elif dialect == "sqlite":
            stmt = sqlite.insert(sequence_counters)
        else:
            raise NotImplementedError(f"Sequence counters not supported on {dialect}")
        return stmt.values(scope=scope, last_value=start, updated_at=utcnow()).on_conflict_do_nothing(
            index_elements=["scope"]
        )

    async def next_report_number(self, now: datetime, tz: tzinfo) -> tuple[str, str, int]:
        """Allocate the next report number for the local month of ``now``.

        Returns:
            Tuple of (report_number, scope, sequence value).
        """
        local = to_local(now, tz)
        scope = report_number_scope(local.year, local.month)
        start, end = month_bounds(now, tz)

        async def count_month_reports(session: AsyncSession) -> int:
            result = await session.execute(
                select(func.count())
                .select_from(reports)
                .where(reports.c.created_at >= start, reports.c.created_at < end)
            )
            return result.scalar_one()

        value = await self.next_value(scope, count_month_reports)
        return format_report_number(local.year, local.month, value), scope, value

    async def next_pdf_filename(
        self,
        bank_code: str,
        branch_code: str | None,
        day: date,
        existing: Iterable[str] = (),
    ) -> tuple[str, str, int]:
        """Allocate the next archive filename for a bank/branch and day.

        Args:
            existing: Filenames already in the archive; used to seed the
                counter the first time this prefix is seen.

        Returns:
            Tuple of (filename, scope, sequence value).
        """
        prefix = pdf_prefix(bank_code, branch_code, day)
        scope = f"pdf:{prefix}"
        names = list(existing)

        async def highest_on_disk(session: AsyncSession) -> int:
            return max_pdf_sequence(names, prefix)

        value = await self.next_value(scope, highest_on_disk)
        return format_pdf_filename(prefix, value), scope, value

