"""Directory-backed archive of generated PDFs.

Filenames are ``{bank}_{branch}_{YYYYMMDD}_NNN.pdf`` (``BULK`` in place
of the branch for bulk exports). The sequence comes from the shared
counter table, seeded from the files already in the directory.
"""

import re
from collections.abc import Callable, Sequence
from datetime import datetime, tzinfo
from pathlib import Path

from ..errors import (
    FieldError,
    NotFoundError,
    SequenceAllocationError,
    ValidationError,
)
from ..logging import get_context_logger, log_sequence_conflict
from ..models import ArchivedPdf, ReportStatus, ReportWithParties, utcnow
from ..workflow.periods import local_date
from ..workflow.sequence import SequenceGenerator
from .common import ensure_printable
from .pdf import render_bulk_pdf, render_report_pdf

logger = get_context_logger(__name__, component="pdf_archive")

FILENAME_RE = re.compile(r"^[A-Za-z0-9_-]+\.pdf$")


def validate_bulk_selection(reports: Sequence[ReportWithParties]) -> str:
    """Check a bulk export selection and return its common bank code."""
    if not reports:
        raise ValidationError(
            [FieldError(field="report_ids", message="Select at least one report")]
        )
    not_approved = [r.report_number for r in reports if r.status != ReportStatus.APPROVED]
    if not_approved:
        raise ValidationError(
            [FieldError(
                field="report_ids",
                message=f"Only approved reports can be exported: {', '.join(not_approved)}",
            )]
        )
    bank_codes = {r.bank_code for r in reports}
    if len(bank_codes) > 1:
        raise ValidationError(
            [FieldError(
                field="report_ids",
                message=f"Reports must share one bank code, got {', '.join(sorted(bank_codes))}",
            )]
        )
    return bank_codes.pop()


class PdfArchive:
    """Stores rendered PDFs under a single directory."""

    def __init__(
        self,
        root: Path,
        sequences: SequenceGenerator,
        tz: tzinfo,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = 5,
    ):
        self.root = Path(root)
        self._sequences = sequences
        self._tz = tz
        self._clock = clock
        self._max_attempts = max_attempts

    def _filenames(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return [p.name for p in self.root.iterdir() if p.is_file() and FILENAME_RE.match(p.name)]

    async def _store(self, content: bytes, bank_code: str, branch_code: str | None) -> ArchivedPdf:
        self.root.mkdir(parents=True, exist_ok=True)
        day = local_date(self._clock(), self._tz)
        scope = ""
        for attempt in range(1, self._max_attempts + 1):
            filename, scope, value = await self._sequences.next_pdf_filename(
                bank_code, branch_code, day, existing=self._filenames()
            )
            path = self.root / filename
            if path.resolve().parent != self.root.resolve():
                raise ValidationError(
                    [FieldError(field="filename", message=f"{filename} is outside the archive")]
                )
            try:
                with open(path, "xb") as fh:
                    fh.write(content)
            except FileExistsError:
                log_sequence_conflict(scope, value, attempt)
                continue

            logger.info(
                f"Archived PDF {filename}",
                extra={"pdf_filename": filename, "size_bytes": len(content)},
            )
            return ArchivedPdf(filename=filename, size_bytes=len(content))

        raise SequenceAllocationError(scope, self._max_attempts)

    async def save_report(self, report: ReportWithParties) -> ArchivedPdf:
        """Render and archive one approved report."""
        ensure_printable(report)
        content = render_report_pdf(report, self._tz, printed_at=self._clock())
        return await self._store(content, report.bank_code, report.branch_code)

    async def save_bulk(self, reports: Sequence[ReportWithParties]) -> ArchivedPdf:
        """Render several approved reports of one bank into a single archived PDF."""
        bank_code = validate_bulk_selection(reports)
        content = render_bulk_pdf(reports, bank_code, self._tz, printed_at=self._clock())
        return await self._store(content, bank_code, None)

    def list(self) -> list[ArchivedPdf]:
        """Archived PDFs, newest first."""
        paths = [self.root / name for name in self._filenames()]
        paths.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
        return [ArchivedPdf(filename=p.name, size_bytes=p.stat().st_size) for p in paths]

    def path_for(self, filename: str) -> Path:
        """Path of an archived file.

        Raises:
            ValidationError: If the name is not a plain ``.pdf`` filename.
            NotFoundError: If no such file exists.
        """
        if not FILENAME_RE.match(filename):
            raise ValidationError(
                [FieldError(field="filename", message="Invalid PDF filename")]
            )
        path = self.root / filename
        if not path.is_file():
            raise NotFoundError("PDF", filename)
        return path

    def delete(self, filename: str) -> None:
        path = self.path_for(filename)
        path.unlink()
        logger.info(f"Deleted archived PDF {filename}", extra={"pdf_filename": filename})
