"""Tests for PDF rendering.

Run with: pytest backend/tests/unit/rendering/test_pdf_render.py -v
"""

from datetime import datetime, timezone

import pytest

from rams.errors import NotPrintableError
from rams.models import ReportStatus, ReportWithParties
from rams.rendering import render_bulk_pdf, render_report_pdf
from rams.rendering.pdf import _text


def _approved(report_id: str = "r1", **overrides) -> ReportWithParties:
    values = dict(
        id=report_id,
        report_number=f"RPT-2024-01-{report_id[-1]:0>3}",
        bank_code="0001",
        branch_code="001",
        company_name="株式会社サンプル",
        contact_person_name="山田 一郎",
        inquiry_content="Transfer limit <question>\nfollow-up",
        response_content="Answered & closed",
        status=ReportStatus.APPROVED,
        handler_id="h1",
        created_at=datetime(2024, 1, 15, 1, 0),
        updated_at=datetime(2024, 1, 15, 1, 0),
    )
    values.update(overrides)
    return ReportWithParties(**values)


class TestPdfRendering:
    """Tests for ReportLab output."""

    def test_single_report_is_pdf(self):
        content = render_report_pdf(_approved(), timezone.utc)

        assert content.startswith(b"%PDF")

    def test_bulk_report_is_pdf(self):
        content = render_bulk_pdf([_approved("r1"), _approved("r2")], "0001", timezone.utc)

        assert content.startswith(b"%PDF")
        assert len(content) > len(render_report_pdf(_approved(), timezone.utc))

    def test_escalation_reason_rendered(self):
        content = render_report_pdf(
            _approved(escalation_required=True, escalation_reason="Complaint"), timezone.utc
        )

        assert content.startswith(b"%PDF")

    def test_draft_not_printable(self):
        with pytest.raises(NotPrintableError):
            render_report_pdf(_approved(status=ReportStatus.DRAFT), timezone.utc)

    def test_markup_is_escaped(self):
        assert _text("a < b & c\nd") == "a &lt; b &amp; c<br/>d"
        assert _text(None) == ""
