"""Tests for HTML print rendering.

Run with: pytest backend/tests/unit/rendering/test_html_render.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from rams.errors import NotPrintableError
from rams.models import ReportStatus, ReportWithParties, UserSummary
from rams.rendering import render_bulk_html, render_report_html

JST = timezone(timedelta(hours=9))


def _approved(**overrides) -> ReportWithParties:
    values = dict(
        id="r1",
        report_number="RPT-2024-01-001",
        user_number="U-1001",
        bank_code="0001",
        branch_code="001",
        company_name="Example Trading Co.",
        contact_person_name="Ichiro Yamada",
        inquiry_content="Asked about limits.\nSecond line.",
        response_content="Explained the limits.",
        status=ReportStatus.APPROVED,
        handler_id="h1",
        approver_id="a1",
        submitted_at=datetime(2024, 1, 15, 2, 0),
        approved_at=datetime(2024, 1, 15, 5, 30),
        created_at=datetime(2024, 1, 15, 1, 0),
        updated_at=datetime(2024, 1, 15, 5, 30),
        handler=UserSummary(id="h1", username="tanaka", display_name="Tanaka Taro"),
        approver=UserSummary(id="a1", username="suzuki", display_name="Suzuki Ichiro"),
        bank_name="Mizuho Bank",
        branch_name="Head Office",
    )
    values.update(overrides)
    return ReportWithParties(**values)


class TestReportHtml:
    """Tests for single-report HTML."""

    def test_contains_fields_and_parties(self):
        html = render_report_html(_approved(), JST, printed_at=datetime(2024, 1, 16, 0, 0))

        assert "RPT-2024-01-001" in html
        assert "0001 Mizuho Bank" in html
        assert "001 Head Office" in html
        assert "Tanaka Taro" in html
        assert "Suzuki Ichiro" in html
        assert "Printed 2024-01-16 09:00" in html

    def test_times_shown_in_business_timezone(self):
        html = render_report_html(_approved(), JST)

        assert "2024-01-15 14:30" in html

    def test_user_text_is_escaped(self):
        html = render_report_html(_approved(company_name="<script>alert(1)</script>"), JST)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_escalation_section_only_when_required(self):
        plain = render_report_html(_approved(), JST)
        escalated = render_report_html(
            _approved(escalation_required=True, escalation_reason="Threatened complaint"), JST
        )

        assert "Escalation reason" not in plain
        assert "Escalation reason" in escalated
        assert "Threatened complaint" in escalated

    @pytest.mark.parametrize(
        "status", [ReportStatus.DRAFT, ReportStatus.PENDING_APPROVAL, ReportStatus.REJECTED]
    )
    def test_unapproved_reports_are_not_printable(self, status):
        with pytest.raises(NotPrintableError):
            render_report_html(_approved(status=status), JST)


class TestBulkHtml:
    """Tests for multi-report HTML."""

    def test_one_section_per_report(self):
        reports = [_approved(), _approved(id="r2", report_number="RPT-2024-01-002")]

        html = render_bulk_html(reports, "0001", JST)

        assert html.count('<section class="report">') == 2
        assert "RPT-2024-01-002" in html
        assert "2 reports" in html

    def test_rejects_unapproved_member(self):
        reports = [_approved(), _approved(id="r2", status=ReportStatus.DRAFT)]

        with pytest.raises(NotPrintableError):
            render_bulk_html(reports, "0001", JST)
