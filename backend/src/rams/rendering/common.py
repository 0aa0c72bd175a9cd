"""Shared pieces of report rendering: the print guard and field layout."""

from datetime import datetime, tzinfo

from ..errors import NotPrintableError
from ..models import Report, ReportStatus, ReportWithParties
from ..workflow.periods import to_local

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
DOCUMENT_TITLE = "Inquiry Response Report"


def ensure_printable(report: Report) -> None:
    """Raise NotPrintableError unless the report is approved."""
    if report.status != ReportStatus.APPROVED:
        raise NotPrintableError(report.id, report.status.value)


def format_timestamp(moment: datetime | None, tz: tzinfo) -> str:
    if moment is None:
        return ""
    return to_local(moment, tz).strftime(TIMESTAMP_FORMAT)


def _with_name(code: str, name: str | None) -> str:
    if code and name:
        return f"{code} {name}"
    return code or name or ""


def report_sections(report: ReportWithParties, tz: tzinfo) -> dict:
    """Label/value rows and text blocks of one printed report.

    Used by both the HTML and PDF renderers so they stay in step.
    """
    handler = report.handler.display_name if report.handler else ""
    approver = report.approver.display_name if report.approver else ""
    return {
        "report_number": report.report_number,
        "basic": [
            ("Report number", report.report_number),
            ("User number", report.user_number),
            ("Bank", _with_name(report.bank_code, report.bank_name)),
            ("Branch", _with_name(report.branch_code, report.branch_name)),
            ("Company name", report.company_name),
            ("Contact person", report.contact_person_name),
        ],
        "processing": [
            ("Handler", handler),
            ("Approver", approver),
            ("Created", format_timestamp(report.created_at, tz)),
            ("Submitted", format_timestamp(report.submitted_at, tz)),
            ("Approved", format_timestamp(report.approved_at, tz)),
            ("Escalation", "Required" if report.escalation_required else "Not required"),
        ],
        "inquiry": report.inquiry_content,
        "response": report.response_content,
        "escalation_reason": report.escalation_reason if report.escalation_required else None,
        "signatures": [("Handler", handler), ("Approver", approver)],
    }
