"""Pydantic models for inquiry response reports.

This module defines the report entity, its enriched view with the
people and institution names involved, and the request/response
models used by the workflow and the API.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .base import ReportStatus, ReviewDecision
from .users import UserSummary

# Business fields that must be non-blank before a report can be submitted,
# in the order they appear on the form.
REQUIRED_FIELDS: dict[str, str] = {
    "user_number": "User number",
    "bank_code": "Bank code",
    "branch_code": "Branch code",
    "company_name": "Company name",
    "contact_person_name": "Contact person name",
    "inquiry_content": "Inquiry content",
    "response_content": "Response content",
}

# Fields matched by free-text search.
SEARCH_FIELDS = (
    "report_number",
    "company_name",
    "contact_person_name",
    "inquiry_content",
)


class ReportFields(BaseModel):
    """Business fields of a report. All optional so drafts may be partial."""

    user_number: str | None = Field(default=None, max_length=50)
    bank_code: str | None = Field(default=None, max_length=10, pattern=r"^[0-9A-Za-z]*$")
    branch_code: str | None = Field(default=None, max_length=10, pattern=r"^[0-9A-Za-z]*$")
    company_name: str | None = Field(default=None, max_length=200)
    contact_person_name: str | None = Field(default=None, max_length=200)
    inquiry_content: str | None = None
    response_content: str | None = None
    escalation_required: bool | None = None
    escalation_reason: str | None = None


class Report(BaseModel):
    """An inquiry response report moving through the approval workflow."""

    id: str
    report_number: str
    user_number: str = ""
    bank_code: str = ""
    branch_code: str = ""
    company_name: str = ""
    contact_person_name: str = ""
    inquiry_content: str = ""
    response_content: str = ""
    escalation_required: bool = False
    escalation_reason: str | None = None
    status: ReportStatus = ReportStatus.DRAFT
    handler_id: str
    approver_id: str | None = None
    rejection_reason: str | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ReportWithParties(Report):
    """A report with its handler, approver and resolved institution names."""

    handler: UserSummary | None = None
    approver: UserSummary | None = None
    bank_name: str | None = None
    branch_name: str | None = None


# =============================================================================
# Request/Response Models
# =============================================================================


class CreateReportRequest(ReportFields):
    """Request to create a report, optionally submitting it right away."""

    submit_immediately: bool = False


class UpdateReportRequest(ReportFields):
    """Partial update of a draft report. Only set fields are written."""


class StatusUpdateRequest(BaseModel):
    """An approver's decision on a pending report."""

    status: ReviewDecision
    rejection_reason: str | None = None


class ReportStatistics(BaseModel):
    """Dashboard counters."""

    today_inquiries: int = 0
    pending_approvals: int = 0
    monthly_completed: int = 0
    escalations: int = 0


class ReportListResponse(BaseModel):
    """Response for report list endpoint."""

    items: list[ReportWithParties]
    total: int
    limit: int
    offset: int


class BulkPdfRequest(BaseModel):
    """Reports to merge into one bulk PDF (all from the same bank)."""

    report_ids: list[str] = Field(..., min_length=1, max_length=200)


class ArchivedPdf(BaseModel):
    """A PDF written to the archive."""

    filename: str
    size_bytes: int
