"""API endpoints for inquiry response reports.

Provides report CRUD, the approval workflow actions, and printable
HTML/PDF output for approved reports.
"""

from fastapi import APIRouter, Query, Response
from fastapi.responses import HTMLResponse

from ..models import (
    ArchivedPdf,
    BulkPdfRequest,
    CreateReportRequest,
    Report,
    ReportListResponse,
    ReportStatus,
    ReportWithParties,
    StatusUpdateRequest,
    UpdateReportRequest,
)
from ..rendering import (
    render_bulk_html,
    render_report_html,
    render_report_pdf,
    validate_bulk_selection,
)
from .auth import CurrentUser
from .deps import AppSettings, Archive, Reports

router = APIRouter(prefix="/reports", tags=["reports"])


# =============================================================================
# Report Management Endpoints
# =============================================================================


@router.get("", response_model=ReportListResponse)
async def list_reports(
    user: CurrentUser,
    manager: Reports,
    status: ReportStatus | None = None,
    search: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ReportListResponse:
    """List reports visible to the current user, newest first."""
    items, total = await manager.list_reports(
        user.id,
        status=status,
        search=search,
        limit=limit,
        offset=offset,
    )
    return ReportListResponse(items=items, total=total, limit=limit, offset=offset)


@router.post("", response_model=Report, status_code=201)
async def create_report(
    request: CreateReportRequest,
    user: CurrentUser,
    manager: Reports,
) -> Report:
    """Create a report as a draft, or submit it immediately."""
    return await manager.create_report(user.id, request)


@router.post("/bulk-pdf", response_model=ArchivedPdf, status_code=201)
async def archive_bulk_pdf(
    request: BulkPdfRequest,
    user: CurrentUser,
    manager: Reports,
    archive: Archive,
) -> ArchivedPdf:
    """Merge approved reports of one bank into a single archived PDF."""
    reports = await manager.get_reports(user.id, request.report_ids)
    return await archive.save_bulk(reports)


@router.post("/bulk-print", response_class=HTMLResponse)
async def print_bulk(
    request: BulkPdfRequest,
    user: CurrentUser,
    manager: Reports,
    settings: AppSettings,
) -> HTMLResponse:
    """Printable HTML of several approved reports of one bank."""
    reports = await manager.get_reports(user.id, request.report_ids)
    bank_code = validate_bulk_selection(reports)
    return HTMLResponse(render_bulk_html(reports, bank_code, settings.business_tz))


@router.get("/{report_id}", response_model=ReportWithParties)
async def get_report(report_id: str, user: CurrentUser, manager: Reports) -> ReportWithParties:
    """Get report details with handler, approver and institution names."""
    return await manager.get_report(user.id, report_id)


@router.patch("/{report_id}", response_model=Report)
async def update_report(
    report_id: str,
    request: UpdateReportRequest,
    user: CurrentUser,
    manager: Reports,
) -> Report:
    """Update fields of a draft report."""
    return await manager.update_report_draft(user.id, report_id, request)


# =============================================================================
# Workflow Endpoints
# =============================================================================


@router.post("/{report_id}/submit", response_model=Report)
async def submit_report(report_id: str, user: CurrentUser, manager: Reports) -> Report:
    """Submit a draft for approval."""
    return await manager.submit_report(user.id, report_id)


@router.patch("/{report_id}/status", response_model=Report)
async def set_report_status(
    report_id: str,
    request: StatusUpdateRequest,
    user: CurrentUser,
    manager: Reports,
) -> Report:
    """Approve or reject a pending report.

    Returns 403 when the approver handles the report themselves, unless
    ``ALLOW_SELF_APPROVAL`` is set.
    """
    return await manager.set_report_status(user.id, report_id, request)


@router.post("/{report_id}/reset", response_model=Report)
async def reset_report(report_id: str, user: CurrentUser, manager: Reports) -> Report:
    """Return a rejected report to draft."""
    return await manager.reset_report_to_draft(user.id, report_id)


# =============================================================================
# Output Endpoints
# =============================================================================


@router.get("/{report_id}/print", response_class=HTMLResponse)
async def print_report(
    report_id: str,
    user: CurrentUser,
    manager: Reports,
    settings: AppSettings,
) -> HTMLResponse:
    """Printable HTML of an approved report."""
    report = await manager.get_report(user.id, report_id)
    return HTMLResponse(render_report_html(report, settings.business_tz))


@router.get("/{report_id}/pdf")
async def download_pdf(
    report_id: str,
    user: CurrentUser,
    manager: Reports,
    settings: AppSettings,
) -> Response:
    """Download an approved report as PDF without archiving it."""
    report = await manager.get_report(user.id, report_id)
    content = render_report_pdf(report, settings.business_tz)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report.report_number}.pdf"'},
    )


@router.post("/{report_id}/pdf", response_model=ArchivedPdf, status_code=201)
async def archive_pdf(
    report_id: str,
    user: CurrentUser,
    manager: Reports,
    archive: Archive,
) -> ArchivedPdf:
    """Render an approved report and store it in the PDF archive."""
    report = await manager.get_report(user.id, report_id)
    return await archive.save_report(report)
