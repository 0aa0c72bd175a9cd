"""API endpoints for the PDF archive.

Archived files are not tied to report ownership, so browsing the
archive is limited to roles that may open any report.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from ..models import ArchivedPdf
from .auth import AdminUser, ReviewerUser
from .deps import Archive

router = APIRouter(prefix="/pdfs", tags=["pdfs"])


@router.get("", response_model=list[ArchivedPdf])
async def list_pdfs(user: ReviewerUser, archive: Archive) -> list[ArchivedPdf]:
    """Archived PDFs, newest first."""
    return archive.list()


@router.get("/{filename}")
async def get_pdf(filename: str, user: ReviewerUser, archive: Archive) -> FileResponse:
    return FileResponse(archive.path_for(filename), media_type="application/pdf", filename=filename)


@router.delete("/{filename}", status_code=204)
async def delete_pdf(filename: str, admin: AdminUser, archive: Archive) -> None:
    archive.delete(filename)
