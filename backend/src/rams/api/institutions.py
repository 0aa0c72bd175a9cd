"""API endpoints for financial institutions and branches."""

from fastapi import APIRouter

from ..models import Branch, CreateBranchRequest, CreateInstitutionRequest, FinancialInstitution
from .auth import AdminUser, CurrentUser
from .deps import Institutions

router = APIRouter(tags=["institutions"])


@router.get("/financial-institutions", response_model=list[FinancialInstitution])
async def list_institutions(user: CurrentUser, institutions: Institutions) -> list[FinancialInstitution]:
    return await institutions.list_institutions()


@router.post("/financial-institutions", response_model=FinancialInstitution, status_code=201)
async def create_institution(
    request: CreateInstitutionRequest,
    admin: AdminUser,
    institutions: Institutions,
) -> FinancialInstitution:
    return await institutions.create_institution(request)


@router.get("/financial-institutions/{institution_id}/branches", response_model=list[Branch])
async def list_branches(
    institution_id: str,
    user: CurrentUser,
    institutions: Institutions,
) -> list[Branch]:
    """Branches of one institution, ordered by branch code."""
    return await institutions.list_branches(institution_id)


@router.post("/branches", response_model=Branch, status_code=201)
async def create_branch(
    request: CreateBranchRequest,
    admin: AdminUser,
    institutions: Institutions,
) -> Branch:
    return await institutions.create_branch(request)
