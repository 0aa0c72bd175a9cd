"""Financial institution and branch reference data."""

from datetime import datetime

from pydantic import BaseModel, Field


class FinancialInstitution(BaseModel):
    """A bank identified by its unique bank code."""

    id: str
    bank_code: str
    bank_name: str
    created_at: datetime


class Branch(BaseModel):
    """A branch, unique only within its institution."""

    id: str
    institution_id: str
    branch_code: str
    branch_name: str
    created_at: datetime


class CreateInstitutionRequest(BaseModel):
    """Request to register a financial institution."""

    bank_code: str = Field(..., min_length=1, max_length=10, pattern=r"^[0-9A-Za-z]+$")
    bank_name: str = Field(..., min_length=1, max_length=200)


class CreateBranchRequest(BaseModel):
    """Request to register a branch under an institution."""

    institution_id: str = Field(..., min_length=1)
    branch_code: str = Field(..., min_length=1, max_length=10, pattern=r"^[0-9A-Za-z]+$")
    branch_name: str = Field(..., min_length=1, max_length=200)
