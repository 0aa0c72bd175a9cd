"""Domain models for RAMS."""

from .base import ReportStatus, ReviewDecision, Role, to_storage, utcnow
from .institutions import (
    Branch,
    CreateBranchRequest,
    CreateInstitutionRequest,
    FinancialInstitution,
)
from .reports import (
    REQUIRED_FIELDS,
    ArchivedPdf,
    BulkPdfRequest,
    CreateReportRequest,
    Report,
    ReportFields,
    ReportListResponse,
    ReportStatistics,
    ReportWithParties,
    StatusUpdateRequest,
    UpdateReportRequest,
)
from .users import (
    ChangePasswordRequest,
    CreateUserRequest,
    UpdateUserRequest,
    User,
    UserResponse,
    UserSummary,
)

__all__ = [
    # Enums
    "ReportStatus",
    "ReviewDecision",
    "Role",
    # Time helpers
    "to_storage",
    "utcnow",
    # Reference data
    "Branch",
    "CreateBranchRequest",
    "CreateInstitutionRequest",
    "FinancialInstitution",
    # Reports
    "REQUIRED_FIELDS",
    "ArchivedPdf",
    "BulkPdfRequest",
    "CreateReportRequest",
    "Report",
    "ReportFields",
    "ReportListResponse",
    "ReportStatistics",
    "ReportWithParties",
    "StatusUpdateRequest",
    "UpdateReportRequest",
    # Users
    "ChangePasswordRequest",
    "CreateUserRequest",
    "UpdateUserRequest",
    "User",
    "UserResponse",
    "UserSummary",
]
