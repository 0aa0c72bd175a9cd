"""Base enums and helpers shared by the RAMS domain models."""

from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    """Capability tags a user may hold. A user holds a set of these."""

    HANDLER = "handler"
    APPROVER = "approver"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        """Parse a role tag, accepting ``creator`` as an alias of handler."""
        if isinstance(value, Role):
            return value
        normalized = value.strip().lower()
        if normalized == "creator":
            return cls.HANDLER
        return cls(normalized)


class ReportStatus(str, Enum):
    """Lifecycle status of a report."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    """Outcome an approver may record for a pending report."""

    APPROVED = "approved"
    REJECTED = "rejected"


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC for storage and comparison."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
