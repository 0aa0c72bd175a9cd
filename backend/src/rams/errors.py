"""Domain exceptions raised by the RAMS core.

Every rejected operation raises one of these before anything is
written, so callers can tell "nothing changed" apart from success.
The API layer maps them onto HTTP responses.
"""

from pydantic import BaseModel


class FieldError(BaseModel):
    """A validation failure attached to one input field."""

    field: str
    message: str


class RamsError(Exception):
    """Base class for all domain errors."""

    error_code = "RAMS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RamsError):
    """One or more fields are missing or invalid."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class ForbiddenError(RamsError):
    """The actor lacks the role or ownership the operation requires."""

    error_code = "ACCESS_DENIED"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class AuthenticationError(RamsError):
    """Credentials are missing or wrong."""

    error_code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFoundError(RamsError):
    """A referenced report, user, institution or branch does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class InvalidTransitionError(RamsError):
    """The action is not legal from the report's current status.

    Also raised when a concurrent writer changed the status first; the
    client can refresh and decide again.
    """

    error_code = "INVALID_TRANSITION"

    def __init__(self, report_id: str, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} report {report_id} in status '{current_status}'"
        )
        self.report_id = report_id
        self.current_status = current_status
        self.action = action


class NotPrintableError(InvalidTransitionError):
    """Only approved reports can be rendered for print or PDF."""

    error_code = "NOT_PRINTABLE"

    def __init__(self, report_id: str, current_status: str):
        super().__init__(report_id, current_status, "print")


class ConflictError(RamsError):
    """A uniqueness or reference constraint blocks the write."""

    error_code = "CONFLICT"


class SequenceConflictError(RamsError):
    """A generated number collided with an existing one (retried internally)."""

    error_code = "SEQUENCE_CONFLICT"

    def __init__(self, scope: str, value: int):
        super().__init__(f"Sequence value {value} already used in scope {scope}")
        self.scope = scope
        self.value = value


class SequenceAllocationError(RamsError):
    """Retries were exhausted without obtaining a free sequence number."""

    error_code = "SEQUENCE_EXHAUSTED"

    def __init__(self, scope: str, attempts: int):
        super().__init__(
            f"Could not allocate a unique number in scope {scope} after {attempts} attempts"
        )
        self.scope = scope
        self.attempts = attempts
