"""Report lifecycle: the status machine and its guards.

The workflow is expressed as data. Each Transition names the action,
the status it starts from, the status it produces and who may fire it.
The manager looks transitions up here instead of branching on status.

    draft --submit--> pending_approval --approve--> approved
                              |
                              +--reject--> rejected --reset--> draft

Approved is terminal. Nothing is ever deleted.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import FieldError, ForbiddenError, InvalidTransitionError, ValidationError
from ..models import REQUIRED_FIELDS, Report, ReportStatus, Role, User


class ReportAction(str, Enum):
    """Actions that move a report between statuses."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    RESET = "reset"


@dataclass(frozen=True)
class Transition:
    """A single allowed status change."""

    action: ReportAction
    source: ReportStatus
    target: ReportStatus
    required_role: Role
    owner_only: bool = False
    forbid_self_review: bool = False


@dataclass(frozen=True)
class Workflow:
    """A named set of transitions with an initial status."""

    name: str
    initial: ReportStatus
    transitions: tuple[Transition, ...]

    def transition_for(self, action: ReportAction) -> Transition:
        for transition in self.transitions:
            if transition.action == action:
                return transition
        raise KeyError(action)

    def actions_from(self, status: ReportStatus) -> list[ReportAction]:
        """Actions whose source status is ``status``."""
        return [t.action for t in self.transitions if t.source == status]

    def is_terminal(self, status: ReportStatus) -> bool:
        return not self.actions_from(status)


REPORT_WORKFLOW = Workflow(
    name="report_approval",
    initial=ReportStatus.DRAFT,
    transitions=(
        Transition(
            ReportAction.SUBMIT,
            ReportStatus.DRAFT,
            ReportStatus.PENDING_APPROVAL,
            required_role=Role.HANDLER,
            owner_only=True,
        ),
        Transition(
            ReportAction.APPROVE,
            ReportStatus.PENDING_APPROVAL,
            ReportStatus.APPROVED,
            required_role=Role.APPROVER,
            forbid_self_review=True,
        ),
        Transition(
            ReportAction.REJECT,
            ReportStatus.PENDING_APPROVAL,
            ReportStatus.REJECTED,
            required_role=Role.APPROVER,
            forbid_self_review=True,
        ),
        Transition(
            ReportAction.RESET,
            ReportStatus.REJECTED,
            ReportStatus.DRAFT,
            required_role=Role.HANDLER,
            owner_only=True,
        ),
    ),
)


# =========================
# Validation
# =========================


def _field_value(fields: Report | Mapping[str, Any], name: str) -> Any:
    if isinstance(fields, Mapping):
        return fields.get(name)
    return getattr(fields, name, None)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_for_submission(fields: Report | Mapping[str, Any]) -> list[FieldError]:
    """Return one error per required field that is missing or blank.

    The escalation reason becomes required when escalation is flagged.
    An empty list means the report may be submitted.
    """
    errors = [
        FieldError(field=name, message=f"{label} is required")
        for name, label in REQUIRED_FIELDS.items()
        if _is_blank(_field_value(fields, name))
    ]
    if _field_value(fields, "escalation_required") and _is_blank(
        _field_value(fields, "escalation_reason")
    ):
        errors.append(
            FieldError(
                field="escalation_reason",
                message="Escalation reason is required when escalation is flagged",
            )
        )
    return errors


def validate_rejection_reason(reason: str | None) -> str:
    """Return the trimmed rejection reason or raise ValidationError."""
    if _is_blank(reason):
        raise ValidationError(
            [FieldError(field="rejection_reason", message="Rejection reason is required")]
        )
    return reason.strip()


# =========================
# Guards
# =========================


def require_active(actor: User) -> None:
    if not actor.is_active:
        raise ForbiddenError(f"User {actor.username} is inactive")


def authorize_transition(
    transition: Transition,
    actor: User,
    report: Report,
    *,
    allow_self_approval: bool = False,
) -> None:
    """Raise ForbiddenError unless ``actor`` may fire ``transition`` on ``report``."""
    require_active(actor)
    action = transition.action.value
    if not actor.has_role(transition.required_role):
        raise ForbiddenError(
            f"Role '{transition.required_role.value}' is required to {action} reports"
        )
    if transition.owner_only and report.handler_id != actor.id:
        raise ForbiddenError(
            f"Only the handler of report {report.report_number} may {action} it"
        )
    if (
        transition.forbid_self_review
        and not allow_self_approval
        and report.handler_id == actor.id
    ):
        raise ForbiddenError(f"Cannot {action} your own report {report.report_number}")


def ensure_source_status(transition: Transition, report: Report) -> None:
    """Raise InvalidTransitionError unless the report is in the transition's source status."""
    if report.status != transition.source:
        raise InvalidTransitionError(report.id, report.status.value, transition.action.value)


def authorize_edit(actor: User, report: Report) -> None:
    """Only the owning handler may edit, and only while the report is a draft."""
    require_active(actor)
    if report.handler_id != actor.id:
        raise ForbiddenError(
            f"Only the handler of report {report.report_number} may edit it"
        )
    if report.status != ReportStatus.DRAFT:
        raise InvalidTransitionError(report.id, report.status.value, "edit")
