"""Report lifecycle management.

The ReportManager owns every write to the ``reports`` table. Each
public operation takes the acting user's id, checks authorization
before state, and performs its write as a single conditional UPDATE so
a concurrent writer can never be silently overwritten.
"""

import logging
from collections.abc import Callable, Iterable
from contextlib import asynccontextmanager
from datetime import datetime, tzinfo
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, get_settings
from ..db import get_session_factory
from ..directory.users import load_user, row_to_user
from ..errors import (
    FieldError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    SequenceAllocationError,
    SequenceConflictError,
    ValidationError,
)
from ..logging import log_report_transition, log_sequence_conflict
from ..models import (
    CreateReportRequest,
    Report,
    ReportStatus,
    ReportWithParties,
    ReviewDecision,
    StatusUpdateRequest,
    UpdateReportRequest,
    User,
    utcnow,
)
from ..schema import branches, financial_institutions, reports, users
from .lifecycle import (
    REPORT_WORKFLOW,
    ReportAction,
    Transition,
    authorize_edit,
    authorize_transition,
    ensure_source_status,
    require_active,
    validate_for_submission,
    validate_rejection_reason,
)
from .sequence import SequenceGenerator
from .visibility import can_view, search_clause, visibility_clause

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

_TEXT_FIELDS = (
    "user_number",
    "bank_code",
    "branch_code",
    "company_name",
    "contact_person_name",
    "inquiry_content",
    "response_content",
)


def row_to_report(row: Any) -> Report:
    """Convert a ``reports`` row to a Report."""
    return Report.model_validate(dict(row._mapping))


def _report_values(report: Report) -> dict[str, Any]:
    values = report.model_dump()
    values["status"] = report.status.value
    return values


def _normalize_fields(fields: dict[str, Any], escalation_required: bool) -> dict[str, Any]:
    """Map unset text fields to empty strings and drop an unneeded escalation reason."""
    normalized = dict(fields)
    for name in _TEXT_FIELDS:
        if name in normalized and normalized[name] is None:
            normalized[name] = ""
    if "escalation_required" in normalized and normalized["escalation_required"] is None:
        normalized["escalation_required"] = False
    if not escalation_required:
        normalized["escalation_reason"] = None
    return normalized


class ReportManager:
    """Creates reports and moves them through the approval workflow.

    Args:
        session_factory: Session factory; defaults to the application's.
        settings: Application settings; defaults to ``get_settings()``.
        clock: Returns the current time as naive UTC.
        tz: Business timezone for report-number months; defaults to the
            configured one.
        sequences: Sequence generator; defaults to one on the same
            session factory.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        tz: tzinfo | None = None,
        sequences: SequenceGenerator | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._settings = settings or get_settings()
        self._clock = clock
        self._tz = tz or self._settings.business_tz
        self._sequences = sequences or SequenceGenerator(self._session_factory)

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a fresh database session that commits on success."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # =========================
    # Loading
    # =========================

    async def _load_report(self, session: AsyncSession, report_id: str) -> Report:
        result = await session.execute(select(reports).where(reports.c.id == report_id))
        row = result.first()
        if row is None:
            raise NotFoundError("Report", report_id)
        return row_to_report(row)

    async def _load_context(
        self, session: AsyncSession, actor_id: str, report_id: str
    ) -> tuple[User, Report]:
        actor = await load_user(session, actor_id)
        report = await self._load_report(session, report_id)
        return actor, report

    async def _with_parties(
        self, session: AsyncSession, items: list[Report]
    ) -> list[ReportWithParties]:
        """Attach handler/approver summaries and institution names.

        Missing references leave the corresponding attribute unset; the
        report itself is always returned.
        """
        if not items:
            return []

        user_ids = {r.handler_id for r in items} | {r.approver_id for r in items if r.approver_id}
        result = await session.execute(select(users).where(users.c.id.in_(user_ids)))
        people = {row.id: row_to_user(row).summary() for row in result}

        bank_codes = {r.bank_code for r in items if r.bank_code}
        bank_names: dict[str, str] = {}
        branch_names: dict[tuple[str, str], str] = {}
        if bank_codes:
            result = await session.execute(
                select(financial_institutions.c.bank_code, financial_institutions.c.bank_name).where(
                    financial_institutions.c.bank_code.in_(bank_codes)
                )
            )
            bank_names = {row.bank_code: row.bank_name for row in result}

            result = await session.execute(
                select(
                    financial_institutions.c.bank_code,
                    branches.c.branch_code,
                    branches.c.branch_name,
                )
                .select_from(
                    financial_institutions.join(
                        branches, branches.c.institution_id == financial_institutions.c.id
                    )
                )
                .where(financial_institutions.c.bank_code.in_(bank_codes))
            )
            branch_names = {(row.bank_code, row.branch_code): row.branch_name for row in result}

        return [
            ReportWithParties(
                **r.model_dump(),
                handler=people.get(r.handler_id),
                approver=people.get(r.approver_id) if r.approver_id else None,
                bank_name=bank_names.get(r.bank_code),
                branch_name=branch_names.get((r.bank_code, r.branch_code)),
            )
            for r in items
        ]

    # =========================
    # Writes
    # =========================

    async def _conditional_update(
        self,
        session: AsyncSession,
        report: Report,
        expected: ReportStatus,
        action: str,
        values: dict[str, Any],
    ) -> Report:
        """UPDATE the report only if it is still in ``expected`` status.

        Raises:
            InvalidTransitionError: If a concurrent writer changed the status.
            NotFoundError: If the report vanished.
        """
        result = await session.execute(
            update(reports)
            .where(reports.c.id == report.id, reports.c.status == expected.value)
            .values(**values)
        )
        if result.rowcount == 0:
            current = await session.execute(select(reports.c.status).where(reports.c.id == report.id))
            status = current.scalar_one_or_none()
            if status is None:
                raise NotFoundError("Report", report.id)
            raise InvalidTransitionError(report.id, status, action)
        return await self._load_report(session, report.id)

    async def _apply_transition(
        self,
        actor_id: str,
        report_id: str,
        action: ReportAction,
        build_values: Callable[[User, Report, Transition], dict[str, Any]],
    ) -> Report:
        transition = REPORT_WORKFLOW.transition_for(action)
        async with self._get_session() as session:
            actor, report = await self._load_context(session, actor_id, report_id)
            authorize_transition(
                transition,
                actor,
                report,
                allow_self_approval=self._settings.allow_self_approval,
            )
            ensure_source_status(transition, report)
            values = build_values(actor, report, transition)
            values["status"] = transition.target.value
            values["updated_at"] = self._clock()
            updated = await self._conditional_update(
                session, report, transition.source, action.value, values
            )

        log_report_transition(
            updated.id,
            updated.report_number,
            transition.source.value,
            transition.target.value,
            actor.id,
        )
        return updated

    async def _insert_report(self, report: Report, scope: str, value: int) -> None:
        try:
            async with self._get_session() as session:
                await session.execute(insert(reports).values(**_report_values(report)))
        except IntegrityError as e:
            if "report_number" in str(e.orig):
                raise SequenceConflictError(scope, value) from e
            raise

    # =========================
    # Operations
    # =========================

    async def create_report(self, actor_id: str, request: CreateReportRequest) -> Report:
        """Create a report owned by the actor.

        Drafts may be partial. With ``submit_immediately`` the fields are
        validated first and the report is stored as pending approval.

        Raises:
            NotFoundError: If the actor does not exist.
            ForbiddenError: If the actor lacks the handler role.
            ValidationError: If immediate submission fails validation.
            SequenceAllocationError: If no free report number was found.
        """
        async with self._get_session() as session:
            actor = await load_user(session, actor_id)
        require_active(actor)
        if not actor.is_handler():
            raise ForbiddenError("Role 'handler' is required to create reports")

        raw = request.model_dump(exclude={"submit_immediately"})
        fields = _normalize_fields(raw, bool(raw.get("escalation_required")))
        status = REPORT_WORKFLOW.initial
        if request.submit_immediately:
            errors = validate_for_submission(fields)
            if errors:
                raise ValidationError(errors)
            status = ReportStatus.PENDING_APPROVAL

        attempts = self._settings.sequence_max_retries
        scope = ""
        for attempt in range(1, attempts + 1):
            now = self._clock()
            number, scope, value = await self._sequences.next_report_number(now, self._tz)
            report = Report(
                id=str(uuid4()),
                report_number=number,
                status=status,
                handler_id=actor.id,
                submitted_at=now if status == ReportStatus.PENDING_APPROVAL else None,
                created_at=now,
                updated_at=now,
                **fields,
            )
            try:
                await self._insert_report(report, scope, value)
            except SequenceConflictError as e:
                log_sequence_conflict(e.scope, e.value, attempt)
                continue

            log_report_transition(report.id, report.report_number, None, status.value, actor.id)
            return report

        raise SequenceAllocationError(scope, attempts)

    async def update_report_draft(
        self, actor_id: str, report_id: str, request: UpdateReportRequest
    ) -> Report:
        """Update fields of a draft. Only fields set in the request are written.

        Raises:
            NotFoundError: If the report or actor does not exist.
            ForbiddenError: If the actor is not the owning handler.
            InvalidTransitionError: If the report is no longer a draft.
        """
        async with self._get_session() as session:
            actor, report = await self._load_context(session, actor_id, report_id)
            authorize_edit(actor, report)

            changes = request.model_dump(exclude_unset=True)
            if not changes:
                return report
            escalation = changes.get("escalation_required")
            if escalation is None:
                escalation = report.escalation_required
            changes = _normalize_fields(changes, escalation)
            changes["updated_at"] = self._clock()
            updated = await self._conditional_update(
                session, report, ReportStatus.DRAFT, "edit", changes
            )

        logger.info(
            f"Updated draft {updated.report_number}",
            extra={"report_id": updated.id, "actor_id": actor_id, "fields": sorted(changes)},
        )
        return updated

    async def submit_report(self, actor_id: str, report_id: str) -> Report:
        """Submit a complete draft for approval.

        Raises:
            NotFoundError: If the report or actor does not exist.
            ForbiddenError: If the actor is not the owning handler.
            InvalidTransitionError: If the report is not a draft.
            ValidationError: If required fields are blank.
        """

        def values(actor: User, report: Report, transition: Transition) -> dict[str, Any]:
            errors = validate_for_submission(report)
            if errors:
                raise ValidationError(errors)
            return {"submitted_at": self._clock()}

        return await self._apply_transition(actor_id, report_id, ReportAction.SUBMIT, values)

    async def approve_report(self, actor_id: str, report_id: str) -> Report:
        """Approve a pending report, recording the approver and time.

        Approving one's own report is refused unless ``allow_self_approval``.
        """

        def values(actor: User, report: Report, transition: Transition) -> dict[str, Any]:
            return {
                "approver_id": actor.id,
                "approved_at": self._clock(),
                "rejection_reason": None,
            }

        return await self._apply_transition(actor_id, report_id, ReportAction.APPROVE, values)

    async def reject_report(self, actor_id: str, report_id: str, reason: str | None) -> Report:
        """Reject a pending report. A non-blank reason is required."""

        def values(actor: User, report: Report, transition: Transition) -> dict[str, Any]:
            return {
                "approver_id": actor.id,
                "approved_at": None,
                "rejection_reason": validate_rejection_reason(reason),
            }

        return await self._apply_transition(actor_id, report_id, ReportAction.REJECT, values)

    async def set_report_status(
        self, actor_id: str, report_id: str, request: StatusUpdateRequest
    ) -> Report:
        """Record an approver's decision on a pending report.

        Raises:
            ForbiddenError: If the actor is not an approver, or is the
                report's own handler while ``allow_self_approval`` is off
                (the default). Users holding both roles review other
                handlers' reports only.
            InvalidTransitionError: If the report is not pending.
            ValidationError: If a rejection has no reason.
        """
        if request.status == ReviewDecision.APPROVED:
            return await self.approve_report(actor_id, report_id)
        return await self.reject_report(actor_id, report_id, request.rejection_reason)

    async def reset_report_to_draft(self, actor_id: str, report_id: str) -> Report:
        """Return a rejected report to draft so its handler can revise it.

        Raises:
            ForbiddenError: If resets are disabled or the actor is not the owner.
            InvalidTransitionError: If the report is not rejected.
        """
        if not self._settings.allow_rejected_reset:
            raise ForbiddenError("Resetting rejected reports is disabled")

        def values(actor: User, report: Report, transition: Transition) -> dict[str, Any]:
            return {"approver_id": None, "rejection_reason": None, "submitted_at": None}

        return await self._apply_transition(actor_id, report_id, ReportAction.RESET, values)

    # =========================
    # Queries
    # =========================

    async def get_report(self, actor_id: str, report_id: str) -> ReportWithParties:
        """Get one report with its parties if the actor may view it."""
        async with self._get_session() as session:
            actor, report = await self._load_context(session, actor_id, report_id)
            if not can_view(actor, report):
                raise ForbiddenError(f"Not allowed to view report {report.report_number}")
            [enriched] = await self._with_parties(session, [report])
        return enriched

    async def get_reports(self, actor_id: str, report_ids: Iterable[str]) -> list[ReportWithParties]:
        """Get several reports in the given order; every one must be viewable."""
        ids = list(dict.fromkeys(report_ids))
        async with self._get_session() as session:
            actor = await load_user(session, actor_id)
            result = await session.execute(select(reports).where(reports.c.id.in_(ids)))
            found = {row.id: row_to_report(row) for row in result}
            for report_id in ids:
                if report_id not in found:
                    raise NotFoundError("Report", report_id)
                if not can_view(actor, found[report_id]):
                    raise ForbiddenError(
                        f"Not allowed to view report {found[report_id].report_number}"
                    )
            return await self._with_parties(session, [found[i] for i in ids])

    async def list_reports(
        self,
        actor_id: str,
        status: ReportStatus | str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ReportWithParties], int]:
        """List reports visible to the actor, newest first.

        Returns:
            Tuple of (page of reports, total matching count).

        Raises:
            ValidationError: If ``status`` is not a report status.
        """
        if status is not None:
            try:
                status = ReportStatus(status)
            except ValueError:
                raise ValidationError(
                    [FieldError(field="status", message=f"Unknown report status: {status}")]
                )
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        matcher = search_clause(search) if search else None

        async with self._get_session() as session:
            actor = await load_user(session, actor_id)
            conditions = []
            scope = visibility_clause(actor, searching=matcher is not None)
            if scope is not None:
                conditions.append(scope)
            if status is not None:
                conditions.append(reports.c.status == status.value)
            if matcher is not None:
                conditions.append(matcher)

            count = await session.execute(
                select(func.count()).select_from(reports).where(*conditions)
            )
            total = count.scalar_one()

            result = await session.execute(
                select(reports)
                .where(*conditions)
                .order_by(reports.c.created_at.desc(), reports.c.report_number.desc())
                .limit(limit)
                .offset(offset)
            )
            items = await self._with_parties(session, [row_to_report(row) for row in result])

        return items, total


# Singleton instance
_report_manager: ReportManager | None = None


def get_report_manager() -> ReportManager:
    """Get the report manager singleton."""
    global _report_manager
    if _report_manager is None:
        _report_manager = ReportManager()
    return _report_manager
