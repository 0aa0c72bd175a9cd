"""Which reports a user may see.

Listing and search are filtered in SQL with the clauses built here;
single-report access uses ``can_view``. Both derive from the same role
rules:

- admin: every report
- approver: pending reports, their own reports and reports they decided
  (search is global)
- handler: their own reports
- anyone else, or an inactive account: nothing
"""

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from ..models import Report, ReportStatus, User
from ..models.reports import SEARCH_FIELDS
from ..schema import reports

LIKE_ESCAPE = "\\"


def visibility_clause(actor: User, *, searching: bool = False) -> ColumnElement[bool] | None:
    """WHERE clause restricting ``reports`` to what ``actor`` may list.

    Returns None when no restriction applies.
    """
    if not actor.is_active or not actor.roles:
        return sa.false()
    if actor.is_admin():
        return None
    if actor.is_approver():
        if searching:
            return None
        return sa.or_(
            reports.c.status == ReportStatus.PENDING_APPROVAL.value,
            reports.c.handler_id == actor.id,
            reports.c.approver_id == actor.id,
        )
    if actor.is_handler():
        return reports.c.handler_id == actor.id
    return sa.false()


def can_view(actor: User, report: Report) -> bool:
    """Whether ``actor`` may open ``report`` directly."""
    if not actor.is_active:
        return False
    if actor.is_admin() or actor.is_approver():
        return True
    return actor.is_handler() and report.handler_id == actor.id


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def search_clause(term: str) -> ColumnElement[bool] | None:
    """Case-insensitive substring match over the searchable fields."""
    term = term.strip()
    if not term:
        return None
    pattern = f"%{escape_like(term)}%"
    return sa.or_(
        *(reports.c[name].ilike(pattern, escape=LIKE_ESCAPE) for name in SEARCH_FIELDS)
    )
