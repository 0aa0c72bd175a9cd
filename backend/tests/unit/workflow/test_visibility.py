"""Tests for report visibility and search.

Run with: pytest backend/tests/unit/workflow/test_visibility.py -v
"""

import pytest
import pytest_asyncio

from rams.directory import UserManager
from rams.errors import ForbiddenError, ValidationError
from rams.models import ReportStatus, UpdateUserRequest
from rams.workflow.visibility import escape_like, search_clause


class TestSearchHelpers:
    """Tests for LIKE escaping."""

    def test_wildcards_escaped(self):
        assert escape_like("100%") == "100\\%"
        assert escape_like("a_b") == "a\\_b"
        assert escape_like("back\\slash") == "back\\\\slash"

    def test_blank_term_matches_everything(self):
        assert search_clause("   ") is None


@pytest_asyncio.fixture
async def seeded_reports(make_report):
    """One report per status for handler, plus a pending one for handler2."""
    return {
        "draft": await make_report(company_name="Alpha Draft"),
        "pending": await make_report(ReportStatus.PENDING_APPROVAL, company_name="Beta Pending"),
        "approved": await make_report(ReportStatus.APPROVED, company_name="Gamma 100% Ltd."),
        "rejected": await make_report(
            ReportStatus.REJECTED, approver="dual", company_name="Delta Rejected"
        ),
        "other_draft": await make_report(handler="handler2", company_name="Epsilon Draft"),
        "other_pending": await make_report(
            ReportStatus.PENDING_APPROVAL, handler="handler2", company_name="Zeta Pending"
        ),
    }


def _ids(items) -> set[str]:
    return {r.id for r in items}


class TestListVisibility:
    """Tests for role-scoped listing."""

    @pytest.mark.asyncio
    async def test_handler_sees_only_own(self, report_manager, users, seeded_reports):
        items, total = await report_manager.list_reports(users["handler2"].id)

        assert total == 2
        assert _ids(items) == {seeded_reports["other_draft"].id, seeded_reports["other_pending"].id}

    @pytest.mark.asyncio
    async def test_approver_sees_pending_and_decided(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["approver"].id)

        assert _ids(items) == {
            seeded_reports["pending"].id,
            seeded_reports["other_pending"].id,
            seeded_reports["approved"].id,
        }

    @pytest.mark.asyncio
    async def test_dual_role_sees_own_and_pending(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["dual"].id)

        assert _ids(items) == {
            seeded_reports["pending"].id,
            seeded_reports["other_pending"].id,
            seeded_reports["rejected"].id,
        }

    @pytest.mark.asyncio
    async def test_admin_sees_everything(self, report_manager, users, seeded_reports):
        _, total = await report_manager.list_reports(users["admin"].id)

        assert total == len(seeded_reports)

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, report_manager, users):
        with pytest.raises(ValidationError) as exc_info:
            await report_manager.list_reports(users["admin"].id, status="archived")

        assert exc_info.value.fields == ["status"]

    @pytest.mark.asyncio
    async def test_roleless_user_sees_nothing(self, report_manager, users, seeded_reports):
        items, total = await report_manager.list_reports(users["nobody"].id)

        assert items == []
        assert total == 0

    @pytest.mark.asyncio
    async def test_inactive_user_sees_nothing(
        self, report_manager, users, seeded_reports, session_factory
    ):
        await UserManager(session_factory).update_user(
            users["admin"].id, UpdateUserRequest(is_active=False)
        )

        _, total = await report_manager.list_reports(users["admin"].id)

        assert total == 0

    @pytest.mark.asyncio
    async def test_status_filter(self, report_manager, users, seeded_reports):
        items, total = await report_manager.list_reports(
            users["admin"].id, status=ReportStatus.PENDING_APPROVAL
        )

        assert total == 2
        assert all(r.status == ReportStatus.PENDING_APPROVAL for r in items)

    @pytest.mark.asyncio
    async def test_pagination_reports_full_total(self, report_manager, users, seeded_reports, clock):
        items, total = await report_manager.list_reports(users["admin"].id, limit=2, offset=0)
        rest, _ = await report_manager.list_reports(users["admin"].id, limit=10, offset=2)

        assert total == 6
        assert len(items) == 2
        assert len(rest) == 4
        assert not _ids(items) & _ids(rest)

    @pytest.mark.asyncio
    async def test_newest_number_first_for_same_timestamp(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["admin"].id)

        numbers = [r.report_number for r in items]
        assert numbers == sorted(numbers, reverse=True)

    @pytest.mark.asyncio
    async def test_parties_are_resolved(self, report_manager, users, institution, seeded_reports):
        items, _ = await report_manager.list_reports(users["approver"].id, status="approved")

        [report] = items
        assert report.handler.display_name == "Tanaka Taro"
        assert report.approver.username == "approver"
        assert report.bank_name == "Mizuho Bank"
        assert report.branch_name == "Head Office"


class TestSearch:
    """Tests for free-text search."""

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["admin"].id, search="beta")

        assert _ids(items) == {seeded_reports["pending"].id}

    @pytest.mark.asyncio
    async def test_percent_matches_literally(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["admin"].id, search="100%")

        assert _ids(items) == {seeded_reports["approved"].id}

    @pytest.mark.asyncio
    async def test_search_by_report_number(self, report_manager, users, seeded_reports):
        number = seeded_reports["draft"].report_number

        items, _ = await report_manager.list_reports(users["handler"].id, search=number)

        assert _ids(items) == {seeded_reports["draft"].id}

    @pytest.mark.asyncio
    async def test_handler_search_stays_scoped(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["handler"].id, search="Draft")

        assert _ids(items) == {seeded_reports["draft"].id}

    @pytest.mark.asyncio
    async def test_approver_search_is_global(self, report_manager, users, seeded_reports):
        items, _ = await report_manager.list_reports(users["approver"].id, search="Draft")

        assert _ids(items) == {seeded_reports["draft"].id, seeded_reports["other_draft"].id}


class TestDirectAccess:
    """Tests for opening a single report."""

    @pytest.mark.asyncio
    async def test_handler_cannot_open_others(self, report_manager, users, seeded_reports):
        with pytest.raises(ForbiddenError):
            await report_manager.get_report(users["handler2"].id, seeded_reports["draft"].id)

    @pytest.mark.asyncio
    async def test_approver_can_open_any(self, report_manager, users, seeded_reports):
        report = await report_manager.get_report(users["approver"].id, seeded_reports["draft"].id)

        assert report.company_name == "Alpha Draft"

    @pytest.mark.asyncio
    async def test_get_reports_keeps_order(self, report_manager, users, seeded_reports):
        ids = [seeded_reports["approved"].id, seeded_reports["draft"].id]

        items = await report_manager.get_reports(users["admin"].id, ids)

        assert [r.id for r in items] == ids

    @pytest.mark.asyncio
    async def test_get_reports_checks_every_report(self, report_manager, users, seeded_reports):
        with pytest.raises(ForbiddenError):
            await report_manager.get_reports(
                users["handler"].id,
                [seeded_reports["draft"].id, seeded_reports["other_draft"].id],
            )
