"""Tests for financial institution reference data and demo seeding.

Run with: pytest backend/tests/unit/directory/test_institutions.py -v
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from rams.directory import InstitutionManager, UserManager
from rams.directory.seed import seed_demo_data
from rams.errors import ConflictError, NotFoundError
from rams.models import CreateBranchRequest, CreateInstitutionRequest


@pytest.fixture
def institutions(session_factory) -> InstitutionManager:
    return InstitutionManager(session_factory)


class TestInstitutionManager:
    """Tests for banks and branches."""

    @pytest.mark.asyncio
    async def test_duplicate_bank_code_conflicts(self, institutions, institution):
        with pytest.raises(ConflictError):
            await institutions.create_institution(
                CreateInstitutionRequest(bank_code="0001", bank_name="Another Bank")
            )

    @pytest.mark.asyncio
    async def test_branch_code_unique_per_institution(self, institutions, institution):
        other = await institutions.create_institution(
            CreateInstitutionRequest(bank_code="0005", bank_name="MUFG Bank")
        )

        # Same code under a different bank is fine
        await institutions.create_branch(
            CreateBranchRequest(institution_id=other.id, branch_code="001", branch_name="Head Office")
        )
        with pytest.raises(ConflictError):
            await institutions.create_branch(
                CreateBranchRequest(institution_id=institution.id, branch_code="001", branch_name="Dup")
            )

    @pytest.mark.asyncio
    async def test_branch_requires_institution(self, institutions):
        with pytest.raises(NotFoundError):
            await institutions.create_branch(
                CreateBranchRequest(institution_id="missing", branch_code="001", branch_name="X")
            )

    @pytest.mark.asyncio
    async def test_list_branches_ordered(self, institutions, institution):
        found = await institutions.list_branches(institution.id)

        assert [b.branch_code for b in found] == ["001", "002"]

    @pytest.mark.asyncio
    async def test_lookup_by_codes(self, institutions, institution):
        assert (await institutions.get_institution_by_code("0001")).bank_name == "Mizuho Bank"
        assert await institutions.get_institution_by_code("9999") is None
        assert (await institutions.get_branch_by_code("0001", "002")).branch_name == "Branch Office"
        assert await institutions.get_branch_by_code("0001", "999") is None

    def test_codes_must_be_alphanumeric(self):
        with pytest.raises(PydanticValidationError):
            CreateInstitutionRequest(bank_code="00 1", bank_name="Bad")


class TestSeed:
    """Tests for demo data seeding."""

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, session_factory):
        first = await seed_demo_data(session_factory)
        second = await seed_demo_data(session_factory)

        assert first == {"users": 5, "institutions": 3, "branches": 9}
        assert second == {"users": 0, "institutions": 0, "branches": 0}

    @pytest.mark.asyncio
    async def test_seeded_users_can_log_in(self, session_factory):
        await seed_demo_data(session_factory)

        user = await UserManager(session_factory).authenticate("takahashi", "password123")

        assert user.is_handler() and user.is_approver()
