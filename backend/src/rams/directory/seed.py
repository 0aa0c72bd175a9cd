"""Demo reference data: users, banks and branches.

Seeding is idempotent; existing usernames and bank codes are skipped.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import CreateBranchRequest, CreateInstitutionRequest, CreateUserRequest, Role
from .institutions import InstitutionManager
from .users import UserManager

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    CreateUserRequest(
        username="tanaka", password=DEMO_PASSWORD, first_name="Taro", last_name="Tanaka",
        roles={Role.HANDLER},
    ),
    CreateUserRequest(
        username="sato", password=DEMO_PASSWORD, first_name="Hanako", last_name="Sato",
        roles={Role.HANDLER},
    ),
    CreateUserRequest(
        username="suzuki", password=DEMO_PASSWORD, first_name="Ichiro", last_name="Suzuki",
        roles={Role.APPROVER}, approval_level=1,
    ),
    CreateUserRequest(
        username="takahashi", password=DEMO_PASSWORD, first_name="Jiro", last_name="Takahashi",
        roles={Role.HANDLER, Role.APPROVER}, approval_level=2,
    ),
    CreateUserRequest(
        username="tamura", password=DEMO_PASSWORD, first_name="Saburo", last_name="Tamura",
        roles={Role.ADMIN},
    ),
]

DEMO_INSTITUTIONS = [
    ("0001", "Mizuho Bank"),
    ("0005", "MUFG Bank"),
    ("0009", "Sumitomo Mitsui Banking Corporation"),
]

DEMO_BRANCHES = [
    ("001", "Head Office"),
    ("002", "Branch Office"),
    ("003", "Sales Department"),
]


async def seed_demo_data(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    """Insert demo users, institutions and branches that are missing.

    Returns:
        Counts of created users, institutions and branches.
    """
    user_manager = UserManager(session_factory)
    institution_manager = InstitutionManager(session_factory)
    created = {"users": 0, "institutions": 0, "branches": 0}

    for request in DEMO_USERS:
        if await user_manager.get_user_by_username(request.username) is None:
            await user_manager.create_user(request)
            created["users"] += 1

    for bank_code, bank_name in DEMO_INSTITUTIONS:
        institution = await institution_manager.get_institution_by_code(bank_code)
        if institution is None:
            institution = await institution_manager.create_institution(
                CreateInstitutionRequest(bank_code=bank_code, bank_name=bank_name)
            )
            created["institutions"] += 1

        for branch_code, branch_name in DEMO_BRANCHES:
            if await institution_manager.get_branch_by_code(bank_code, branch_code) is None:
                await institution_manager.create_branch(
                    CreateBranchRequest(
                        institution_id=institution.id,
                        branch_code=branch_code,
                        branch_name=branch_name,
                    )
                )
                created["branches"] += 1

    logger.info("Seeded demo data", extra=created)
    return created
