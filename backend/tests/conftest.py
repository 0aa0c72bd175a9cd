"""Pytest fixtures shared by the RAMS test suite.

Every test gets its own file-backed SQLite database under ``tmp_path``
so concurrent sessions behave like separate connections.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from rams.config import Settings
from rams.db import create_engine, create_session_factory, init_db
from rams.directory import InstitutionManager, UserManager
from rams.models import (
    CreateBranchRequest,
    CreateInstitutionRequest,
    CreateReportRequest,
    CreateUserRequest,
    ReportStatus,
    Role,
)
from rams.workflow import ReportManager, SequenceGenerator

JST = timezone(timedelta(hours=9), "JST")


class FixedClock:
    """Deterministic clock returning naive UTC; ``advance`` moves it forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# =========================
# Configuration Fixtures
# =========================


@pytest.fixture
def clock() -> FixedClock:
    """2024-01-15 12:00 JST."""
    return FixedClock(datetime(2024, 1, 15, 3, 0, 0))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rams.db'}",
        business_timezone="UTC",
        pdf_storage_path=tmp_path / "pdfs",
        jwt_secret="test-secret",
        log_format="text",
    )


# =========================
# Database Fixtures
# =========================


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine(settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def users(session_factory) -> dict:
    """Users keyed by username, covering every role combination."""
    manager = UserManager(session_factory)
    specs = [
        ("handler", "Taro", "Tanaka", {Role.HANDLER}, None),
        ("handler2", "Hanako", "Sato", {Role.HANDLER}, None),
        ("approver", "Ichiro", "Suzuki", {Role.APPROVER}, 1),
        ("dual", "Jiro", "Takahashi", {Role.HANDLER, Role.APPROVER}, 2),
        ("admin", "Saburo", "Tamura", {Role.ADMIN}, None),
        ("nobody", None, None, set(), None),
    ]
    created = {}
    for username, first, last, roles, level in specs:
        created[username] = await manager.create_user(
            CreateUserRequest(
                username=username,
                password="password123",
                first_name=first,
                last_name=last,
                roles=roles,
                approval_level=level,
            )
        )
    return created


@pytest_asyncio.fixture
async def institution(session_factory):
    """Bank 0001 with branches 001 and 002."""
    manager = InstitutionManager(session_factory)
    bank = await manager.create_institution(
        CreateInstitutionRequest(bank_code="0001", bank_name="Mizuho Bank")
    )
    for code, name in [("001", "Head Office"), ("002", "Branch Office")]:
        await manager.create_branch(
            CreateBranchRequest(institution_id=bank.id, branch_code=code, branch_name=name)
        )
    return bank


# =========================
# Workflow Fixtures
# =========================


@pytest.fixture
def sequences(session_factory) -> SequenceGenerator:
    return SequenceGenerator(session_factory)


@pytest.fixture
def report_manager(session_factory, settings, clock) -> ReportManager:
    return ReportManager(session_factory, settings=settings, clock=clock, tz=JST)


@pytest.fixture
def complete_fields() -> dict:
    """Every field required for submission, filled in."""
    return {
        "user_number": "U-1001",
        "bank_code": "0001",
        "branch_code": "001",
        "company_name": "Example Trading Co.",
        "contact_person_name": "Ichiro Yamada",
        "inquiry_content": "Asked about the daily transfer limit.",
        "response_content": "Explained the limit and how to raise it.",
    }


@pytest.fixture
def make_report(report_manager, users, complete_fields):
    """Create a report and drive it to the requested status."""

    async def _make(
        status: ReportStatus = ReportStatus.DRAFT,
        handler: str = "handler",
        approver: str = "approver",
        **overrides,
    ):
        handler_id = users[handler].id
        report = await report_manager.create_report(
            handler_id, CreateReportRequest(**{**complete_fields, **overrides})
        )
        if status == ReportStatus.DRAFT:
            return report
        report = await report_manager.submit_report(handler_id, report.id)
        if status == ReportStatus.PENDING_APPROVAL:
            return report
        if status == ReportStatus.APPROVED:
            return await report_manager.approve_report(users[approver].id, report.id)
        return await report_manager.reject_report(users[approver].id, report.id, "Missing details")

    return _make
