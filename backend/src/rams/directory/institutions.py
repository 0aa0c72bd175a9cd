"""Financial institution and branch reference data."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import ConflictError, NotFoundError
from ..models import (
    Branch,
    CreateBranchRequest,
    CreateInstitutionRequest,
    FinancialInstitution,
    utcnow,
)
from ..schema import branches, financial_institutions

logger = logging.getLogger(__name__)


class InstitutionManager:
    """Looks up and registers banks and their branches."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def list_institutions(self) -> list[FinancialInstitution]:
        async with self._get_session() as session:
            result = await session.execute(
                select(financial_institutions).order_by(financial_institutions.c.bank_code)
            )
            return [FinancialInstitution.model_validate(dict(r._mapping)) for r in result]

    async def get_institution(self, institution_id: str) -> FinancialInstitution:
        async with self._get_session() as session:
            result = await session.execute(
                select(financial_institutions).where(financial_institutions.c.id == institution_id)
            )
            row = result.first()
        if row is None:
            raise NotFoundError("Financial institution", institution_id)
        return FinancialInstitution.model_validate(dict(row._mapping))

    async def get_institution_by_code(self, bank_code: str) -> FinancialInstitution | None:
        async with self._get_session() as session:
            result = await session.execute(
                select(financial_institutions).where(financial_institutions.c.bank_code == bank_code)
            )
            row = result.first()
        return FinancialInstitution.model_validate(dict(row._mapping)) if row else None

    async def create_institution(self, request: CreateInstitutionRequest) -> FinancialInstitution:
        institution = FinancialInstitution(
            id=str(uuid4()),
            bank_code=request.bank_code,
            bank_name=request.bank_name.strip(),
            created_at=utcnow(),
        )
        try:
            async with self._get_session() as session:
                await session.execute(insert(financial_institutions).values(**institution.model_dump()))
        except IntegrityError as e:
            raise ConflictError(f"Bank code already exists: {request.bank_code}") from e

        logger.info(f"Registered institution {institution.bank_code} {institution.bank_name}")
        return institution

    async def list_branches(self, institution_id: str) -> list[Branch]:
        """Branches of an institution, ordered by branch code."""
        await self.get_institution(institution_id)
        async with self._get_session() as session:
            result = await session.execute(
                select(branches)
                .where(branches.c.institution_id == institution_id)
                .order_by(branches.c.branch_code)
            )
            return [Branch.model_validate(dict(r._mapping)) for r in result]

    async def create_branch(self, request: CreateBranchRequest) -> Branch:
        """Register a branch.

        Raises:
            NotFoundError: If the institution does not exist.
            ConflictError: If the branch code is taken within the institution.
        """
        institution = await self.get_institution(request.institution_id)
        branch = Branch(
            id=str(uuid4()),
            institution_id=institution.id,
            branch_code=request.branch_code,
            branch_name=request.branch_name.strip(),
            created_at=utcnow(),
        )
        try:
            async with self._get_session() as session:
                await session.execute(insert(branches).values(**branch.model_dump()))
        except IntegrityError as e:
            raise ConflictError(
                f"Branch code {request.branch_code} already exists for bank {institution.bank_code}"
            ) from e

        logger.info(f"Registered branch {institution.bank_code}/{branch.branch_code}")
        return branch

    async def get_branch_by_code(self, bank_code: str, branch_code: str) -> Branch | None:
        async with self._get_session() as session:
            result = await session.execute(
                select(branches)
                .select_from(
                    branches.join(
                        financial_institutions,
                        branches.c.institution_id == financial_institutions.c.id,
                    )
                )
                .where(
                    financial_institutions.c.bank_code == bank_code,
                    branches.c.branch_code == branch_code,
                )
            )
            row = result.first()
        return Branch.model_validate(dict(row._mapping)) if row else None
