"""Dependency providers for the API routers.

Everything hangs off ``get_session_factory`` and ``get_settings`` so
tests can swap the database by overriding one dependency.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, get_settings
from ..db import get_session_factory
from ..directory import InstitutionManager, UserManager
from ..rendering import PdfArchive
from ..workflow import ReportManager, SequenceGenerator, StatisticsAggregator

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_report_manager(factory: SessionFactory, settings: AppSettings) -> ReportManager:
    return ReportManager(factory, settings=settings)


def get_user_manager(factory: SessionFactory) -> UserManager:
    return UserManager(factory)


def get_institution_manager(factory: SessionFactory) -> InstitutionManager:
    return InstitutionManager(factory)


def get_statistics_aggregator(factory: SessionFactory, settings: AppSettings) -> StatisticsAggregator:
    return StatisticsAggregator(factory, settings.business_tz)


def get_pdf_archive(factory: SessionFactory, settings: AppSettings) -> PdfArchive:
    return PdfArchive(
        settings.pdf_storage_path,
        SequenceGenerator(factory),
        settings.business_tz,
        max_attempts=settings.sequence_max_retries,
    )


Reports = Annotated[ReportManager, Depends(get_report_manager)]
Users = Annotated[UserManager, Depends(get_user_manager)]
Institutions = Annotated[InstitutionManager, Depends(get_institution_manager)]
Statistics = Annotated[StatisticsAggregator, Depends(get_statistics_aggregator)]
Archive = Annotated[PdfArchive, Depends(get_pdf_archive)]
