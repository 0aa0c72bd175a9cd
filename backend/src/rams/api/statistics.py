"""API endpoint for dashboard statistics."""

from fastapi import APIRouter

from ..models import ReportStatistics
from .auth import CurrentUser
from .deps import Statistics

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get("", response_model=ReportStatistics)
async def get_statistics(user: CurrentUser, aggregator: Statistics) -> ReportStatistics:
    """Dashboard counters (global, not scoped to the caller)."""
    return await aggregator.get_statistics()
