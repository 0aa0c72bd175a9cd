"""Report approval workflow for RAMS.

Main components:
- ReportManager: creates reports and applies lifecycle transitions
- REPORT_WORKFLOW: the status machine as data
- SequenceGenerator: collision-free report numbers and PDF filenames
- Visibility rules: which reports a user may list, search and view
- StatisticsAggregator: dashboard counters

Usage:
    from rams.workflow import get_report_manager

    manager = get_report_manager()
    report = await manager.create_report(handler_id, CreateReportRequest(...))
    report = await manager.submit_report(handler_id, report.id)
    report = await manager.approve_report(approver_id, report.id)
"""

from .lifecycle import (
    REPORT_WORKFLOW,
    ReportAction,
    Transition,
    Workflow,
    validate_for_submission,
)
from .manager import ReportManager, get_report_manager
from .sequence import SequenceGenerator, format_report_number
from .statistics import StatisticsAggregator
from .visibility import can_view, visibility_clause

__all__ = [
    "REPORT_WORKFLOW",
    "ReportAction",
    "ReportManager",
    "SequenceGenerator",
    "StatisticsAggregator",
    "Transition",
    "Workflow",
    "can_view",
    "format_report_number",
    "get_report_manager",
    "validate_for_submission",
    "visibility_clause",
]
