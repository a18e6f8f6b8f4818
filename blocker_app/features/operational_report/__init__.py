"""Operational report feature: company-wide and per-team analytics contexts."""

from blocker_app.features.operational_report.context import (
    OperationalReport,
    TeamReport,
    build_operational_report,
    build_team_report,
    count_active_actors,
)

__all__ = [
    "OperationalReport",
    "TeamReport",
    "build_operational_report",
    "build_team_report",
    "count_active_actors",
]
