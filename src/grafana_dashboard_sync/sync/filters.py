"""Dashboard path filters.

A filter is a regular expression matched against `<folder>/<title>`. Matching is unanchored: the dashboard is
selected when the expression matches anywhere in that string. `teamA/` therefore selects `teamA/cpu` and also a
dashboard titled `teamA/old` in folder `teamB`.
"""

from __future__ import annotations

import re

from grafana_dashboard_sync.errors import InvalidPatternError

DashboardFilter = re.Pattern[str] | None
"""A compiled filter. `None` selects every dashboard."""


def compile_filter(pattern: str | None) -> DashboardFilter:
    """Compile a path filter.

    Args:
        pattern: The regular expression, or an empty/None value to select everything.

    Returns:
        The compiled expression, or None when no filtering should happen.

    Raises:
        InvalidPatternError: If the pattern is not a valid regular expression.
    """
    if not pattern:
        return None

    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, cause=e) from e


def dashboard_path(folder: str, title: str) -> str:
    """Return the string filters are matched against."""
    return f"{folder}/{title}"


def matches_filter(dashboard_filter: DashboardFilter, folder: str, title: str) -> bool:
    """Check whether a dashboard is selected by a compiled filter."""
    if dashboard_filter is None:
        return True

    return dashboard_filter.search(dashboard_path(folder, title)) is not None
