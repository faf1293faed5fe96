"""Comparison engine for detecting meaningful differences between two copies of a dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from grafana_dashboard_sync.models import DashboardDocument

STORAGE_MEMBERS = ("version", "id")
"""Body members that are assigned by the Grafana instance storing the dashboard, not by its author."""


@dataclass(frozen=True)
class DashboardComparison:
    """The result of comparing the current copy of a dashboard with the copy about to be written."""

    title: str
    difference: str | None
    """JSON path of the first difference found, or None when both copies are equal."""

    target_exists: bool = True

    @property
    def equal(self) -> bool:
        return self.difference is None

    def summary(self) -> str:
        if self.equal:
            return f"Dashboard '{self.title}' is up-to-date"
        if not self.target_exists:
            return f"Dashboard '{self.title}' does not exist yet"
        return f"Dashboard '{self.title}' differs at {self.difference}"


def normalize(target: DashboardDocument | None, source: DashboardDocument) -> DashboardDocument:
    """Align the fields of `target` that are expected to differ for storage reasons with those of `source`.

    The revision counter, the database id and the sync origin are artifacts of where a dashboard is stored and of
    how often it was imported. Comparing them would report every dashboard as changed on every run.

    Args:
        target: The copy currently stored in the destination, or None if it does not exist there yet.
        source: The copy being considered for writing.

    Returns:
        A copy of `target` (or of an empty document) with `version`, `id` and `sync_origin` taken from `source`.
    """
    normalized = target.copy() if target is not None else DashboardDocument()

    for member in STORAGE_MEMBERS:
        if member in source.body:
            normalized.body[member] = source.body[member]
        else:
            normalized.body.pop(member, None)

    normalized.sync_origin = source.sync_origin
    return normalized


def find_difference(left: Any, right: Any, path: str = "$") -> str | None:  # noqa: ANN401
    """Recursively compare two parsed JSON values.

    Objects must have the same members, arrays the same length and order. Numbers compare by value, so `1` and
    `1.0` are equal, but booleans never equal numbers.

    Returns:
        The JSON path of the first difference, or None if the values are structurally equal.
    """
    if isinstance(left, dict) and isinstance(right, dict):
        if extra := left.keys() ^ right.keys():
            return f"{path}.{min(extra)}"
        for key in left:
            difference = find_difference(left[key], right[key], f"{path}.{key}")
            if difference is not None:
                return difference
        return None

    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return path
        for index, (left_item, right_item) in enumerate(zip(left, right, strict=True)):
            difference = find_difference(left_item, right_item, f"{path}[{index}]")
            if difference is not None:
                return difference
        return None

    if isinstance(left, bool) or isinstance(right, bool):
        return None if type(left) is type(right) and left == right else path

    if isinstance(left, int | float) and isinstance(right, int | float):
        return None if left == right else path

    if type(left) is not type(right) or left != right:
        return path

    return None


def structurally_equal(left: Any, right: Any) -> bool:  # noqa: ANN401
    """Return True if two parsed JSON values are deeply equal."""
    return find_difference(left, right) is None


def compare_documents(target: DashboardDocument | None, source: DashboardDocument) -> DashboardComparison:
    """Normalize `target` against `source` and compare them.

    Args:
        target: The copy currently stored in the destination, or None if it does not exist there yet.
        source: The copy being considered for writing.

    Returns:
        A DashboardComparison; a write is required when it is not `equal`.
    """
    normalized = normalize(target, source)

    difference = find_difference(normalized.body, source.body)
    if difference is None and normalized.sync_origin != source.sync_origin:
        difference = "$.syncOrigin"

    comparison = DashboardComparison(title=source.title, difference=difference, target_exists=target is not None)
    logger.debug(comparison.summary())
    return comparison
