"""Reconciliation of Grafana dashboards with a git repository."""

from grafana_dashboard_sync.sync.comparator import DashboardComparison, compare_documents, structurally_equal
from grafana_dashboard_sync.sync.config import (
    DashboardSyncSettings,
    PullConfiguration,
    PushConfiguration,
    SyncJob,
    load_jobs,
    parse_jobs,
)
from grafana_dashboard_sync.sync.filters import compile_filter, dashboard_path, matches_filter
from grafana_dashboard_sync.sync.pull import PullResult, pull_dashboards
from grafana_dashboard_sync.sync.push import PushResult, push_dashboards
from grafana_dashboard_sync.sync.synchronizer import (
    DashboardSynchronizer,
    JobOutcome,
    SyncPhase,
    SyncRunResult,
    open_clients,
    run_jobs,
)
from grafana_dashboard_sync.sync.watch_mode import PeriodicSyncRunner

__all__ = [
    "DashboardComparison",
    "DashboardSyncSettings",
    "DashboardSynchronizer",
    "JobOutcome",
    "PeriodicSyncRunner",
    "PullConfiguration",
    "PullResult",
    "PushConfiguration",
    "PushResult",
    "SyncJob",
    "SyncPhase",
    "SyncRunResult",
    "compare_documents",
    "compile_filter",
    "dashboard_path",
    "load_jobs",
    "matches_filter",
    "open_clients",
    "parse_jobs",
    "pull_dashboards",
    "push_dashboards",
    "run_jobs",
    "structurally_equal",
]
