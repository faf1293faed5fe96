"""Synchronize tagged Grafana dashboards with a git repository."""

from __future__ import annotations

GENERAL_FOLDER_NAME = "General"
"""The folder Grafana uses for dashboards that are not inside any folder. It always exists and cannot be created."""

GENERAL_FOLDER_ID = 0
"""The fixed folder id of the `General` folder."""

SYNC_ORIGIN_FIELD = "syncOrigin"
"""Top level member added to exported dashboard files, recording the job that produced the file."""

DEFAULT_COMMIT_AUTHOR_NAME = "grafana-dashboard-sync"
DEFAULT_COMMIT_AUTHOR_EMAIL = "grafana-dashboard-sync@localhost"

from .errors import (  # noqa: E402
    ConfigurationError,
    DashboardSyncError,
    InvalidPatternError,
    MalformedDocumentError,
    NoChangesError,
    NotFoundError,
    RemoteError,
)
from .models import DashboardDocument, FolderRef, FoundDashboard, StatusResult  # noqa: E402

__all__ = [
    "DEFAULT_COMMIT_AUTHOR_EMAIL",
    "DEFAULT_COMMIT_AUTHOR_NAME",
    "GENERAL_FOLDER_ID",
    "GENERAL_FOLDER_NAME",
    "SYNC_ORIGIN_FIELD",
    "ConfigurationError",
    "DashboardDocument",
    "DashboardSyncError",
    "FolderRef",
    "FoundDashboard",
    "InvalidPatternError",
    "MalformedDocumentError",
    "NoChangesError",
    "NotFoundError",
    "RemoteError",
    "StatusResult",
]
