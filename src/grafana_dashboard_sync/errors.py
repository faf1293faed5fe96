"""Exceptions raised while synchronizing dashboards.

Every fatal condition aborts the current phase (push or pull) of the current job. `NotFoundError` and
`NoChangesError` are expected signals which callers handle to take a create path or skip a commit.
"""

from __future__ import annotations


class DashboardSyncError(Exception):
    """Base exception for all synchronization errors."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class InvalidPatternError(DashboardSyncError):
    """A dashboard path filter is not a valid regular expression."""

    def __init__(self, pattern: str, *, cause: BaseException | None = None) -> None:
        super().__init__(f"Invalid filter pattern {pattern!r}: {cause}", cause=cause)
        self.pattern = pattern


class RemoteError(DashboardSyncError):
    """A Grafana or git operation failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code


class NotFoundError(DashboardSyncError):
    """The requested object does not exist."""


class MalformedDocumentError(DashboardSyncError):
    """A versioned dashboard file could not be deserialized."""

    def __init__(self, path: str, *, cause: BaseException | None = None) -> None:
        super().__init__(f"Malformed dashboard document at {path}: {cause}", cause=cause)
        self.path = path


class NoChangesError(DashboardSyncError):
    """A commit was requested but nothing differs from the current branch head."""


class ConfigurationError(DashboardSyncError):
    """The job configuration file is missing or invalid."""
