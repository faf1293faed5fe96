"""Interfaces of the two stores dashboards are synchronized between.

The reconcilers only talk to these interfaces, so they can be driven by the Grafana and git implementations in this
package or by any other implementation (for example in-memory fakes in tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from grafana_dashboard_sync.models import DashboardDocument, FolderRef, FoundDashboard, StatusResult

FileTree = dict[str, dict[str, bytes]]
"""Folder name -> file name -> file content."""


class LiveStoreClient(ABC):
    """Access to the dashboard server holding the live configuration."""

    @abstractmethod
    def search_by_tag(self, tag: str) -> list[FoundDashboard]:
        """Find all dashboards carrying `tag`.

        Raises:
            RemoteError: If the search request fails.
        """

    @abstractmethod
    def get_by_uid(self, uid: str) -> DashboardDocument | None:
        """Fetch a dashboard and the folder it lives in.

        Returns:
            The dashboard, or None if no dashboard with this uid exists.

        Raises:
            RemoteError: If the request fails for any other reason.
        """

    @abstractmethod
    def create_or_update(self, body: dict[str, Any], folder_id: int, message: str) -> StatusResult:
        """Create a dashboard or overwrite the existing one with the same uid.

        Args:
            body: The dashboard JSON model, written verbatim.
            folder_id: The folder to place the dashboard in.
            message: The version message stored in the dashboard history.

        Raises:
            RemoteError: If the write fails.
        """

    @abstractmethod
    def get_folder(self, name: str) -> FolderRef | None:
        """Look up a folder by title.

        The `General` folder always resolves to id 0 without contacting the server.

        Returns:
            The folder, or None if it does not exist.
        """

    @abstractmethod
    def create_folder(self, name: str) -> FolderRef:
        """Create a folder.

        The `General` folder is never created; it resolves to id 0.

        Raises:
            RemoteError: If the folder could not be created.
        """


@dataclass(frozen=True)
class RepositoryHandle:
    """A checked out branch of the working tree."""

    branch: str
    working_dir: Path


class VersionControlClient(ABC):
    """Access to the version controlled file tree dashboards are exported to."""

    @abstractmethod
    def checkout_or_clone(self, branch: str) -> RepositoryHandle:
        """Clone the repository on first use and check out `branch`, discarding uncommitted changes.

        Raises:
            RemoteError: If the repository cannot be cloned or the branch cannot be checked out.
        """

    @abstractmethod
    def latest_revision_id(self, handle: RepositoryHandle) -> str:
        """Return the id of the newest commit on the checked out branch.

        Raises:
            NotFoundError: If the branch has no commits.
        """

    @abstractmethod
    def list_tree(self, handle: RepositoryHandle) -> FileTree:
        """Read the dashboards in the working tree, grouped by top level directory."""

    @abstractmethod
    def stage_file(self, handle: RepositoryHandle, path: str, data: bytes) -> None:
        """Write `data` to `path` (relative to the working tree root)."""

    @abstractmethod
    def commit_staged(self, handle: RepositoryHandle, message: str) -> str:
        """Commit every change in the working tree.

        Returns:
            The id of the new commit.

        Raises:
            NoChangesError: If nothing differs from the branch head.
        """

    @abstractmethod
    def push(self, handle: RepositoryHandle) -> None:
        """Push the checked out branch to the remote.

        Raises:
            RemoteError: If the push fails or is rejected.
        """
