"""In-memory stand-ins for Grafana and git, recording every call the reconcilers make."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from typing_extensions import override

from grafana_dashboard_sync import GENERAL_FOLDER_ID, GENERAL_FOLDER_NAME
from grafana_dashboard_sync.clients.base import FileTree, LiveStoreClient, RepositoryHandle, VersionControlClient
from grafana_dashboard_sync.errors import NoChangesError, NotFoundError
from grafana_dashboard_sync.models import DashboardDocument, FolderRef, FoundDashboard, StatusResult

JOB_NAME = "test-job"


def dashboard_body(
    uid: str,
    title: str,
    *,
    tags: list[str] | None = None,
    **members: Any,  # noqa: ANN401
) -> dict[str, Any]:
    """Build a minimal dashboard JSON model."""
    body: dict[str, Any] = {
        "uid": uid,
        "title": title,
        "tags": list(tags or []),
        "panels": [{"id": 1, "type": "graph", "title": f"{title} panel", "targets": [{"expr": "up"}]}],
        "schemaVersion": 39,
    }
    body.update(members)
    return body


def dashboard_file(body: dict[str, Any], sync_origin: str = "origin-job") -> bytes:
    """Serialize a dashboard the way it is stored in the repository."""
    return DashboardDocument(body=body, sync_origin=sync_origin).to_bytes()


class FakeLiveStore(LiveStoreClient):
    """A Grafana instance held in memory.

    Writes behave like Grafana: the version counter increases, new dashboards get a database id, and the JSON model is
    stored as sent (including `syncOrigin`).
    """

    def __init__(self) -> None:
        self.dashboards: dict[str, dict[str, Any]] = {}
        self.dashboard_folders: dict[str, int] = {}
        self.folders: dict[int, FolderRef] = {GENERAL_FOLDER_ID: FolderRef(name=GENERAL_FOLDER_NAME, id=0)}
        self.writes: list[tuple[dict[str, Any], int, str]] = []
        self.created_folders: list[str] = []
        self.search_calls = 0
        self._next_id = 100

    def add_folder(self, name: str) -> FolderRef:
        self._next_id += 1
        folder = FolderRef(name=name, id=self._next_id, uid=f"folder-{self._next_id}")
        self.folders[folder.id] = folder
        return folder

    def add_dashboard(self, body: dict[str, Any], folder: str = GENERAL_FOLDER_NAME) -> None:
        folder_ref = self.get_folder(folder) or self.add_folder(folder)
        stored = copy.deepcopy(body)
        self._next_id += 1
        stored.setdefault("id", self._next_id)
        stored.setdefault("version", 1)
        self.dashboards[stored["uid"]] = stored
        self.dashboard_folders[stored["uid"]] = folder_ref.id

    def folder_of(self, uid: str) -> str:
        return self.folders[self.dashboard_folders[uid]].name

    @override
    def search_by_tag(self, tag: str) -> list[FoundDashboard]:
        self.search_calls += 1
        return [
            FoundDashboard(
                uid=uid,
                title=body["title"],
                folder_id=self.dashboard_folders[uid],
                folder_title=self.folder_of(uid),
            )
            for uid, body in self.dashboards.items()
            if tag in body.get("tags", [])
        ]

    @override
    def get_by_uid(self, uid: str) -> DashboardDocument | None:
        body = self.dashboards.get(uid)
        if body is None:
            return None
        folder_id = self.dashboard_folders[uid]
        return DashboardDocument.from_payload(body, folder_path=self.folders[folder_id].name, folder_id=folder_id)

    @override
    def create_or_update(self, body: dict[str, Any], folder_id: int, message: str) -> StatusResult:
        self.writes.append((copy.deepcopy(body), folder_id, message))

        stored = copy.deepcopy(body)
        existing = self.dashboards.get(stored["uid"])
        if existing is not None:
            stored["id"] = existing["id"]
            stored["version"] = existing.get("version", 0) + 1
        else:
            self._next_id += 1
            stored["id"] = self._next_id
            stored["version"] = 1

        self.dashboards[stored["uid"]] = stored
        self.dashboard_folders[stored["uid"]] = folder_id
        return StatusResult(id=stored["id"], uid=stored["uid"], status="success", version=stored["version"])

    @override
    def get_folder(self, name: str) -> FolderRef | None:
        for folder in self.folders.values():
            if folder.name == name:
                return folder
        return None

    @override
    def create_folder(self, name: str) -> FolderRef:
        if name == GENERAL_FOLDER_NAME:
            return self.folders[GENERAL_FOLDER_ID]
        self.created_folders.append(name)
        return self.add_folder(name)


class FakeVersionControl(VersionControlClient):
    """A remote repository and its working tree held in memory. Paths are `<folder>/<file>`."""

    def __init__(self) -> None:
        self.remote_files: dict[str, dict[str, bytes]] = {}
        self.remote_commits: dict[str, list[str]] = {}
        self.working: dict[str, bytes] = {}
        self.commits_created: list[str] = []
        self.pushes: list[str] = []
        self.checkouts: list[str] = []
        self._head_files: dict[str, bytes] = {}
        self._local_commits: list[str] = []

    def seed(self, branch: str, files: dict[str, bytes], commit_id: str = "seed0001") -> None:
        """Put an initial commit with `files` on the remote `branch`."""
        self.remote_files[branch] = dict(files)
        self.remote_commits[branch] = [commit_id]

    def remote_document(self, branch: str, path: str) -> dict[str, Any]:
        return json.loads(self.remote_files[branch][path])

    @override
    def checkout_or_clone(self, branch: str) -> RepositoryHandle:
        self.checkouts.append(branch)
        self._head_files = dict(self.remote_files.get(branch, {}))
        self._local_commits = list(self.remote_commits.get(branch, []))
        self.working = dict(self._head_files)
        return RepositoryHandle(branch=branch, working_dir=Path("/nonexistent/working-tree"))

    @override
    def latest_revision_id(self, handle: RepositoryHandle) -> str:
        if not self._local_commits:
            raise NotFoundError(f"Branch {handle.branch} has no commits")
        return self._local_commits[-1]

    @override
    def list_tree(self, handle: RepositoryHandle) -> FileTree:
        tree: FileTree = {}
        for path in sorted(self.working):
            folder, _, name = path.partition("/")
            if not name or "/" in name or not name.endswith(".json"):
                continue
            tree.setdefault(folder, {})[name] = self.working[path]
        return tree

    @override
    def stage_file(self, handle: RepositoryHandle, path: str, data: bytes) -> None:
        self.working[path] = data

    @override
    def commit_staged(self, handle: RepositoryHandle, message: str) -> str:
        if self.working == self._head_files:
            raise NoChangesError(f"Nothing to commit on branch {handle.branch}")
        commit_id = f"commit{len(self.commits_created) + 1:04d}"
        self._head_files = dict(self.working)
        self._local_commits.append(commit_id)
        self.commits_created.append(commit_id)
        return commit_id

    @override
    def push(self, handle: RepositoryHandle) -> None:
        self.pushes.append(handle.branch)
        self.remote_files[handle.branch] = dict(self._head_files)
        self.remote_commits[handle.branch] = list(self._local_commits)
