"""Dashboard documents and the Grafana API objects the synchronizer exchanges."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from grafana_dashboard_sync import GENERAL_FOLDER_ID, GENERAL_FOLDER_NAME, SYNC_ORIGIN_FIELD
from grafana_dashboard_sync.errors import MalformedDocumentError


@dataclass(eq=False)
class DashboardDocument:
    """A dashboard as read from either Grafana or the git working tree.

    `body` is the complete dashboard JSON model and is what gets written back to Grafana. `uid`, `title`, `tags`,
    `revision` and `internal_id` are read from it. `sync_origin` is kept outside of the body because Grafana does not
    know about it; it only exists in the versioned copy.

    Instances are never compared with `==`. Use `grafana_dashboard_sync.sync.comparator` which knows which fields
    carry meaning across systems.
    """

    body: dict[str, Any] = field(default_factory=dict)
    """The full dashboard JSON model."""

    folder_path: str = GENERAL_FOLDER_NAME
    """Title of the folder the dashboard lives in. Used as the directory name in the git repository."""

    folder_id: int | None = None
    """Grafana's id of the folder, when the document was read from Grafana."""

    sync_origin: str = ""
    """Name of the job that exported this dashboard."""

    @property
    def uid(self) -> str:
        """The stable identifier Grafana assigns. Empty for dashboards that were never imported."""
        return self.body.get("uid") or ""

    @property
    def title(self) -> str:
        return self.body.get("title") or ""

    @property
    def tags(self) -> list[str]:
        """A copy of the dashboard's tags, in order."""
        return list(self.body.get("tags") or [])

    @property
    def revision(self) -> int:
        """Grafana's `version` counter. Only meaningful inside a single Grafana instance."""
        return int(self.body.get("version") or 0)

    @property
    def internal_id(self) -> int | None:
        """Grafana's database id. Only meaningful inside a single Grafana instance."""
        return self.body.get("id")

    @property
    def relative_path(self) -> str:
        """The path of this dashboard inside the git working tree."""
        return f"{self.folder_path}/{self.title}.json"

    def copy(self) -> DashboardDocument:
        """Return a deep copy, so nested panels and targets can be modified independently."""
        return DashboardDocument(
            body=copy.deepcopy(self.body),
            folder_path=self.folder_path,
            folder_id=self.folder_id,
            sync_origin=self.sync_origin,
        )

    def without_tag(self, tag: str) -> DashboardDocument:
        """Return a copy with the first occurrence of `tag` removed from the tags.

        Only one entry is removed. A dashboard tagged `["keep", "sync", "sync"]` keeps one `sync` tag.
        """
        result = self.copy()
        tags = result.tags
        if tag in tags:
            tags.remove(tag)
            result.body["tags"] = tags
        return result

    def with_sync_origin(self, sync_origin: str) -> DashboardDocument:
        result = self.copy()
        result.sync_origin = sync_origin
        return result

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON model including the `syncOrigin` member, as stored in git."""
        payload = copy.deepcopy(self.body)
        payload[SYNC_ORIGIN_FIELD] = self.sync_origin
        return payload

    def to_bytes(self) -> bytes:
        """Serialize for the git working tree."""
        return (json.dumps(self.to_payload(), indent=4, ensure_ascii=False) + "\n").encode("utf-8")

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        *,
        folder_path: str = GENERAL_FOLDER_NAME,
        folder_id: int | None = None,
    ) -> DashboardDocument:
        """Build a document from a JSON model, splitting off the `syncOrigin` member if present.

        Raises:
            MalformedDocumentError: If a well known member has the wrong type.
        """
        body = copy.deepcopy(payload)
        sync_origin = body.pop(SYNC_ORIGIN_FIELD, "")
        if sync_origin is None:
            sync_origin = ""
        if not isinstance(sync_origin, str):
            raise MalformedDocumentError(
                f"{folder_path}/{body.get('title')}",
                cause=TypeError(f"'{SYNC_ORIGIN_FIELD}' must be a string, got {type(sync_origin).__name__}"),
            )

        _check_member_types(body, f"{folder_path}/{body.get('title')}")

        return cls(body=body, folder_path=folder_path, folder_id=folder_id, sync_origin=sync_origin)

    @classmethod
    def from_bytes(cls, data: bytes, *, folder_path: str, path: str | None = None) -> DashboardDocument:
        """Deserialize a versioned dashboard file.

        Args:
            data: The raw file content.
            folder_path: The directory the file was found in.
            path: The file's path, used in error messages.

        Raises:
            MalformedDocumentError: If the content is not a JSON object describing a dashboard.
        """
        location = path or folder_path
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedDocumentError(location, cause=e) from e

        if not isinstance(payload, dict):
            raise MalformedDocumentError(
                location,
                cause=TypeError(f"expected a JSON object, got {type(payload).__name__}"),
            )

        return cls.from_payload(payload, folder_path=folder_path)


_MEMBER_TYPES: dict[str, tuple[type, ...]] = {
    "uid": (str,),
    "title": (str,),
    "tags": (list,),
    "version": (int,),
    "id": (int,),
}


def _check_member_types(body: dict[str, Any], location: str) -> None:
    for member, expected in _MEMBER_TYPES.items():
        value = body.get(member)
        if value is None:
            continue
        # bool is an int subclass but never a valid version or id
        if isinstance(value, bool) or not isinstance(value, expected):
            raise MalformedDocumentError(
                location,
                cause=TypeError(f"'{member}' has unexpected type {type(value).__name__}"),
            )

    for tag in body.get("tags") or []:
        if not isinstance(tag, str):
            raise MalformedDocumentError(location, cause=TypeError(f"tag {tag!r} is not a string"))


class FolderRef(BaseModel):
    """A Grafana folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    id: int
    uid: str | None = None

    @property
    def is_general(self) -> bool:
        return self.id == GENERAL_FOLDER_ID


class FoundDashboard(BaseModel):
    """A dashboard search hit."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    title: str
    folder_id: int = Field(default=GENERAL_FOLDER_ID, alias="folderId")
    folder_title: str = Field(default=GENERAL_FOLDER_NAME, alias="folderTitle")


class StatusResult(BaseModel):
    """Grafana's response to a dashboard create or update."""

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    uid: str | None = None
    url: str | None = None
    status: str | None = None
    version: int | None = None
    slug: str | None = None
