"""Grafana HTTP API implementation of the live store."""

from __future__ import annotations

from types import TracebackType
from typing import Any

from typing_extensions import override

import httpx
from loguru import logger
from pydantic import ValidationError

from grafana_dashboard_sync import GENERAL_FOLDER_ID, GENERAL_FOLDER_NAME
from grafana_dashboard_sync.clients.base import LiveStoreClient
from grafana_dashboard_sync.errors import RemoteError
from grafana_dashboard_sync.models import DashboardDocument, FolderRef, FoundDashboard, StatusResult

GENERAL_FOLDER = FolderRef(name=GENERAL_FOLDER_NAME, id=GENERAL_FOLDER_ID)

FOLDER_PAGE_SIZE = 1000


class GrafanaClient(LiveStoreClient):
    """Client for the dashboard and folder endpoints of one Grafana instance.

    The underlying `httpx.Client` is the authenticated session for the lifetime of one job. Use the client as a
    context manager, or call `close()`, to release it.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        user: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the Grafana client.

        Args:
            base_url: Base URL of the Grafana instance (e.g., http://localhost:3000).
            token: API or service account token. Takes precedence over basic authentication.
            user: User name for basic authentication.
            password: Password for basic authentication.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, for example to mount a proxy or a mock.
        """
        self.base_url = base_url.rstrip("/")

        headers = {"Accept": "application/json"}
        auth: httpx.BasicAuth | None = None
        if token:
            logger.debug("Using Grafana token authentication")
            headers["Authorization"] = f"Bearer {token}"
        elif user is not None and password is not None:
            logger.debug("Using Grafana basic authentication")
            auth = httpx.BasicAuth(user, password)

        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )
        self._folders: dict[str, FolderRef] | None = None

        logger.debug(f"Grafana API client created for {self.base_url}")

    def __enter__(self) -> GrafanaClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        allow_not_found: bool = False,
        **kwargs: Any,  # noqa: ANN401
    ) -> httpx.Response | None:
        """Send a request, translating transport errors and unexpected status codes into `RemoteError`.

        Returns:
            The response, or None if it was a 404 and `allow_not_found` is set.
        """
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Network error calling Grafana {method} {path}: {e}")
            raise RemoteError(f"Grafana request {method} {path} failed: {e}", cause=e) from e

        if response.status_code == 404 and allow_not_found:
            logger.debug(f"Grafana returned 404 for {method} {path}")
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error calling Grafana {method} {path}: {response.status_code} - {response.text}")
            raise RemoteError(
                f"Grafana request {method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
                cause=e,
            ) from e

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:  # noqa: ANN401
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"Grafana returned a non JSON response for {response.request.url}",
                status_code=response.status_code,
                cause=e,
            ) from e

    def health(self) -> dict[str, Any]:
        """Return Grafana's health report (database state and version)."""
        response = self._request("GET", "/api/health")
        assert response is not None
        data: dict[str, Any] = self._json(response)
        logger.debug(f"Grafana health: {data}")
        return data

    @override
    def search_by_tag(self, tag: str) -> list[FoundDashboard]:
        response = self._request("GET", "/api/search", params={"type": "dash-db", "tag": tag})
        assert response is not None

        hits = self._json(response)
        try:
            found = [FoundDashboard.model_validate(hit) for hit in hits]
        except (TypeError, ValidationError) as e:
            raise RemoteError(f"Unexpected search response from Grafana: {e}", cause=e) from e

        logger.debug(f"Found {len(found)} dashboards with tag '{tag}'")
        return found

    @override
    def get_by_uid(self, uid: str) -> DashboardDocument | None:
        if not uid:
            return None

        response = self._request("GET", f"/api/dashboards/uid/{uid}", allow_not_found=True)
        if response is None:
            return None

        data = self._json(response)
        if not isinstance(data, dict) or not isinstance(data.get("dashboard"), dict):
            raise RemoteError(f"Unexpected dashboard response from Grafana for uid {uid}")

        meta: dict[str, Any] = data.get("meta") or {}
        folder_id = meta.get("folderId") or GENERAL_FOLDER_ID
        folder_title = meta.get("folderTitle") or GENERAL_FOLDER_NAME

        return DashboardDocument.from_payload(data["dashboard"], folder_path=folder_title, folder_id=folder_id)

    @override
    def create_or_update(self, body: dict[str, Any], folder_id: int, message: str) -> StatusResult:
        payload = {
            "dashboard": body,
            "folderId": folder_id,
            "overwrite": True,
            "message": message,
        }
        response = self._request("POST", "/api/dashboards/db", json=payload)
        assert response is not None

        status = StatusResult.model_validate(self._json(response))
        logger.debug(f"Saved dashboard '{body.get('title')}': status={status.status} version={status.version}")
        return status

    def _load_folders(self) -> dict[str, FolderRef]:
        response = self._request("GET", "/api/folders", params={"limit": FOLDER_PAGE_SIZE})
        assert response is not None

        folders: dict[str, FolderRef] = {}
        try:
            for item in self._json(response):
                folder = FolderRef(name=item["title"], id=item["id"], uid=item.get("uid"))
                folders.setdefault(folder.name, folder)
        except (KeyError, TypeError, ValidationError) as e:
            raise RemoteError(f"Unexpected folder list response from Grafana: {e}", cause=e) from e

        logger.debug(f"Loaded {len(folders)} folders from Grafana")
        return folders

    @override
    def get_folder(self, name: str) -> FolderRef | None:
        if name == GENERAL_FOLDER_NAME:
            return GENERAL_FOLDER

        if self._folders is None:
            self._folders = self._load_folders()

        return self._folders.get(name)

    @override
    def create_folder(self, name: str) -> FolderRef:
        if name == GENERAL_FOLDER_NAME:
            return GENERAL_FOLDER

        response = self._request("POST", "/api/folders", json={"title": name})
        assert response is not None

        data = self._json(response)
        try:
            folder = FolderRef(name=data.get("title", name), id=data["id"], uid=data.get("uid"))
        except (AttributeError, KeyError, ValidationError) as e:
            raise RemoteError(f"Unexpected folder response from Grafana: {e}", cause=e) from e
        if self._folders is not None:
            self._folders[folder.name] = folder

        logger.info(f"Created Grafana folder '{folder.name}' (id {folder.id})")
        return folder
