"""Clients for the two stores dashboards are synchronized between."""

from grafana_dashboard_sync.clients.base import FileTree, LiveStoreClient, RepositoryHandle, VersionControlClient
from grafana_dashboard_sync.clients.git_client import GitRepositoryClient
from grafana_dashboard_sync.clients.grafana_client import GrafanaClient

__all__ = [
    "FileTree",
    "GitRepositoryClient",
    "GrafanaClient",
    "LiveStoreClient",
    "RepositoryHandle",
    "VersionControlClient",
]
