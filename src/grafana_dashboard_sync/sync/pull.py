"""Import of versioned dashboards from the git repository into Grafana."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from grafana_dashboard_sync.clients.base import LiveStoreClient, VersionControlClient
from grafana_dashboard_sync.errors import NotFoundError
from grafana_dashboard_sync.models import DashboardDocument, FolderRef
from grafana_dashboard_sync.sync.comparator import compare_documents
from grafana_dashboard_sync.sync.config import PullConfiguration
from grafana_dashboard_sync.sync.filters import compile_filter, dashboard_path, matches_filter

if TYPE_CHECKING:
    from loguru import Logger


@dataclass
class PullResult:
    """Outcome of one import run. `imported` and `up_to_date` are counted the same way in dry runs."""

    imported: int = 0
    """Dashboards that differed from Grafana and were (or in a dry run would have been) written."""

    up_to_date: int = 0
    """Dashboards already equal to their Grafana copy."""

    skipped: int = 0
    """Dashboards not selected by the path filter."""

    folders_created: int = 0
    revision_id: str | None = None
    dry_run: bool = False

    def summary(self) -> str:
        prefix = "[DRY RUN] " if self.dry_run else ""
        return (
            f"{prefix}Imported {self.imported} dashboards, {self.up_to_date} up-to-date, {self.skipped} skipped "
            f"(commit {self.revision_id})"
        )


def import_message(document: DashboardDocument, revision_id: str) -> str:
    """Version message stored in Grafana's history when a dashboard is imported."""
    return (
        f"[SYNC] Synchronized dashboard. Version '{document.revision}' from origin '{document.sync_origin}' "
        f"(commit {revision_id})."
    )


def _resolve_folder(
    live_store: LiveStoreClient,
    folder_name: str,
    *,
    log: Logger,
    dry_run: bool,
    result: PullResult,
) -> FolderRef | None:
    """Find the Grafana folder for a directory, creating it when missing. Returns None only in dry runs."""
    folder = live_store.get_folder(folder_name)
    if folder is not None:
        return folder

    if dry_run:
        log.info(f"[DRY RUN] Would create Grafana folder '{folder_name}'")
        result.folders_created += 1
        return None

    log.info(f"Creating Grafana folder '{folder_name}'")
    folder = live_store.create_folder(folder_name)
    result.folders_created += 1
    return folder


def pull_dashboards(
    *,
    job_name: str,
    configuration: PullConfiguration,
    live_store: LiveStoreClient,
    vcs: VersionControlClient,
    dry_run: bool = False,
) -> PullResult:
    """Import every dashboard file of the configured branch into Grafana when it differs from Grafana's copy.

    Top level directories of the repository are Grafana folders; the `.json` files directly inside them are
    dashboards. Missing folders are created. A dashboard is written only when it differs from the copy in Grafana
    after the storage specific fields (version, id, syncOrigin) have been aligned.

    Args:
        job_name: The job name, used for log context.
        configuration: Branch and filter.
        live_store: The Grafana instance.
        vcs: The dashboard repository.
        dry_run: Suppress all Grafana writes. Counters are computed as if the writes happened.

    Returns:
        The import counters.

    Raises:
        InvalidPatternError: If the filter is not a valid regular expression.
        MalformedDocumentError: If a dashboard file cannot be deserialized.
        RemoteError: If any Grafana or git operation fails.
    """
    log = logger.bind(job=job_name)
    log.info(
        f"Starting dashboard import from branch '{configuration.git_branch}' (filter '{configuration.filter}')"
    )

    dashboard_filter = compile_filter(configuration.filter)
    result = PullResult(dry_run=dry_run)

    handle = vcs.checkout_or_clone(configuration.git_branch)
    try:
        result.revision_id = vcs.latest_revision_id(handle)
    except NotFoundError:
        log.warning(f"Branch '{configuration.git_branch}' has no commits, nothing to import")
        return result

    tree = vcs.list_tree(handle)
    log.debug(f"Found {sum(len(files) for files in tree.values())} dashboard files in {len(tree)} folders")

    for folder_name, files in tree.items():
        with logger.contextualize(folder=folder_name):
            folder = _resolve_folder(live_store, folder_name, log=log, dry_run=dry_run, result=result)

            for file_name, data in files.items():
                document = DashboardDocument.from_bytes(
                    data,
                    folder_path=folder_name,
                    path=f"{folder_name}/{file_name}",
                )

                path = dashboard_path(folder_name, document.title)
                if not matches_filter(dashboard_filter, folder_name, document.title):
                    log.info(f"Skipping import of '{path}' because it does not match the filter")
                    result.skipped += 1
                    continue

                current = live_store.get_by_uid(document.uid)
                comparison = compare_documents(current, document)

                if comparison.equal:
                    log.info(f"Dashboard '{path}' ignored because it is already up-to-date")
                    result.up_to_date += 1
                    continue

                message = import_message(document, result.revision_id)
                if dry_run or folder is None:
                    log.info(f"[DRY RUN] Would import '{path}' into Grafana ({comparison.summary()})")
                else:
                    log.info(f"Importing '{path}' into Grafana ({comparison.summary()})")
                    live_store.create_or_update(document.to_payload(), folder.id, message)

                result.imported += 1

    log.success(result.summary())
    return result
