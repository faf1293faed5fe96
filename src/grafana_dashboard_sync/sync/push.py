"""Export of tagged Grafana dashboards into the git repository."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from grafana_dashboard_sync.clients.base import LiveStoreClient, RepositoryHandle, VersionControlClient
from grafana_dashboard_sync.errors import NoChangesError, NotFoundError, RemoteError
from grafana_dashboard_sync.sync.config import PushConfiguration
from grafana_dashboard_sync.sync.filters import compile_filter, dashboard_path, matches_filter

NO_REVISION = "none"
"""Placeholder revision id used in messages while the branch has no commits."""


@dataclass
class PushResult:
    """Outcome of one export run."""

    exported: int = 0
    """Dashboards staged into the working tree."""

    skipped: int = 0
    """Tagged dashboards not selected by the path filter."""

    committed: str | None = None
    """Id of the export commit, if one was created."""

    pushed: bool = False
    dry_run: bool = False

    def summary(self) -> str:
        prefix = "[DRY RUN] " if self.dry_run else ""
        commit = self.committed or "no commit"
        return f"{prefix}Exported {self.exported} dashboards, skipped {self.skipped} ({commit})"


def export_message(*, tag: str, preserve_tags: bool, revision: int, job_name: str, revision_id: str) -> str:
    """Version message stored in Grafana's history when a dashboard is exported."""
    action = f"Exported with tag '{tag}'" if preserve_tags else f"Deleted '{tag}' tag"
    return f"{action} (version {revision}, job '{job_name}', commit {revision_id})"


def commit_message(tag: str) -> str:
    return f"Synchronized Dashboards with tag <{tag}>"


def _current_revision(vcs: VersionControlClient, handle: RepositoryHandle) -> str:
    try:
        return vcs.latest_revision_id(handle)
    except NotFoundError:
        return NO_REVISION


def push_dashboards(
    *,
    job_name: str,
    configuration: PushConfiguration,
    live_store: LiveStoreClient,
    vcs: VersionControlClient,
    dry_run: bool = False,
) -> PushResult:
    """Export every Grafana dashboard carrying the configured tag into the git repository.

    Selected dashboards get the tag removed (unless `push_tags` is set) and `syncOrigin` set to the job name. Each
    one is written back to Grafana in its original folder and staged at `<folder>/<title>.json`. All staged files
    are committed and pushed once at the end.

    In a dry run, Grafana writes, the commit and the push are skipped; everything else, including staging into the
    temporary working tree, still happens.

    Args:
        job_name: The job name, recorded as `syncOrigin`.
        configuration: Branch, filter, tag and tag handling.
        live_store: The Grafana instance.
        vcs: The dashboard repository.
        dry_run: Suppress all external writes.

    Returns:
        Counters and the commit created.

    Raises:
        InvalidPatternError: If the filter is not a valid regular expression.
        RemoteError: If any Grafana or git operation fails. Nothing after the failing dashboard is processed.
    """
    log = logger.bind(job=job_name)
    tag = configuration.tag_pattern

    log.info(
        f"Starting dashboard export into branch '{configuration.git_branch}' "
        f"(tag '{tag}', filter '{configuration.filter}', keep tags: {configuration.push_tags})"
    )

    dashboard_filter = compile_filter(configuration.filter)
    result = PushResult(dry_run=dry_run)

    found = live_store.search_by_tag(tag)
    if not found:
        log.info(f"No dashboards found using the tag pattern '{tag}'")
        return result

    log.info(f"Fetched {len(found)} dashboards tagged '{tag}'")

    handle = vcs.checkout_or_clone(configuration.git_branch)
    revision_id = _current_revision(vcs, handle)

    for hit in found:
        dashboard = live_store.get_by_uid(hit.uid)
        if dashboard is None:
            raise RemoteError(f"Dashboard '{hit.title}' ({hit.uid}) was found by search but could not be fetched")

        path = dashboard_path(dashboard.folder_path, dashboard.title)
        if not matches_filter(dashboard_filter, dashboard.folder_path, dashboard.title):
            log.info(f"Skipping export of '{path}' because it does not match the filter '{configuration.filter}'")
            result.skipped += 1
            continue

        exported = dashboard if configuration.push_tags else dashboard.without_tag(tag)
        exported = exported.with_sync_origin(job_name)
        data = exported.to_bytes()

        folder_id = dashboard.folder_id if dashboard.folder_id is not None else hit.folder_id
        message = export_message(
            tag=tag,
            preserve_tags=configuration.push_tags,
            revision=dashboard.revision,
            job_name=job_name,
            revision_id=revision_id,
        )

        if dry_run:
            log.info(f"[DRY RUN] Would update '{path}' in Grafana: {message}")
        else:
            log.info(f"Updating '{path}' in Grafana: {message}")
            live_store.create_or_update(exported.to_payload(), folder_id, message)

        log.info(f"Adding '{path}' for synchronization")
        vcs.stage_file(handle, exported.relative_path, data)
        result.exported += 1

    if result.exported == 0:
        log.info("No tagged dashboard matched the filter, nothing to commit")
        return result

    message = commit_message(tag)
    if dry_run:
        log.info(f"[DRY RUN] Would commit {result.exported} dashboards ('{message}') and push")
        log.success(result.summary())
        return result

    try:
        result.committed = vcs.commit_staged(handle, message)
    except NoChangesError:
        log.info(f"Branch '{configuration.git_branch}' already contains the exported dashboards, nothing to push")
        log.success(result.summary())
        return result

    log.info("Pushing dashboards to the remote Git repository")
    vcs.push(handle)
    result.pushed = True

    log.success(result.summary())
    return result
