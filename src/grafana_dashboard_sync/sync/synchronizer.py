"""Runs the configured jobs: export (push) first, then import (pull)."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass

from loguru import logger
from strenum import StrEnum

from grafana_dashboard_sync.clients.base import LiveStoreClient, VersionControlClient
from grafana_dashboard_sync.clients.git_client import GitRepositoryClient
from grafana_dashboard_sync.clients.grafana_client import GrafanaClient
from grafana_dashboard_sync.errors import DashboardSyncError
from grafana_dashboard_sync.sync.config import DashboardSyncSettings, SyncJob
from grafana_dashboard_sync.sync.pull import PullResult, pull_dashboards
from grafana_dashboard_sync.sync.push import PushResult, push_dashboards


class SyncPhase(StrEnum):
    """The two phases of a job, in the order they run."""

    PUSH = "push"
    PULL = "pull"


@dataclass
class SyncRunResult:
    """Results of the phases of one job which ran. A phase that is disabled has no result."""

    job_name: str
    push: PushResult | None = None
    pull: PullResult | None = None

    def summary(self) -> str:
        parts = [f"Job '{self.job_name}'"]
        if self.push is not None:
            parts.append(f"push: {self.push.summary()}")
        if self.pull is not None:
            parts.append(f"pull: {self.pull.summary()}")
        if self.push is None and self.pull is None:
            parts.append("nothing enabled")
        return "; ".join(parts)


@dataclass
class JobOutcome:
    """What happened to one job of a batch."""

    job_name: str
    result: SyncRunResult
    error: Exception | None = None
    failed_phase: SyncPhase | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class DashboardSynchronizer:
    """Reconciles one Grafana instance with one dashboard repository according to a job."""

    def __init__(self, job: SyncJob, *, live_store: LiveStoreClient, vcs: VersionControlClient) -> None:
        self.job = job
        self.live_store = live_store
        self.vcs = vcs
        self._log = logger.bind(job=job.job_name)

    def synchronize(self, *, dry_run: bool = False, result: SyncRunResult | None = None) -> SyncRunResult:
        """Run the enabled phases. Push always runs before pull so a pull never overwrites unexported edits.

        Args:
            dry_run: Write nothing to Grafana or git.
            result: Collects the phase results. Phases which completed before an error stay recorded in it.

        Raises:
            DashboardSyncError: If a phase fails. The remaining phases are not run.
        """
        result = result or SyncRunResult(job_name=self.job.job_name)

        if self.job.push_configuration.enable:
            result.push = push_dashboards(
                job_name=self.job.job_name,
                configuration=self.job.push_configuration,
                live_store=self.live_store,
                vcs=self.vcs,
                dry_run=dry_run,
            )
        else:
            self._log.debug("Push is disabled")

        if self.job.pull_configuration.enable:
            result.pull = pull_dashboards(
                job_name=self.job.job_name,
                configuration=self.job.pull_configuration,
                live_store=self.live_store,
                vcs=self.vcs,
                dry_run=dry_run,
            )
        else:
            self._log.debug("Pull is disabled")

        return result


ClientFactory = Callable[
    [SyncJob, DashboardSyncSettings],
    AbstractContextManager[tuple[LiveStoreClient, VersionControlClient]],
]


@contextmanager
def open_clients(
    job: SyncJob,
    settings: DashboardSyncSettings,
) -> Iterator[tuple[LiveStoreClient, VersionControlClient]]:
    """Create the Grafana session and the git clone of a job, and release both afterwards."""
    with (
        GrafanaClient(
            base_url=job.grafana_url,
            token=job.grafana_token,
            user=job.grafana_user,
            password=job.grafana_password,
            timeout=settings.request_timeout,
        ) as live_store,
        GitRepositoryClient(
            repository_url=job.git_repository_url,
            private_key_file=job.private_key_path,
            user_name=job.git_user_name,
            password=job.git_password,
            work_dir=settings.work_dir,
            author_name=settings.commit_author_name,
            author_email=settings.commit_author_email,
        ) as vcs,
    ):
        yield live_store, vcs


def _phase_of(outcome: JobOutcome, job: SyncJob) -> SyncPhase:
    if job.push_configuration.enable and outcome.result.push is None:
        return SyncPhase.PUSH
    return SyncPhase.PULL


def run_jobs(
    jobs: Sequence[SyncJob],
    *,
    settings: DashboardSyncSettings,
    dry_run: bool = False,
    client_factory: ClientFactory = open_clients,
) -> list[JobOutcome]:
    """Run every job in order. A failing job is logged and does not stop the jobs after it.

    Args:
        jobs: The jobs to run.
        settings: Process settings (timeouts, clone directory, commit author).
        dry_run: Write nothing to Grafana or git.
        client_factory: Builds the clients of a job. Replaced in tests.

    Returns:
        One outcome per job, in the same order.
    """
    outcomes: list[JobOutcome] = []

    for job in jobs:
        log = logger.bind(job=job.job_name)
        outcome = JobOutcome(job_name=job.job_name, result=SyncRunResult(job_name=job.job_name))
        log.info(f"Starting synchronization job '{job.job_name}'{' (dry run)' if dry_run else ''}")

        try:
            with client_factory(job, settings) as (live_store, vcs):
                DashboardSynchronizer(job, live_store=live_store, vcs=vcs).synchronize(
                    dry_run=dry_run,
                    result=outcome.result,
                )
        except DashboardSyncError as e:
            outcome.error = e
            outcome.failed_phase = _phase_of(outcome, job)
            log.error(f"Job '{job.job_name}' failed during {outcome.failed_phase}: {e}")
        except Exception as e:
            outcome.error = e
            outcome.failed_phase = _phase_of(outcome, job)
            log.exception(f"Unexpected error in job '{job.job_name}' during {outcome.failed_phase}: {e}")
        else:
            log.success(outcome.result.summary())

        outcomes.append(outcome)

    failed = [outcome.job_name for outcome in outcomes if not outcome.succeeded]
    if failed:
        logger.warning(f"{len(failed)} of {len(outcomes)} jobs failed: {', '.join(failed)}")
    else:
        logger.info(f"All {len(outcomes)} jobs completed")

    return outcomes
