r"""Command line entry point for synchronizing Grafana dashboards with git.

The `sync` command reads a list of jobs from a YAML file and runs each job once: tagged dashboards are exported
into the job's repository (push), then the repository is imported back into Grafana (pull).

The command supports two modes:
- **One-shot mode** (default): Runs every job once and exits
- **Watch mode** (--watch): Re-runs every job at a fixed interval until interrupted

Environment variables:
    GRAFANA_DASHBOARD_SYNC_CONFIG_PATH - Job file (default: configuration.yml)
    GRAFANA_DASHBOARD_SYNC_DRY_RUN - Set to 'true' for dry run mode
    GRAFANA_DASHBOARD_SYNC_LOG_AS_JSON - Set to 'true' for JSON log records
    GRAFANA_DASHBOARD_SYNC_LOG_LEVEL - Minimum log level (default: INFO)
    GRAFANA_DASHBOARD_SYNC_REQUEST_TIMEOUT - Grafana request timeout in seconds (default: 30)
    GRAFANA_DASHBOARD_SYNC_WORK_DIR - Parent directory of temporary clones
    GRAFANA_DASHBOARD_SYNC_WATCH_INTERVAL_SECONDS - Interval for watch mode (default: 300)

Examples:
    # Run all jobs once
    grafana-dashboard-sync sync --config configuration.yml

    # Show what would change without writing to Grafana or git
    grafana-dashboard-sync sync --config configuration.yml --dry-run

    # Check that every Grafana instance is reachable, then sync
    grafana-dashboard-sync sync --check

    # Re-run every 10 minutes
    grafana-dashboard-sync sync --watch --interval 600
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from loguru import logger

from grafana_dashboard_sync.clients.grafana_client import GrafanaClient
from grafana_dashboard_sync.errors import ConfigurationError, RemoteError
from grafana_dashboard_sync.logging_config import DEFAULT_FORMAT, configure_logger
from grafana_dashboard_sync.sync.config import DashboardSyncSettings, SyncJob, load_jobs
from grafana_dashboard_sync.sync.synchronizer import run_jobs
from grafana_dashboard_sync.sync.watch_mode import PeriodicSyncRunner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grafana-dashboard-sync",
        description="Synchronize tagged Grafana dashboards with a git repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run the configured synchronization jobs")

    sync_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file listing the jobs (default: from env GRAFANA_DASHBOARD_SYNC_CONFIG_PATH or configuration.yml)",
    )

    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Log every change that would be made without writing to Grafana or git",
    )

    sync_parser.add_argument(
        "--log-as-json",
        action="store_true",
        default=False,
        help="Print log records as JSON objects",
    )

    sync_parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )

    sync_parser.add_argument(
        "--check",
        action="store_true",
        default=False,
        help="Verify that every Grafana instance is reachable before synchronizing",
    )

    sync_parser.add_argument(
        "--watch",
        action="store_true",
        default=False,
        help="Keep running and re-synchronize at a fixed interval",
    )

    sync_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Interval in seconds for watch mode (default: 300)",
    )

    return parser


def apply_arguments(settings: DashboardSyncSettings, args: argparse.Namespace) -> DashboardSyncSettings:
    """Override environment settings with the flags given on the command line."""
    if args.config:
        settings.config_path = args.config

    if args.dry_run:
        settings.dry_run = True

    if args.log_as_json:
        settings.log_as_json = True

    if args.verbose:
        settings.log_level = "DEBUG"

    if args.interval is not None:
        if args.interval < 1:
            logger.warning(f"--interval is {args.interval}, but must be >= 1. Setting to 1.")
        settings.watch_interval_seconds = max(1, args.interval)

    return settings


def check_connectivity(jobs: Sequence[SyncJob], settings: DashboardSyncSettings) -> int:
    """Query the health endpoint of every configured Grafana instance.

    Returns:
        Exit code (0 if every instance answered, 1 otherwise).
    """
    exit_code = 0
    for job in jobs:
        log = logger.bind(job=job.job_name)
        try:
            with GrafanaClient(
                base_url=job.grafana_url,
                token=job.grafana_token,
                user=job.grafana_user,
                password=job.grafana_password,
                timeout=settings.request_timeout,
            ) as client:
                health = client.health()
        except RemoteError as e:
            log.error(f"Grafana at {job.grafana_url} is not reachable: {e}")
            exit_code = 1
            continue

        log.info(f"Grafana at {job.grafana_url} is reachable (version {health.get('version', 'unknown')})")

    return exit_code


def run_sync_once(jobs: Sequence[SyncJob], settings: DashboardSyncSettings) -> int:
    """Run every job once.

    Returns:
        Exit code (0 if every job succeeded, 1 otherwise).
    """
    outcomes = run_jobs(jobs, settings=settings, dry_run=settings.dry_run)
    return 0 if all(outcome.succeeded for outcome in outcomes) else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Enter the dashboard synchronization command.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = apply_arguments(DashboardSyncSettings(), args)
    configure_logger(
        settings.log_level,
        serialize=settings.log_as_json,
        format_string=DEFAULT_FORMAT if args.verbose else None,
    )

    try:
        jobs = load_jobs(settings.config_path)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    if not jobs:
        logger.warning(f"No jobs configured in {settings.config_path}")
        return 0

    if args.check and check_connectivity(jobs, settings) != 0:
        return 1

    if args.watch:
        runner = PeriodicSyncRunner(
            sync_callback=lambda: run_sync_once(jobs, settings),
            interval_seconds=settings.watch_interval_seconds,
        )
        return runner.run()

    return run_sync_once(jobs, settings)


if __name__ == "__main__":
    raise SystemExit(main())
