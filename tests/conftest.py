from __future__ import annotations

import os
import sys
from collections.abc import Generator

import pytest
from _pytest.logging import LogCaptureFixture
from loguru import logger

from grafana_dashboard_sync.sync.config import PullConfiguration, PushConfiguration, SyncJob
from tests.helpers import JOB_NAME, FakeLiveStore, FakeVersionControl


def _clear_test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("GRAFANA_DASHBOARD_SYNC_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure settings are not picked up from the developer's environment."""
    _clear_test_environment_variables(monkeypatch)


@pytest.fixture
def caplog(caplog: LogCaptureFixture) -> Generator[LogCaptureFixture, None, None]:
    """Fixture to capture log messages during tests.

    See https://loguru.readthedocs.io/en/stable/resources/migration.html#migration-caplog for more information.
    """
    handler_id = logger.add(caplog.handler, format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Set up logging for tests."""
    logger.remove()
    logger.configure(
        extra={"job": "-"},
        handlers=[
            {
                "sink": sys.stderr,
                "format": "{time:YYYY-MM-DD HH:mm:ss} | {extra[job]} | {name}:{function}:{line} | {level} | {message}",
            },
        ],
    )


@pytest.fixture
def live_store() -> FakeLiveStore:
    return FakeLiveStore()


@pytest.fixture
def vcs() -> FakeVersionControl:
    return FakeVersionControl()


@pytest.fixture
def push_configuration() -> PushConfiguration:
    return PushConfiguration(enable=True, git_branch="main", tag_pattern="sync")


@pytest.fixture
def pull_configuration() -> PullConfiguration:
    return PullConfiguration(enable=True, git_branch="main")


@pytest.fixture
def sync_job() -> SyncJob:
    return SyncJob(
        job_name=JOB_NAME,
        grafana_url="http://grafana.test",
        grafana_token="secret-token",
        git_repository_url="https://git.test/org/dashboards.git",
        push_configuration=PushConfiguration(enable=True, tag_pattern="sync"),
        pull_configuration=PullConfiguration(enable=True),
    )
