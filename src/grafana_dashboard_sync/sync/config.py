"""Configuration of synchronization jobs and of the process running them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grafana_dashboard_sync import DEFAULT_COMMIT_AUTHOR_EMAIL, DEFAULT_COMMIT_AUTHOR_NAME
from grafana_dashboard_sync.errors import ConfigurationError
from grafana_dashboard_sync.logging_config import LogLevel

DEFAULT_BRANCH = "main"


class PullConfiguration(BaseModel):
    """Settings for importing dashboards from git into Grafana."""

    model_config = ConfigDict(populate_by_name=True, use_attribute_docstrings=True, extra="forbid")

    enable: bool = False
    """Whether this phase runs."""

    git_branch: str = Field(default=DEFAULT_BRANCH, alias="git-branch")
    """The branch dashboards are read from (pull) or committed to (push)."""

    filter: str = ""
    """Regular expression matched anywhere in `<folder>/<title>`. Empty selects every dashboard."""


class PushConfiguration(PullConfiguration):
    """Settings for exporting tagged dashboards from Grafana into git."""

    tag_pattern: str = Field(default="", alias="tag-pattern")
    """Dashboards carrying this tag are exported."""

    push_tags: bool = Field(default=False, alias="push-tags")
    """Keep the tag on exported dashboards. If False, the tag is removed from the export and from Grafana."""

    @model_validator(mode="after")
    def validate_tag_pattern(self) -> PushConfiguration:
        """An enabled push needs a tag to select dashboards with."""
        if self.enable and not self.tag_pattern:
            raise ValueError("push-configuration.tag-pattern must be set when push is enabled")
        return self


class SyncJob(BaseModel):
    """One Grafana instance synchronized with one git repository."""

    model_config = ConfigDict(populate_by_name=True, use_attribute_docstrings=True, extra="forbid")

    job_name: str = Field(alias="job-name", min_length=1)
    """Name of the job. Stored as `syncOrigin` in exported dashboards."""

    grafana_url: str = Field(alias="grafana-url", min_length=1)
    """Base URL of the Grafana instance, e.g. http://localhost:3000."""

    grafana_token: str | None = Field(default=None, alias="grafana-token")
    """Grafana API token or service account token."""

    grafana_user: str | None = Field(default=None, alias="grafana-user")
    """Grafana user for basic authentication, used when no token is set."""

    grafana_password: str | None = Field(default=None, alias="grafana-password")
    """Grafana password for basic authentication."""

    git_repository_url: str = Field(alias="git-repository-url", min_length=1)
    """Clone URL of the dashboard repository."""

    private_key_file: str | None = Field(default=None, alias="private-key-file")
    """SSH private key used for git over SSH."""

    git_user_name: str | None = Field(default=None, alias="git-user-name")
    """User name for git over HTTPS."""

    git_password: str | None = Field(default=None, alias="git-password")
    """Password or access token for git over HTTPS."""

    push_configuration: PushConfiguration = Field(default_factory=PushConfiguration, alias="push-configuration")
    """Export settings."""

    pull_configuration: PullConfiguration = Field(default_factory=PullConfiguration, alias="pull-configuration")
    """Import settings."""

    @model_validator(mode="after")
    def validate_credentials(self) -> SyncJob:
        """Check that each store is given at most one, complete, authentication method."""
        if (self.git_user_name is None) != (self.git_password is None):
            raise ValueError("git-user-name and git-password must be set together")

        if self.private_key_file and self.git_user_name:
            raise ValueError("private-key-file and git-user-name/git-password are mutually exclusive")

        if (self.grafana_user is None) != (self.grafana_password is None):
            raise ValueError("grafana-user and grafana-password must be set together")

        if self.grafana_token and self.grafana_user:
            logger.warning(f"Job '{self.job_name}' sets both grafana-token and grafana-user. Using the token.")

        if not self.grafana_token and not self.grafana_user:
            logger.warning(f"Job '{self.job_name}' has no Grafana credentials. Requests will be anonymous.")

        if not self.push_configuration.enable and not self.pull_configuration.enable:
            logger.warning(f"Job '{self.job_name}' has neither push nor pull enabled and will do nothing.")

        return self

    @property
    def private_key_path(self) -> Path | None:
        """The SSH key file with `~` expanded."""
        if not self.private_key_file:
            return None
        return Path(os.path.expanduser(self.private_key_file))


_JOB_LIST_ADAPTER = TypeAdapter(list[SyncJob])


def parse_jobs(data: Any, *, source: str = "<memory>") -> list[SyncJob]:  # noqa: ANN401
    """Validate an already parsed job list.

    Raises:
        ConfigurationError: If `data` is not a list of valid jobs.
    """
    if data is None:
        data = []

    if not isinstance(data, list):
        raise ConfigurationError(f"Configuration {source} must contain a list of jobs, got {type(data).__name__}")

    try:
        jobs = _JOB_LIST_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {source}: {e}", cause=e) from e

    names = [job.job_name for job in jobs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        logger.warning(f"Job names are not unique in {source}: {duplicates}")

    return jobs


def load_jobs(path: str | Path) -> list[SyncJob]:
    """Read and validate a YAML job file.

    Args:
        path: The configuration file.

    Returns:
        The jobs in the order they are configured.

    Raises:
        ConfigurationError: If the file cannot be read or does not describe valid jobs.
    """
    config_path = Path(path)
    logger.info(f"Reading configuration file {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {config_path}: {e}", cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Configuration file {config_path} is not valid YAML: {e}", cause=e) from e

    jobs = parse_jobs(data, source=str(config_path))
    logger.debug(f"Loaded {len(jobs)} job(s) from {config_path}")
    return jobs


class DashboardSyncSettings(BaseSettings):
    """Process wide settings. Every field can be set with a `GRAFANA_DASHBOARD_SYNC_` environment variable."""

    model_config = SettingsConfigDict(
        env_prefix="GRAFANA_DASHBOARD_SYNC_",
        use_attribute_docstrings=True,
    )

    config_path: str = "configuration.yml"
    """The YAML job file."""

    dry_run: bool = False
    """Run all read and decision logic but write nothing to Grafana or git."""

    log_as_json: bool = False
    """Print log records as JSON objects."""

    log_level: LogLevel = "INFO"
    """Minimum level of log records to print."""

    request_timeout: float = 30.0
    """Timeout in seconds for Grafana API requests."""

    work_dir: str | None = None
    """Parent directory for temporary clones. If None, uses the system temp directory."""

    commit_author_name: str = DEFAULT_COMMIT_AUTHOR_NAME
    """Author name of export commits."""

    commit_author_email: str = DEFAULT_COMMIT_AUTHOR_EMAIL
    """Author email of export commits."""

    watch_interval_seconds: int = 300
    """Interval between synchronization runs in watch mode."""

    @model_validator(mode="after")
    def validate_intervals(self) -> DashboardSyncSettings:
        """Clamp values that would make the process spin."""
        if self.watch_interval_seconds < 1:
            logger.warning(f"watch_interval_seconds is {self.watch_interval_seconds}, but must be >= 1. Setting to 1.")
            self.watch_interval_seconds = 1

        if self.request_timeout <= 0:
            logger.warning(f"request_timeout is {self.request_timeout}, but must be > 0. Setting to 30.")
            self.request_timeout = 30.0

        return self
