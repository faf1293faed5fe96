"""Tests for exporting tagged dashboards into the repository."""

from __future__ import annotations

import json

import pytest
from _pytest.logging import LogCaptureFixture

from grafana_dashboard_sync.errors import InvalidPatternError, RemoteError
from grafana_dashboard_sync.sync.config import PushConfiguration
from grafana_dashboard_sync.sync.push import commit_message, export_message, push_dashboards
from tests.helpers import JOB_NAME, FakeLiveStore, FakeVersionControl, dashboard_body, dashboard_file


class TestPushDashboards:
    """Test suite for push_dashboards."""

    def test_end_to_end_export(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        """One tagged dashboard is stripped of its tag, written back, committed and pushed once."""
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]), folder="ops")

        result = push_dashboards(
            job_name=JOB_NAME,
            configuration=push_configuration,
            live_store=live_store,
            vcs=vcs,
        )

        assert result.exported == 1
        assert result.skipped == 0
        assert result.pushed
        assert result.committed == "commit0001"

        exported = vcs.remote_document("main", "ops/cpu.json")
        assert exported["uid"] == "u1"
        assert exported["tags"] == []
        assert exported["syncOrigin"] == JOB_NAME

        assert live_store.dashboards["u1"]["tags"] == []
        assert live_store.folder_of("u1") == "ops"
        assert len(live_store.writes) == 1
        assert vcs.commits_created == ["commit0001"]
        assert vcs.pushes == ["main"]

    def test_messages(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        vcs.seed("main", {}, commit_id="abc123")
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"], version=5), folder="ops")

        push_dashboards(job_name=JOB_NAME, configuration=push_configuration, live_store=live_store, vcs=vcs)

        _, folder_id, message = live_store.writes[0]
        assert folder_id == live_store.get_folder("ops").id  # type: ignore[union-attr]
        assert message == f"Deleted 'sync' tag (version 5, job '{JOB_NAME}', commit abc123)"
        assert commit_message("sync") == "Synchronized Dashboards with tag <sync>"

    def test_empty_branch_uses_placeholder_revision(self) -> None:
        message = export_message(tag="sync", preserve_tags=True, revision=2, job_name="job", revision_id="none")

        assert message == "Exported with tag 'sync' (version 2, job 'job', commit none)"

    def test_preserve_tags(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync", "prod"]))
        configuration = PushConfiguration(enable=True, tag_pattern="sync", push_tags=True)

        push_dashboards(job_name=JOB_NAME, configuration=configuration, live_store=live_store, vcs=vcs)

        assert vcs.remote_document("main", "General/cpu.json")["tags"] == ["sync", "prod"]
        assert live_store.dashboards["u1"]["tags"] == ["sync", "prod"]

    def test_only_first_tag_occurrence_is_removed(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["keep", "sync", "sync"]))

        push_dashboards(job_name=JOB_NAME, configuration=push_configuration, live_store=live_store, vcs=vcs)

        assert vcs.remote_document("main", "General/cpu.json")["tags"] == ["keep", "sync"]

    def test_filter_skips_dashboards(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        caplog: LogCaptureFixture,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]), folder="teamA")
        live_store.add_dashboard(dashboard_body("u2", "memory", tags=["sync"]), folder="teamB")
        configuration = PushConfiguration(enable=True, tag_pattern="sync", filter="teamA/")

        result = push_dashboards(job_name=JOB_NAME, configuration=configuration, live_store=live_store, vcs=vcs)

        assert result.exported == 1
        assert result.skipped == 1
        assert set(vcs.remote_files["main"]) == {"teamA/cpu.json"}
        assert live_store.dashboards["u2"]["tags"] == ["sync"]
        assert "Skipping export of 'teamB/memory'" in caplog.text

    def test_no_tagged_dashboards(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["other"]))

        result = push_dashboards(job_name=JOB_NAME, configuration=push_configuration, live_store=live_store, vcs=vcs)

        assert result.exported == 0
        assert not result.pushed
        assert vcs.checkouts == []
        assert live_store.writes == []

    def test_everything_filtered_out(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]), folder="ops")
        configuration = PushConfiguration(enable=True, tag_pattern="sync", filter="^nothing")

        result = push_dashboards(job_name=JOB_NAME, configuration=configuration, live_store=live_store, vcs=vcs)

        assert result.skipped == 1
        assert vcs.commits_created == []
        assert vcs.pushes == []

    def test_unchanged_export_is_not_pushed(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
    ) -> None:
        body = dashboard_body("u1", "cpu", tags=["sync"], id=101, version=1)
        live_store.add_dashboard(body)
        vcs.seed("main", {"General/cpu.json": dashboard_file(body, sync_origin=JOB_NAME)})
        configuration = PushConfiguration(enable=True, tag_pattern="sync", push_tags=True)

        result = push_dashboards(job_name=JOB_NAME, configuration=configuration, live_store=live_store, vcs=vcs)

        assert result.exported == 1
        assert result.committed is None
        assert not result.pushed
        assert vcs.pushes == []

    def test_dry_run_writes_nothing(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
        caplog: LogCaptureFixture,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]), folder="ops")

        result = push_dashboards(
            job_name=JOB_NAME,
            configuration=push_configuration,
            live_store=live_store,
            vcs=vcs,
            dry_run=True,
        )

        assert result.exported == 1
        assert result.dry_run
        assert not result.pushed
        assert live_store.writes == []
        assert live_store.dashboards["u1"]["tags"] == ["sync"]
        assert vcs.commits_created == []
        assert vcs.pushes == []
        assert "main" not in vcs.remote_files
        assert "[DRY RUN] Would update 'ops/cpu'" in caplog.text

    def test_dry_run_counts_like_a_real_run(
        self,
        push_configuration: PushConfiguration,
    ) -> None:
        counters = []
        for dry_run in (True, False):
            live_store, vcs = FakeLiveStore(), FakeVersionControl()
            live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]), folder="ops")
            live_store.add_dashboard(dashboard_body("u2", "disk", tags=["sync"]), folder="infra")
            configuration = push_configuration.model_copy(update={"filter": "^ops/"})

            result = push_dashboards(
                job_name=JOB_NAME,
                configuration=configuration,
                live_store=live_store,
                vcs=vcs,
                dry_run=dry_run,
            )
            counters.append((result.exported, result.skipped))

        assert counters[0] == counters[1] == (1, 1)

    def test_invalid_filter_fails_before_any_call(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
    ) -> None:
        configuration = PushConfiguration(enable=True, tag_pattern="sync", filter="(")

        with pytest.raises(InvalidPatternError):
            push_dashboards(job_name=JOB_NAME, configuration=configuration, live_store=live_store, vcs=vcs)

        assert live_store.search_calls == 0
        assert vcs.checkouts == []

    def test_vanished_dashboard_is_a_remote_error(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"]))
        live_store.get_by_uid = lambda uid: None  # type: ignore[method-assign]

        with pytest.raises(RemoteError, match="could not be fetched"):
            push_dashboards(job_name=JOB_NAME, configuration=push_configuration, live_store=live_store, vcs=vcs)

        assert vcs.pushes == []

    def test_exported_file_is_the_dashboard_json(
        self,
        live_store: FakeLiveStore,
        vcs: FakeVersionControl,
        push_configuration: PushConfiguration,
    ) -> None:
        live_store.add_dashboard(dashboard_body("u1", "cpu", tags=["sync"], refresh="10s"), folder="ops")

        push_dashboards(job_name=JOB_NAME, configuration=push_configuration, live_store=live_store, vcs=vcs)

        data = vcs.remote_files["main"]["ops/cpu.json"]
        assert data.endswith(b"\n")
        assert json.loads(data)["refresh"] == "10s"
