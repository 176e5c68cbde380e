"""
Tests for the scrape aggregator
"""

import threading
import time
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from tendermint_exporter.aggregator import ScrapeAggregator
from tendermint_exporter.config import ExporterConfig
from tendermint_exporter.exceptions import (
    DecodeError,
    ProcessError,
    TransportError,
)
from tendermint_exporter.fetchers import ReleaseFetcher, StatusFetcher, VersionProbe
from tendermint_exporter.models import NodeStatus, ReleaseInfo, VersionInfo

LOCAL_RPC = "http://localhost:26657"
REMOTE_RPC = "https://rpc.example.com"

LOCAL = NodeStatus("abc", "node1", False, 100, 500, datetime(2024, 1, 1, tzinfo=timezone.utc))
REMOTE = NodeStatus("def", "reference", False, 0, 510, datetime(2024, 1, 1, tzinfo=timezone.utc))


def full_config():
    return ExporterConfig(
        local_rpc=LOCAL_RPC,
        remote_rpc=REMOTE_RPC,
        github_org="cosmos",
        github_repo="gaia",
        binary_path="/usr/local/bin/gaiad",
    )


def status_fetcher(local=LOCAL, remote=REMOTE):
    """Mock StatusFetcher answering per endpoint; exceptions are raised"""
    answers = {LOCAL_RPC: local, REMOTE_RPC: remote}

    def fetch_status(endpoint, source="local_status"):
        answer = answers[endpoint]
        if isinstance(answer, Exception):
            raise answer
        return answer

    fetcher = Mock(spec=StatusFetcher)
    fetcher.fetch_status.side_effect = fetch_status
    return fetcher


def release_fetcher(result=ReleaseInfo(tag_name="v2.0.0")):
    fetcher = Mock(spec=ReleaseFetcher)
    if isinstance(result, Exception):
        fetcher.fetch_latest_release.side_effect = result
    else:
        fetcher.fetch_latest_release.return_value = result
    return fetcher


def version_probe(result=VersionInfo(version="2.0.0")):
    probe = Mock(spec=VersionProbe)
    if isinstance(result, Exception):
        probe.probe_version.side_effect = result
    else:
        probe.probe_version.return_value = result
    return probe


class TestScrapeAggregator:
    """Test ScrapeAggregator"""

    def test_only_local_status_when_nothing_optional_configured(self):
        statuses = status_fetcher()
        releases = release_fetcher()
        probe = version_probe()
        aggregator = ScrapeAggregator(
            ExporterConfig(local_rpc=LOCAL_RPC), statuses, releases, probe
        )

        snapshot = aggregator.aggregate()

        assert snapshot.ok
        assert snapshot.local_status == LOCAL
        assert snapshot.remote_status is None
        assert snapshot.release is None
        assert snapshot.version is None
        statuses.fetch_status.assert_called_once_with(LOCAL_RPC, "local_status")
        releases.fetch_latest_release.assert_not_called()
        probe.probe_version.assert_not_called()

    def test_release_skipped_without_repo(self):
        releases = release_fetcher()
        config = ExporterConfig(local_rpc=LOCAL_RPC, github_org="cosmos")
        aggregator = ScrapeAggregator(config, status_fetcher(), releases, version_probe())

        assert aggregator.aggregate().release is None
        releases.fetch_latest_release.assert_not_called()

    def test_all_fetches_succeed(self):
        releases = release_fetcher()
        aggregator = ScrapeAggregator(full_config(), status_fetcher(), releases, version_probe())

        snapshot = aggregator.aggregate()

        assert snapshot.ok
        assert snapshot.local_status == LOCAL
        assert snapshot.remote_status == REMOTE
        assert snapshot.release == ReleaseInfo(tag_name="v2.0.0")
        assert snapshot.version == VersionInfo(version="2.0.0")
        releases.fetch_latest_release.assert_called_once_with("cosmos", "gaia", None)

    @pytest.mark.parametrize("others_fail", [False, True])
    def test_local_failure_wins(self, others_fail):
        local_error = TransportError("local_status", "connection refused")
        if others_fail:
            statuses = status_fetcher(local=local_error, remote=TransportError("remote_status", "remote down"))
            releases = release_fetcher(TransportError("release", "rate limited"))
            probe = version_probe(ProcessError("version", "exit 1"))
        else:
            statuses, releases, probe = status_fetcher(local=local_error), release_fetcher(), version_probe()

        snapshot = ScrapeAggregator(full_config(), statuses, releases, probe).aggregate()

        assert not snapshot.ok
        assert snapshot.error is local_error
        assert snapshot.local_status is None

    def test_remote_failure_reported_before_release_and_version(self):
        remote_error = TransportError("remote_status", "remote down")
        snapshot = ScrapeAggregator(
            full_config(),
            status_fetcher(remote=remote_error),
            release_fetcher(DecodeError("release", "bad json")),
            version_probe(ProcessError("version", "exit 1")),
        ).aggregate()

        assert snapshot.error is remote_error

    def test_release_failure_reported_before_version(self):
        release_error = DecodeError("release", "bad json")
        snapshot = ScrapeAggregator(
            full_config(), status_fetcher(), release_fetcher(release_error), version_probe(ProcessError("version", "x"))
        ).aggregate()

        assert snapshot.error is release_error

    def test_version_failure_fails_scrape(self):
        version_error = ProcessError("version", "exit 1")
        snapshot = ScrapeAggregator(
            full_config(), status_fetcher(), release_fetcher(), version_probe(version_error)
        ).aggregate()

        assert snapshot.error is version_error
        assert snapshot.version is None

    def test_waits_for_all_tasks_after_failure(self):
        finished = threading.Event()

        def slow_probe():
            time.sleep(0.2)
            finished.set()
            return VersionInfo(version="2.0.0")

        probe = Mock(spec=VersionProbe)
        probe.probe_version.side_effect = slow_probe
        statuses = status_fetcher(local=TransportError("local_status", "connection refused"))

        snapshot = ScrapeAggregator(full_config(), statuses, release_fetcher(), probe).aggregate()

        assert not snapshot.ok
        assert finished.is_set()

    def test_fetches_run_concurrently(self):
        barrier = threading.Barrier(4, timeout=5)

        def wait_then(value):
            def task(*args, **kwargs):
                barrier.wait()
                return value
            return task

        def fetch_status(endpoint, source):
            barrier.wait()
            return LOCAL if endpoint == LOCAL_RPC else REMOTE

        statuses = Mock(spec=StatusFetcher)
        statuses.fetch_status.side_effect = fetch_status
        releases = Mock(spec=ReleaseFetcher)
        releases.fetch_latest_release.side_effect = wait_then(ReleaseInfo(tag_name="v2.0.0"))
        probe = Mock(spec=VersionProbe)
        probe.probe_version.side_effect = wait_then(VersionInfo(version="2.0.0"))

        snapshot = ScrapeAggregator(full_config(), statuses, releases, probe).aggregate()

        assert snapshot.ok
        assert snapshot.remote_status == REMOTE

    def test_unexpected_exception_propagates(self):
        probe = version_probe(RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            ScrapeAggregator(full_config(), status_fetcher(), release_fetcher(), probe).aggregate()

    def test_default_collaborators_built_from_config(self):
        aggregator = ScrapeAggregator(full_config())

        assert isinstance(aggregator.status_fetcher, StatusFetcher)
        assert aggregator.release_fetcher.api_url == "https://api.github.com"
        assert aggregator.version_probe.binary_path == "/usr/local/bin/gaiad"
        assert aggregator.version_probe.args == ["version", "--long", "--output", "json"]

    def test_no_version_probe_without_binary_path(self):
        assert ScrapeAggregator(ExporterConfig()).version_probe is None
