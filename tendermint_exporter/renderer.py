#!/usr/bin/env python3
"""
Metric Renderer
Maps a ScrapeSnapshot onto labeled gauges in a per-scrape Prometheus registry
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from .config import ExporterConfig
from .exceptions import RenderError
from .models import ScrapeSnapshot
from .utils import bool_to_float, versions_match

logger = logging.getLogger(__name__)

NODE_LABELS = ["id", "moniker"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetricRenderer:
    """Renders successful snapshots as Prometheus text exposition"""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, config: ExporterConfig, clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.clock = clock or _utc_now
        self.logger = logger

    def render(self, snapshot: ScrapeSnapshot) -> bytes:
        """Render `snapshot`; raises RenderError for a failed snapshot"""
        if not snapshot.ok:
            raise RenderError(f"cannot render a failed scrape: {snapshot.error}")

        registry = CollectorRegistry()

        catching_up = Gauge("tendermint_node_catching_up", "Is node catching up?", NODE_LABELS, registry=registry)
        app_version = Gauge("tendermint_node_app_version", "App version", NODE_LABELS + ["version"], registry=registry)
        voting_power = Gauge("tendermint_node_voting_power", "Voting power", NODE_LABELS, registry=registry)
        github_latest_version = Gauge(
            "tendermint_github_latest_version",
            "Github latest version",
            ["organization", "repository", "version"],
            registry=registry,
        )
        version_mismatch = Gauge(
            "tendermint_latest_version_mismatch",
            "If using the latest version or not",
            NODE_LABELS + ["local_version", "remote_version"],
            registry=registry,
        )
        local_latest_block = Gauge(
            "tendermint_local_node_latest_block", "Local node latest block", NODE_LABELS, registry=registry
        )
        remote_latest_block = Gauge(
            "tendermint_remote_node_latest_block", "Remote node latest block", NODE_LABELS, registry=registry
        )
        time_since_latest_block = Gauge(
            "tendermint_node_time_since_latest_block", "Time since latest block", NODE_LABELS, registry=registry
        )

        local = snapshot.local_status
        node = {"id": local.node_id, "moniker": local.moniker}

        catching_up.labels(**node).set(bool_to_float(local.catching_up))
        voting_power.labels(**node).set(local.voting_power)
        time_since_latest_block.labels(**node).set((self.clock() - local.latest_block_time).total_seconds())
        local_latest_block.labels(**node).set(local.latest_block_height)

        if snapshot.version is not None:
            app_version.labels(version=snapshot.version.version, **node).set(1)

        if snapshot.release is not None:
            github_latest_version.labels(
                organization=self.config.github_org or "",
                repository=self.config.github_repo or "",
                version=snapshot.release.tag_name,
            ).set(1)

        if snapshot.version is not None and snapshot.release is not None:
            local_version = snapshot.version.version
            remote_version = snapshot.release.tag_name
            mismatch = not versions_match(local_version, remote_version)
            version_mismatch.labels(
                local_version=local_version, remote_version=remote_version, **node
            ).set(bool_to_float(mismatch))

        if snapshot.remote_status is not None:
            remote = snapshot.remote_status
            remote_latest_block.labels(id=remote.node_id, moniker=remote.moniker).set(remote.latest_block_height)

        return generate_latest(registry)
