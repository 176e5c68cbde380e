#!/usr/bin/env python3
"""
Scrape Aggregator
Fans out the per-scrape fetches and joins them into one ScrapeSnapshot

Every launched fetch runs to completion before the snapshot is resolved,
even when a sibling has already failed. Siblings are not cancelled, so a
failing scrape takes as long as its slowest configured fetch. The reported
error is chosen by a fixed priority (local status, remote status, release,
version), never by which fetch finished first.
"""

import concurrent.futures
import logging
from typing import Callable, Dict, Optional

from .config import ExporterConfig
from .exceptions import FetchError
from .fetchers import ReleaseFetcher, StatusFetcher, VersionProbe
from .models import ScrapeSnapshot

logger = logging.getLogger(__name__)

# Resolution priority after the join
FETCH_ORDER = ("local_status", "remote_status", "release", "version")

FAILURE_MESSAGES = {
    "local_status": "Could not query local Tendermint status",
    "remote_status": "Could not query remote Tendermint status",
    "release": "Could not fetch latest version",
    "version": "Could not fetch app version",
}


class ScrapeAggregator:
    """Runs the configured fetches concurrently and assembles a snapshot"""

    def __init__(
        self,
        config: ExporterConfig,
        status_fetcher: Optional[StatusFetcher] = None,
        release_fetcher: Optional[ReleaseFetcher] = None,
        version_probe: Optional[VersionProbe] = None,
    ):
        self.config = config
        self.status_fetcher = status_fetcher or StatusFetcher()
        self.release_fetcher = release_fetcher or ReleaseFetcher(api_url=config.github_api_url)
        if version_probe is None and config.version_configured:
            version_probe = VersionProbe(config.binary_path, config.binary_args)
        self.version_probe = version_probe
        self.logger = logger

    def _plan(self) -> Dict[str, Callable]:
        """Fetch kind -> zero-argument callable, for every fetch this config enables"""
        tasks: Dict[str, Callable] = {
            "local_status": lambda: self.status_fetcher.fetch_status(self.config.local_rpc, "local_status"),
        }

        if self.config.remote_configured:
            tasks["remote_status"] = lambda: self.status_fetcher.fetch_status(self.config.remote_rpc, "remote_status")
        else:
            self.logger.debug("No remote tendermint RPC address set, not requesting its status.")

        if self.config.release_configured:
            tasks["release"] = lambda: self.release_fetcher.fetch_latest_release(
                self.config.github_org, self.config.github_repo, self.config.github_token
            )
        else:
            self.logger.debug("No GitHub org or repo set, not requesting latest binary version.")

        if self.config.version_configured:
            tasks["version"] = self.version_probe.probe_version
        else:
            self.logger.debug("Binary path not set, not querying its version.")

        return tasks

    def aggregate(self) -> ScrapeSnapshot:
        """
        Run one scrape's fetches and return the joined snapshot.

        FetchErrors are folded into the snapshot; any other exception raised
        by a fetch propagates to the caller.
        """
        tasks = self._plan()

        with concurrent.futures.ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="scrape") as executor:
            futures = {kind: executor.submit(task) for kind, task in tasks.items()}
            concurrent.futures.wait(futures.values(), return_when=concurrent.futures.ALL_COMPLETED)

        results = {}
        for kind in FETCH_ORDER:
            future = futures.get(kind)
            if future is None:
                continue

            error = future.exception()
            if isinstance(error, FetchError):
                self.logger.error(f"{FAILURE_MESSAGES[kind]}: {error}")
                return ScrapeSnapshot.failed(error)
            if error is not None:
                raise error

            results[kind] = future.result()

        return ScrapeSnapshot.succeeded(
            local_status=results["local_status"],
            remote_status=results.get("remote_status"),
            release=results.get("release"),
            version=results.get("version"),
        )
