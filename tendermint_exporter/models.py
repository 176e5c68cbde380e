#!/usr/bin/env python3
"""
Scrape Data Models
Immutable value snapshots produced fresh on every scrape
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .exceptions import FetchError


@dataclass(frozen=True)
class NodeStatus:
    """Result of one Tendermint `status` query"""
    node_id: str
    moniker: str
    catching_up: bool
    voting_power: int
    latest_block_height: int
    latest_block_time: datetime


@dataclass(frozen=True)
class ReleaseInfo:
    """Latest published release of the upstream repository"""
    tag_name: str
    name: str = ""


@dataclass(frozen=True)
class VersionInfo:
    """Version reported by the local node binary"""
    version: str
    name: str = ""


@dataclass(frozen=True)
class ScrapeSnapshot:
    """
    Join of the concurrently fetched values of one scrape.

    Either `error` is set and every other field is None, or `error` is None
    and `local_status` is present. Skipped sub-fetches leave their slot None.
    """
    local_status: Optional[NodeStatus] = None
    remote_status: Optional[NodeStatus] = None
    release: Optional[ReleaseInfo] = None
    version: Optional[VersionInfo] = None
    error: Optional[FetchError] = None

    def __post_init__(self):
        if self.error is not None:
            if any(v is not None for v in (self.local_status, self.remote_status, self.release, self.version)):
                raise ValueError("a failed snapshot cannot carry data")
        elif self.local_status is None:
            raise ValueError("a successful snapshot requires local status")

    @classmethod
    def failed(cls, error: FetchError) -> "ScrapeSnapshot":
        return cls(error=error)

    @classmethod
    def succeeded(
        cls,
        local_status: NodeStatus,
        remote_status: Optional[NodeStatus] = None,
        release: Optional[ReleaseInfo] = None,
        version: Optional[VersionInfo] = None,
    ) -> "ScrapeSnapshot":
        return cls(
            local_status=local_status,
            remote_status=remote_status,
            release=release,
            version=version,
        )

    @property
    def ok(self) -> bool:
        return self.error is None
