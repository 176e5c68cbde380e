#!/usr/bin/env python3
"""
Status Fetcher
Queries a Tendermint node's RPC `status` endpoint
"""

import logging
import requests
from typing import Any, Dict, Optional

from ..exceptions import DecodeError, EmptyResponseError, TransportError
from ..models import NodeStatus
from ..utils import normalize_rpc_url, parse_block_time

logger = logging.getLogger(__name__)


class StatusFetcher:
    """Fetches node identity and sync state from one RPC endpoint per call"""

    def __init__(self, timeout: Optional[float] = None):
        # None keeps the transport default, no per-call override
        self.timeout = timeout
        self.logger = logger

    def fetch_status(self, endpoint: str, source: str = "local_status") -> NodeStatus:
        """
        Issue a single `status` query against `endpoint`.

        Raises TransportError when the node is unreachable or answers with an
        error, EmptyResponseError when the answer carries no status, and
        DecodeError when the payload cannot be interpreted.
        """
        url = f"{normalize_rpc_url(endpoint)}/status"
        self.logger.debug(f"Querying node status at {url}")

        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransportError(source, f"could not query status from {endpoint}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(source, f"non-JSON status response from {endpoint}: {e}") from e

        if not body:
            raise EmptyResponseError(source, f"empty status from node {endpoint}")
        if not isinstance(body, dict):
            raise DecodeError(source, f"unexpected status payload from {endpoint}: {str(body)[:200]}")

        if body.get("error"):
            raise TransportError(source, f"RPC error from {endpoint}: {self._rpc_error_message(body['error'])}")

        result = body["result"] if "result" in body else body
        if not result or not isinstance(result, dict):
            raise EmptyResponseError(source, f"empty status from node {endpoint}")

        return self._parse_status(result, endpoint, source)

    def _parse_status(self, result: Dict[str, Any], endpoint: str, source: str) -> NodeStatus:
        """Convert a decoded `status` result into a NodeStatus"""
        node_info = result.get("node_info")
        sync_info = result.get("sync_info")
        if not node_info or not sync_info:
            raise EmptyResponseError(source, f"empty status from node {endpoint}")

        validator_info = result.get("validator_info") or {}

        try:
            return NodeStatus(
                node_id=str(node_info.get("id", "")),
                moniker=str(node_info.get("moniker", "")),
                catching_up=bool(sync_info.get("catching_up", False)),
                voting_power=int(validator_info.get("voting_power", 0) or 0),
                latest_block_height=int(sync_info["latest_block_height"]),
                latest_block_time=parse_block_time(str(sync_info["latest_block_time"])),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DecodeError(source, f"malformed status from {endpoint}: {e}") from e

    @staticmethod
    def _rpc_error_message(error: Any) -> str:
        if isinstance(error, dict):
            message = error.get("message", "unknown error")
            data = error.get("data")
            return f"{message}: {data}" if data else str(message)
        return str(error)
