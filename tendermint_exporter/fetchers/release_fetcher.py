#!/usr/bin/env python3
"""
Release Fetcher
Looks up the latest published GitHub release of a repository
"""

import logging
import requests
from typing import Optional

from ..exceptions import DecodeError, TransportError
from ..models import ReleaseInfo

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
RELEASE_TIMEOUT = 10


class ReleaseFetcher:
    """Handles the GitHub `releases/latest` lookup"""

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout: float = RELEASE_TIMEOUT):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger

    def release_url(self, org: str, repo: str) -> str:
        return f"{self.api_url}/repos/{org}/{repo}/releases/latest"

    def fetch_latest_release(self, org: str, repo: str, token: Optional[str] = None) -> ReleaseInfo:
        """Fetch and decode the latest release, raising FetchError subclasses on failure"""
        url = self.release_url(org, repo)
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.logger.debug(f"Fetching latest release from {url}")

        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError("release", f"could not fetch latest release of {org}/{repo}: {e}") from e

        if response.status_code >= 400:
            raise TransportError(
                "release",
                f"GitHub returned {response.status_code} for {org}/{repo}: {self._error_message(response)}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError("release", f"could not decode release of {org}/{repo}: {e}") from e

        if not isinstance(payload, dict):
            raise DecodeError("release", f"unexpected release payload for {org}/{repo}: {str(payload)[:200]}")

        tag_name = payload.get("tag_name")
        if not tag_name or not isinstance(tag_name, str):
            raise DecodeError("release", f"release of {org}/{repo} has no tag_name")

        return ReleaseInfo(tag_name=tag_name, name=payload.get("name") or "")

    @staticmethod
    def _error_message(response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return str(payload)[:200]
