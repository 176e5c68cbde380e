#!/usr/bin/env python3
"""
Utility Functions
Common helpers shared by the fetchers and the renderer
"""

import re
from datetime import datetime, timezone

_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|z|[+-]\d{2}:\d{2})$"
)


def extract_json_line(output: str) -> str:
    """
    Return the first line of `output` that looks like a JSON object.

    Process supervisors such as cosmovisor print their own log lines around
    the binary's JSON output. If no line starts with `{` and ends with `}`
    the whole output is returned unchanged, so decoding it fails loudly.
    """
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith("{") and stripped.endswith("}"):
            return stripped

    return output


def versions_match(local_version: str, remote_version: str) -> bool:
    """
    Loose version comparison: either string contained in the other.

    `v1.2.0` matches `1.2.0` and `1.2.0-abc`; this is a heuristic, not
    semantic version equality.
    """
    return local_version in remote_version or remote_version in local_version


def bool_to_float(value: bool) -> float:
    return 1.0 if value else 0.0


def parse_block_time(value: str) -> datetime:
    """Parse an RFC 3339 block timestamp (nanosecond precision allowed) into aware UTC"""
    match = _RFC3339_RE.match(value.strip())
    if not match:
        raise ValueError(f"invalid block time: {value!r}")

    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    tz = match.group("tz")
    if tz in ("Z", "z"):
        tz = "+00:00"

    parsed = datetime.fromisoformat(f"{match.group('base')}.{frac}{tz}")
    return parsed.astimezone(timezone.utc)


def normalize_rpc_url(url: str) -> str:
    """Map tcp:// node addresses to http:// and drop trailing slashes"""
    if url.startswith("tcp://"):
        url = "http://" + url[len("tcp://"):]
    return url.rstrip("/")
