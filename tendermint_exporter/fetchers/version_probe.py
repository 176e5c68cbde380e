#!/usr/bin/env python3
"""
Binary Version Probe
Runs the node binary and decodes its self-reported version
"""

import json
import logging
import subprocess
from typing import Sequence

from ..exceptions import DecodeError, ProcessError
from ..models import VersionInfo
from ..utils import extract_json_line

logger = logging.getLogger(__name__)

DEFAULT_BINARY_ARGS = ("version", "--long", "--output", "json")


class VersionProbe:
    """Invokes `<binary> version --long --output json` and parses the result"""

    def __init__(self, binary_path: str, args: Sequence[str] = DEFAULT_BINARY_ARGS):
        self.binary_path = binary_path
        self.args = list(args)
        self.logger = logger

    def probe_version(self) -> VersionInfo:
        """Run the binary once and return its VersionInfo"""
        command = [self.binary_path] + self.args
        self.logger.debug(f"Running version probe: {' '.join(command)}")

        try:
            completed = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                # wrapper noise may not be valid UTF-8
                errors="replace",
                check=False,
            )
        except OSError as e:
            self.logger.error(f"Could not run {self.binary_path}: {e}")
            raise ProcessError("version", f"could not run {self.binary_path}: {e}") from e

        output = completed.stdout or ""
        if completed.returncode != 0:
            self.logger.error(f"Could not get app version (exit code {completed.returncode}), output: {output}")
            raise ProcessError(
                "version",
                f"{self.binary_path} exited with status {completed.returncode}",
                output=output,
            )

        return self.parse_output(output)

    def parse_output(self, output: str) -> VersionInfo:
        """Decode VersionInfo from combined process output, skipping wrapper log lines"""
        candidate = extract_json_line(output)

        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as e:
            self.logger.error(f"Could not decode app version: {e}, output: {candidate}")
            raise DecodeError("version", f"could not decode app version: {e}") from e

        if not isinstance(payload, dict):
            self.logger.error(f"Unexpected app version payload: {candidate}")
            raise DecodeError("version", "app version output is not a JSON object")

        version = payload.get("version")
        if not version or not isinstance(version, str):
            self.logger.error(f"App version output has no version field: {candidate}")
            raise DecodeError("version", "app version output has no version field")

        return VersionInfo(version=version, name=str(payload.get("name") or ""))
