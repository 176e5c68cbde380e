"""
tendermint-exporter: Prometheus exporter for Tendermint node status, app version and upstream releases
"""

from .aggregator import ScrapeAggregator
from .config import ExporterConfig, load_config_file
from .models import NodeStatus, ReleaseInfo, VersionInfo, ScrapeSnapshot
from .renderer import MetricRenderer
from .server import MetricsApp, serve, setup_logging
from .exceptions import *


__version__ = "1.0.0"

__all__ = [
    "ScrapeAggregator",
    "ExporterConfig",
    "load_config_file",
    "NodeStatus",
    "ReleaseInfo",
    "VersionInfo",
    "ScrapeSnapshot",
    "MetricRenderer",
    "MetricsApp",
    "serve",
    "setup_logging",
    "TendermintExporterException",
    "FetchError",
    "TransportError",
    "EmptyResponseError",
    "DecodeError",
    "ProcessError",
    "RenderError",
    "ValidationError"
]
