#!/usr/bin/env python3
"""
Metrics HTTP Endpoint
WSGI application serving one scrape per request, plus logging setup
"""

import logging
import socket
import sys
from typing import Iterable, List, Optional, Tuple
from wsgiref.simple_server import WSGIRequestHandler, make_server

import structlog
from prometheus_client.exposition import ThreadingWSGIServer

from .aggregator import ScrapeAggregator
from .config import ExporterConfig
from .renderer import MetricRenderer

logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain; charset=utf-8"


def json_log_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Render stdlib log records as one JSON object per line"""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )


def setup_logging(level=logging.INFO, json_output: bool = False):
    """Set up logging configuration to stderr only"""
    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(json_log_formatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    logging.basicConfig(level=level, handlers=[handler], force=True)


class MetricsApp:
    """WSGI app: aggregate, render, respond"""

    def __init__(
        self,
        config: ExporterConfig,
        aggregator: Optional[ScrapeAggregator] = None,
        renderer: Optional[MetricRenderer] = None,
    ):
        self.config = config
        self.aggregator = aggregator or ScrapeAggregator(config)
        self.renderer = renderer or MetricRenderer(config)
        self.logger = logger

    def __call__(self, environ, start_response) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if path != self.config.metrics_path:
            return self._respond(start_response, "404 Not Found", [("Content-Type", TEXT_PLAIN)], b"not found\n")

        try:
            snapshot = self.aggregator.aggregate()
            if not snapshot.ok:
                self.logger.error(f"Could not fetch some data: {snapshot.error}")
                body = f"Error fetching data: {snapshot.error}".encode("utf-8")
                return self._respond(start_response, "500 Internal Server Error", [("Content-Type", TEXT_PLAIN)], body)

            output = self.renderer.render(snapshot)
        except Exception as e:
            self.logger.exception(f"Scrape failed: {e}")
            body = f"Internal error: {e}".encode("utf-8")
            return self._respond(start_response, "500 Internal Server Error", [("Content-Type", TEXT_PLAIN)], body)

        return self._respond(start_response, "200 OK", [("Content-Type", self.renderer.content_type)], output)

    @staticmethod
    def _respond(start_response, status: str, headers: List[Tuple[str, str]], body: bytes) -> List[bytes]:
        start_response(status, headers + [("Content-Length", str(len(body)))])
        return [body]


class _LoggingRequestHandler(WSGIRequestHandler):
    """Route per-request access logs to the module logger at DEBUG"""

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


def _get_best_family(host: str, port: int) -> Tuple[int, str]:
    """Address family and bind address for `host`, IPv4 or IPv6"""
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    family, _, _, _, sockaddr = next(iter(infos))
    return family, sockaddr[0]


def create_server(config: ExporterConfig, app: Optional[MetricsApp] = None):
    """Bind a threaded WSGI server for `config`; each scrape runs on its own thread"""

    class _Server(ThreadingWSGIServer):
        """ThreadingWSGIServer with the address family of the listen host"""

    _Server.address_family, host = _get_best_family(config.listen_host, config.listen_port)

    return make_server(
        host,
        config.listen_port,
        app or MetricsApp(config),
        server_class=_Server,
        handler_class=_LoggingRequestHandler,
    )


def serve(config: ExporterConfig) -> None:
    """Serve scrapes until interrupted"""
    httpd = create_server(config)
    logger.info(f"Listening on {config.listen_address}{config.metrics_path}")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        httpd.server_close()
