#!/usr/bin/env python3
"""
tendermint-exporter CLI Interface
"""

import click
import logging
import sys
from click.core import ParameterSource

from .config import ExporterConfig, load_config_file
from .exceptions import TendermintExporterException
from .server import serve, setup_logging

logger = logging.getLogger(__name__)


def resolve_options(ctx: click.Context, config_path, options: dict) -> dict:
    """Layer the YAML config file under options not given on the command line or environment"""
    if not config_path:
        return dict(options)

    file_options = load_config_file(config_path)
    resolved = dict(options)
    for name, value in file_options.items():
        if ctx.get_parameter_source(name) in (None, ParameterSource.DEFAULT):
            resolved[name] = value
    return resolved


@click.command(context_settings={"auto_envvar_prefix": "TENDERMINT_EXPORTER"})
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Config file path (YAML, keyed by flag names)')
@click.option('--listen-address', default=':9500', show_default=True,
              help='The address this exporter would listen on')
@click.option('--metrics-path', default='/metrics', show_default=True, help='Path serving the metrics')
@click.option('--log-level', default='info', show_default=True, help='Logging level')
@click.option('--json', is_flag=True, default=False, help='Output logs as JSON')
@click.option('--local-tendermint-rpc', default='http://localhost:26657', show_default=True,
              help='Local Tendermint RPC address')
@click.option('--remote-tendermint-rpc', default='', help='Remote Tendermint RPC address')
@click.option('--binary-path', default='', help='Binary path to get version from')
@click.option('--binary-args', default='version --long --output json', show_default=True,
              help='Arguments for binary to get version')
@click.option('--github-org', default='', help='Github organization name')
@click.option('--github-repo', default='', help='Github repository name')
@click.option('--github-token', default='', help='Github personal access token')
@click.option('--github-api-url', default='https://api.github.com', show_default=True,
              help='Github API base URL')
@click.pass_context
def cli(ctx, config_path, **options):
    """Scrape the data on Tendermint node and expose it as Prometheus metrics"""
    try:
        resolved = resolve_options(ctx, config_path, options)
        config = ExporterConfig.from_options(**resolved)
    except TendermintExporterException as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    setup_logging(config.logging_level, json_output=config.json_logs)

    try:
        serve(config)
    except OSError as e:
        logger.error(f"Could not start application: {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
