"""
Shared CLI context for the ZKL command line interface.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

import click

from cli.config import ConfigurationManager, get_config_value
from network.client import ChainClient, ChainClientConfig


class CLILogHandler(logging.StreamHandler):
    """Stderr handler installed by the CLI."""
    pass


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config: Dict[str, Any] = {}
        self.logger: logging.Logger = logging.getLogger('zkl-cli')
        self._chain_client: Optional[ChainClient] = None

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }
        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        handler = CLILogHandler(sys.stderr)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

        # Replace the handler of a previous invocation in the same process
        root = logging.getLogger()
        for existing in [h for h in root.handlers if isinstance(h, CLILogHandler)]:
            root.removeHandler(existing)
        root.addHandler(handler)
        root.setLevel(level)

        # Suppress verbose third-party logs unless in debug mode
        if self.verbose < 2:
            for name in ('requests', 'urllib3', 'web3'):
                logging.getLogger(name).setLevel(logging.WARNING)

    def load_config(self):
        """Load configuration from defaults, file and environment."""
        try:
            self.config = ConfigurationManager(self.config_file).load()
        except ValueError as e:
            raise click.ClickException(str(e))
        if not self.output_format:
            self.output_format = self.get_config('cli.output_format', 'table')

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get configuration value with fallback to default."""
        value = get_config_value(self.config, key, default)
        return default if value is None else value

    def chain_client(self) -> ChainClient:
        """Chain client built from the loaded configuration."""
        if self._chain_client is None:
            env_config = ChainClientConfig.from_env()
            overrides = {int(chain_id): url for chain_id, url in self.get_config('chain.rpc_overrides', {}).items()}
            overrides.update(env_config.rpc_overrides)
            self._chain_client = ChainClient(ChainClientConfig(
                timeout=int(self.get_config('chain.timeout', env_config.timeout)),
                rpc_overrides=overrides
            ))
        return self._chain_client

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in specified format."""
        format_type = format_override or self.output_format or 'table'
        if format_type == "json":
            click.echo(json.dumps(data, indent=2, default=str))
        else:
            self._output_table(data)

    def _output_table(self, data: Any):
        """Output data in table format."""
        if isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key:20} {value}")
        elif isinstance(data, list) and data and isinstance(data[0], dict):
            headers = list(data[0].keys())
            click.echo(" | ".join(f"{h:15}" for h in headers))
            click.echo("-" * (len(headers) * 18))
            for item in data:
                values = [str(item.get(h, ""))[:44] for h in headers]
                click.echo(" | ".join(f"{v:15}" for v in values))
        elif isinstance(data, list):
            for item in data:
                click.echo(item)
        else:
            click.echo(str(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)
