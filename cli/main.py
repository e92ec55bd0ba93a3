#!/usr/bin/env python3
"""
ZKL Access SDK - Command Line Interface

A CLI for building token-gate access schemas, checking addresses against
them, and inspecting supported networks.
"""

import sys
import traceback
from typing import Optional

import click

from cli import __version__
from cli.commands.access import access
from cli.commands.network import network
from cli.context import CLIContext, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(),
              help='Path to a JSON configuration file')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json']),
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='zkl')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], output_format: Optional[str], verbose: int):
    """
    ZKL token-gate command line interface.

    Examples:
        zkl access add gate.json --key hasERC721 --chain-id 1 --contract-address 0x...
        zkl access check gate.json 0x...
        zkl network list
    """
    ctx.config_file = config_file
    ctx.output_format = output_format
    ctx.verbose = verbose

    ctx.setup_logging()
    ctx.load_config()

    ctx.logger.debug("CLI initialized with context")


cli.add_command(access)
cli.add_command(network)


def main():
    """Console entry point; reports unexpected errors without a traceback unless -vv."""
    try:
        # Without standalone mode click returns the exit code of ctx.exit()
        exit_code = cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if '-vv' in sys.argv or '--verbose' in sys.argv:
            click.echo(traceback.format_exc(), err=True)
        else:
            click.echo("Use -vv for detailed error information.", err=True)
        sys.exit(1)

    sys.exit(exit_code if isinstance(exit_code, int) else 0)


if __name__ == '__main__':
    main()
