"""
Network Commands for the ZKL CLI
"""

import click

from cli.context import CLIContext, pass_context
from network.networks import NETWORKS, UnsupportedNetworkError, get_network_by_id


@click.group()
@pass_context
def network(ctx: CLIContext):
    """Supported network commands."""
    ctx.logger.debug("Network command group invoked")


@network.command('list')
@pass_context
def list_networks(ctx: CLIContext):
    """List supported networks."""
    ctx.output([
        {"chain_id": n.chain_id, "name": n.name, "currency": n.currency}
        for n in sorted(NETWORKS.values(), key=lambda n: n.chain_id)
    ])


@network.command('show')
@click.argument('chain_id', type=int)
@pass_context
def show_network(ctx: CLIContext, chain_id: int):
    """Show one network, including its resolved RPC endpoint."""
    try:
        details = get_network_by_id(chain_id).model_dump()
    except UnsupportedNetworkError as e:
        raise click.ClickException(str(e))
    details["rpc_endpoint"] = ctx.chain_client().config.endpoint_for(chain_id)
    ctx.output(details)
