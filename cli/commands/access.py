"""
Access Schema Commands for the ZKL CLI

Commands for building, inspecting and evaluating token-gate access schemas
stored as JSON files.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from access import (
    AccessSchemaBuilder,
    AccessSchemaError,
    AccessSchemaKey,
    AccessValidator,
    AccessOperator,
)
from access.schema import is_operator_record
from cli.context import CLIContext, pass_context
from contracts.erc20 import ERC20ReadOnly

# Exit statuses of `zkl access check`
EXIT_DENIED = 1
EXIT_EVALUATION_ERROR = 3


def load_schema_file(file_path: str, missing_ok: bool = False) -> List[Dict[str, Any]]:
    """Load a schema file, returning an empty schema for a missing file when allowed."""
    path = Path(file_path)
    if not path.exists():
        if missing_ok:
            return []
        raise click.FileError(file_path, hint="file not found")

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.FileError(file_path, hint=f"invalid JSON: {e}")

    if not isinstance(data, list):
        raise click.FileError(file_path, hint="schema must be a JSON array")
    return data


def save_schema_file(schema: List[Dict[str, Any]], file_path: str):
    """Write a schema file."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(schema, f, indent=2)


def summarize_schema(schema: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One row per schema element for display."""
    rows = []
    for index, record in enumerate(schema):
        if is_operator_record(record):
            rows.append({"index": index, "type": "operator", "detail": record["operator"]})
            continue
        test = record.get("returnValueTest", {})
        call = record.get("functionName") or record.get("method")
        rows.append({
            "index": index,
            "type": record.get("key", "condition"),
            "detail": f"chain {record.get('chainId')} {call} {test.get('comparator')} {test.get('value')}",
        })
    return rows


def _builder(schema: List[Dict[str, Any]]) -> AccessSchemaBuilder:
    try:
        return AccessSchemaBuilder(schema)
    except AccessSchemaError as e:
        raise click.ClickException(f"Invalid schema: {e}")


@click.group()
@pass_context
def access(ctx: CLIContext):
    """
    Access schema commands.

    Build token-gate schemas condition by condition and check addresses
    against them.
    """
    ctx.logger.debug("Access command group invoked")


@access.command('show')
@click.argument('schema_file', type=click.Path())
@pass_context
def show_schema(ctx: CLIContext, schema_file: str):
    """Validate and display a schema file."""
    builder = _builder(load_schema_file(schema_file))
    ctx.output(summarize_schema(builder.get_access_schema()))


@access.command('add')
@click.argument('schema_file', type=click.Path())
@click.option('--key', required=True, type=click.Choice([k.value for k in AccessSchemaKey]),
              help='Condition kind')
@click.option('--operator', type=click.Choice([op.value for op in AccessOperator]),
              help='Operator joining the new condition (required for non-empty schemas)')
@click.option('--chain-id', type=int, help='Network chain id')
@click.option('--contract-address', help='Token contract address')
@click.option('--min-balance', help='Minimum balance in whole tokens or ether')
@click.option('--decimals', type=int, help='ERC-20 decimals')
@click.option('--fetch-decimals', is_flag=True, help='Read ERC-20 decimals from the contract')
@click.option('--token-id', type=int, help='ERC-1155 token id')
@click.option('--whitelisted-address', help='Address allowed by an isWhitelisted condition')
@click.option('--blacklisted-address', help='Address denied by an isBlacklisted condition')
@click.option('--timestamp', type=int, help='Timelock timestamp in milliseconds')
@click.option('--comparator', type=click.Choice(['>=', '<=']), help='Timelock comparator')
@pass_context
def add_condition(ctx: CLIContext, schema_file: str, key: str, operator: Optional[str],
                  chain_id: Optional[int], contract_address: Optional[str], min_balance: Optional[str],
                  decimals: Optional[int], fetch_decimals: bool, token_id: Optional[int],
                  whitelisted_address: Optional[str], blacklisted_address: Optional[str],
                  timestamp: Optional[int], comparator: Optional[str]):
    """Add a condition to a schema file, creating the file if needed."""
    builder = _builder(load_schema_file(schema_file, missing_ok=True))

    if fetch_decimals and decimals is None:
        if not (chain_id and contract_address):
            raise click.UsageError("--fetch-decimals needs --chain-id and --contract-address")
        try:
            token = ERC20ReadOnly(contract_address, chain_id, ctx.chain_client())
            decimals = asyncio.run(token.decimals())
        except ValueError as e:
            raise click.ClickException(str(e))
        ctx.logger.info(f"Fetched decimals {decimals} for {contract_address}")

    options = {
        "key": key,
        "chain_id": chain_id,
        "contract_address": contract_address,
        "min_balance": min_balance,
        "decimals": decimals,
        "token_id": token_id,
        "whitelisted_address": whitelisted_address,
        "blacklisted_address": blacklisted_address,
        "timestamp": timestamp,
        "comparator": comparator,
    }

    try:
        builder.add_access_condition(options, operator)
    except AccessSchemaError as e:
        raise click.ClickException(str(e))

    save_schema_file(builder.get_access_schema(), schema_file)
    ctx.output(summarize_schema(builder.get_access_schema()))


@access.command('update')
@click.argument('schema_file', type=click.Path())
@click.argument('index', type=int)
@click.argument('record')
@pass_context
def update_condition(ctx: CLIContext, schema_file: str, index: int, record: str):
    """Replace the schema element at INDEX with the JSON object RECORD."""
    builder = _builder(load_schema_file(schema_file))

    try:
        new_record = json.loads(record)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="RECORD")

    try:
        builder.update_access_condition(new_record, index)
    except AccessSchemaError as e:
        raise click.ClickException(str(e))

    save_schema_file(builder.get_access_schema(), schema_file)
    ctx.output(summarize_schema(builder.get_access_schema()))


@access.command('delete')
@click.argument('schema_file', type=click.Path())
@click.argument('index', type=int)
@pass_context
def delete_condition(ctx: CLIContext, schema_file: str, index: int):
    """Delete the condition at INDEX and one adjacent operator."""
    builder = _builder(load_schema_file(schema_file))

    try:
        builder.delete_access_condition(index)
    except AccessSchemaError as e:
        raise click.ClickException(str(e))

    save_schema_file(builder.get_access_schema(), schema_file)
    ctx.output(summarize_schema(builder.get_access_schema()))


class EvaluationFailed(click.ClickException):
    """Raised by ``check`` when a schema cannot be evaluated, as opposed to a denial."""
    exit_code = EXIT_EVALUATION_ERROR


@access.command('check')
@click.argument('schema_file', type=click.Path())
@click.argument('address')
@click.option('--timeout', type=float, help='Evaluation timeout in seconds')
@pass_context
def check_address(ctx: CLIContext, schema_file: str, address: str, timeout: Optional[float]):
    """
    Check ADDRESS against a schema.

    Exits with status 0 when access is granted, 1 when it is denied and 3
    when the schema could not be evaluated.
    """
    try:
        schema = load_schema_file(schema_file)
    except click.ClickException as e:
        raise EvaluationFailed(e.format_message())

    chain_client = ctx.chain_client()
    try:
        validator = AccessValidator(schema, chain_client=chain_client)
    except AccessSchemaError as e:
        raise EvaluationFailed(f"Invalid schema: {e}")

    timeout = timeout if timeout is not None else ctx.get_config('access.evaluation_timeout')

    try:
        granted = asyncio.run(validator.validate(address, timeout=timeout))
    except asyncio.TimeoutError:
        raise EvaluationFailed(f"Evaluation timed out after {timeout}s")
    except Exception as e:
        ctx.logger.debug(f"Evaluation of {schema_file} failed", exc_info=True)
        raise EvaluationFailed(f"Evaluation failed: {e}")
    finally:
        ctx.logger.debug(f"Chain call stats: {chain_client.get_stats()}")

    ctx.output({"address": address, "granted": granted})
    if not granted:
        click.get_current_context().exit(EXIT_DENIED)
