"""
Integration Tests for Token-Gate Access Schemas

End-to-end scenarios: schemas are built with the builder (or loaded as
stored JSON) and evaluated by the validator using the default strategies,
with only the chain client mocked.
"""

import asyncio
import json
import time

import pytest
from web3 import Web3

from access import AccessSchemaBuilder, AccessValidator, ConditionStrategies

WHITELISTED = "0x" + "ABC0" * 10
BLACKLISTED = "0x" + "DEF0" * 10
CONTRACT = "0x" + "12" * 20


@pytest.fixture
def list_schema():
    builder = AccessSchemaBuilder()
    builder.add_access_condition({"key": "isWhitelisted", "chainId": 1, "whitelistedAddress": WHITELISTED})
    builder.add_access_condition({"key": "isBlacklisted", "chainId": 1, "blacklistedAddress": BLACKLISTED},
                                 "and")
    return builder.get_access_schema()


def _validate(schema, address, chain_client=None, **kwargs):
    validator = AccessValidator(schema, chain_client=chain_client, **kwargs)
    return asyncio.run(validator.validate(address))


class TestListScenarios:
    """Whitelist AND blacklist schemas."""

    def test_whitelisted_address_granted(self, list_schema, chain_client):
        """A lowercase form of the whitelisted address passes both conditions."""
        assert _validate(list_schema, WHITELISTED.lower(), chain_client) is True

    def test_blacklisted_address_denied(self, list_schema, chain_client):
        """The blacklisted address fails the blacklist condition."""
        assert _validate(list_schema, BLACKLISTED.lower(), chain_client) is False

    def test_unlisted_address_denied(self, list_schema, chain_client):
        """An address on neither list fails the whitelist condition."""
        assert _validate(list_schema, "0x" + "11" * 20, chain_client) is False

    def test_invalid_address_makes_no_calls(self, list_schema, chain_client):
        """A malformed address is denied without touching the chain."""
        schema = list(list_schema) + [{"operator": "and"}, AccessSchemaBuilder.format_has_erc721(1, CONTRACT)]

        assert _validate(schema, "not an address", chain_client) is False
        chain_client.rpc_call.assert_not_called()
        chain_client.contract_call.assert_not_called()


class TestEmptyAndTimelockScenarios:
    """Schemas without chain checks."""

    def test_empty_schema(self, chain_client):
        """Any valid address is granted by an empty schema."""
        assert _validate([], "0x" + "11" * 20, chain_client) is True

    def test_future_timelock_denied(self, chain_client):
        """A timelock opening in the future denies access."""
        future_ms = int((time.time() + 3600) * 1000)
        builder = AccessSchemaBuilder()
        builder.add_access_condition({"key": "timelock", "timestamp": future_ms, "comparator": ">="})

        assert _validate(builder.get_access_schema(), WHITELISTED, chain_client) is False

    def test_past_timelock_granted(self, chain_client):
        """A timelock that has already opened grants access."""
        past_ms = int((time.time() - 3600) * 1000)
        schema = [AccessSchemaBuilder.format_timelock(1, past_ms, ">=")]

        assert _validate(schema, WHITELISTED, chain_client) is True

    def test_fixed_clock(self, chain_client):
        """Timelocks read the injected clock."""
        schema = [AccessSchemaBuilder.format_timelock(1, 2000, "<=")]
        strategies = ConditionStrategies.default(chain_client, clock=lambda: 1.5)

        assert _validate(schema, WHITELISTED, strategies=strategies) is True


class TestChainScenarios:
    """Schemas evaluated through the mocked chain client."""

    def test_balance_or_nft(self, chain_client):
        """Balance OR ERC-721 ownership, where only the NFT check passes."""
        builder = AccessSchemaBuilder()
        builder.add_access_condition({"key": "hasBalance", "chainId": 1, "minBalance": 1})
        builder.add_access_condition({"key": "hasERC721", "chainId": 137, "contractAddress": CONTRACT}, "or")

        chain_client.rpc_call.return_value = "0x6f05b59d3b20000"  # 0.5 ether
        chain_client.contract_call.return_value = 1
        subject = "0x" + "11" * 20

        assert _validate(builder.get_access_schema(), subject, chain_client) is True

        checksummed = Web3.to_checksum_address(subject)
        chain_client.rpc_call.assert_awaited_once_with(1, "eth_getBalance", [checksummed, "latest"])
        args = chain_client.contract_call.await_args.args
        assert args[0] == 137
        assert args[1] == CONTRACT
        assert args[3] == "balanceOf"
        assert args[4] == [checksummed]

    def test_erc20_and_whitelist(self, chain_client):
        """ERC-20 balance AND whitelist, where the balance falls short."""
        builder = AccessSchemaBuilder()
        builder.add_access_condition({"key": "hasBalanceERC20", "chainId": 1, "contractAddress": CONTRACT,
                                      "minBalance": 100, "decimals": 6})
        builder.add_access_condition({"key": "isWhitelisted", "chainId": 1, "whitelistedAddress": WHITELISTED},
                                     "and")

        chain_client.contract_call.return_value = 99 * 10 ** 6

        assert _validate(builder.get_access_schema(), WHITELISTED, chain_client) is False

    def test_stored_json_schema(self, chain_client):
        """A schema round-tripped through JSON evaluates the same way."""
        builder = AccessSchemaBuilder()
        builder.add_access_condition({"key": "hasERC1155", "chainId": 1, "contractAddress": CONTRACT,
                                      "tokenId": 5})
        stored = json.loads(json.dumps(builder.get_access_schema()))

        chain_client.contract_call.return_value = 2

        first = _validate(stored, WHITELISTED, chain_client)
        second = _validate(stored, WHITELISTED, chain_client)

        assert first is True
        assert second is True
        assert chain_client.contract_call.await_count == 2

    def test_edit_then_evaluate(self, chain_client):
        """Deleting a failing condition changes the outcome."""
        validator = AccessValidator(chain_client=chain_client)
        validator.add_access_condition({"key": "isWhitelisted", "chainId": 1, "whitelistedAddress": WHITELISTED})
        validator.add_access_condition({"key": "hasERC721", "chainId": 1, "contractAddress": CONTRACT}, "and")
        chain_client.contract_call.return_value = 0

        assert asyncio.run(validator.validate(WHITELISTED)) is False

        validator.delete_access_condition(2)

        assert asyncio.run(validator.validate(WHITELISTED)) is True
        assert validator.get_access_schema()[0]["method"] == "whitelist"
