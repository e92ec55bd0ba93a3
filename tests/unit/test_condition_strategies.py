"""
Tests for Condition Validation Strategies

Tests result comparison, parameter substitution and the five condition
checks against a mocked chain client.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from access.builder import AccessSchemaBuilder
from access.exceptions import EvaluationError
from access.strategies import (
    ConditionStrategies,
    compare_result,
    make_contract_strategy,
    make_rpc_strategy,
    make_timelock_strategy,
    substitute_parameters,
    validate_blacklist_condition,
    validate_whitelist_condition,
)
from network.client import ChainClient

SUBJECT = "0x" + "abc0" * 10
CONTRACT = "0x" + "12" * 20

# 2023-11-14T22:13:20Z
NOW_SECONDS = 1700000000.0
NOW_MS = 1700000000000


class TestCompareResult:
    """Test comparing chain results with returnValueTest values."""

    def test_equality_compares_strings(self):
        """Test that == compares string forms."""
        assert compare_result(5, {"comparator": "==", "value": "5"}) is True
        assert compare_result("0x05", {"comparator": "==", "value": "5"}) is False
        assert compare_result(True, {"comparator": "==", "value": "True"}) is True

    @pytest.mark.parametrize("result, value, expected", [
        ("0x0de0b6b3a7640000", "1000000000000000000", True),
        ("0x0de0b6b3a763ffff", "1000000000000000000", False),
        (3, "1", True),
        (1, "1", True),
        (0, "1", False),
        (2 ** 200, str(2 ** 200 - 1), True),
    ])
    def test_greater_or_equal(self, result, value, expected):
        """Test >= across hex, decimal and large integers."""
        assert compare_result(result, {"comparator": ">=", "value": value}) is expected

    def test_less_or_equal(self):
        """Test <= comparison."""
        assert compare_result("0x1", {"comparator": "<=", "value": "1"}) is True
        assert compare_result(2, {"comparator": "<=", "value": 1}) is False

    @pytest.mark.parametrize("comparator", [">", "<", "!=", None])
    def test_unknown_comparator(self, comparator):
        """Test that unsupported comparators are fatal."""
        with pytest.raises(EvaluationError, match="Unknown comparator"):
            compare_result(1, {"comparator": comparator, "value": "1"})

    def test_non_numeric_operand(self):
        """Test that numeric comparators reject non-numbers."""
        with pytest.raises(EvaluationError, match="Cannot compare"):
            compare_result("many", {"comparator": ">=", "value": "1"})


class TestSubstituteParameters:
    """Test user address placeholder substitution."""

    def test_placeholder_replaced(self):
        """Test that every placeholder is replaced."""
        params = [":userAddress", "latest", ":userAddress", 7]
        assert substitute_parameters(params, SUBJECT) == [SUBJECT, "latest", SUBJECT, 7]

    def test_input_not_modified(self):
        """Test that the stored parameters are left alone."""
        params = [":userAddress"]
        substitute_parameters(params, SUBJECT)
        assert params == [":userAddress"]


class TestListStrategies:
    """Test whitelist and blacklist checks."""

    def test_whitelist_matches_case_insensitively(self):
        """Test that address case does not matter."""
        condition = AccessSchemaBuilder.format_is_whitelisted(1, SUBJECT.upper().replace("0X", "0x"))

        assert asyncio.run(validate_whitelist_condition(SUBJECT, condition)) is True
        assert asyncio.run(validate_whitelist_condition("0x" + "def0" * 10, condition)) is False

    def test_blacklist_is_inverse_of_match(self):
        """Test that a listed address is denied and others pass."""
        condition = AccessSchemaBuilder.format_is_blacklisted(1, SUBJECT)

        assert asyncio.run(validate_blacklist_condition(SUBJECT.upper().replace("0X", "0x"), condition)) is False
        assert asyncio.run(validate_blacklist_condition("0x" + "def0" * 10, condition)) is True

    def test_non_string_value(self):
        """Test conditions whose value is not an address."""
        condition = {"method": "whitelist", "returnValueTest": {"comparator": "==", "value": 1}}

        assert asyncio.run(validate_whitelist_condition(SUBJECT, condition)) is False
        assert asyncio.run(validate_blacklist_condition(SUBJECT, condition)) is True


class TestTimelockStrategy:
    """Test time-gated checks with a fixed clock."""

    @pytest.fixture
    def timelock(self):
        return make_timelock_strategy(clock=lambda: NOW_SECONDS)

    @pytest.mark.parametrize("comparator, value, expected", [
        (">=", NOW_MS - 1, True),
        (">=", NOW_MS, True),
        (">=", NOW_MS + 1, False),
        ("<=", NOW_MS + 1, True),
        ("<=", NOW_MS - 1, False),
        ("==", NOW_MS, False),
        (">", NOW_MS - 1, False),
    ])
    def test_comparison(self, timelock, comparator, value, expected):
        """Test millisecond comparison against the clock."""
        condition = AccessSchemaBuilder.format_timelock(1, value, comparator)

        assert asyncio.run(timelock(SUBJECT, condition)) is expected

    def test_string_timestamp(self, timelock):
        """Test timestamps stored as strings."""
        condition = AccessSchemaBuilder.format_timelock(1, str(NOW_MS - 1), ">=")

        assert asyncio.run(timelock(SUBJECT, condition)) is True

    def test_invalid_timestamp(self, timelock):
        """Test that an unreadable timestamp denies access."""
        condition = AccessSchemaBuilder.format_timelock(1, "tomorrow", ">=")

        assert asyncio.run(timelock(SUBJECT, condition)) is False


class TestChainStrategies:
    """Test RPC and contract checks."""

    def test_rpc_check(self, chain_client):
        """Test the RPC check substitutes the address and compares the result."""
        chain_client.rpc_call.return_value = "0x1bc16d674ec80000"  # 2 ether
        condition = AccessSchemaBuilder.format_has_balance(1, 1)

        result = asyncio.run(make_rpc_strategy(chain_client)(SUBJECT, condition))

        assert result is True
        chain_client.rpc_call.assert_awaited_once_with(1, "eth_getBalance", [SUBJECT, "latest"])

    def test_rpc_check_below_minimum(self, chain_client):
        """Test the RPC check with an insufficient balance."""
        chain_client.rpc_call.return_value = "0x0"
        condition = AccessSchemaBuilder.format_has_balance(1, "0.5")

        assert asyncio.run(make_rpc_strategy(chain_client)(SUBJECT, condition)) is False

    def test_contract_check(self, chain_client):
        """Test the contract check passes ABI, function and parameters."""
        chain_client.contract_call.return_value = 3
        condition = AccessSchemaBuilder.format_has_erc1155(137, CONTRACT, 9)

        result = asyncio.run(make_contract_strategy(chain_client)(SUBJECT, condition))

        assert result is True
        chain_client.contract_call.assert_awaited_once_with(
            137, CONTRACT, condition["functionAbi"], "balanceOf", [SUBJECT, 9]
        )

    def test_contract_check_no_tokens(self, chain_client):
        """Test the contract check with a zero balance."""
        chain_client.contract_call.return_value = 0
        condition = AccessSchemaBuilder.format_has_erc721(1, CONTRACT)

        assert asyncio.run(make_contract_strategy(chain_client)(SUBJECT, condition)) is False

    def test_chain_errors_propagate(self, chain_client):
        """Test that client failures are raised to the caller."""
        chain_client.contract_call.side_effect = TimeoutError("read timed out")
        condition = AccessSchemaBuilder.format_has_erc721(1, CONTRACT)

        with pytest.raises(TimeoutError):
            asyncio.run(make_contract_strategy(chain_client)(SUBJECT, condition))


class TestConditionStrategies:
    """Test the default strategy set."""

    def test_default_uses_given_client_and_clock(self, chain_client):
        """Test wiring of the default strategies."""
        strategies = ConditionStrategies.default(chain_client, clock=lambda: NOW_SECONDS)
        timelock = AccessSchemaBuilder.format_timelock(1, NOW_MS, ">=")

        assert strategies.whitelist is validate_whitelist_condition
        assert strategies.blacklist is validate_blacklist_condition
        assert asyncio.run(strategies.timelock(SUBJECT, timelock)) is True

    def test_default_creates_client(self):
        """Test that a chain client is created when none is given."""
        client = Mock(spec=ChainClient)
        client.rpc_call = AsyncMock(return_value="0x1")

        with pytest.MonkeyPatch.context() as mp:
            mp.setattr("access.strategies.ChainClient", Mock(return_value=client))
            strategies = ConditionStrategies.default()

        condition = {"chainId": 1, "method": "eth_blockNumber", "parameters": [],
                     "returnValueTest": {"comparator": ">=", "value": "1"}}
        assert asyncio.run(strategies.rpc(SUBJECT, condition)) is True
