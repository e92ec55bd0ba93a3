"""
Tests for Network Utilities

Tests the network registry, address validation and unit conversions.
"""

from decimal import Decimal

import pytest
from web3 import Web3

from network.address import InvalidAddressError, is_ethereum_address
from network.networks import NETWORKS, Network, UnsupportedNetworkError, get_network_by_id
from network.units import eth_to_wei, gwei_to_eth, hex_to_decimal, parse_units, to_int, wei_to_eth


class TestNetworkRegistry:
    """Test the static network registry."""

    @pytest.mark.parametrize("chain_id, name, currency", [
        (1, "Ethereum", "ETH"),
        (5, "Goerli", "GOR"),
        (100, "Gnosis Chain", "xDai"),
        (137, "Polygon", "MATIC"),
        (31337, "Hardhat", "HAT"),
        (80001, "Polygon Mumbai", "Test-MATIC"),
    ])
    def test_lookup(self, chain_id, name, currency):
        """Test looking up supported networks."""
        network = get_network_by_id(chain_id)

        assert network.chain_id == chain_id
        assert network.name == name
        assert network.currency == currency

    def test_lookup_accepts_numeric_strings(self):
        """Test that string chain ids resolve."""
        assert get_network_by_id("137").name == "Polygon"

    @pytest.mark.parametrize("chain_id", [2, 0, -1, "mainnet", None])
    def test_unsupported_network(self, chain_id):
        """Test that unknown ids raise."""
        with pytest.raises(UnsupportedNetworkError, match="Requested unsupported network id"):
            get_network_by_id(chain_id)

    def test_registry_keys_match_chain_ids(self):
        """Test registry consistency."""
        for chain_id, network in NETWORKS.items():
            assert network.chain_id == chain_id
            assert network.rpc_endpoint.startswith("http")

    def test_local_endpoints(self):
        """Test local development networks."""
        assert get_network_by_id(5777).rpc_endpoint == "http://localhost:7545"
        assert get_network_by_id(31337).rpc_endpoint == "http://localhost:8545"

    def test_infura_endpoint_format(self):
        """Test hosted endpoints use the Infura v3 path."""
        assert get_network_by_id(1).rpc_endpoint.startswith("https://mainnet.infura.io/v3/")

    def test_network_is_immutable(self):
        """Test that registry entries cannot be changed."""
        with pytest.raises(Exception):
            get_network_by_id(1).name = "Other"

    def test_network_validation(self):
        """Test model validation of chain ids."""
        with pytest.raises(ValueError):
            Network(name="Bad", currency="BAD", chain_id=0, rpc_endpoint="http://localhost")


class TestAddressValidation:
    """Test Ethereum address validation."""

    def test_lowercase_address(self):
        """Test that lowercase addresses are checksummed."""
        address = "0x" + "ab" * 20
        assert is_ethereum_address(address) == Web3.to_checksum_address(address)

    def test_uppercase_address(self):
        """Test that uppercase hex digits are accepted."""
        address = "0x" + "AB" * 20
        assert is_ethereum_address(address) == Web3.to_checksum_address(address.lower())

    def test_checksummed_address(self):
        """Test that a checksummed address is returned unchanged."""
        address = Web3.to_checksum_address("0x" + "ab12" * 10)
        assert is_ethereum_address(address) == address

    @pytest.mark.parametrize("address", [
        "0xABC",
        "",
        "0x" + "zz" * 20,
        None,
        1234,
    ])
    def test_invalid_addresses(self, address):
        """Test malformed addresses."""
        with pytest.raises(InvalidAddressError, match="Not a valid Eth address"):
            is_ethereum_address(address)

    def test_bad_checksum(self):
        """Test that a mixed-case address with a wrong checksum is rejected."""
        address = Web3.to_checksum_address("0x" + "ab12" * 10)
        flipped = address[:2] + address[2:].swapcase()

        with pytest.raises(InvalidAddressError):
            is_ethereum_address(flipped)

    def test_error_is_value_error(self):
        """Test the exception hierarchy."""
        assert issubclass(InvalidAddressError, ValueError)


class TestUnits:
    """Test unit conversion helpers."""

    def test_hex_to_decimal(self):
        """Test hex conversion with and without prefix."""
        assert hex_to_decimal("0xff") == 255
        assert hex_to_decimal("ff") == 255

    @pytest.mark.parametrize("value, expected", [
        (7, 7),
        ("0x10", 16),
        ("0X10", 16),
        ("42", 42),
        (" 42 ", 42),
        (b"\x01\x00", 256),
        (Decimal("5"), 5),
        (3.0, 3),
    ])
    def test_to_int(self, value, expected):
        """Test integer coercion of chain results."""
        assert to_int(value) == expected

    @pytest.mark.parametrize("value", [True, "abc", 1.5, None, "0xzz"])
    def test_to_int_rejects(self, value):
        """Test values with no integer reading."""
        with pytest.raises(ValueError):
            to_int(value)

    def test_eth_to_wei(self):
        """Test ether to wei."""
        assert eth_to_wei(1) == 10 ** 18
        assert eth_to_wei("0.25") == 25 * 10 ** 16

    def test_wei_to_eth(self):
        """Test wei to ether."""
        assert wei_to_eth(10 ** 18) == 1.0
        assert wei_to_eth(hex(5 * 10 ** 17)) == 0.5

    def test_gwei_to_eth(self):
        """Test gwei to ether."""
        assert gwei_to_eth(10 ** 9) == 1.0

    @pytest.mark.parametrize("amount, decimals, expected", [
        (1, 18, 10 ** 18),
        ("1.5", 6, 1500000),
        (0.1, 1, 1),
        ("100", 0, 100),
    ])
    def test_parse_units(self, amount, decimals, expected):
        """Test scaling to base units."""
        assert parse_units(amount, decimals) == expected

    def test_parse_units_too_precise(self):
        """Test amounts with more decimals than the token supports."""
        with pytest.raises(ValueError, match="decimal places"):
            parse_units("1.234", 2)

    @pytest.mark.parametrize("amount, decimals", [("abc", 18), (1, -1), (1, True), (1, "18")])
    def test_parse_units_invalid(self, amount, decimals):
        """Test invalid amounts and decimals."""
        with pytest.raises(ValueError):
            parse_units(amount, decimals)
