"""
Unit tests for ip_utils module.

Tests CIDR containment, literal-prefix fallback and malformed input.
"""

import ipaddress

import pytest

from llm_bot_detector.utils.ip_utils import (
    ip_in_any_range,
    ip_in_cidr,
    ip_matches_range,
    is_valid_range_spec,
)


def _reference_match(address: str, subnet: str, prefix: int) -> bool:
    """Bitwise prefix comparison using the integer value of each address."""
    addr = ipaddress.ip_address(address)
    net = ipaddress.ip_address(subnet)
    bits = addr.max_prefixlen
    if prefix == 0:
        return True
    shift = bits - prefix
    return (int(addr) >> shift) == (int(net) >> shift)


class TestCidrMatching:
    """Tests for CIDR containment."""

    def test_googlebot_in_range(self):
        """66.249.64.1 is inside 66.249.64.0/19."""
        assert ip_in_cidr("66.249.64.1", "66.249.64.0/19") is True

    def test_last_address_in_range(self):
        """66.249.95.255 is the last address of 66.249.64.0/19."""
        assert ip_in_cidr("66.249.95.255", "66.249.64.0/19") is True

    def test_first_address_outside_range(self):
        """66.249.96.0 is just past 66.249.64.0/19."""
        assert ip_in_cidr("66.249.96.0", "66.249.64.0/19") is False

    def test_host_prefix(self):
        """A /32 only matches the exact address."""
        assert ip_in_cidr("20.15.240.64", "20.15.240.64/32") is True
        assert ip_in_cidr("20.15.240.65", "20.15.240.64/32") is False

    def test_ipv6_in_range(self):
        """IPv6 addresses match IPv6 prefixes."""
        assert ip_in_cidr("2001:4860:4801:10::1", "2001:4860:4801::/48") is True
        assert ip_in_cidr("2001:4860:4802::1", "2001:4860:4801::/48") is False

    def test_zero_prefix_matches_same_family(self):
        """/0 matches every address of the same family."""
        assert ip_in_cidr("203.0.113.9", "0.0.0.0/0") is True
        assert ip_in_cidr("2001:db8::1", "::/0") is True

    def test_family_mismatch(self):
        """IPv4 address never matches an IPv6 prefix and vice versa."""
        assert ip_in_cidr("66.249.64.1", "::/0") is False
        assert ip_in_cidr("2001:db8::1", "0.0.0.0/0") is False

    def test_subnet_host_bits_ignored(self):
        """Host bits set in the subnet address do not matter."""
        assert ip_in_cidr("10.1.2.3", "10.1.2.200/24") is True


class TestReferenceAgreement:
    """CIDR matching agrees with a bitwise reference for every prefix length."""

    @pytest.mark.parametrize("prefix", range(0, 33))
    @pytest.mark.parametrize(
        "address,subnet",
        [
            ("66.249.64.1", "66.249.64.0"),
            ("66.249.95.17", "66.249.64.0"),
            ("192.168.1.130", "192.168.1.128"),
            ("10.255.0.1", "11.0.0.0"),
        ],
    )
    def test_ipv4(self, address, subnet, prefix):
        expected = _reference_match(address, subnet, prefix)
        assert ip_in_cidr(address, f"{subnet}/{prefix}") is expected

    @pytest.mark.parametrize("prefix", [0, 1, 7, 16, 31, 32, 47, 48, 49, 63, 64, 100, 127, 128])
    @pytest.mark.parametrize(
        "address,subnet",
        [
            ("2001:4860:4801:10::1", "2001:4860:4801::"),
            ("2600:1f28:365:80b0::1", "2600:1f28:365:80b0::"),
            ("fe80::1", "fe80::ffff"),
        ],
    )
    def test_ipv6(self, address, subnet, prefix):
        expected = _reference_match(address, subnet, prefix)
        assert ip_in_cidr(address, f"{subnet}/{prefix}") is expected


class TestMalformedInput:
    """Malformed input is non-matching and never raises."""

    @pytest.mark.parametrize(
        "cidr",
        [
            "/",
            "/24",
            "abc/24",
            "66.249.64.0/",
            "66.249.64.0/abc",
            "66.249.64.0/33",
            "66.249.64.0/-1",
            "66.249.64.0/19/2",
            "300.1.1.1/8",
            "2001:db8::/129",
            "66.249.64/19",
            "66.249.64.0/1_9",
            "66.249.64.0/ 19",
            "66.249.64.0/+19",
            "66.249.64.0/１９",
        ],
    )
    def test_malformed_cidr(self, cidr):
        assert ip_in_cidr("66.249.64.1", cidr) is False
        assert ip_matches_range("66.249.64.1", cidr) is False

    @pytest.mark.parametrize("address", ["", "not-an-ip", "66.249.64", "::g"])
    def test_malformed_address(self, address):
        assert ip_matches_range(address, "66.249.64.0/19") is False


class TestLiteralRanges:
    """Tests for the literal/prefix fallback."""

    def test_exact_literal(self):
        assert ip_matches_range("107.20.236.150", "107.20.236.150") is True

    def test_partial_octet_prefix(self):
        """'66.249.' matches any address with that textual prefix."""
        assert ip_matches_range("66.249.70.3", "66.249.") is True
        assert ip_matches_range("66.250.70.3", "66.249.") is False

    def test_literal_prefix_is_loose(self):
        """String prefix matching over-matches adjacent addresses."""
        assert ip_matches_range("1.2.3.45", "1.2.3.4") is True

    def test_empty_spec_never_matches(self):
        assert ip_matches_range("66.249.64.1", "") is False

    def test_empty_address_never_matches(self):
        assert ip_matches_range("", "66.249.") is False


class TestAnyRange:
    """Tests for ip_in_any_range and is_valid_range_spec."""

    def test_any_range_matches_later_entry(self):
        ranges = ["bad/range", "20.15.240.64/28", "66.249.64.0/19"]
        assert ip_in_any_range("66.249.64.1", ranges) is True

    def test_any_range_no_match(self):
        assert ip_in_any_range("203.0.113.9", ["66.249.64.0/19", "20.15."]) is False

    def test_any_range_empty(self):
        assert ip_in_any_range("203.0.113.9", []) is False

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("66.249.64.0/19", True),
            ("2001:db8::/32", True),
            ("66.249.", True),
            ("", False),
            ("abc/24", False),
            ("66.249.64.0/40", False),
            ("66.249.64.0/x", False),
            ("66.249.64.0/1_9", False),
            ("66.249.64.0/ 19", False),
            ("66.249.64.0/+19", False),
            ("66.249.64.0/１９", False),
        ],
    )
    def test_is_valid_range_spec(self, spec, expected):
        assert is_valid_range_spec(spec) is expected
