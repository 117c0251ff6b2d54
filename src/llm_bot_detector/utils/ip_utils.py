"""
IP address range matching.

Matches a caller address against the range specifiers published for
each agent family. A specifier is either a CIDR prefix
(``address/prefixLength``, IPv4 or IPv6) or a literal string.

Literal specifiers match on equality or as a plain string prefix, so
``"66.249."`` matches every address starting with those characters.
This is looser than CIDR semantics (``"1.2.3.4"`` also matches
``"1.2.3.45"``) and is kept for compatibility with hand-written lists.
"""

import ipaddress
from typing import Iterable, Optional


def _pack_address(address: str) -> Optional[bytes]:
    """Return the 4- or 16-byte network representation, or None if invalid."""
    try:
        return ipaddress.ip_address(address).packed
    except ValueError:
        return None


def _parse_prefix_length(text: str) -> Optional[int]:
    """Parse a prefix length of plain ASCII digits, or return None."""
    # int() would also accept signs, whitespace, underscores and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def ip_in_cidr(address: str, cidr: str) -> bool:
    """
    Check if an address falls inside a CIDR prefix.

    Compares whole bytes covered by the prefix, then the remaining high
    bits of the next byte. Malformed input never raises.

    Args:
        address: IPv4 or IPv6 address string
        cidr: Prefix in ``subnet/prefixLength`` form

    Returns:
        True if the address shares the prefix with the subnet

    Examples:
        >>> ip_in_cidr("66.249.64.1", "66.249.64.0/19")
        True
        >>> ip_in_cidr("66.249.96.1", "66.249.64.0/19")
        False
        >>> ip_in_cidr("2001:db8::1", "66.249.64.0/19")
        False
    """
    subnet, sep, prefix_text = cidr.partition("/")
    if not sep:
        return False

    prefix_length = _parse_prefix_length(prefix_text)
    if prefix_length is None:
        return False

    address_bytes = _pack_address(address)
    subnet_bytes = _pack_address(subnet)
    if address_bytes is None or subnet_bytes is None:
        return False

    # Different address families never match
    if len(address_bytes) != len(subnet_bytes):
        return False

    if not 0 <= prefix_length <= len(address_bytes) * 8:
        return False

    whole_bytes, remaining_bits = divmod(prefix_length, 8)

    if address_bytes[:whole_bytes] != subnet_bytes[:whole_bytes]:
        return False

    if remaining_bits:
        mask = (0xFF << (8 - remaining_bits)) & 0xFF
        if (address_bytes[whole_bytes] & mask) != (subnet_bytes[whole_bytes] & mask):
            return False

    return True


def ip_matches_range(address: str, range_spec: str) -> bool:
    """
    Check if an address matches a single range specifier.

    Args:
        address: Caller address (IPv4 or IPv6)
        range_spec: CIDR prefix or literal/prefix string

    Returns:
        True on a CIDR containment, exact or string-prefix match.
        Empty specifiers never match.

    Examples:
        >>> ip_matches_range("66.249.64.1", "66.249.64.0/19")
        True
        >>> ip_matches_range("66.249.70.3", "66.249.")
        True
        >>> ip_matches_range("10.0.0.1", "")
        False
    """
    if not range_spec or not address:
        return False

    if "/" in range_spec:
        return ip_in_cidr(address, range_spec)

    return address == range_spec or address.startswith(range_spec)


def ip_in_any_range(address: str, ranges: Iterable[str]) -> bool:
    """Check if an address matches any specifier, stopping at the first hit."""
    return any(ip_matches_range(address, range_spec) for range_spec in ranges)


def is_valid_range_spec(range_spec: str) -> bool:
    """
    Check if a range specifier can ever match.

    CIDR specifiers must have a parseable subnet and an in-range prefix
    length. Literal specifiers only need to be non-empty.
    """
    if not range_spec:
        return False

    if "/" not in range_spec:
        return True

    subnet, _, prefix_text = range_spec.partition("/")
    subnet_bytes = _pack_address(subnet)
    if subnet_bytes is None:
        return False

    prefix_length = _parse_prefix_length(prefix_text)
    if prefix_length is None:
        return False

    return 0 <= prefix_length <= len(subnet_bytes) * 8
