"""Utility functions for LLM bot detection."""

from .ip_utils import ip_in_any_range, ip_in_cidr, ip_matches_range, is_valid_range_spec
from .url_utils import build_destination_url, extract_highlighted_text, extract_utm_source

__all__ = [
    # IP matching
    "ip_in_cidr",
    "ip_matches_range",
    "ip_in_any_range",
    "is_valid_range_spec",
    # URL utilities
    "extract_utm_source",
    "extract_highlighted_text",
    "build_destination_url",
]
