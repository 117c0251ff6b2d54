"""
URL utility functions.

Helpers for pulling attribution data out of request URLs: the
``utm_source`` query value and Chrome's scroll-to-text fragment.
"""

import re
from typing import Optional
from urllib.parse import parse_qsl, unquote_plus, urlsplit

from ..config.constants import TEXT_FRAGMENT_MARKER, UTM_SOURCE_PARAM

_TEXT_FRAGMENT_PATTERN = re.compile(re.escape(TEXT_FRAGMENT_MARKER) + r"([^&]+)")


def extract_utm_source(url: str) -> Optional[str]:
    """
    Extract the ``utm_source`` query value from a request URL.

    The parameter name is matched case-insensitively. When the parameter
    is repeated, the last occurrence wins.

    Args:
        url: Request path with query and fragment, or an absolute URL

    Returns:
        The decoded value, or None if the parameter is absent

    Examples:
        >>> extract_utm_source("/blog?utm_source=chatgpt.com&x=1")
        'chatgpt.com'
        >>> extract_utm_source("/blog?UTM_Source=perplexity.ai")
        'perplexity.ai'
        >>> extract_utm_source("/blog") is None
        True
    """
    if not url:
        return None

    query = urlsplit(url).query
    if not query:
        return None

    utm_source = None
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key.lower() == UTM_SOURCE_PARAM:
            utm_source = value
    return utm_source


def extract_highlighted_text(url: str) -> Optional[str]:
    """
    Extract the text highlighted through a ``#:~:text=`` fragment.

    The captured segment runs up to the next ``&`` or the end of the URL
    and is percent-decoded.

    Examples:
        >>> extract_highlighted_text("/page#:~:text=hello%20world")
        'hello world'
        >>> extract_highlighted_text("/page#section") is None
        True
    """
    if not url or TEXT_FRAGMENT_MARKER not in url:
        return None

    match = _TEXT_FRAGMENT_PATTERN.search(url)
    if not match:
        return None
    return unquote_plus(match.group(1))


def build_destination_url(url: str, host: Optional[str], scheme: str = "http") -> str:
    """
    Build the absolute URL the caller requested.

    Args:
        url: Request path with query and fragment
        host: Value of the Host header, if known
        scheme: ``http`` or ``https``

    Returns:
        ``scheme://host/path?query`` when a host is known, otherwise the
        URL unchanged
    """
    if not host or "://" in url:
        return url
    return f"{scheme}://{host}{url}"
