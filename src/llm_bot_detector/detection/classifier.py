"""
Request classification against agent filters.

Classifies a single request as a click-through from an AI assistant
(UTM path) or as a crawl by an AI agent (IP + user-agent path). The
UTM path always runs first; the first filter that matches wins and no
further filters are consulted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from ..config.constants import FORWARDED_FOR_HEADER, USER_AGENT_HEADER
from ..filters.models import AgentFilter
from ..utils.ip_utils import ip_in_any_range
from ..utils.url_utils import (
    build_destination_url,
    extract_highlighted_text,
    extract_utm_source,
)


class Intent(str, Enum):
    """Why the agent touched the page."""

    BROWSE = "browse"  # Human following an assistant's link
    CRAWL = "crawl"  # Agent fetching the page itself


class EventType(str, Enum):
    """Event type reported to the collector."""

    CLICK = "click"
    CRAWL = "crawl"


@dataclass(frozen=True)
class RequestContext:
    """
    What the serving layer knows about one inbound request.

    Header names are lower-cased on construction so lookups are
    case-insensitive.
    """

    address: str
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""
    host: Optional[str] = None
    scheme: str = "http"

    def __post_init__(self) -> None:
        normalized = {str(k).lower(): v for k, v in (self.headers or {}).items()}
        object.__setattr__(self, "headers", normalized)
        object.__setattr__(self, "address", self.address or "")
        object.__setattr__(self, "url", self.url or "")

    def header(self, name: str, default: str = "") -> str:
        """Get a header value by case-insensitive name."""
        return self.headers.get(name.lower(), default)

    @property
    def user_agent(self) -> str:
        return self.header(USER_AGENT_HEADER)

    @property
    def destination_url(self) -> str:
        return build_destination_url(self.url, self.host, self.scheme)


@dataclass(frozen=True)
class ClassificationResult:
    """A request attributed to one agent family."""

    filter_name: str
    intent: Intent
    event_type: EventType
    destination_url: str
    user_agent: Optional[str] = None
    highlighted_text: Optional[str] = None
    headers: Optional[dict[str, str]] = None

    def to_payload(self) -> dict[str, Any]:
        """
        Convert to the collector payload.

        Every key is always present; absent values serialize as null.
        """
        return {
            "source": self.filter_name,
            "intent": self.intent.value,
            "type": self.event_type.value,
            "userAgent": self.user_agent,
            "destinationURL": self.destination_url,
            "highlightedText": self.highlighted_text,
            "headers": dict(self.headers) if self.headers is not None else None,
        }


def derive_client_ip(headers: Mapping[str, str], peer_address: str) -> str:
    """
    Determine the caller address.

    Prefers the first entry of ``X-Forwarded-For`` (set by proxies and
    CDNs in front of the site), falling back to the transport peer.

    Args:
        headers: Lower-cased header mapping
        peer_address: Address of the directly connected peer

    Returns:
        Address string (may be empty if neither is known)

    Examples:
        >>> derive_client_ip({"x-forwarded-for": "1.2.3.4, 10.0.0.1"}, "10.0.0.1")
        '1.2.3.4'
        >>> derive_client_ip({}, "203.0.113.9")
        '203.0.113.9'
    """
    forwarded = headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        return forwarded.split(",")[0].strip()
    return peer_address or ""


def user_agent_matches(user_agent: str, markers: Iterable[str]) -> bool:
    """Check if any marker is a case-insensitive substring of the user-agent."""
    if not user_agent:
        return False
    lowered = user_agent.lower()
    return any(marker and marker.lower() in lowered for marker in markers)


def _match_utm(utm_source: str, filters: Iterable[AgentFilter]) -> Optional[AgentFilter]:
    for agent_filter in filters:
        for marker in agent_filter.utm_markers:
            if marker and marker in utm_source:
                return agent_filter
    return None


def _match_crawl(
    address: str, user_agent: str, filters: Iterable[AgentFilter]
) -> Optional[AgentFilter]:
    for agent_filter in filters:
        if ip_in_any_range(address, agent_filter.ip_ranges) and user_agent_matches(
            user_agent, agent_filter.user_agent_markers
        ):
            return agent_filter
    return None


def classify(
    context: RequestContext, filters: Iterable[AgentFilter]
) -> Optional[ClassificationResult]:
    """
    Classify a request against an ordered collection of agent filters.

    Steps:
    1. UTM path: if the URL carries a ``utm_source``, the first filter
       with a UTM marker contained in it produces a browse/click result.
    2. Crawl path: otherwise, the first filter whose IP ranges contain
       the caller address AND whose user-agent markers match the
       User-Agent header produces a crawl result.

    Args:
        context: Request address, headers and URL
        filters: Filters in load order (a FilterSet or any ordered iterable)

    Returns:
        ClassificationResult, or None if no filter matches

    Example:
        >>> google = AgentFilter("google", ("66.249.64.0/19",), ("Googlebot",), ())
        >>> ctx = RequestContext("66.249.64.1", {"User-Agent": "Googlebot/2.1"}, "/")
        >>> classify(ctx, [google]).intent
        <Intent.CRAWL: 'crawl'>
    """
    # Materialize once: generators must not be consumed by the UTM pass
    filters = tuple(filters)
    if not filters:
        return None

    utm_source = extract_utm_source(context.url)
    highlighted_text = extract_highlighted_text(context.url)

    if utm_source:
        matched = _match_utm(utm_source, filters)
        if matched is not None:
            return ClassificationResult(
                filter_name=matched.name,
                intent=Intent.BROWSE,
                event_type=EventType.CLICK,
                destination_url=context.destination_url,
                user_agent=None,
                highlighted_text=highlighted_text,
                headers=None,
            )

    address = derive_client_ip(context.headers, context.address)
    user_agent = context.user_agent
    matched = _match_crawl(address, user_agent, filters)
    if matched is not None:
        return ClassificationResult(
            filter_name=matched.name,
            intent=Intent.CRAWL,
            event_type=EventType.CRAWL,
            destination_url=context.destination_url,
            user_agent=user_agent,
            highlighted_text=None,
            headers=dict(context.headers),
        )

    return None
