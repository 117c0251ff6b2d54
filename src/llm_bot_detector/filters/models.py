"""
Agent filter data model.

An agent filter bundles the identity markers of one automated-traffic
family (address ranges, user-agent substrings, UTM substrings). A filter
set is the ordered, immutable collection the classifier scans.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Optional

from ..exceptions import FilterValidationError


@dataclass(frozen=True)
class AgentFilter:
    """Identity markers for one agent family (e.g. "openai")."""

    name: str
    ip_ranges: tuple[str, ...] = ()
    user_agent_markers: tuple[str, ...] = ()
    utm_markers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise FilterValidationError(
                f"Filter name must be a string, got {type(self.name).__name__}",
                field="name",
            )

        # Accept any iterable, store as tuples so the record stays hashable
        for attr in ("ip_ranges", "user_agent_markers", "utm_markers"):
            value = getattr(self, attr)
            if isinstance(value, str):
                raise FilterValidationError(
                    "Expected a sequence of strings, got a single string",
                    filter_name=self.name,
                    field=attr,
                )
            object.__setattr__(self, attr, tuple(value))

        if not self.name or not self.name.strip():
            raise FilterValidationError("Filter name must not be empty", field="name")

        if not (self.ip_ranges or self.user_agent_markers or self.utm_markers):
            raise FilterValidationError(
                "Filter has no IP ranges, user-agent markers or UTM markers",
                filter_name=self.name,
            )

    @property
    def can_match_crawl(self) -> bool:
        """Crawl matching needs both an address range and a UA marker."""
        return bool(self.ip_ranges and self.user_agent_markers)

    def to_dict(self) -> dict:
        """Convert to the refresh-input mapping format."""
        return {
            "name": self.name,
            "ipRanges": list(self.ip_ranges),
            "userAgentMarkers": list(self.user_agent_markers),
            "utmMarkers": list(self.utm_markers),
        }


@dataclass(frozen=True)
class FilterSet:
    """
    Ordered, immutable snapshot of agent filters.

    Iteration order is load order, which decides ties when more than one
    filter matches a request.
    """

    filters: tuple[AgentFilter, ...] = ()
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))

        seen: set[str] = set()
        for agent_filter in self.filters:
            if agent_filter.name in seen:
                raise FilterValidationError(
                    "Duplicate filter name in filter set",
                    filter_name=agent_filter.name,
                )
            seen.add(agent_filter.name)

    def __iter__(self) -> Iterator[AgentFilter]:
        return iter(self.filters)

    def __len__(self) -> int:
        return len(self.filters)

    def __bool__(self) -> bool:
        return bool(self.filters)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.filters]

    def get(self, name: str) -> Optional[AgentFilter]:
        """Look up a filter by name."""
        for agent_filter in self.filters:
            if agent_filter.name == name:
                return agent_filter
        return None
