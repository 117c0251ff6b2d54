"""
Build agent filters from refresh input, filter files and published
IP-prefix documents.

Two record layouts are accepted:

- Refresh input: ``{"ipRanges": [...], "userAgentMarkers": [...], "utmMarkers": [...]}``
- Filter files: ``{"name": ..., "ips": [...], "userAgents": [...], "utm": [...]}``

Fetching the published documents is left to the caller; this module
only turns already-downloaded data into FilterSets.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from ..config.constants import AGENT_CATALOG
from ..exceptions import FilterLoadError, FilterValidationError
from ..utils.ip_utils import is_valid_range_spec
from .models import AgentFilter, FilterSet
from .store import FilterStore, get_filter_store

logger = logging.getLogger(__name__)

# (canonical key, file key) for each marker list
_FIELD_KEYS = {
    "ip_ranges": ("ipRanges", "ips"),
    "user_agent_markers": ("userAgentMarkers", "userAgents"),
    "utm_markers": ("utmMarkers", "utm"),
}

FILTER_FILE_SUFFIX = ".json"


def _clean_entries(values: Any, name: str, field: str) -> tuple[str, ...]:
    """Keep non-blank string entries, stripped, in their original order."""
    if values is None:
        return ()
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise FilterValidationError(
            f"Expected a list, got {type(values).__name__}",
            filter_name=name,
            field=field,
        )

    cleaned = []
    for value in values:
        if not isinstance(value, str):
            logger.debug(f"Dropping non-string {field} entry {value!r} in '{name}'")
            continue
        value = value.strip()
        if value:
            cleaned.append(value)
    return tuple(cleaned)


def filter_from_dict(name: str, data: Mapping[str, Any]) -> AgentFilter:
    """
    Create an AgentFilter from a refresh-input or filter-file record.

    Malformed CIDR entries are kept, since they are simply non-matching,
    but are logged so a broken upstream list is visible.

    Args:
        name: Agent name (used when the record carries no "name")
        data: Record mapping

    Returns:
        AgentFilter instance

    Raises:
        FilterValidationError: If the record is not a mapping, a marker
            field is not a list, or every marker list is empty
    """
    if not isinstance(data, Mapping):
        raise FilterValidationError(
            f"Filter record must be a mapping, got {type(data).__name__}",
            filter_name=name,
        )

    filter_name = data.get("name") or name
    fields = {}
    for attr, (canonical_key, file_key) in _FIELD_KEYS.items():
        raw = data.get(canonical_key)
        if raw is None:
            raw = data.get(file_key)
        fields[attr] = _clean_entries(raw, filter_name, canonical_key)

    invalid = [spec for spec in fields["ip_ranges"] if not is_valid_range_spec(spec)]
    if invalid:
        logger.warning(
            f"Filter '{filter_name}' has {len(invalid)} malformed IP range(s), "
            f"they will never match: {invalid[:5]}"
        )

    return AgentFilter(name=filter_name, **fields)


def filters_from_mapping(mapping: Mapping[str, Mapping[str, Any]]) -> FilterSet:
    """
    Build a FilterSet from the refresh-input mapping.

    Mapping order becomes filter order. Invalid records are skipped with
    a warning so one broken family does not disable the others.

    Example:
        >>> filters = filters_from_mapping({
        ...     "google": {
        ...         "ipRanges": ["66.249.64.0/19"],
        ...         "userAgentMarkers": ["Googlebot"],
        ...         "utmMarkers": ["google.com"],
        ...     }
        ... })
        >>> filters.names
        ['google']
    """
    filters = []
    seen = set()
    for name, data in mapping.items():
        try:
            agent_filter = filter_from_dict(name, data)
        except FilterValidationError as e:
            logger.warning(f"Skipping invalid filter: {e}")
            continue

        if agent_filter.name in seen:
            logger.warning(f"Skipping duplicate filter '{agent_filter.name}'")
            continue
        seen.add(agent_filter.name)
        filters.append(agent_filter)

    return FilterSet(filters=tuple(filters))


def load_filter_file(path: Path) -> AgentFilter:
    """
    Load a single filter file.

    Raises:
        FilterLoadError: If the file cannot be read or is not valid JSON
        FilterValidationError: If the record is invalid
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FilterLoadError(f"Cannot read filter file: {e}", path=str(path)) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FilterLoadError(f"Invalid JSON: {e}", path=str(path)) from e

    return filter_from_dict(path.stem, data)


def load_filter_directory(directory: Path) -> FilterSet:
    """
    Load every ``*.json`` filter file in a directory.

    Files are read in file-name order, which fixes the filter order.
    Unreadable or invalid files are skipped with a warning.

    Args:
        directory: Directory holding one filter file per agent family

    Returns:
        FilterSet (empty if the directory is missing or holds no valid files)
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(f"Filter directory not found: {directory}")
        return FilterSet()

    filters = []
    seen = set()
    for path in sorted(directory.glob(f"*{FILTER_FILE_SUFFIX}")):
        try:
            agent_filter = load_filter_file(path)
        except (FilterLoadError, FilterValidationError) as e:
            logger.warning(f"Skipping filter file: {e}")
            continue

        if agent_filter.name in seen:
            logger.warning(f"Skipping duplicate filter '{agent_filter.name}' in {path}")
            continue
        seen.add(agent_filter.name)
        filters.append(agent_filter)

    logger.debug(f"Loaded {len(filters)} filter(s) from {directory}")
    return FilterSet(filters=tuple(filters))


def write_filter_file(directory: Path, agent_filter: AgentFilter) -> Path:
    """
    Write a filter in the on-disk layout.

    The file is written to a temporary name and renamed into place, so a
    concurrent directory load never sees a half-written file.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{agent_filter.name}{FILTER_FILE_SUFFIX}"

    record = {
        "name": agent_filter.name,
        "ips": list(agent_filter.ip_ranges),
        "userAgents": list(agent_filter.user_agent_markers),
        "utm": list(agent_filter.utm_markers),
    }

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{agent_filter.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(record, f)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return target


def prefixes_from_document(document: Any) -> list[str]:
    """
    Extract IP prefixes from a published IP-range document.

    Expects ``{"prefixes": [{"ipv4Prefix": ...} | {"ipv6Prefix": ...}]}``,
    the layout used by OpenAI, Google, Bing and Perplexity.

    Example:
        >>> prefixes_from_document({"prefixes": [{"ipv4Prefix": "20.15.240.64/28"}]})
        ['20.15.240.64/28']
    """
    if not isinstance(document, Mapping):
        return []

    prefixes = []
    for entry in document.get("prefixes") or []:
        if not isinstance(entry, Mapping):
            continue
        prefix = entry.get("ipv4Prefix") or entry.get("ipv6Prefix")
        if isinstance(prefix, str) and prefix.strip():
            prefixes.append(prefix.strip())
    return prefixes


def build_default_filters(
    prefix_documents: Optional[Mapping[str, Iterable[Any]]] = None,
) -> FilterSet:
    """
    Combine the known agent catalog with downloaded prefix documents.

    Args:
        prefix_documents: Agent name -> parsed documents fetched from that
            agent's published URLs. Missing agents get no IP ranges and
            can then only match through UTM markers.

    Returns:
        FilterSet in catalog order
    """
    prefix_documents = prefix_documents or {}
    mapping = {}
    for name, info in AGENT_CATALOG.items():
        ranges = []
        for document in prefix_documents.get(name, ()):
            ranges.extend(prefixes_from_document(document))
        mapping[name] = {
            "ipRanges": ranges,
            "userAgentMarkers": info["user_agents"],
            "utmMarkers": info["utm"],
        }
    return filters_from_mapping(mapping)


def reload_filters(directory: Path, store: Optional[FilterStore] = None) -> FilterSet:
    """
    Load a filter directory and swap it into the store.

    Returns:
        The newly active FilterSet
    """
    store = store or get_filter_store()
    new_set = load_filter_directory(directory)
    store.replace(new_set)
    return new_set
