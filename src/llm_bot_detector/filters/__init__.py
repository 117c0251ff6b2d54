"""Agent filter model, loading and the active filter store."""

from .loader import (
    build_default_filters,
    filter_from_dict,
    filters_from_mapping,
    load_filter_directory,
    load_filter_file,
    prefixes_from_document,
    reload_filters,
    write_filter_file,
)
from .models import AgentFilter, FilterSet
from .store import FilterStore, get_filter_store

__all__ = [
    # Model
    "AgentFilter",
    "FilterSet",
    # Store
    "FilterStore",
    "get_filter_store",
    # Loading
    "filter_from_dict",
    "filters_from_mapping",
    "load_filter_file",
    "load_filter_directory",
    "write_filter_file",
    "prefixes_from_document",
    "build_default_filters",
    "reload_filters",
]
