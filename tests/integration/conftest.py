"""
Shared fixtures for integration tests.

Provides:
- A filter directory written in the on-disk layout
- A collector served by httpx.MockTransport
"""

import json
import threading

import httpx
import pytest

from llm_bot_detector.config import clear_settings_cache
from llm_bot_detector.filters import build_default_filters, write_filter_file

# =============================================================================
# FILTER FIXTURES
# =============================================================================

PREFIX_DOCUMENTS = {
    "openai": [
        {"prefixes": [{"ipv4Prefix": "20.15.240.64/28"}, {"ipv4Prefix": "52.230.152.0/24"}]},
    ],
    "google": [
        {
            "creationTime": "2025-06-01T00:00:00.000000",
            "prefixes": [
                {"ipv4Prefix": "66.249.64.0/27"},
                {"ipv4Prefix": "66.249.64.32/27"},
                {"ipv6Prefix": "2001:4860:4801:10::/64"},
            ],
        },
    ],
    "bing": [{"prefixes": [{"ipv4Prefix": "157.55.39.0/24"}]}],
}


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def filters_dir(tmp_path):
    """Filter files for the four known agents, as the refresher writes them."""
    directory = tmp_path / "filters"
    for agent_filter in build_default_filters(PREFIX_DOCUMENTS):
        write_filter_file(directory, agent_filter)
    return directory


# =============================================================================
# COLLECTOR FIXTURES
# =============================================================================


class MockCollector:
    """Records the JSON bodies POSTed to it."""

    def __init__(self):
        self.events = []
        self.auth_headers = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.events.append(json.loads(request.content))
            self.auth_headers.append(request.headers.get("authorization"))
        return httpx.Response(200, json={"status": "ok"})


@pytest.fixture
def collector():
    return MockCollector()


@pytest.fixture
def collector_client(collector):
    client = httpx.Client(transport=httpx.MockTransport(collector))
    yield client
    client.close()
