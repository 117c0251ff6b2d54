"""
Pytest configuration and shared fixtures for unit tests.
"""

import pytest

from llm_bot_detector.config import clear_settings_cache
from llm_bot_detector.filters import AgentFilter, FilterSet


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Settings are cached per path; start every test from a clean cache."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def google_filter() -> AgentFilter:
    return AgentFilter(
        name="google",
        ip_ranges=("66.249.64.0/19", "2001:4860:4801::/48"),
        user_agent_markers=("Googlebot", "Google-Extended"),
        utm_markers=("google.com",),
    )


@pytest.fixture
def openai_filter() -> AgentFilter:
    return AgentFilter(
        name="openai",
        ip_ranges=("20.15.240.64/28", "52.230.152.0/24"),
        user_agent_markers=("GPTBot/1.1", "ChatGPT-User/1.0", "+https://openai.com/bot"),
        utm_markers=("chatgpt.com", "openai.com"),
    )


@pytest.fixture
def perplexity_filter() -> AgentFilter:
    return AgentFilter(
        name="perplexity",
        ip_ranges=("107.20.236.150", "54.90.207."),
        user_agent_markers=("PerplexityBot/1.0", "Perplexity-User/1.0"),
        utm_markers=("perplexity.ai", "perplexity.com"),
    )


@pytest.fixture
def filter_set(openai_filter, google_filter, perplexity_filter) -> FilterSet:
    """Filters in a fixed load order: openai, google, perplexity."""
    return FilterSet(filters=(openai_filter, google_filter, perplexity_filter))


class RecordingEmitter:
    """Stand-in for EventEmitter that records results instead of sending."""

    def __init__(self, fail: bool = False):
        self.results = []
        self.closed = False
        self.fail = fail

    def emit(self, result) -> None:
        if self.fail:
            raise RuntimeError("emitter exploded")
        self.results.append(result)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_emitter() -> RecordingEmitter:
    return RecordingEmitter()
