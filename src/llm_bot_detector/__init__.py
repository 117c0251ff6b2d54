"""LLM bot detection for inbound web requests."""

__version__ = "0.1.1"
