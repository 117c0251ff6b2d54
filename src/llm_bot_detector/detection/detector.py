"""
Per-request detection entry point.

Ties together the active filter set, the classifier and the event
emitter, and tells the serving layer whether the response must bypass
caches. Detection is observational: it never raises into the request
path and never changes the response beyond the cache headers.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config.constants import NO_CACHE_HEADER_VALUE
from ..config.settings import Settings, get_settings
from ..filters.store import FilterStore, get_filter_store
from .classifier import ClassificationResult, RequestContext, classify, derive_client_ip
from .emitter import EventEmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionOutcome:
    """What the serving layer needs to know after detection."""

    result: Optional[ClassificationResult] = None
    skipped_reason: Optional[str] = None
    cache_headers: tuple[tuple[str, str], ...] = field(default=())

    @property
    def matched(self) -> bool:
        return self.result is not None

    @property
    def bypass_cache(self) -> bool:
        """True when the response must not be cached."""
        return self.matched


NO_MATCH = DetectionOutcome()


class TrafficDetector:
    """
    Classifies requests and reports matches to the collector.

    Skips classification entirely (no matching, no emission) when no API
    key is configured or the active filter set is empty.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[FilterStore] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or get_filter_store()
        self.emitter = emitter or EventEmitter.from_settings(self.settings)

    def inspect(self, context: RequestContext) -> DetectionOutcome:
        """
        Classify one request and emit an event on a match.

        Args:
            context: Request address, headers and URL

        Returns:
            DetectionOutcome (a non-match on any internal error)
        """
        if not self.settings.has_api_key:
            logger.debug("No collector API key configured, detection skipped")
            return DetectionOutcome(skipped_reason="missing_api_key")

        # One snapshot for the whole request, even if a refresh swaps it
        filters = self.store.current()
        if not filters:
            logger.debug("No agent filters loaded, detection skipped")
            return DetectionOutcome(skipped_reason="no_filters")

        try:
            result = classify(context, filters)
        except Exception:
            logger.exception("Classification failed, treating request as unmatched")
            return NO_MATCH

        if result is not None:
            try:
                self.emitter.emit(result)
            except Exception:
                logger.exception(f"Failed to queue event for '{result.filter_name}'")

        ip = derive_client_ip(context.headers, context.address)
        logger.info(
            f'IP={ip} UA="{context.user_agent}" '
            f"matched={'true' if result is not None else 'false'}"
        )

        if result is None:
            return NO_MATCH

        return DetectionOutcome(
            result=result,
            cache_headers=(("Cache-Control", NO_CACHE_HEADER_VALUE),),
        )

    def close(self) -> None:
        """Deliver pending events and release the emitter."""
        self.emitter.close()
