"""Request classification, event emission and serving-layer adapters."""

from .classifier import (
    ClassificationResult,
    EventType,
    Intent,
    RequestContext,
    classify,
    derive_client_ip,
    user_agent_matches,
)
from .detector import DetectionOutcome, TrafficDetector
from .emitter import EventEmitter
from .wsgi import DetectionMiddleware, context_from_environ

__all__ = [
    # Classification
    "RequestContext",
    "ClassificationResult",
    "Intent",
    "EventType",
    "classify",
    "derive_client_ip",
    "user_agent_matches",
    # Emission
    "EventEmitter",
    # Orchestration
    "TrafficDetector",
    "DetectionOutcome",
    # WSGI
    "DetectionMiddleware",
    "context_from_environ",
]
