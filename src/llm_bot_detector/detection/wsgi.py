"""
WSGI middleware running detection in front of an application.

Detection runs before the wrapped application so a match can mark the
response non-cacheable. The wrapped application's response is otherwise
untouched.
"""

import logging
from typing import Any, Callable, Iterable

from .classifier import RequestContext
from .detector import TrafficDetector

logger = logging.getLogger(__name__)

ENVIRON_OUTCOME_KEY = "llm_bot_detector.outcome"

# CGI variables that carry headers without the HTTP_ prefix
_UNPREFIXED_HEADERS = {"CONTENT_TYPE": "content-type", "CONTENT_LENGTH": "content-length"}


def context_from_environ(environ: dict[str, Any]) -> RequestContext:
    """
    Build a RequestContext from a WSGI environ.

    Example:
        >>> ctx = context_from_environ({
        ...     "REMOTE_ADDR": "66.249.64.1",
        ...     "HTTP_USER_AGENT": "Googlebot/2.1",
        ...     "PATH_INFO": "/blog",
        ...     "QUERY_STRING": "utm_source=chatgpt.com",
        ... })
        >>> ctx.url
        '/blog?utm_source=chatgpt.com'
    """
    headers = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").lower()] = value
        elif key in _UNPREFIXED_HEADERS and value:
            headers[_UNPREFIXED_HEADERS[key]] = value

    url = environ.get("RAW_URI") or environ.get("REQUEST_URI")
    if not url:
        url = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
        query = environ.get("QUERY_STRING", "")
        if query:
            url = f"{url}?{query}"

    return RequestContext(
        address=environ.get("REMOTE_ADDR", ""),
        headers=headers,
        url=url or "/",
        host=environ.get("HTTP_HOST") or environ.get("SERVER_NAME"),
        scheme=environ.get("wsgi.url_scheme", "http"),
    )


class DetectionMiddleware:
    """Wrap a WSGI app so every request passes through the detector."""

    def __init__(self, app: Callable, detector: TrafficDetector):
        self.app = app
        self.detector = detector

    def __call__(self, environ: dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        try:
            outcome = self.detector.inspect(context_from_environ(environ))
        except Exception:
            logger.exception("Detection failed, serving request unchanged")
            return self.app(environ, start_response)

        environ[ENVIRON_OUTCOME_KEY] = outcome
        if not outcome.bypass_cache:
            return self.app(environ, start_response)

        override_names = {name.lower() for name, _ in outcome.cache_headers}

        def start_response_no_cache(status, response_headers, exc_info=None):
            response_headers = [
                (name, value)
                for name, value in response_headers
                if name.lower() not in override_names
            ]
            response_headers.extend(outcome.cache_headers)
            return start_response(status, response_headers, exc_info)

        return self.app(environ, start_response_no_cache)
