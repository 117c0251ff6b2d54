"""
Fire-and-forget delivery of classification events.

``emit`` only builds the payload and puts it on a bounded queue; a
daemon worker thread posts queued events to the collector. The request
path never waits on the network, and a dropped client connection does
not cancel delivery of events already queued.

Delivery failures (timeouts, connection errors, non-2xx responses) are
logged and dropped. Nothing is retried.
"""

import atexit
import logging
import queue
import threading
from typing import Any, Optional

import httpx

from ..config.constants import (
    DEFAULT_COLLECTOR_URL,
    DEFAULT_MAX_PENDING_EVENTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from ..config.settings import Settings
from .classifier import ClassificationResult

logger = logging.getLogger(__name__)

# Worker control messages
_STOP = object()


class EventEmitter:
    """
    Posts classification events to the collector from a background thread.

    Example:
        >>> emitter = EventEmitter(api_key="secret")
        >>> emitter.emit(result)  # returns immediately
        >>> emitter.close()
    """

    def __init__(
        self,
        api_key: str,
        collector_url: str = DEFAULT_COLLECTOR_URL,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        max_pending: int = DEFAULT_MAX_PENDING_EVENTS,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the emitter.

        Args:
            api_key: Bearer credential for the collector
            collector_url: Endpoint receiving POSTed events
            timeout_seconds: Per-request timeout for delivery
            max_pending: Queue capacity; events beyond it are dropped
            client: Optional preconfigured httpx client (closed by the
                caller, not by the emitter)
        """
        self.api_key = api_key
        self.collector_url = collector_url
        self.timeout_seconds = timeout_seconds

        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._worker: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self._closed = False

        self.sent_count = 0
        self.failed_count = 0
        self.dropped_count = 0

    @classmethod
    def from_settings(
        cls, settings: Settings, client: Optional[httpx.Client] = None
    ) -> "EventEmitter":
        """Create an emitter from application settings."""
        return cls(
            api_key=settings.api_key,
            collector_url=settings.collector_url,
            timeout_seconds=settings.request_timeout_seconds,
            max_pending=settings.max_pending_events,
            client=client,
        )

    @property
    def pending(self) -> int:
        """Number of events waiting for delivery."""
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        """Start the delivery worker if it is not running yet."""
        with self._start_lock:
            if self._closed:
                raise RuntimeError("EventEmitter is closed")
            self._start_worker()

    def _start_worker(self) -> None:
        # Caller holds _start_lock
        if self.is_running:
            return

        self._worker = threading.Thread(
            target=self._run,
            daemon=True,
            name="llm-bot-detector-emitter",
        )
        self._worker.start()
        atexit.register(self.close)
        logger.debug(f"Event emitter started (collector: {self.collector_url})")

    def emit(self, result: ClassificationResult) -> None:
        """
        Queue a classification event for delivery.

        Returns as soon as the payload is queued. When the queue is full
        or the emitter is closed the event is dropped with a warning.
        """
        payload = result.to_payload()

        # close() flips _closed under the same lock, so an accepted event
        # is always queued ahead of the stop marker
        with self._start_lock:
            if self._closed:
                self.dropped_count += 1
                logger.warning(
                    f"Emitter closed, dropping event for '{result.filter_name}'"
                )
                return

            self._start_worker()

            try:
                self._queue.put_nowait(payload)
            except queue.Full:
                self.dropped_count += 1
                logger.warning(
                    f"Event queue full ({self._queue.maxsize}), "
                    f"dropping event for '{result.filter_name}'"
                )

    def flush(self, timeout: float = 5.0) -> bool:
        """
        Wait until events queued so far have been processed.

        Returns:
            True if the queue drained within the timeout
        """
        if not self.is_running:
            return self._queue.empty()

        done = threading.Event()
        try:
            self._queue.put(done, timeout=timeout)
        except queue.Full:
            return False
        return done.wait(timeout)

    def close(self, timeout: float = 5.0) -> None:
        """
        Stop the worker after it delivers pending events, then release
        the HTTP client.
        """
        with self._start_lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker

        if worker is not None and worker.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.warning(
                    f"Event queue still full on close, {self.pending} event(s) lost"
                )
            worker.join(timeout)
            if worker.is_alive():
                logger.warning("Event emitter worker did not stop within timeout")

        if self._owns_client:
            self._client.close()

        atexit.unregister(self.close)

    def __enter__(self) -> "EventEmitter":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, threading.Event):
                    item.set()
                    continue
                self._send(item)
            except Exception:
                # Keep the worker alive whatever a single delivery does
                logger.exception("Unexpected error delivering event")
            finally:
                self._queue.task_done()

    def _send(self, payload: dict[str, Any]) -> None:
        """POST one payload to the collector."""
        try:
            response = self._client.post(
                self.collector_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as e:
            self.failed_count += 1
            logger.warning(
                f"Event delivery failed for '{payload.get('source')}': "
                f"{type(e).__name__}: {e}"
            )
            return

        if response.is_success:
            self.sent_count += 1
            logger.debug(
                f"Delivered {payload.get('type')} event for '{payload.get('source')}' "
                f"(HTTP {response.status_code})"
            )
        else:
            self.failed_count += 1
            logger.warning(
                f"Collector rejected event for '{payload.get('source')}': "
                f"HTTP {response.status_code}"
            )
