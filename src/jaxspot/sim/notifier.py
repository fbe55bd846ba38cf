"""
Webhook Notification Dispatcher
===============================

Best-effort POST of trade events to the user's webhook.

Events are put on a bounded queue and delivered by a single daemon worker
thread, so a slow endpoint never blocks the engine's mutation path. Delivery
failures are logged and dropped: no retries, no exceptions to the caller.
When the queue is full the new event is dropped.
"""

from __future__ import annotations

import queue
import threading
import time
from typing import Any, Optional

import requests

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Policy, Position, is_valid_webhook_url

logger = get_logger(__name__)

EVENT_TRADE_OPEN = "trade_open"
EVENT_TRADE_CLOSE = "trade_close"
EVENT_TEST = "test"

TEST_MESSAGE = "JaxSpot webhook test successful!"

_STOP_SENTINEL = object()


def build_payload(kind: str, position: Optional[Position] = None, message: Optional[str] = None) -> dict[str, Any]:
    """Webhook body: {type, position|message, timestamp}."""
    payload: dict[str, Any] = {"type": kind}
    if position is not None:
        payload["position"] = position.to_dict()
    if message is not None:
        payload["message"] = message
    payload["timestamp"] = config.utc_now().isoformat()
    return payload


def _redact_url(url: str) -> str:
    """Webhook URLs often embed secrets; never log them in full."""
    if len(url) <= 24:
        return url
    return url[:16] + "..." + url[-4:]


class WebhookNotifier:
    """
    Queue-backed webhook dispatcher.

    The worker thread starts lazily on the first accepted event.
    """

    def __init__(
        self,
        timeout_sec: float = config.WEBHOOK_TIMEOUT_SEC,
        queue_max: int = config.WEBHOOK_QUEUE_MAX,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_sec = float(timeout_sec)
        self._session = session or requests.Session()
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, int(queue_max)))
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._closed = False
        self._stats_lock = threading.Lock()
        self.dropped_count = 0
        self.sent_count = 0
        self.failed_count = 0

    # --- Public API ---

    def dispatch_event(self, kind: str, position: Position, policy: Policy) -> None:
        """Queue a trade_open / trade_close event if the policy allows it."""
        url = self._target_url(policy)
        if url is None:
            return
        self._enqueue(url, build_payload(kind, position=position))

    def dispatch_test(self, policy: Policy) -> None:
        """Queue a test message, gated like any other event."""
        url = self._target_url(policy)
        if url is None:
            return
        self._enqueue(url, build_payload(EVENT_TEST, message=TEST_MESSAGE))

    def flush(self, timeout_sec: float = config.WEBHOOK_DRAIN_TIMEOUT_SEC) -> bool:
        """
        Wait until queued events are delivered or the deadline passes.

        Returns:
            True if the queue drained in time.
        """
        deadline = time.monotonic() + max(0.0, timeout_sec)
        while time.monotonic() < deadline:
            if self._queue.unfinished_tasks == 0:
                return True
            time.sleep(0.01)
        return self._queue.unfinished_tasks == 0

    def shutdown(self, drain_timeout_sec: float = config.WEBHOOK_DRAIN_TIMEOUT_SEC) -> None:
        """
        Stop accepting events, drain for up to drain_timeout_sec, then abandon
        whatever is left.
        """
        with self._lock:
            self._closed = True
            worker = self._worker
        if worker is None:
            return

        self.flush(drain_timeout_sec)
        abandoned = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            self._queue.task_done()
            abandoned += 1
        if abandoned:
            logger.warning(f"Abandoned {abandoned} undelivered webhook event(s) on shutdown")

        try:
            self._queue.put(_STOP_SENTINEL, timeout=0.5)
        except queue.Full:
            pass
        worker.join(timeout=max(0.5, drain_timeout_sec))

    # --- Internals ---

    def _count(self, name: str) -> None:
        with self._stats_lock:
            setattr(self, name, getattr(self, name) + 1)

    def _target_url(self, policy: Policy) -> Optional[str]:
        if not policy.webhook_enabled or not policy.webhook_url:
            return None
        if not is_valid_webhook_url(policy.webhook_url):
            logger.error("Webhook error: invalid URL configured, event not sent.")
            return None
        return policy.webhook_url

    def _ensure_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name="jaxspot-webhook", daemon=True)
        self._worker.start()

    def _enqueue(self, url: str, payload: dict[str, Any]) -> None:
        with self._lock:
            if self._closed:
                logger.debug(f"Notifier closed; dropping {payload.get('type')} event")
                return
            self._ensure_worker()
        try:
            self._queue.put_nowait((url, payload))
        except queue.Full:
            self._count("dropped_count")
            logger.warning(
                f"Webhook queue full; dropped {payload.get('type')} event (total dropped: {self.dropped_count})"
            )

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP_SENTINEL:
                    return
                url, payload = item
                self._post(url, payload)
            except Exception as e:
                # counted as failed; the worker keeps draining
                self._count("failed_count")
                logger.error(f"Unexpected webhook worker error: {e}")
            finally:
                self._queue.task_done()

    def _post(self, url: str, payload: dict[str, Any]) -> None:
        target = _redact_url(url)
        try:
            response = self._session.post(url, json=payload, timeout=self.timeout_sec)
        except requests.RequestException as e:
            self._count("failed_count")
            logger.error(f"Error sending webhook to {target}: {e}")
            return

        if not response.ok:
            self._count("failed_count")
            logger.error(f"Webhook to {target} failed with status: {response.status_code}")
            return

        self._count("sent_count")
        logger.info(f"Webhook {payload.get('type')} sent to {target}")
