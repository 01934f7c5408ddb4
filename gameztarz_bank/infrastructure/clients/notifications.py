"""Outbound notification webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from gameztarz_bank.config import settings
from gameztarz_bank.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram

logger = logging.getLogger(__name__)


class NotificationClient:
    """Forwards account events (transfers received, claims) to an external webhook"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Deliver one event, retrying on 5xx responses and network failures.
        A 4xx response is not retried.

        Backoff doubles from `webhook_backoff_base` seconds. Returns False once
        retries are exhausted; delivery is best effort and never fails the
        originating request.
        """
        if not self.enabled:
            return False

        body = {"event": event, **payload}
        attempt = 0
        async with httpx.AsyncClient() as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=body, timeout=self.timeout)
                        response.raise_for_status()
                        return True

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        logger.error(
                            "Notification webhook rejected event",
                            extra={"event": event, "status_code": e.response.status_code},
                        )
                        return False

                    if attempt >= self.max_retries:
                        logger.error(
                            "Notification webhook delivery failed",
                            extra={"event": event, "attempts": attempt, "error": str(e)},
                        )
                        return False

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
        return False
