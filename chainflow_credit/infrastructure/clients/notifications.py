"""Notification webhook client with exponential backoff retry logic"""

import asyncio
from typing import Any, Dict

import httpx

from chainflow_credit.config import Settings, settings as default_settings
from chainflow_credit.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class NotificationClient:
    """Client for delivering buyer notifications (reminders, overdue notices) to a webhook"""

    def __init__(self, webhook_url: str, config: Settings | None = None):
        config = config or default_settings
        self.webhook_url = webhook_url
        self.timeout = config.http_timeout_seconds
        self.max_retries = config.webhook_max_retries
        self.backoff_base = config.webhook_backoff_base

    async def send_event(self, payload: Dict[str, Any]) -> int:
        """
        Send a notification event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Returns:
            Number of attempts used

        Raises:
            httpx.HTTPStatusError, httpx.RequestError: after the final attempt
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return attempt + 1

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
