"""Buyer notifications: recorded with the charge update, optionally delivered by webhook"""

import asyncio
import logging
from typing import Any, Dict, Set

import httpx
from sqlalchemy.orm import Session

from chainflow_credit.domain.settlement import new_id
from chainflow_credit.infrastructure.clients.notifications import NotificationClient
from chainflow_credit.infrastructure.database.models import OutboundNotification
from chainflow_credit.infrastructure.database.repositories import NotificationRepository
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import Clock

logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(self, store: Store, clock: Clock, client: NotificationClient | None = None):
        self.store = store
        self.clock = clock
        self.client = client
        self._deliveries: Set[asyncio.Task] = set()

    def record(self, db: Session, event_type: str, charge_id: str, payload: Dict[str, Any]) -> OutboundNotification:
        """Persist a notification inside the caller's unit of work"""
        notification = NotificationRepository(db).add(
            OutboundNotification(
                id=new_id("ntf"),
                event_type=event_type,
                charge_id=charge_id,
                payload={"event": event_type, "charge_id": charge_id, **payload},
                target_url=self.client.webhook_url if self.client else None,
                status="recorded",
                attempts=0,
                created_at=self.clock(),
            )
        )
        logger.info(
            "Notification recorded",
            extra={"notification_id": notification.id, "event_type": event_type, "charge_id": charge_id},
        )
        return notification

    def dispatch(self, notification: OutboundNotification) -> asyncio.Task | None:
        """
        Deliver in the background so timer callbacks and requests never wait on the webhook.

        Must be called after the recording unit of work has committed. Returns
        None when no webhook is configured.
        """
        if self.client is None:
            return None
        task = asyncio.get_running_loop().create_task(self.deliver(notification))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)
        return task

    @property
    def in_flight(self) -> int:
        return len(self._deliveries)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to finish"""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    async def deliver(self, notification: OutboundNotification) -> str:
        """
        Send a recorded notification to the webhook, if one is configured.

        Returns:
            Final delivery status: recorded (no webhook), sent or failed
        """
        if self.client is None:
            return notification.status

        try:
            attempts = await self.client.send_event(notification.payload)
            status = "sent"
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            attempts = self.client.max_retries
            status = "failed"
            logger.error(
                f"Notification delivery failed: {e}",
                extra={"notification_id": notification.id, "event_type": notification.event_type},
            )

        with self.store.transaction() as db:
            stored = NotificationRepository(db).get(notification.id)
            stored.status = status
            stored.attempts += attempts
            stored.last_attempt_at = self.clock()

        return status
