"""
Notification Dispatcher

Fans out best-effort notifications when a message is classified as
``interested``. Each sink runs independently: a failing sink is logged
and recorded in the report but never stops the other sink and never
fails the classification that triggered it.

Design Considerations:
- Dispatch policy isolated in a single predicate
- Unconfigured chat sink is a disabled state, not an error
- Bounded aiohttp timeouts on every outbound call
- Sink failures reported as data, not raised
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from src.email_processing.errors import NotificationSinkFailure
from src.email_processing.models import (
    EmailCategory, NotificationReport, SinkOutcome, StoredEmail
)
from src.utils.date_utils import format_iso_date

logger = logging.getLogger(__name__)


class NotificationSink:
    """Base class for an outbound notification target."""

    name = "sink"

    def __init__(self, url: Optional[str], timeout_seconds: float = 10.0):
        self.url = url
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return self.url is not None

    def build_payload(self, email: StoredEmail) -> Dict[str, Any]:
        raise NotImplementedError("Must implement build_payload")

    async def send(self, email: StoredEmail) -> None:
        """
        POST the sink payload for a message.

        Raises:
            NotificationSinkFailure: On non-2xx status, connection error or timeout
        """
        payload = self.build_payload(email)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, json=payload) as response:
                    if response.status >= 300:
                        error_text = await response.text()
                        raise NotificationSinkFailure(
                            self.name, f"HTTP {response.status}: {error_text[:200]}"
                        )
        except asyncio.TimeoutError:
            raise NotificationSinkFailure(self.name, f"timed out after {self.timeout_seconds} seconds")
        except aiohttp.ClientError as e:
            raise NotificationSinkFailure(self.name, str(e))


class ChatNotificationSink(NotificationSink):
    """Chat webhook (Slack incoming-webhook format) receiving a text summary."""

    name = "chat"

    def __init__(self, url: Optional[str], excerpt_length: int = 200, timeout_seconds: float = 10.0):
        super().__init__(url, timeout_seconds)
        self.excerpt_length = excerpt_length

    def build_payload(self, email: StoredEmail) -> Dict[str, Any]:
        excerpt = (email.body_text or "")[:self.excerpt_length]
        return {
            "text": (
                f"🎉 New Interested Lead!\n\n"
                f"From: {email.from_address}\n"
                f"Subject: {email.subject}\n\n"
                f"Email: {excerpt}..."
            )
        }


class WebhookNotificationSink(NotificationSink):
    """Generic webhook receiving a structured ``interested_email`` event."""

    name = "webhook"

    def build_payload(self, email: StoredEmail) -> Dict[str, Any]:
        return {
            "event": "interested_email",
            "email": {
                "id": email.id,
                "from": email.from_address,
                "subject": email.subject,
                "received_at": format_iso_date(email.received_at)
            }
        }


class NotificationDispatcher:
    """
    Applies the notify policy and fans out to all configured sinks.

    Attributes:
        sinks: Sinks invoked for qualifying messages, in report order
    """

    NOTIFY_CATEGORIES = frozenset({EmailCategory.INTERESTED})

    def __init__(self, sinks: Sequence[NotificationSink]):
        self.sinks: List[NotificationSink] = list(sinks)

    def should_notify(self, category: EmailCategory) -> bool:
        return category in self.NOTIFY_CATEGORIES

    async def notify(self, email: StoredEmail, category: EmailCategory) -> NotificationReport:
        """
        Notify all sinks about a classified message if policy requires it.

        Args:
            email: Classified message
            category: Category just assigned

        Returns:
            Report with one outcome per sink; never raises for sink failures
        """
        if not self.should_notify(category):
            logger.debug(f"Email {email.id} categorized as {category.value}, no notification")
            return NotificationReport(triggered=False)

        logger.info(f"Triggering notifications for interested email {email.id}")

        enabled = [sink for sink in self.sinks if sink.enabled]
        results = await asyncio.gather(
            *(sink.send(email) for sink in enabled),
            return_exceptions=True
        )
        by_sink = dict(zip((id(sink) for sink in enabled), results))

        outcomes: List[SinkOutcome] = []
        for sink in self.sinks:
            if not sink.enabled:
                logger.debug(f"{sink.name} sink not configured, skipping")
                outcomes.append(SinkOutcome(sink=sink.name, attempted=False, disabled=True))
                continue

            result = by_sink[id(sink)]
            if isinstance(result, BaseException):
                logger.error(f"Notification failure for email {email.id}: {result}")
                outcomes.append(SinkOutcome(sink=sink.name, attempted=True, error=str(result)))
            else:
                logger.info(f"Delivered {sink.name} notification for email {email.id}")
                outcomes.append(SinkOutcome(sink=sink.name, attempted=True, delivered=True))

        return NotificationReport(triggered=True, outcomes=outcomes)
