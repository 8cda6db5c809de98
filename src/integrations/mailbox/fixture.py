"""
Fixture-backed mailbox source for tests and local demos.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from src.email_processing.errors import SourceUnavailable
from src.email_processing.models import Account, MailboxBatch, RawEmail
from .base import MailboxSource

logger = logging.getLogger(__name__)


class FixtureMailboxSource(MailboxSource):
    """
    Returns pre-registered messages per account id.

    Every fetch returns the full registered list regardless of the
    checkpoint, like a server that keeps re-announcing the same mail.
    Accounts marked as failing raise SourceUnavailable.
    """

    def __init__(self, messages: Optional[Dict[str, List[RawEmail]]] = None):
        self.messages: Dict[str, List[RawEmail]] = {
            account_id: list(items) for account_id, items in (messages or {}).items()
        }
        self.failing: Dict[str, str] = {}
        self.calls: List[tuple] = []

    def add_message(self, account_id: str, message: RawEmail) -> None:
        self.messages.setdefault(account_id, []).append(message)

    def fail_for(self, account_id: str, reason: str = "connection refused") -> None:
        self.failing[account_id] = reason

    async def fetch(self, account: Account, checkpoint: Optional[datetime]) -> MailboxBatch:
        self.calls.append((account.id, checkpoint))
        if account.id in self.failing:
            raise SourceUnavailable(f"Could not fetch mail for {account.email}: {self.failing[account.id]}")
        messages = list(self.messages.get(account.id, []))
        logger.debug(f"Fixture source returning {len(messages)} messages for {account.id}")
        return MailboxBatch(messages=messages)
