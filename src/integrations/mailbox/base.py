"""
Abstract base class for mailbox sources.
Defines the interface the sync pipeline uses to pull new messages.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.email_processing.models import Account, MailboxBatch


class MailboxSource(ABC):
    """
    Produces the messages newly available for one account since a checkpoint.

    A source that caps how much it returns per fetch must set
    ``has_more`` and report a cursor from which the next fetch resumes,
    so that no message is skipped across syncs. The account's stored
    cursor is available as ``account.sync_cursor``.

    Implementations must return an empty batch (never raise) when nothing
    is new, raise SourceUnavailable when the server cannot be reached or
    rejects the credentials, and release any protocol session on every
    exit path.
    """

    @abstractmethod
    async def fetch(self, account: Account, checkpoint: Optional[datetime]) -> MailboxBatch:
        """
        Fetch messages for an account.

        Args:
            account: Account whose mailbox is read
            checkpoint: Last successful sync time, or None for a first sync

        Returns:
            Finite, possibly empty batch of raw messages

        Raises:
            SourceUnavailable: Network or authentication failure
            SourceTimeout: The fetch exceeded its time bound
        """
        raise NotImplementedError("Must implement fetch")
