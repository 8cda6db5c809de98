"""
Shared data models for email processing.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class EmailCategory(Enum):
    """Closed set of intent categories assigned by the classifier."""
    INTERESTED = "interested"
    MEETING_BOOKED = "meeting_booked"
    NOT_INTERESTED = "not_interested"
    SPAM = "spam"
    OUT_OF_OFFICE = "out_of_office"


class SyncState(Enum):
    """Per-account states of the sync state machine."""
    IDLE = "idle"
    FETCHING = "fetching"
    DEDUPING = "deduping"
    PERSISTING = "persisting"
    CLASSIFYING = "classifying"
    ERRORED = "errored"


@dataclass
class Account:
    """A configured mailbox. Connection parameters are opaque to the pipeline."""
    id: str
    user_id: str
    email: str
    imap_host: str
    imap_port: int
    imap_user: str
    imap_password: str
    is_active: bool = True
    last_sync_at: Optional[datetime] = None
    sync_cursor: Optional[str] = None


@dataclass
class RawEmail:
    """An inbound message as produced by a mailbox source."""
    message_id: str
    from_address: str
    to_address: str
    subject: str
    body_text: str
    received_at: datetime
    body_html: Optional[str] = None
    folder: str = "INBOX"
    is_read: bool = False


@dataclass
class MailboxBatch:
    """
    Messages returned by one mailbox fetch.

    ``cursor`` is an opaque resume position the source wants persisted for
    the account; ``has_more`` marks a batch cut short by a fetch limit.
    """
    messages: List[RawEmail] = field(default_factory=list)
    cursor: Optional[str] = None
    has_more: bool = False


@dataclass
class StoredEmail:
    """A persisted message."""
    id: str
    account_id: str
    message_id: str
    from_address: str
    to_address: str
    subject: str
    body_text: str
    body_html: Optional[str]
    folder: str
    received_at: datetime
    is_read: bool = False
    ai_category: Optional[EmailCategory] = None

    @property
    def content(self) -> str:
        """Plain-text body, falling back to the HTML body when empty."""
        return self.body_text or self.body_html or ""


@dataclass
class ContextFact:
    """Owner-scoped snippet used to ground reply generation."""
    user_id: str
    context_type: str
    content: str


@dataclass
class SuggestedReply:
    """A generated reply suggestion for one message."""
    id: str
    email_id: str
    suggested_text: str
    confidence_score: float
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email_id": self.email_id,
            "suggested_text": self.suggested_text,
            "confidence_score": self.confidence_score,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }


@dataclass
class SinkOutcome:
    """Result of one notification sink attempt."""
    sink: str
    attempted: bool
    delivered: bool = False
    disabled: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sink": self.sink,
            "attempted": self.attempted,
            "delivered": self.delivered,
            "disabled": self.disabled,
            "error": self.error
        }


@dataclass
class NotificationReport:
    """Aggregated outcome of a notification fan-out."""
    triggered: bool
    outcomes: List[SinkOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "triggered": self.triggered,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes]
        }


@dataclass
class AccountSyncReport:
    """Outcome of syncing a single account."""
    account_id: str
    state: SyncState = SyncState.IDLE
    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    classified: int = 0
    classification_failures: int = 0
    has_more: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state != SyncState.ERRORED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "state": self.state.value,
            "succeeded": self.succeeded,
            "fetched": self.fetched,
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "classified": self.classified,
            "classification_failures": self.classification_failures,
            "has_more": self.has_more,
            "error": self.error
        }


@dataclass
class SyncReport:
    """Outcome of one full sync invocation across all active accounts."""
    accounts: List[AccountSyncReport] = field(default_factory=list)

    @property
    def accounts_processed(self) -> int:
        return len(self.accounts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accounts_processed": self.accounts_processed,
            "accounts": [report.to_dict() for report in self.accounts]
        }
