"""
Shared fixtures for the pipeline test suite.

Repository, orchestrator and service tests run against an in-memory
SQLite database with the full schema; external capabilities are mocked.
"""

from datetime import datetime, timezone
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.email_processing.base import TextCapability
from src.email_processing.models import Account, RawEmail
from src.storage.database import Database
from src.storage.models import EmailAccount, ProductContext


@pytest.fixture
def database():
    """Create a fresh in-memory database with all tables."""
    db = Database("sqlite:///:memory:")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def seed_account(database) -> Callable[..., Account]:
    """Factory inserting an email account row and returning its dataclass."""
    def _seed(account_id: str = "a1",
              user_id: str = "owner-1",
              email: str = "sales@example.com",
              is_active: bool = True,
              last_sync_at: Optional[datetime] = None) -> Account:
        with database.session() as session:
            session.add(EmailAccount(
                id=account_id,
                user_id=user_id,
                email=email,
                imap_host="imap.example.com",
                imap_port=993,
                imap_user=email,
                imap_password="app-password",
                is_active=is_active,
                last_sync_at=last_sync_at
            ))
        return Account(
            id=account_id,
            user_id=user_id,
            email=email,
            imap_host="imap.example.com",
            imap_port=993,
            imap_user=email,
            imap_password="app-password",
            is_active=is_active,
            last_sync_at=last_sync_at
        )
    return _seed


@pytest.fixture
def seed_context(database) -> Callable[..., None]:
    """Factory inserting product context facts for an owner."""
    def _seed(user_id: str, context_type: str, content: str) -> None:
        with database.session() as session:
            session.add(ProductContext(user_id=user_id, context_type=context_type, content=content))
    return _seed


@pytest.fixture
def make_raw_email() -> Callable[..., RawEmail]:
    """Factory for raw messages as a mailbox source would produce them."""
    def _make(message_id: str = "m1",
              subject: str = "Re: your proposal",
              body_text: str = "Sounds great, tell me more.",
              from_address: str = "lead@prospect.io",
              body_html: Optional[str] = None) -> RawEmail:
        return RawEmail(
            message_id=message_id,
            from_address=from_address,
            to_address="sales@example.com",
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            received_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        )
    return _make


@pytest.fixture
def capability():
    """Text capability mock answering ``interested`` by default."""
    mock = MagicMock(spec=TextCapability)
    mock.complete = AsyncMock(return_value="interested")
    return mock
