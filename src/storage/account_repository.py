"""
Account Repository Implementation

Provides the account operations the sync pipeline needs: listing active
accounts, loading one account and advancing its sync checkpoint.

All methods return dataclasses rather than ORM objects to prevent
session-related issues when objects are accessed after the session closes.
"""

import logging
from datetime import datetime
from typing import List, Optional

from src.email_processing.models import Account
from src.storage.database import Database
from src.storage.models import EmailAccount
from src.utils.date_utils import from_storage, to_storage

logger = logging.getLogger(__name__)


def _to_account(row: EmailAccount) -> Account:
    return Account(
        id=row.id,
        user_id=row.user_id,
        email=row.email,
        imap_host=row.imap_host,
        imap_port=row.imap_port,
        imap_user=row.imap_user,
        imap_password=row.imap_password,
        is_active=row.is_active,
        last_sync_at=from_storage(row.last_sync_at),
        sync_cursor=row.sync_cursor
    )


class AccountRepository:
    """Repository for mail account records."""

    def __init__(self, database: Database):
        self.database = database

    async def list_active(self) -> List[Account]:
        """
        Retrieve every account flagged as active, oldest first.

        Returns:
            List of active accounts
        """
        with self.database.session() as session:
            rows = (
                session.query(EmailAccount)
                .filter(EmailAccount.is_active.is_(True))
                .order_by(EmailAccount.created_at, EmailAccount.id)
                .all()
            )
            return [_to_account(row) for row in rows]

    async def get(self, account_id: str) -> Optional[Account]:
        with self.database.session() as session:
            row = session.query(EmailAccount).filter(EmailAccount.id == account_id).first()
            return _to_account(row) if row else None

    async def update_last_sync(self,
                               account_id: str,
                               synced_at: Optional[datetime],
                               cursor: Optional[str] = None) -> None:
        """
        Record the outcome of a successful sync cycle for one account.

        Args:
            account_id: Account to update
            synced_at: New checkpoint value, or None to keep the current one
            cursor: Source resume position to store, or None to keep the current one

        Raises:
            ValueError: If the account does not exist
        """
        with self.database.session() as session:
            row = session.query(EmailAccount).filter(EmailAccount.id == account_id).first()
            if not row:
                raise ValueError(f"Account {account_id} not found")
            if synced_at is not None:
                row.last_sync_at = to_storage(synced_at)
                logger.debug(f"Checkpoint for account {account_id} set to {synced_at.isoformat()}")
            if cursor is not None:
                row.sync_cursor = cursor
                logger.debug(f"Sync cursor for account {account_id} set to {cursor}")
