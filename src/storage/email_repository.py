"""
Email Repository Implementation

Deduplicating store for ingested messages. Messages are keyed by
(account_id, message_id); an existence check followed by an insert is the
insert-if-absent used by the sync pipeline, backed by the database unique
constraint for the case where the check races.

Design Considerations:
- Repository pattern for data access abstraction
- Duplicate inserts surface as DuplicateSkip, never as a raw IntegrityError
- Category written with a single UPDATE per classification
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from src.email_processing.errors import DuplicateSkip, EmailNotFound
from src.email_processing.models import EmailCategory, RawEmail, StoredEmail
from src.storage.database import Database
from src.storage.models import Email
from src.utils.date_utils import from_storage, to_storage

logger = logging.getLogger(__name__)


def _to_stored_email(row: Email) -> StoredEmail:
    return StoredEmail(
        id=row.id,
        account_id=row.account_id,
        message_id=row.message_id,
        from_address=row.from_address,
        to_address=row.to_address,
        subject=row.subject or "",
        body_text=row.body_text or "",
        body_html=row.body_html,
        folder=row.folder,
        received_at=from_storage(row.received_at),
        is_read=row.is_read,
        ai_category=EmailCategory(row.ai_category) if row.ai_category else None
    )


class EmailRepository:
    """Repository for ingested email records."""

    def __init__(self, database: Database):
        self.database = database

    async def exists(self, account_id: str, message_id: str) -> bool:
        """Check whether a message is already stored for the account."""
        with self.database.session() as session:
            found = (
                session.query(Email.id)
                .filter(Email.account_id == account_id, Email.message_id == message_id)
                .first()
            )
            return found is not None

    async def insert(self, account_id: str, raw: RawEmail) -> StoredEmail:
        """
        Persist a new message for an account.

        Args:
            account_id: Owning account
            raw: Message as produced by the mailbox source

        Returns:
            The stored message with its newly assigned identifier

        Raises:
            DuplicateSkip: If (account_id, message_id) is already stored
        """
        if await self.exists(account_id, raw.message_id):
            raise DuplicateSkip(account_id, raw.message_id)

        try:
            with self.database.session() as session:
                row = Email(
                    account_id=account_id,
                    message_id=raw.message_id,
                    from_address=raw.from_address,
                    to_address=raw.to_address,
                    subject=raw.subject,
                    body_text=raw.body_text,
                    body_html=raw.body_html,
                    folder=raw.folder,
                    received_at=to_storage(raw.received_at),
                    is_read=raw.is_read
                )
                session.add(row)
                session.flush()
                stored = _to_stored_email(row)
        except IntegrityError:
            logger.info(f"Email {raw.message_id} inserted concurrently for account {account_id}, skipping")
            raise DuplicateSkip(account_id, raw.message_id)

        logger.info(f"Inserted new email {stored.id}: {raw.subject}")
        return stored

    async def get_by_id(self, email_id: str) -> Optional[StoredEmail]:
        with self.database.session() as session:
            row = session.query(Email).filter(Email.id == email_id).first()
            return _to_stored_email(row) if row else None

    async def get_by_external_id(self, account_id: str, message_id: str) -> Optional[StoredEmail]:
        with self.database.session() as session:
            row = (
                session.query(Email)
                .filter(Email.account_id == account_id, Email.message_id == message_id)
                .first()
            )
            return _to_stored_email(row) if row else None

    async def get_owner_id(self, email_id: str) -> Optional[str]:
        """
        Return the user id owning the account of a message.

        Returns:
            Owner id, or None when the message does not exist
        """
        with self.database.session() as session:
            row = session.query(Email).filter(Email.id == email_id).first()
            if not row:
                return None
            return row.account.user_id

    async def update_category(self, email_id: str, category: EmailCategory) -> None:
        """
        Record the classification result on a message.

        Raises:
            EmailNotFound: If the message does not exist
        """
        with self.database.session() as session:
            updated = (
                session.query(Email)
                .filter(Email.id == email_id)
                .update({Email.ai_category: category.value}, synchronize_session=False)
            )
            if not updated:
                raise EmailNotFound(email_id)

    async def count_for_account(self, account_id: str) -> int:
        with self.database.session() as session:
            return session.query(Email).filter(Email.account_id == account_id).count()
