"""
Reply and Context Repositories

Suggested replies are append-only; product context is read-only for the
pipeline and returned in storage order.
"""

import logging
from typing import List

from src.email_processing.models import ContextFact, SuggestedReply
from src.storage.database import Database
from src.storage.models import ProductContext, SuggestedReplyRecord
from src.utils.date_utils import from_storage

logger = logging.getLogger(__name__)


def _to_suggested_reply(row: SuggestedReplyRecord) -> SuggestedReply:
    return SuggestedReply(
        id=row.id,
        email_id=row.email_id,
        suggested_text=row.suggested_text,
        confidence_score=row.confidence_score,
        created_at=from_storage(row.created_at)
    )


class ReplyRepository:
    """Repository for generated reply suggestions."""

    def __init__(self, database: Database):
        self.database = database

    async def insert(self, email_id: str, suggested_text: str, confidence_score: float) -> SuggestedReply:
        """
        Store a new suggestion for a message.

        Returns:
            The stored suggestion with its assigned identifier
        """
        with self.database.session() as session:
            row = SuggestedReplyRecord(
                email_id=email_id,
                suggested_text=suggested_text,
                confidence_score=confidence_score
            )
            session.add(row)
            session.flush()
            reply = _to_suggested_reply(row)

        logger.info(f"Stored suggested reply {reply.id} for email {email_id}")
        return reply

    async def list_for_email(self, email_id: str) -> List[SuggestedReply]:
        """Return every suggestion stored for a message, oldest first."""
        with self.database.session() as session:
            rows = (
                session.query(SuggestedReplyRecord)
                .filter(SuggestedReplyRecord.email_id == email_id)
                .order_by(SuggestedReplyRecord.created_at, SuggestedReplyRecord.id)
                .all()
            )
            return [_to_suggested_reply(row) for row in rows]

    async def count_for_email(self, email_id: str) -> int:
        with self.database.session() as session:
            return (
                session.query(SuggestedReplyRecord)
                .filter(SuggestedReplyRecord.email_id == email_id)
                .count()
            )


class ContextRepository:
    """Read access to owner-scoped product context."""

    def __init__(self, database: Database):
        self.database = database

    async def list_for_owner(self, user_id: str, limit: int = 5) -> List[ContextFact]:
        """
        Retrieve up to ``limit`` context facts for an owner in storage order.
        """
        with self.database.session() as session:
            rows = (
                session.query(ProductContext)
                .filter(ProductContext.user_id == user_id)
                .order_by(ProductContext.id)
                .limit(limit)
                .all()
            )
            return [
                ContextFact(user_id=row.user_id, context_type=row.context_type, content=row.content)
                for row in rows
            ]
