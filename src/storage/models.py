"""
Database Models for the Lead Inbox Pipeline

Defines the persisted records the pipeline reads and writes: configured
mail accounts, ingested emails, generated reply suggestions and the
owner-scoped product context used to ground replies.

Design Considerations:
- (account_id, message_id) uniqueness enforced by the database
- Suggested replies are append-only
- Context rows keep insertion order through an integer key
- Proper indexing for the lookups the pipeline performs
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text,
    UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class EmailAccount(Base):
    """
    Configured mailbox the pipeline ingests from.

    Connection parameters are stored as provided by the account management
    surface and passed through to the mailbox source untouched.
    """
    __tablename__ = "email_accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    email = Column(String(255), nullable=False)

    # IMAP connection parameters
    imap_host = Column(String(255), nullable=False)
    imap_port = Column(Integer, nullable=False, default=993)
    imap_user = Column(String(255), nullable=False)
    imap_password = Column(Text, nullable=False)

    # Status and checkpoint
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_sync_at = Column(DateTime, nullable=True)
    # Opaque resume position reported by the mailbox source
    sync_cursor = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    emails = relationship("Email", back_populates="account", cascade="all, delete-orphan")


class Email(Base):
    """
    Ingested email message.

    ``message_id`` is the identifier supplied by the mail source and is
    unique per account. ``ai_category`` stays null until classified.
    """
    __tablename__ = "emails"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("email_accounts.id", ondelete="CASCADE"), nullable=False)
    message_id = Column(String(998), nullable=False)

    from_address = Column(String(255), nullable=False)
    to_address = Column(String(255), nullable=False)
    subject = Column(Text, nullable=False, default="")
    body_text = Column(Text, nullable=False, default="")
    body_html = Column(Text, nullable=True)
    folder = Column(String(255), nullable=False, default="INBOX")
    received_at = Column(DateTime, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    ai_category = Column(String(50), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    account = relationship("EmailAccount", back_populates="emails")
    suggested_replies = relationship("SuggestedReplyRecord", back_populates="email", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("account_id", "message_id", name="uq_emails_account_message"),
    )


class SuggestedReplyRecord(Base):
    """Generated reply suggestion. Rows are only ever inserted."""
    __tablename__ = "suggested_replies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email_id = Column(String(36), ForeignKey("emails.id", ondelete="CASCADE"), nullable=False, index=True)
    suggested_text = Column(Text, nullable=False)
    confidence_score = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    email = relationship("Email", back_populates="suggested_replies")


class ProductContext(Base):
    """Owner-scoped context fact managed outside the pipeline."""
    __tablename__ = "product_context"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    context_type = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
