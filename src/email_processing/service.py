"""
Email Pipeline Service

Trigger surface for the pipeline. Wires the components from one settings
object and exposes the top-level operations (sync all accounts, classify
one email, generate a reply, list replies). Every operation returns an
OperationResult and never raises.
"""

import logging
from typing import Optional

from src.config.settings import PipelineSettings
from src.email_processing.base import TextCapability
from src.email_processing.classification.classifier import EmailClassifier, EmailRouter
from src.email_processing.errors import EmailNotFound, PipelineError
from src.email_processing.handlers.writer import ConfidenceScorer, FixedConfidenceScorer, ReplyWriter
from src.email_processing.notifications.dispatcher import (
    ChatNotificationSink, NotificationDispatcher, WebhookNotificationSink
)
from src.email_processing.processor import EmailSyncProcessor
from src.email_processing.results import OperationResult
from src.integrations.groq.client import EnhancedGroqClient
from src.integrations.mailbox.base import MailboxSource
from src.integrations.mailbox.imap import ImapMailboxSource
from src.storage.account_repository import AccountRepository
from src.storage.database import Database
from src.storage.email_repository import EmailRepository
from src.storage.reply_repository import ContextRepository, ReplyRepository

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


class EmailPipelineService:
    """
    Facade over the sync processor, email router and reply writer.
    """

    def __init__(self,
                 database: Database,
                 router: EmailRouter,
                 processor: EmailSyncProcessor,
                 writer: ReplyWriter,
                 emails: EmailRepository):
        self.database = database
        self.router = router
        self.processor = processor
        self.writer = writer
        self.emails = emails

    @classmethod
    def from_settings(cls,
                      settings: PipelineSettings,
                      database: Optional[Database] = None,
                      mailbox: Optional[MailboxSource] = None,
                      capability: Optional[TextCapability] = None,
                      scorer: Optional[ConfidenceScorer] = None) -> "EmailPipelineService":
        """
        Build a fully wired service from validated settings.

        Any collaborator may be injected; the rest are built from settings.
        """
        database = database or Database(settings.DATABASE_URL)
        timeout = settings.EXTERNAL_CALL_TIMEOUT_SECONDS

        if capability is None:
            api_key = settings.GROQ_API_KEY.get_secret_value() if settings.GROQ_API_KEY else None
            capability = EnhancedGroqClient(
                api_key=api_key,
                models={
                    "email_classification": settings.CLASSIFICATION_MODEL,
                    "reply_generation": settings.REPLY_MODEL
                },
                timeout_seconds=timeout
            )
        if mailbox is None:
            mailbox = ImapMailboxSource(
                folder=settings.IMAP_FOLDER,
                timeout_seconds=timeout,
                max_messages=settings.MAX_MESSAGES_PER_FETCH
            )

        accounts = AccountRepository(database)
        emails = EmailRepository(database)
        replies = ReplyRepository(database)
        contexts = ContextRepository(database)

        dispatcher = NotificationDispatcher([
            ChatNotificationSink(
                settings.SLACK_WEBHOOK_URL,
                excerpt_length=settings.CHAT_EXCERPT_LENGTH,
                timeout_seconds=timeout
            ),
            WebhookNotificationSink(settings.NOTIFICATION_WEBHOOK_URL, timeout_seconds=timeout)
        ])
        router = EmailRouter(EmailClassifier(capability, emails), dispatcher)
        processor = EmailSyncProcessor(mailbox, accounts, emails, router)
        writer = ReplyWriter(
            capability,
            emails,
            replies,
            contexts,
            scorer=scorer or FixedConfidenceScorer(settings.REPLY_CONFIDENCE_SCORE),
            context_limit=settings.CONTEXT_FACT_LIMIT
        )

        if not settings.chat_sink_enabled:
            logger.info("SLACK_WEBHOOK_URL not set, chat notifications disabled")
        return cls(database, router, processor, writer, emails)

    async def sync_all(self) -> OperationResult:
        """Sync all active accounts; data carries the per-account report."""
        try:
            report = await self.processor.sync_all()
            return OperationResult.ok(report.to_dict())
        except PipelineError as e:
            logger.error(f"Mailbox sync error: {e.message}")
            return OperationResult.from_error(e)
        except Exception as e:
            logger.error(f"Mailbox sync error: {e}", exc_info=True)
            return OperationResult.fail("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)

    async def classify_email(self, email_id: str) -> OperationResult:
        """Classify one stored email and notify per policy."""
        try:
            email = await self.emails.get_by_id(email_id)
            if email is None:
                raise EmailNotFound(email_id)
            category, report = await self.router.process_email(email)
            return OperationResult.ok({
                "email_id": email_id,
                "category": category.value,
                "notifications": report.to_dict()
            })
        except PipelineError as e:
            logger.error(f"Categorization error for email {email_id}: {e.message}")
            return OperationResult.from_error(e)
        except Exception as e:
            logger.error(f"Categorization error for email {email_id}: {e}", exc_info=True)
            return OperationResult.fail("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)

    async def generate_reply(self, email_id: str, owner_id: str) -> OperationResult:
        """Generate and store a reply suggestion for an email the caller owns."""
        try:
            reply = await self.writer.generate_reply(email_id, owner_id)
            return OperationResult.ok(reply.to_dict())
        except PipelineError as e:
            logger.error(f"Reply generation error for email {email_id}: {e.message}")
            return OperationResult.from_error(e)
        except Exception as e:
            logger.error(f"Reply generation error for email {email_id}: {e}", exc_info=True)
            return OperationResult.fail("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)

    async def list_replies(self, email_id: str, owner_id: str) -> OperationResult:
        """List stored reply suggestions for an email the caller owns."""
        try:
            replies = await self.writer.list_replies(email_id, owner_id)
            return OperationResult.ok({
                "email_id": email_id,
                "replies": [reply.to_dict() for reply in replies]
            })
        except PipelineError as e:
            logger.error(f"Error listing replies for email {email_id}: {e.message}")
            return OperationResult.from_error(e)
        except Exception as e:
            logger.error(f"Error listing replies for email {email_id}: {e}", exc_info=True)
            return OperationResult.fail("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)
