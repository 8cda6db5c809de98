"""
Reply Writer

Generates a context-aware reply suggestion for one stored email. Context
comes from the owner's product facts (retrieval-augmented prompt); the
generated text is stored as a new, append-only suggestion.

Design Considerations:
- Ownership verified before any context is read
- All-or-nothing: no suggestion row unless generation fully succeeded
- Confidence supplied by a pluggable scorer
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from src.email_processing.base import TextCapability
from src.email_processing.errors import CapabilityUnavailable, EmailNotFound, Unauthorized
from src.email_processing.models import ContextFact, StoredEmail, SuggestedReply
from src.storage.email_repository import EmailRepository
from src.storage.reply_repository import ContextRepository, ReplyRepository

logger = logging.getLogger(__name__)

REPLY_SYSTEM_PROMPT = (
    "You are a professional email assistant. Generate helpful, personalized "
    "email replies based on the provided context."
)

CONTEXT_HEADER = "Product/Service Context:\n"

DEFAULT_CONTEXT = (
    "- I am a job seeker applying for positions\n"
    "- If a lead is interested, share the meeting booking link: https://cal.com/example\n"
    "- Be professional and enthusiastic"
)


class ConfidenceScorer(ABC):
    """Assigns a confidence score in [0, 1] to a generated reply."""

    @abstractmethod
    def score(self, email: StoredEmail, facts: List[ContextFact], reply_text: str) -> float:
        raise NotImplementedError("Must implement score")


class FixedConfidenceScorer(ConfidenceScorer):
    """Returns the same configured score for every reply."""

    def __init__(self, value: float = 0.85):
        if not 0.0 <= value <= 1.0:
            raise ValueError("Confidence score must be between 0 and 1")
        self.value = value

    def score(self, email: StoredEmail, facts: List[ContextFact], reply_text: str) -> float:
        return self.value


class ReplyWriter:
    """
    Produces and stores reply suggestions.

    Attributes:
        capability: Text generation capability
        context_limit: Maximum number of context facts placed in the prompt
        scorer: Confidence scorer for stored suggestions
    """

    def __init__(self,
                 capability: TextCapability,
                 emails: EmailRepository,
                 replies: ReplyRepository,
                 contexts: ContextRepository,
                 scorer: Optional[ConfidenceScorer] = None,
                 context_limit: int = 5):
        self.capability = capability
        self.emails = emails
        self.replies = replies
        self.contexts = contexts
        self.scorer = scorer or FixedConfidenceScorer()
        self.context_limit = context_limit

    @staticmethod
    def build_context(facts: List[ContextFact]) -> str:
        """Render context facts as ``type: content`` lines, or the default block."""
        if not facts:
            return CONTEXT_HEADER + DEFAULT_CONTEXT
        return CONTEXT_HEADER + "\n".join(f"{fact.context_type}: {fact.content}" for fact in facts)

    @staticmethod
    def build_prompt(context_text: str, email: StoredEmail) -> str:
        return (
            "Based on the following context and the received email, generate a professional reply.\n\n"
            f"{context_text}\n\n"
            "Received Email:\n"
            f"From: {email.from_address}\n"
            f"Subject: {email.subject}\n"
            f"Body: {email.content}\n\n"
            "Generate a professional, personalized reply that:\n"
            "1. Addresses their interests/questions\n"
            "2. References relevant product/service information from the context\n"
            "3. Includes any appropriate links (like booking links)\n"
            "4. Is warm and professional\n\n"
            "Reply:"
        )

    async def authorize(self, email_id: str, owner_id: str) -> StoredEmail:
        """
        Load a message the caller owns.

        Raises:
            EmailNotFound: No message with that id
            Unauthorized: The caller does not own the message's account
        """
        account_owner = await self.emails.get_owner_id(email_id)
        if account_owner is None:
            raise EmailNotFound(email_id)
        if account_owner != owner_id:
            logger.warning(f"User {owner_id} denied access to email {email_id}")
            raise Unauthorized()

        email = await self.emails.get_by_id(email_id)
        if email is None:
            raise EmailNotFound(email_id)
        return email

    async def generate_reply(self, email_id: str, owner_id: str) -> SuggestedReply:
        """
        Generate and store a reply suggestion for a message.

        Args:
            email_id: Stored message to reply to
            owner_id: Caller; must own the message's account

        Returns:
            The stored suggestion

        Raises:
            EmailNotFound, Unauthorized: Access checks failed; nothing read or written
            CapabilityUnavailable: Generation failed or returned nothing; nothing written
        """
        email = await self.authorize(email_id, owner_id)

        facts = await self.contexts.list_for_owner(owner_id, limit=self.context_limit)
        if not facts:
            logger.info(f"No product context for user {owner_id}, using default context")
        context_text = self.build_context(facts)

        response = await self.capability.complete(
            system_prompt=REPLY_SYSTEM_PROMPT,
            user_prompt=self.build_prompt(context_text, email),
            task_type="reply_generation"
        )
        reply_text = (response or "").strip()
        if not reply_text:
            raise CapabilityUnavailable("Language model returned an empty reply")

        confidence = self.scorer.score(email, facts, reply_text)
        reply = await self.replies.insert(email.id, reply_text, confidence)
        logger.info(f"Generated reply for email {email_id}")
        return reply

    async def list_replies(self, email_id: str, owner_id: str) -> List[SuggestedReply]:
        """Return stored suggestions for a message the caller owns."""
        await self.authorize(email_id, owner_id)
        return await self.replies.list_for_email(email_id)
