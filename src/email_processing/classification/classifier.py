import logging
import time
from typing import Tuple

from src.email_processing.base import TextCapability
from src.email_processing.errors import ClassificationUnrecognized
from src.email_processing.models import EmailCategory, NotificationReport, StoredEmail
from src.email_processing.notifications.dispatcher import NotificationDispatcher
from src.storage.email_repository import EmailRepository

logger = logging.getLogger(__name__)

CLASSIFICATION_SYSTEM_PROMPT = (
    "You are an email classification expert. Respond only with the category name."
)

CATEGORY_DESCRIPTIONS = {
    EmailCategory.INTERESTED: "The sender is interested in your product/service",
    EmailCategory.MEETING_BOOKED: "The sender has booked or confirmed a meeting",
    EmailCategory.NOT_INTERESTED: "The sender is not interested",
    EmailCategory.SPAM: "This is spam or unwanted email",
    EmailCategory.OUT_OF_OFFICE: "This is an out-of-office auto-reply",
}


class EmailClassifier:
    """
    Assigns one intent category to a stored email using the text capability.

    The capability is not constrained to the category set, so its answer is
    normalized (trimmed, lower-cased) and then mapped strictly: anything
    outside the set raises ClassificationUnrecognized and the message stays
    unclassified.
    """

    def __init__(self, capability: TextCapability, emails: EmailRepository):
        self.capability = capability
        self.emails = emails

    @staticmethod
    def build_prompt(email: StoredEmail) -> str:
        """Build the deterministic classification prompt for a message."""
        categories = "\n".join(
            f"- {category.value}: {description}"
            for category, description in CATEGORY_DESCRIPTIONS.items()
        )
        return (
            "Analyze this email and categorize it into ONE of these categories:\n"
            f"{categories}\n\n"
            f"Email Subject: {email.subject}\n"
            f"Email Body: {email.content}\n\n"
            "Respond with ONLY the category name (lowercase, underscore-separated)."
        )

    @staticmethod
    def parse_category(response: str) -> EmailCategory:
        """
        Map a raw capability response onto the category set.

        Raises:
            ClassificationUnrecognized: If the normalized text is not a category
        """
        normalized = (response or "").strip().lower()
        try:
            return EmailCategory(normalized)
        except ValueError:
            raise ClassificationUnrecognized(response)

    async def classify(self, email: StoredEmail) -> EmailCategory:
        """
        Classify a stored email and record the category on it.

        Args:
            email: Persisted message to classify

        Returns:
            Assigned category

        Raises:
            ClassificationUnrecognized: Response outside the category set
            CapabilityUnavailable: Capability unreachable or misconfigured
        """
        logger.info(f"Starting classification for email {email.id}")
        start_time = time.time()

        response = await self.capability.complete(
            system_prompt=CLASSIFICATION_SYSTEM_PROMPT,
            user_prompt=self.build_prompt(email),
            task_type="email_classification"
        )
        duration = time.time() - start_time
        logger.debug(f"Model response for email {email.id} received in {duration:.2f}s: {response!r}")

        try:
            category = self.parse_category(response)
        except ClassificationUnrecognized:
            logger.warning(f"Email {email.id} left unclassified, unrecognized response: {response!r}")
            raise

        await self.emails.update_category(email.id, category)
        logger.info(f"Categorized email {email.id} as: {category.value}")
        return category


class EmailRouter:
    """
    Routes a stored email through classification and, per policy, notification.
    """

    def __init__(self, classifier: EmailClassifier, dispatcher: NotificationDispatcher):
        self.classifier = classifier
        self.dispatcher = dispatcher

    async def process_email(self, email: StoredEmail) -> Tuple[EmailCategory, NotificationReport]:
        """
        Classify an email and notify sinks if the category qualifies.

        Classification errors propagate; notification failures are captured
        in the returned report.

        Returns:
            Tuple of (category, notification_report)
        """
        category = await self.classifier.classify(email)
        report = await self.dispatcher.notify(email, category)
        return category, report
