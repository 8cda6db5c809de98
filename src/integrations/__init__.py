from .groq.client import EnhancedGroqClient
from .mailbox import FixtureMailboxSource, ImapMailboxSource, MailboxSource

__all__ = [
    'EnhancedGroqClient',
    'FixtureMailboxSource',
    'ImapMailboxSource',
    'MailboxSource',
]
