from .base import MailboxSource
from .fixture import FixtureMailboxSource
from .imap import ImapMailboxSource

__all__ = [
    'MailboxSource',
    'FixtureMailboxSource',
    'ImapMailboxSource'
]
