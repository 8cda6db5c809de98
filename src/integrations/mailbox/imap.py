"""
IMAP mailbox source.

Reads new messages from a generic IMAP server over SSL. The blocking
imaplib session runs in a worker thread and is always logged out and
closed, whatever happens while fetching.
"""

import asyncio
import email
import hashlib
import imaplib
import logging
import socket
from contextlib import contextmanager
from datetime import datetime, timedelta
from email.header import decode_header
from email.message import Message
from email.utils import parseaddr
from typing import Iterator, List, Optional, Tuple

from src.email_processing.errors import SourceTimeout, SourceUnavailable
from src.email_processing.models import Account, MailboxBatch, RawEmail
from src.utils.date_utils import parse_email_date
from .base import MailboxSource

logger = logging.getLogger(__name__)


class ImapMailboxSource(MailboxSource):
    """
    IMAP-backed mailbox source.

    After the first fetch the source resumes from the last UID it returned,
    stored as the account cursor together with the folder UIDVALIDITY.
    Without a usable cursor it falls back to a ``SINCE`` search one day
    before the checkpoint; that search has day granularity and may return
    messages already stored, which the deduplicating store absorbs.
    """

    def __init__(self,
                 folder: str = "INBOX",
                 timeout_seconds: float = 30.0,
                 max_messages: int = 200):
        self.folder = folder
        self.timeout_seconds = timeout_seconds
        self.max_messages = max_messages

    async def fetch(self, account: Account, checkpoint: Optional[datetime]) -> MailboxBatch:
        try:
            return await asyncio.to_thread(self._fetch_blocking, account, checkpoint)
        except (socket.timeout, TimeoutError) as e:
            logger.error(f"IMAP fetch timed out for {account.email}: {e}")
            raise SourceTimeout(f"Timed out fetching mail for {account.email}")
        except (imaplib.IMAP4.error, OSError) as e:
            logger.error(f"IMAP fetch failed for {account.email}: {e}")
            raise SourceUnavailable(f"Could not fetch mail for {account.email}: {e}")

    @contextmanager
    def _connect(self, account: Account) -> Iterator[imaplib.IMAP4_SSL]:
        """Open an authenticated session and guarantee teardown."""
        connection = imaplib.IMAP4_SSL(account.imap_host, account.imap_port, timeout=self.timeout_seconds)
        try:
            connection.login(account.imap_user, account.imap_password)
            yield connection
        finally:
            try:
                connection.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                logger.debug(f"IMAP logout failed for {account.email}: {e}")

    def _fetch_blocking(self, account: Account, checkpoint: Optional[datetime]) -> MailboxBatch:
        messages: List[RawEmail] = []
        with self._connect(account) as connection:
            status, _ = connection.select(self.folder, readonly=True)
            if status != "OK":
                raise imaplib.IMAP4.error(f"Cannot select folder {self.folder}")

            uid_validity = self._uid_validity(connection)
            last_uid = self._resume_uid(account.sync_cursor, uid_validity)
            criteria = self._search_criteria(checkpoint, last_uid)
            status, data = connection.uid("SEARCH", None, criteria)
            if status != "OK":
                raise imaplib.IMAP4.error(f"SEARCH {criteria} failed")

            uids = sorted(int(uid) for uid in data[0].split()) if data and data[0] else []
            if last_uid is not None:
                # "UID n:*" always matches the highest UID, even when it is below n
                uids = [uid for uid in uids if uid > last_uid]

            has_more = len(uids) > self.max_messages
            if has_more:
                logger.warning(
                    f"{len(uids)} messages available for {account.email}, fetching the oldest "
                    f"{self.max_messages} and resuming from there on the next sync"
                )
                uids = uids[:self.max_messages]

            for uid in uids:
                status, msg_data = connection.uid("FETCH", str(uid), "(RFC822 FLAGS)")
                if status != "OK" or not msg_data or not isinstance(msg_data[0], tuple):
                    logger.warning(f"Skipping unreadable message UID {uid} for {account.email}")
                    continue
                flags = msg_data[0][0] or b""
                raw_bytes = msg_data[0][1]
                messages.append(self._parse_message(raw_bytes, account, is_read=b"\\Seen" in flags))

        cursor = f"{uid_validity}:{uids[-1]}" if uids else None
        logger.info(f"Fetched {len(messages)} messages for {account.email}")
        return MailboxBatch(messages=messages, cursor=cursor, has_more=has_more)

    @staticmethod
    def _uid_validity(connection: imaplib.IMAP4_SSL) -> str:
        """UIDVALIDITY announced by the last SELECT, or an empty string."""
        _, data = connection.response("UIDVALIDITY")
        value = data[0] if data else None
        if value is None:
            return ""
        return value.decode() if isinstance(value, bytes) else str(value)

    @staticmethod
    def _resume_uid(cursor: Optional[str], uid_validity: str) -> Optional[int]:
        """Last fetched UID from a stored cursor, if it is still valid for this folder."""
        if not cursor:
            return None
        validity, _, last_uid = cursor.partition(":")
        if validity != uid_validity or not last_uid.isdigit():
            logger.info(f"Discarding stale sync cursor {cursor!r} (UIDVALIDITY is now {uid_validity!r})")
            return None
        return int(last_uid)

    @staticmethod
    def _search_criteria(checkpoint: Optional[datetime], last_uid: Optional[int] = None) -> str:
        if last_uid is not None:
            return f"UID {last_uid + 1}:*"
        if checkpoint is None:
            return "ALL"
        # SINCE compares against the server's local date
        since = checkpoint - timedelta(days=1)
        return f"SINCE {since.strftime('%d-%b-%Y')}"

    @staticmethod
    def _decode_header_value(value: Optional[str]) -> str:
        """Decode an RFC 2047 encoded header value."""
        if not value:
            return ""
        result = []
        for content, charset in decode_header(value):
            if isinstance(content, bytes):
                try:
                    result.append(content.decode(charset or 'utf-8', errors='replace'))
                except LookupError:
                    result.append(content.decode('utf-8', errors='replace'))
            else:
                result.append(content)
        return ''.join(result)

    @staticmethod
    def _get_body_content(msg: Message) -> Tuple[str, Optional[str]]:
        """Extract (plain text, html) bodies, skipping attachments."""
        body_text = ""
        body_html = None

        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if part.is_multipart():
                continue
            if "attachment" in str(part.get("Content-Disposition", "")):
                continue
            payload = part.get_payload(decode=True)
            if not payload:
                continue
            charset = part.get_content_charset() or 'utf-8'
            try:
                text = payload.decode(charset, errors='replace')
            except LookupError:
                text = payload.decode('utf-8', errors='replace')

            content_type = part.get_content_type()
            if content_type == "text/plain" and not body_text:
                body_text = text
            elif content_type == "text/html" and body_html is None:
                body_html = text

        return body_text, body_html

    def _parse_message(self, raw_bytes: bytes, account: Account, is_read: bool = False) -> RawEmail:
        """Parse raw RFC 822 bytes into a RawEmail."""
        msg = email.message_from_bytes(raw_bytes)

        message_id = (msg.get('Message-ID') or "").strip()
        if not message_id:
            # Deterministic fallback so re-fetching the same bytes dedups
            message_id = f"<sha256-{hashlib.sha256(raw_bytes).hexdigest()}@{account.imap_host}>"

        _, from_address = parseaddr(self._decode_header_value(msg.get('From')))
        to_header = self._decode_header_value(msg.get('To'))
        _, to_address = parseaddr(to_header)
        received_at, _ = parse_email_date(msg.get('Date'))
        body_text, body_html = self._get_body_content(msg)

        return RawEmail(
            message_id=message_id,
            from_address=from_address,
            to_address=to_address or account.email,
            subject=self._decode_header_value(msg.get('Subject')),
            body_text=body_text,
            body_html=body_html,
            received_at=received_at,
            folder=self.folder,
            is_read=is_read
        )
