"""
Unit tests for mailbox sources.

The IMAP source is exercised with imaplib patched out; message parsing
runs on real RFC 822 bytes.
"""

import imaplib
import socket
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from src.email_processing.errors import SourceTimeout, SourceUnavailable
from src.email_processing.models import Account
from src.integrations.mailbox.fixture import FixtureMailboxSource
from src.integrations.mailbox.imap import ImapMailboxSource

RAW_MESSAGE = (
    b"Message-ID: <abc123@prospect.io>\r\n"
    b"From: Jane Lead <jane@prospect.io>\r\n"
    b"To: Sales <sales@example.com>\r\n"
    b"Subject: =?utf-8?q?Caf=C3=A9_meeting?=\r\n"
    b"Date: Wed, 01 May 2024 09:30:00 +0000\r\n"
    b"MIME-Version: 1.0\r\n"
    b"Content-Type: multipart/alternative; boundary=\"XYZ\"\r\n"
    b"\r\n"
    b"--XYZ\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"Interested, let's talk.\r\n"
    b"--XYZ\r\n"
    b"Content-Type: text/html; charset=utf-8\r\n"
    b"\r\n"
    b"<p>Interested, let's talk.</p>\r\n"
    b"--XYZ--\r\n"
)


@pytest.fixture
def account():
    return Account(
        id="a1",
        user_id="owner-1",
        email="sales@example.com",
        imap_host="imap.example.com",
        imap_port=993,
        imap_user="sales@example.com",
        imap_password="app-password"
    )


def make_connection(uids=b"1", fetch_status="OK"):
    connection = MagicMock()
    connection.login.return_value = ("OK", [b"Logged in"])
    connection.select.return_value = ("OK", [b"1"])
    connection.response.return_value = ("UIDVALIDITY", [b"7"])

    def uid(command, *args):
        if command == "SEARCH":
            return "OK", [uids]
        return fetch_status, [(b"1 (UID 1 FLAGS (\\Seen) RFC822 {512}", RAW_MESSAGE), b")"]
    connection.uid.side_effect = uid
    return connection


class TestImapParsing:

    def test_parse_message(self, account):
        raw = ImapMailboxSource()._parse_message(RAW_MESSAGE, account, is_read=True)

        assert raw.message_id == "<abc123@prospect.io>"
        assert raw.from_address == "jane@prospect.io"
        assert raw.to_address == "sales@example.com"
        assert raw.subject == "Café meeting"
        assert raw.body_text.strip() == "Interested, let's talk."
        assert raw.body_html.strip() == "<p>Interested, let's talk.</p>"
        assert raw.received_at == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert raw.is_read is True

    def test_missing_message_id_gets_stable_fallback(self, account):
        message = b"From: a@b.c\r\nSubject: hi\r\n\r\nbody\r\n"
        source = ImapMailboxSource()

        first = source._parse_message(message, account)
        second = source._parse_message(message, account)

        assert first.message_id == second.message_id
        assert first.message_id.startswith("<sha256-")

    def test_search_criteria(self):
        assert ImapMailboxSource._search_criteria(None) == "ALL"
        checkpoint = datetime(2024, 5, 1, 23, 59, tzinfo=timezone.utc)
        # One day of slack for servers whose local date lags UTC
        assert ImapMailboxSource._search_criteria(checkpoint) == "SINCE 30-Apr-2024"
        assert ImapMailboxSource._search_criteria(checkpoint, last_uid=41) == "UID 42:*"

    def test_resume_uid(self):
        assert ImapMailboxSource._resume_uid(None, "7") is None
        assert ImapMailboxSource._resume_uid("7:41", "7") == 41
        assert ImapMailboxSource._resume_uid("6:41", "7") is None
        assert ImapMailboxSource._resume_uid("garbage", "7") is None


@pytest.mark.asyncio
class TestImapMailboxSource:
    """Test suite for ImapMailboxSource session handling."""

    async def test_fetch_reads_messages_and_logs_out(self, account):
        connection = make_connection()
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection) as imap_class:
            batch = await ImapMailboxSource(timeout_seconds=5).fetch(account, None)

        imap_class.assert_called_once_with("imap.example.com", 993, timeout=5)
        connection.login.assert_called_once_with("sales@example.com", "app-password")
        connection.select.assert_called_once_with("INBOX", readonly=True)
        assert [m.message_id for m in batch.messages] == ["<abc123@prospect.io>"]
        assert batch.messages[0].is_read is True
        assert batch.cursor == "7:1"
        assert batch.has_more is False
        connection.logout.assert_called_once()

    async def test_empty_mailbox(self, account):
        connection = make_connection(uids=b"")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            batch = await ImapMailboxSource().fetch(account, datetime(2024, 5, 1, tzinfo=timezone.utc))

        assert batch.messages == []
        assert batch.cursor is None
        connection.uid.assert_called_once_with("SEARCH", None, "SINCE 30-Apr-2024")
        connection.logout.assert_called_once()

    async def test_fetch_limit_returns_oldest_and_flags_more(self, account):
        connection = make_connection(uids=b"3 1 2")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            batch = await ImapMailboxSource(max_messages=2).fetch(account, None)

        assert len(batch.messages) == 2
        assert batch.has_more is True
        assert batch.cursor == "7:2"
        fetched = [c.args[1] for c in connection.uid.call_args_list if c.args[0] == "FETCH"]
        assert fetched == ["1", "2"]

    async def test_resumes_after_stored_cursor(self, account):
        account.sync_cursor = "7:5"
        # Servers answer "UID 6:*" with the highest UID even when it is lower
        connection = make_connection(uids=b"5")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            batch = await ImapMailboxSource().fetch(account, datetime(2024, 5, 1, tzinfo=timezone.utc))

        connection.uid.assert_called_once_with("SEARCH", None, "UID 6:*")
        assert batch.messages == []
        assert batch.cursor is None

    async def test_stale_cursor_falls_back_to_date_search(self, account):
        account.sync_cursor = "6:5"
        connection = make_connection(uids=b"1")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            batch = await ImapMailboxSource().fetch(account, datetime(2024, 5, 1, tzinfo=timezone.utc))

        assert connection.uid.call_args_list[0].args == ("SEARCH", None, "SINCE 30-Apr-2024")
        assert batch.cursor == "7:1"

    async def test_login_failure_is_source_unavailable_and_logs_out(self, account):
        connection = make_connection()
        connection.login.side_effect = imaplib.IMAP4.error("AUTHENTICATIONFAILED")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            with pytest.raises(SourceUnavailable) as excinfo:
                await ImapMailboxSource().fetch(account, None)

        assert not isinstance(excinfo.value, SourceTimeout)
        connection.logout.assert_called_once()

    async def test_connection_refused(self, account):
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL",
                   side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(SourceUnavailable):
                await ImapMailboxSource().fetch(account, None)

    async def test_socket_timeout(self, account):
        connection = make_connection()
        connection.select.side_effect = socket.timeout("timed out")
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            with pytest.raises(SourceTimeout) as excinfo:
                await ImapMailboxSource().fetch(account, None)

        assert excinfo.value.error_code == "SOURCE_TIMEOUT"
        connection.logout.assert_called_once()

    async def test_unselectable_folder(self, account):
        connection = make_connection()
        connection.select.return_value = ("NO", [b"Mailbox does not exist"])
        with patch("src.integrations.mailbox.imap.imaplib.IMAP4_SSL", return_value=connection):
            with pytest.raises(SourceUnavailable):
                await ImapMailboxSource(folder="Leads").fetch(account, None)


@pytest.mark.asyncio
class TestFixtureMailboxSource:

    async def test_returns_registered_messages_every_time(self, account, make_raw_email):
        source = FixtureMailboxSource({"a1": [make_raw_email("m1")]})

        first = await source.fetch(account, None)
        second = await source.fetch(account, datetime.now(timezone.utc))

        assert [m.message_id for m in first.messages] == ["m1"]
        assert [m.message_id for m in second.messages] == ["m1"]
        assert first.has_more is False
        assert len(source.calls) == 2

    async def test_unknown_account_is_empty(self, account):
        assert (await FixtureMailboxSource().fetch(account, None)).messages == []

    async def test_failing_account(self, account):
        source = FixtureMailboxSource()
        source.fail_for("a1", "connection refused")

        with pytest.raises(SourceUnavailable):
            await source.fetch(account, None)
