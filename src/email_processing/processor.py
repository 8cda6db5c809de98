"""
Email Sync Processor

Drives one full ingestion cycle across all active accounts: fetch new
mail, skip what is already stored, persist the rest, classify each new
message (notifying on qualifying categories) and advance the account
checkpoint. When the source reports a truncated batch only its resume
cursor is stored and the checkpoint stays put until the backlog drains.

Accounts are processed one at a time and failures are isolated at the
account boundary; classification failures are isolated at the message
boundary and leave the message unclassified.
"""

import asyncio
import logging
import weakref

from src.email_processing.classification.classifier import EmailRouter
from src.email_processing.errors import DuplicateSkip, PipelineError
from src.email_processing.models import Account, AccountSyncReport, SyncReport, SyncState
from src.integrations.mailbox.base import MailboxSource
from src.storage.account_repository import AccountRepository
from src.storage.email_repository import EmailRepository
from src.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class EmailSyncProcessor:
    """
    Top-level sync loop.

    Same-account syncs are serialized by a per-account lock so two
    overlapping invocations in one process can never race on the
    existence check; distinct accounts share no mutable state.
    """

    def __init__(self,
                 mailbox: MailboxSource,
                 accounts: AccountRepository,
                 emails: EmailRepository,
                 router: EmailRouter):
        """
        Initialize the processor with its collaborators.

        Args:
            mailbox: Source of raw messages per account
            accounts: Account store (active list, checkpoint updates)
            emails: Deduplicating message store
            router: Classification + notification stage
        """
        self.mailbox = mailbox
        self.accounts = accounts
        self.emails = emails
        self.router = router
        # Entries disappear once no sync holds or waits on the lock
        self._account_locks = weakref.WeakValueDictionary()

    def _lock_for(self, account_id: str) -> asyncio.Lock:
        lock = self._account_locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._account_locks[account_id] = lock
        return lock

    async def sync_all(self) -> SyncReport:
        """
        Sync every active account sequentially.

        Returns:
            Report with one entry per active account

        Raises:
            Exception: Only if the active account list itself cannot be loaded
        """
        active_accounts = await self.accounts.list_active()
        logger.info(f"Starting mailbox sync for {len(active_accounts)} accounts")

        report = SyncReport()
        for account in active_accounts:
            report.accounts.append(await self.sync_account(account))

        failed = sum(1 for account_report in report.accounts if not account_report.succeeded)
        logger.info(f"Synced {report.accounts_processed} accounts ({failed} failed)")
        return report

    async def sync_account(self, account: Account) -> AccountSyncReport:
        """
        Run one sync cycle for a single account.

        Never raises: any failure is logged and recorded as the ERRORED state,
        and the account checkpoint is left untouched.
        """
        async with self._lock_for(account.id):
            report = AccountSyncReport(account_id=account.id)
            try:
                logger.info(f"Syncing account: {account.email}")
                await self._run_cycle(account, report)
                report.state = SyncState.IDLE
            except PipelineError as e:
                report.state = SyncState.ERRORED
                report.error = e.message
                logger.error(f"Error syncing account {account.email}: {e.message}")
            except Exception as e:
                report.state = SyncState.ERRORED
                report.error = str(e)
                logger.error(f"Error syncing account {account.email}: {e}", exc_info=True)
            return report

    async def _run_cycle(self, account: Account, report: AccountSyncReport) -> None:
        report.state = SyncState.FETCHING
        batch = await self.mailbox.fetch(account, account.last_sync_at)
        report.fetched = len(batch.messages)
        report.has_more = batch.has_more

        for raw in batch.messages:
            report.state = SyncState.DEDUPING
            if await self.emails.exists(account.id, raw.message_id):
                report.duplicates += 1
                logger.debug(f"Email {raw.message_id} already stored, skipping")
                continue

            report.state = SyncState.PERSISTING
            try:
                stored = await self.emails.insert(account.id, raw)
            except DuplicateSkip:
                report.duplicates += 1
                continue
            report.inserted += 1

            report.state = SyncState.CLASSIFYING
            try:
                await self.router.process_email(stored)
                report.classified += 1
            except PipelineError as e:
                report.classification_failures += 1
                logger.error(f"Classification failed for email {stored.id}: {e.message}")
            except Exception as e:
                report.classification_failures += 1
                logger.error(f"Classification failed for email {stored.id}: {e}", exc_info=True)

        # A truncated batch keeps the old checkpoint so the remainder is still covered
        synced_at = None if batch.has_more else utc_now()
        await self.accounts.update_last_sync(account.id, synced_at, cursor=batch.cursor)
