"""
Unit tests for suggested reply storage and product context retrieval.
"""

import pytest

from src.storage.email_repository import EmailRepository
from src.storage.reply_repository import ContextRepository, ReplyRepository


@pytest.mark.asyncio
class TestReplyRepository:

    async def test_insert_and_list(self, database, seed_account, make_raw_email):
        seed_account("a1")
        email = await EmailRepository(database).insert("a1", make_raw_email("m1"))
        repository = ReplyRepository(database)

        first = await repository.insert(email.id, "Thanks for reaching out!", 0.85)
        second = await repository.insert(email.id, "Happy to help.", 0.85)

        assert first.id != second.id
        assert first.created_at is not None
        replies = await repository.list_for_email(email.id)
        assert {reply.id for reply in replies} == {first.id, second.id}
        assert await repository.count_for_email(email.id) == 2

    async def test_list_for_unknown_email_is_empty(self, database):
        assert await ReplyRepository(database).list_for_email("missing") == []


@pytest.mark.asyncio
class TestContextRepository:

    async def test_storage_order_and_limit(self, database, seed_context):
        for index in range(7):
            seed_context("owner-1", "feature", f"fact {index}")
        seed_context("owner-2", "pricing", "other owner")

        facts = await ContextRepository(database).list_for_owner("owner-1", limit=5)

        assert [fact.content for fact in facts] == [f"fact {index}" for index in range(5)]
        assert all(fact.user_id == "owner-1" for fact in facts)

    async def test_owner_without_context(self, database):
        assert await ContextRepository(database).list_for_owner("nobody") == []
