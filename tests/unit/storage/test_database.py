"""
Unit tests for database configuration and connection management.

These tests validate database initialization, session handling,
connection pooling, and proper error management.
"""

import pytest
from unittest.mock import patch, MagicMock

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from src.storage.database import Database, create_db_engine
from src.storage.models import EmailAccount


class TestDatabase:
    """Test suite for database configuration and connection management."""

    def test_in_memory_engine_uses_static_pool(self):
        engine = create_db_engine("sqlite:///:memory:")

        assert "StaticPool" in str(engine.pool.__class__)
        engine.dispose()

    def test_file_engine_uses_queue_pool(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'inbox.db'}")

        assert "QueuePool" in str(engine.pool.__class__)
        engine.dispose()

    def test_init_db_creates_tables(self, database):
        tables = set(inspect(database.engine).get_table_names())

        assert {"email_accounts", "emails", "suggested_replies", "product_context"} <= tables

    def test_init_db_error_handling(self):
        """Test error handling during database initialization."""
        db = Database("sqlite:///:memory:")

        with patch("src.storage.database.Base") as mock_base:
            mock_base.metadata.create_all.side_effect = Exception("DB error")
            with pytest.raises(RuntimeError) as excinfo:
                db.init_db()

        assert "Failed to initialize database: DB error" in str(excinfo.value)
        db.dispose()

    def test_session_commits_and_closes(self):
        """Test normal flow of the session context manager."""
        db = Database("sqlite:///:memory:")
        mock_session = MagicMock(spec=Session)
        db.SessionLocal = MagicMock(return_value=mock_session)

        with db.session() as session:
            assert session is mock_session

        mock_session.commit.assert_called_once()
        mock_session.rollback.assert_not_called()
        mock_session.close.assert_called_once()

    def test_session_rolls_back_on_exception(self):
        """Test session handling when an exception occurs."""
        db = Database("sqlite:///:memory:")
        mock_session = MagicMock(spec=Session)
        db.SessionLocal = MagicMock(return_value=mock_session)

        with pytest.raises(ValueError):
            with db.session():
                raise ValueError("Test exception")

        mock_session.commit.assert_not_called()
        mock_session.rollback.assert_called_once()
        mock_session.close.assert_called_once()

    def test_sessions_share_in_memory_data(self, database):
        with database.session() as session:
            session.add(EmailAccount(
                id="acc-1", user_id="u1", email="a@example.com",
                imap_host="imap.example.com", imap_user="a@example.com", imap_password="pw"
            ))

        with database.session() as session:
            row = session.query(EmailAccount).filter(EmailAccount.id == "acc-1").first()
            assert row is not None
            assert row.imap_port == 993
            assert row.is_active is True
            assert row.last_sync_at is None
