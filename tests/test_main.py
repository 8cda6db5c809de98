"""
Tests for the command line entry point.
"""

import json
from unittest.mock import patch

import pytest

import main
from src.config.settings import PipelineSettings


@pytest.fixture
def settings(tmp_path):
    return PipelineSettings(
        NOTIFICATION_WEBHOOK_URL="https://hooks.example.com/leads",
        DATABASE_URL=f"sqlite:///{tmp_path / 'cli.db'}",
        GROQ_API_KEY=None,
        _env_file=None
    )


class TestCommandLine:

    def test_parse_reply_arguments(self):
        args = main.parse_arguments(["reply", "email-1", "--owner", "owner-1"])

        assert args.command == "reply"
        assert args.email_id == "email-1"
        assert args.owner == "owner-1"

    def test_reply_requires_owner(self):
        with pytest.raises(SystemExit):
            main.parse_arguments(["reply", "email-1"])

    def test_init_db(self, settings, tmp_path, capsys):
        with patch("main.get_settings", return_value=settings):
            exit_code = main.main(["init-db"])

        assert exit_code == 0
        assert (tmp_path / "cli.db").exists()
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "success"

    def test_sync_without_accounts(self, settings, capsys):
        with patch("main.get_settings", return_value=settings):
            exit_code = main.main(["sync"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["data"] == {"accounts_processed": 0, "accounts": []}

    def test_classify_missing_email_exits_nonzero(self, settings, capsys):
        with patch("main.get_settings", return_value=settings):
            exit_code = main.main(["classify", "missing"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["error"]["error_code"] == "EMAIL_NOT_FOUND"

    def test_invalid_configuration(self, capsys):
        def broken_settings():
            return PipelineSettings(_env_file=None)

        with patch("main.get_settings", side_effect=broken_settings), \
                patch.dict("os.environ", {}, clear=True):
            exit_code = main.main(["sync"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["error"]["error_code"] == "CONFIGURATION_ERROR"

    def test_malformed_database_url(self, capsys):
        settings = PipelineSettings(
            NOTIFICATION_WEBHOOK_URL="https://hooks.example.com/leads",
            DATABASE_URL="not a url",
            _env_file=None
        )

        with patch("main.get_settings", return_value=settings):
            exit_code = main.main(["sync"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "error"
        assert output["error"]["error_code"] == "CONFIGURATION_ERROR"
