"""
Unit tests for the Groq text capability.

The Groq SDK client is replaced by a mock; no network access is needed.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.email_processing.errors import CapabilityTimeout, CapabilityUnavailable
from src.integrations.groq.client import EnhancedGroqClient
from src.integrations.groq.constants import DEFAULT_MODEL, TASK_SETTINGS


def completion(text):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


@pytest.mark.asyncio
class TestEnhancedGroqClient:
    """Test suite for EnhancedGroqClient."""

    @pytest.fixture
    def client(self):
        with patch("src.integrations.groq.client.Groq") as mock_groq:
            client = EnhancedGroqClient(
                api_key="gsk_test",
                models={"reply_generation": "reply-model"},
                timeout_seconds=0.2
            )
            mock_groq.assert_called_once_with(api_key="gsk_test", max_retries=0)
        return client

    async def test_complete_returns_text(self, client):
        client.client.chat.completions.create.return_value = completion("interested")

        text = await client.complete("system", "user", "email_classification")

        assert text == "interested"
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == DEFAULT_MODEL
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"}
        ]
        assert kwargs["temperature"] == TASK_SETTINGS["email_classification"]["temperature"]
        assert client.get_performance_metrics()["total_requests"] == 1

    async def test_task_specific_model(self, client):
        client.client.chat.completions.create.return_value = completion("Hi there")

        await client.complete("system", "user", "reply_generation")

        assert client.client.chat.completions.create.call_args.kwargs["model"] == "reply-model"

    async def test_missing_api_key(self):
        client = EnhancedGroqClient(api_key=None)

        with pytest.raises(CapabilityUnavailable) as excinfo:
            await client.complete("system", "user", "email_classification")

        assert "GROQ_API_KEY" in excinfo.value.message

    async def test_provider_error_mapped(self, client):
        client.client.chat.completions.create.side_effect = RuntimeError("502 Bad Gateway")

        with pytest.raises(CapabilityUnavailable) as excinfo:
            await client.complete("system", "user", "email_classification")

        assert excinfo.value.error_code == "CAPABILITY_UNAVAILABLE"
        assert client.client.chat.completions.create.call_count == 1
        assert len(client.metrics["errors"]) == 1

    async def test_timeout_is_distinct_error(self, client):
        def slow_call(**kwargs):
            time.sleep(0.5)
            return completion("interested")
        client.client.chat.completions.create.side_effect = slow_call

        with pytest.raises(CapabilityTimeout) as excinfo:
            await client.complete("system", "user", "email_classification")

        assert excinfo.value.error_code == "CAPABILITY_TIMEOUT"

    async def test_unknown_task_type(self, client):
        with pytest.raises(ValueError):
            await client.complete("system", "user", "summarize")

    async def test_none_content_becomes_empty_string(self, client):
        client.client.chat.completions.create.return_value = completion(None)

        assert await client.complete("system", "user", "reply_generation") == ""

    async def test_retry_when_enabled(self, client):
        client.max_retries = 2
        client.client.chat.completions.create.side_effect = [RuntimeError("flaky"), completion("spam")]

        with patch("src.integrations.groq.client.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            text = await client.complete("system", "user", "email_classification")

        assert text == "spam"
        assert client.client.chat.completions.create.call_count == 2
        mock_sleep.assert_awaited_once_with(2)
        assert client.get_performance_metrics()["success_rate"] == 50

    async def test_metric_history_is_bounded(self):
        with patch("src.integrations.groq.client.METRICS_HISTORY_SIZE", 3):
            client = EnhancedGroqClient(api_key=None)
        client.client = MagicMock()
        client.client.chat.completions.create.return_value = completion("spam")

        for _ in range(5):
            await client.complete("system", "user", "email_classification")

        assert len(client.metrics["requests"]) == 3
        assert client.get_performance_metrics()["total_requests"] == 5
        assert client.get_performance_metrics()["success_rate"] == 100
