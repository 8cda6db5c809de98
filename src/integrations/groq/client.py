from groq import Groq
from collections import deque
from typing import Dict, Optional
from datetime import datetime
import asyncio
import logging

from src.email_processing.base import TextCapability
from src.email_processing.errors import CapabilityTimeout, CapabilityUnavailable
from .constants import DEFAULT_MODEL, TASK_SETTINGS

logger = logging.getLogger(__name__)

METRICS_HISTORY_SIZE = 100


class EnhancedGroqClient(TextCapability):
    """Groq chat completion client with bounded calls, optional retry and in-process metrics."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 models: Optional[Dict[str, str]] = None,
                 timeout_seconds: float = 30.0,
                 max_retries: int = 1):
        """Initialize the client.

        Args:
            api_key: Groq API key; when missing every call fails with CapabilityUnavailable
            models: Model name per task type, falling back to DEFAULT_MODEL
            timeout_seconds: Upper bound for a single API call
            max_retries: Total attempts per request (1 means no retry)
        """
        self.api_key = api_key
        self.models = models or {}
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.client = Groq(api_key=api_key, max_retries=0) if api_key else None

        # Recent history only; totals live in 'performance'
        self.metrics = {
            'requests': deque(maxlen=METRICS_HISTORY_SIZE),
            'errors': deque(maxlen=METRICS_HISTORY_SIZE),
            'performance': {
                'avg_response_time': 0,
                'total_requests': 0,
                'total_errors': 0,
                'success_rate': 100
            }
        }

    def model_for(self, task_type: str) -> str:
        return self.models.get(task_type, DEFAULT_MODEL)

    async def complete(self, system_prompt: str, user_prompt: str, task_type: str) -> str:
        """Send one system + user prompt pair and return the raw response text."""
        if task_type not in TASK_SETTINGS:
            raise ValueError(f"Unknown task type: {task_type}")

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ]
        response = await self.process_with_retry(
            messages=messages,
            model=self.model_for(task_type),
            **TASK_SETTINGS[task_type]
        )

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise CapabilityUnavailable(f"Malformed completion response: {e}")
        return content or ""

    async def process_with_retry(self, messages, model: str = DEFAULT_MODEL, **kwargs):
        """Process a request, translating provider failures into pipeline errors.

        Args:
            messages: List of message dictionaries for the conversation
            model: Model name
            **kwargs: Additional parameters for the API call

        Returns:
            Provider completion response

        Raises:
            CapabilityUnavailable: On missing configuration or provider failure
            CapabilityTimeout: When the last attempt timed out
        """
        if self.client is None:
            raise CapabilityUnavailable("GROQ_API_KEY not configured")

        start_time = datetime.now()
        attempts = 0

        while True:
            attempts += 1
            try:
                params = {
                    'model': model,
                    'messages': messages,
                    **kwargs
                }
                response = await asyncio.wait_for(
                    asyncio.to_thread(self.client.chat.completions.create, **params),
                    timeout=self.timeout_seconds
                )
                self.record_success(start_time)
                return response

            except asyncio.TimeoutError:
                self.record_error("timeout")
                if attempts >= self.max_retries:
                    logger.error(f"Groq request timed out after {self.timeout_seconds}s")
                    raise CapabilityTimeout(
                        f"Language model call timed out after {self.timeout_seconds} seconds"
                    )

            except Exception as e:
                self.record_error(str(e))
                if attempts >= self.max_retries:
                    logger.error(f"Groq request failed after {attempts} attempt(s): {e}")
                    raise CapabilityUnavailable(f"AI API error: {e}")

            # Exponential backoff
            wait_time = 2 ** attempts
            logger.warning(f"Attempt {attempts} failed. Waiting {wait_time} seconds before retry...")
            await asyncio.sleep(wait_time)

    def record_success(self, start_time: datetime):
        """Record successful request metrics."""
        duration = (datetime.now() - start_time).total_seconds()
        self.metrics['requests'].append({
            'timestamp': datetime.now().isoformat(),
            'duration': duration,
            'status': 'success'
        })

        performance = self.metrics['performance']
        total_reqs = performance['total_requests'] + 1
        performance.update({
            'avg_response_time': (performance['avg_response_time'] * (total_reqs - 1) + duration) / total_reqs,
            'total_requests': total_reqs
        })
        self._update_success_rate()

    def record_error(self, error_message: str):
        """Record error metrics."""
        self.metrics['errors'].append({
            'timestamp': datetime.now().isoformat(),
            'error': error_message
        })
        self.metrics['performance']['total_errors'] += 1
        self._update_success_rate()

    def _update_success_rate(self):
        performance = self.metrics['performance']
        total_calls = performance['total_requests'] + performance['total_errors']
        performance['success_rate'] = performance['total_requests'] / total_calls * 100 if total_calls else 100

    def get_performance_metrics(self) -> Dict:
        """Get current performance metrics."""
        return self.metrics['performance']
