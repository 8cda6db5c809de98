from abc import ABC, abstractmethod


class TextCapability(ABC):
    """
    Contract for the external text-generation capability.

    Classification and reply generation both send a fixed system
    instruction plus a user prompt and receive free text back. Concrete
    implementations wrap a specific provider and translate its failures
    into the pipeline error taxonomy.
    """

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str, task_type: str) -> str:
        """
        Run one completion request.

        Args:
            system_prompt: Fixed instruction framing the task
            user_prompt: Task-specific prompt
            task_type: Task key selecting model parameters
                (e.g. "email_classification", "reply_generation")

        Returns:
            Raw response text as returned by the provider

        Raises:
            CapabilityUnavailable: If the endpoint is unreachable or misconfigured
            CapabilityTimeout: If the call exceeds the configured timeout
        """
        raise NotImplementedError("Must implement complete")
