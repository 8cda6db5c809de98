"""
Pipeline Error Taxonomy

Defines the exceptions raised across ingestion, classification,
notification and reply generation. Every error carries a machine-readable
code and a human-readable message so the service boundary can turn it
into a structured result without exposing internal detail.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all expected pipeline failures."""

    error_code = "PIPELINE_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class ConfigurationError(PipelineError):
    """A required configuration value is missing or invalid."""
    error_code = "CONFIGURATION_ERROR"


class SourceUnavailable(PipelineError):
    """Mail could not be fetched for one account (network or auth failure)."""
    error_code = "SOURCE_UNAVAILABLE"


class SourceTimeout(SourceUnavailable):
    """Mail fetch exceeded the configured timeout."""
    error_code = "SOURCE_TIMEOUT"


class DuplicateSkip(PipelineError):
    """The message is already stored for this account. Expected, not a failure."""
    error_code = "DUPLICATE_SKIP"

    def __init__(self, account_id: str, message_id: str):
        super().__init__(f"Email {message_id} already stored for account {account_id}")
        self.account_id = account_id
        self.message_id = message_id


class ClassificationUnrecognized(PipelineError):
    """The classification capability answered outside the category set."""
    error_code = "CLASSIFICATION_UNRECOGNIZED"

    def __init__(self, raw_response: str):
        super().__init__(f"Unrecognized classification response: {raw_response!r}")
        self.raw_response = raw_response


class CapabilityUnavailable(PipelineError):
    """The language model endpoint is unreachable, misconfigured or returned nothing."""
    error_code = "CAPABILITY_UNAVAILABLE"


class CapabilityTimeout(CapabilityUnavailable):
    """The language model call exceeded the configured timeout."""
    error_code = "CAPABILITY_TIMEOUT"


class Unauthorized(PipelineError):
    """The caller does not own the account the message belongs to."""
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class EmailNotFound(PipelineError):
    """No stored message exists with the given identifier."""
    error_code = "EMAIL_NOT_FOUND"

    def __init__(self, email_id: str):
        super().__init__(f"Email with ID {email_id} not found")
        self.email_id = email_id


class NotificationSinkFailure(PipelineError):
    """A notification sink failed. Logged only, never propagated past the dispatcher."""
    error_code = "NOTIFICATION_SINK_FAILURE"

    def __init__(self, sink: str, message: str):
        super().__init__(f"{sink} sink failed: {message}")
        self.sink = sink
