"""
Email processing package initialization.

Only the shared models and errors are re-exported here; pipeline stages
are imported from their modules so integrations can depend on the models
without pulling in the whole pipeline.
"""

from .models import EmailCategory, RawEmail, StoredEmail, SuggestedReply
from .errors import PipelineError

__all__ = [
    'EmailCategory',
    'RawEmail',
    'StoredEmail',
    'SuggestedReply',
    'PipelineError'
]
