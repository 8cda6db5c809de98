"""
Source package initialization.
"""

from . import config
from . import email_processing
from . import integrations
from . import storage
from . import utils

__all__ = [
    'config',
    'email_processing',
    'integrations',
    'storage',
    'utils'
]
