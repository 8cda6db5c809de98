from .client import EnhancedGroqClient

__all__ = [
    'EnhancedGroqClient'
]
