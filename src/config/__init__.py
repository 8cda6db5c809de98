"""
Configuration package initialization.
"""

from .settings import EnvironmentType, PipelineSettings, get_settings

__all__ = [
    'EnvironmentType',
    'PipelineSettings',
    'get_settings'
]
