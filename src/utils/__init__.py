"""
Shared utilities package initialization.
"""
