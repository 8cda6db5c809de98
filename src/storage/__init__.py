"""
Storage package initialization.
"""
