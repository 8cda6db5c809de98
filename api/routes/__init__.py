"""
API Routes Package
"""

from api.routes import pipeline

__all__ = ["pipeline"]
