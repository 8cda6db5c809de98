"""
API Package

FastAPI trigger surface for the lead inbox pipeline.
"""
