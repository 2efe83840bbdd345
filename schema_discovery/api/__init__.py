"""
FastAPI server module for the Schema Discovery Agent.

Provides the analysis, file browsing and health endpoints.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
