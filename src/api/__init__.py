"""
Tadabbur FastAPI Application.

This module contains the REST API for the Tadabbur core:

- main: FastAPI application entry point and configuration
- routes/: API endpoint definitions organized by domain
- models: Pydantic request/response models
- dependencies: FastAPI dependency injection providers

API Structure:
- /health - Health and liveness checks
- /api/v1/feed - Viewer feed (all, mine, favorites)
- /api/v1/items - Likes and lifecycle transitions
- /api/v1/moderation - Review queue and approval stats
- /api/v1/users - Role and account status changes
- /api/v1/notifications - Member inbox

Example:
    from src.api.main import app

    # Run with: uvicorn src.api.main:app --reload
"""

from src.api.main import app

__all__ = ["app"]
