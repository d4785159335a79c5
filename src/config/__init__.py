"""
Configuration Management.

Centralized configuration using Pydantic Settings.

Configuration sources (in order of precedence):
1. Environment variables (TADABBUR_ prefix)
2. .env file
3. Default values

Example:
    from src.config import get_settings

    settings = get_settings()
    timeout = settings.like_lookup_timeout_seconds
"""

from src.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
