"""
Tadabbur - devotional content platform core.

This package contains the core modules for the Tadabbur system:
- authority: role hierarchy, promotion rules and RoleService
- lifecycle: content moderation state machine and ModerationService
- engagement: viewer feed reconciliation and optimistic likes
- services: content store protocol, in-memory and HTTP stores, notifications
- api: FastAPI application and endpoints
- config: Pydantic settings and configuration
- models: Domain entities and read models
"""

__version__ = "0.1.0"
