"""
Tadabbur Test Suite.

This package contains all tests for the Tadabbur core:

- unit/: Role authority, lifecycle transitions, engagement reducer and engine,
  content stores, notifications, settings and circuit breaker
- integration/: API endpoint tests against the in-memory store
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
Run only unit tests: pytest tests/unit
"""
