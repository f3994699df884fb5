"""
Global pytest configuration for chatrelay.

This file is reserved for truly cross-module fixtures.
Gateway fixtures live in tests/gateway/conftest.py.
"""

# Currently empty - add global fixtures here when needed
