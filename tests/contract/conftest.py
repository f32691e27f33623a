"""Shared fixtures for contract tests.

Common fixtures live in tests/conftest.py:
- client (real app), analytics_db, insert_event, admin_key
"""
