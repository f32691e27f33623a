"""Shared fixtures for integration tests.

Common fixtures are defined in tests/conftest.py (client, analytics_db,
insert_event, admin_key).
"""
