"""Data stores for persistence.

Stores handle:
- PostgreSQL (SQLite in tests): engine, sessions, storage error translation

No business/aggregation logic in stores - that belongs in services.
"""
