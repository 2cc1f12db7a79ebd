"""
SQLite persistence layer.

- **db_connection.py**: Single long-lived aiosqlite connection with WAL pragmas
  and serialized write transactions.
- **kv_store.py**: String key-value table used by the record caches and the
  per-player moderation state.
"""
