"""Backend adapter layer — Interchangeable connectors for the series dataset.

Built-in adapters:
  - local: SQLite database file on the local disk
  - turso: Turso / libSQL over the HTTP pipeline protocol
  - sqlitecloud: SQLite Cloud over the Weblite SQL endpoint

Implement ``BackendAdapter`` to connect another store.
"""
