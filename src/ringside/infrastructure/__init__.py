"""Infrastructure layer: SQLite roster store, repositories, transactions."""
