"""Concrete adapters for the interfaces in ``animebrowse.interfaces``.

- **storage** -- IKeyValueStore implementations (in-memory, SQLite).
- **transport** -- ITransport implementation on top of httpx.
"""
