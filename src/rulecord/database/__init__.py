"""
Database package for Rulecord.

Public API:
    - db_connection: Global ConnectionManager instance
    - ConnectionManager: Single-connection aiosqlite wrapper
    - SchemaManager: Table and index creation
"""
