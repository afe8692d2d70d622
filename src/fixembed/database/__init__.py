"""
Database package for FixEmbed.

Public API:
    - Database: owns the single aiosqlite connection and schema setup
    - DurableWriter: retry-on-busy replication of in-memory state to SQLite
"""
