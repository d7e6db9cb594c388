"""
Per-domain repository modules for database access.

`workhaven.db.crud` is a thin facade over these modules; new callers may import
the repositories directly.
"""
