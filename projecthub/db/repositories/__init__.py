"""
Per-domain repository modules for database access.

Each module exposes plain functions taking a ``Session`` first; writes commit
and refresh before returning the ORM instance.
"""
