"""Database Metadata — SQLAlchemy declarative base.

Invariants:
    - Single metadata object for the whole schema (one table: pages)
"""
