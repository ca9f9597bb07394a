"""SQLAlchemy Declarative Base — shared base class for ORM models.

Invariants:
    - All models inherit from Base
    - Base.metadata is what the store bootstraps with create_all

Design Decisions:
    - Separate file for Base: models and the database manager import it without cycles
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all wiki ORM models."""
    pass
