"""
SQLAlchemy Base Model

Declarative base for the read-only mappings of Bear's Core Data tables.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base class for all SQLAlchemy ORM models."""

    pass
