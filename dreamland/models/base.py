"""Shared SQLAlchemy declarative base for all models."""

import uuid

from sqlalchemy.orm import declarative_base

# Single Base for all models so foreign keys resolve across model modules
Base = declarative_base()


def new_id() -> str:
    """Generate a string primary key."""
    return str(uuid.uuid4())
