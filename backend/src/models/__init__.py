"""
SQLAlchemy models for the scheduler.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.profile import Profile
from backend.src.models.event import Event
from backend.src.models.event_profile import EventProfile
from backend.src.models.event_audit_entry import EventAuditEntry

__all__ = [
    "Base",
    "Profile",
    "Event",
    "EventProfile",
    "EventAuditEntry",
]
