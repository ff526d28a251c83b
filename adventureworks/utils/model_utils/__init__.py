"""
Utility helpers that encapsulate common CRUD operations for SQLAlchemy models.
The generic controller and the CLI commands go through these so that every
write is logged the same way.
"""

from . import base  # re-export to make base helpers discoverable.
