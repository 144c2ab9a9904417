"""
Database Configuration

FLOW OVERVIEW
- Provides the global SQLAlchemy instance `db` used across all models.
- Initialized in app factory (foundation/__init__.py) with app context.
- transaction(): unit of work for multi-step operations; commits on success,
  rolls back and re-raises on any error.
"""

from contextlib import contextmanager
from flask_sqlalchemy import SQLAlchemy

# Create SQLAlchemy instance
db = SQLAlchemy()


@contextmanager
def transaction():
    """Run the enclosed statements as one commit/rollback unit."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
