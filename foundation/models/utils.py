"""
Model Utilities

This module contains utility functions for the models package:
token generators, the shared patch helper used by every update operation,
and small serialization helpers.
"""

import secrets
from ..utils.errors import ValidationError


def generate_verification_token():
    """Generate a secure email verification token"""
    return secrets.token_hex(32)


def generate_password_reset_token():
    """Generate a secure password reset token"""
    return secrets.token_hex(32)


def placeholder_email(username):
    """Stand-in address for accounts registered without an email"""
    return f'{username}@placeholder.com'


def isoformat(value):
    return value.isoformat() if value else None


def apply_patch(instance, updates, allowed, aliases=None, coercers=None, nullable=()):
    """
    Copy whitelisted keys from `updates` onto a model instance.

    Args:
        instance: SQLAlchemy model to mutate
        updates: incoming mapping (request body)
        allowed: column names that may be written
        aliases: request key -> column name (e.g. 'firstName' -> 'first_name')
        coercers: column name -> callable converting the raw value
        nullable: columns that accept an explicit None; other None values are ignored

    Returns:
        List of column names that were written

    Raises:
        ValidationError when no writable key is present
    """
    aliases = aliases or {}
    coercers = coercers or {}
    changed = []
    for key, value in (updates or {}).items():
        column = aliases.get(key, key)
        if column == 'id' or column not in allowed:
            continue
        if value is None and column not in nullable:
            continue
        if value is not None and column in coercers:
            value = coercers[column](value)
        setattr(instance, column, value)
        if column not in changed:
            changed.append(column)

    if not changed:
        raise ValidationError('No valid fields to update')
    return changed
