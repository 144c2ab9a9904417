"""
Utilities Package

This package contains utility functions and helper modules.
"""

from . import errors
from . import auth_utils
from . import validators
from . import error_handlers

__all__ = [
    'errors',
    'auth_utils',
    'validators',
    'error_handlers'
]
