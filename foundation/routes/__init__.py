"""
Routes Package

This package contains all Flask route blueprints.
"""

from .main import main_bp
from .auth import auth_bp
from .admin_auth import admin_auth_bp
from .admin import admin_bp
from .staff import staff_bp
from .events import events_bp
from .scholars import scholars_bp
from .donations import donations_bp
from .monetary_donations import monetary_donations_bp
from .inventory import inventory_bp
from .report_cards import report_cards_bp
from .forum import forum_bp
from .notifications import notifications_bp
from .content import content_bp

__all__ = [
    'main_bp',
    'auth_bp',
    'admin_auth_bp',
    'admin_bp',
    'staff_bp',
    'events_bp',
    'scholars_bp',
    'donations_bp',
    'monetary_donations_bp',
    'inventory_bp',
    'report_cards_bp',
    'forum_bp',
    'notifications_bp',
    'content_bp'
]
