"""
KM Foundation Portal Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (test or env-based), init extensions (DB, Mail).
  • Register blueprints: main (/), auth (/api/auth), admin auth (/api/admin/auth),
    admin (/api/admin), staff (/api/staff), events, scholars, scholar donations,
    general donations, inventory, report cards, forum, notifications and content
    (all under /api).
  • Record per-request Prometheus metrics.
  • Register global error handlers.
"""

import time

from flask import Flask, g, request

from .config import Config
from .models import db
from .routes import (
    main_bp, auth_bp, admin_auth_bp, admin_bp, staff_bp, events_bp, scholars_bp,
    donations_bp, monetary_donations_bp, inventory_bp, report_cards_bp, forum_bp,
    notifications_bp, content_bp
)
from .utils.mail_utils import mail
from .utils.prom_metrics import observe_request

BLUEPRINT_PREFIXES = (
    (main_bp, None),
    (auth_bp, '/api/auth'),
    (admin_auth_bp, '/api/admin/auth'),
    (admin_bp, '/api/admin'),
    (staff_bp, '/api/staff'),
    (events_bp, '/api/events'),
    (scholars_bp, '/api/scholars'),
    (donations_bp, '/api/scholar-donations'),
    (monetary_donations_bp, '/api/donations'),
    (inventory_bp, '/api/inventory'),
    (report_cards_bp, '/api/report-cards'),
    (forum_bp, '/api/forum'),
    (notifications_bp, '/api/notifications'),
    (content_bp, '/api/content'),
)


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__)

    # Configuration
    if test_config:
        app.config.update(test_config)
    else:
        app.config.from_object(Config())

    # Initialize extensions
    db.init_app(app)
    mail.init_app(app)

    # Register blueprints
    for blueprint, prefix in BLUEPRINT_PREFIXES:
        app.register_blueprint(blueprint, url_prefix=prefix)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def record_request(response):
        started = g.pop('request_started', None)
        if started is not None:
            endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
            observe_request(endpoint, response.status_code, time.perf_counter() - started)
        return response

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    if app.config.get('AUTO_CREATE_TABLES', True):
        with app.app_context():
            db.create_all()

    return app
