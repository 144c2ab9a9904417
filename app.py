#!/usr/bin/env python3
"""
KM Foundation Portal entry point.

This module selects configuration based on environment variables and creates
the Flask application via `create_app`. When executed directly, it runs the
development server. In production, a WSGI server should import `app` from this
module.

Environment variables of interest:
- FLASK_ENV: if set to 'testing', uses an in-memory database and testing flags.
- DATABASE_URL, SECRET_KEY, JWT_SECRET_KEY, mail settings: consumed by `create_app`.
- PORT: development server port (default 5000).
"""

import logging
import os

from foundation import create_app

logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))

if os.getenv('FLASK_ENV') == 'testing':
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'test-jwt-secret-key'),
        'MAIL_SUPPRESS_SEND': True,
        'MAIL_DEFAULT_SENDER': os.getenv('MAIL_DEFAULT_SENDER', 'test@example.com'),
        'BCRYPT_LOG_ROUNDS': 4
    }
    app = create_app(test_config)
else:
    app = create_app()

logging.getLogger(__name__).info("Starting KM Foundation Portal server")

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
