"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • FLASK_ENV picks the .env file (config.env / config.prod.env); testing loads none
    and relies on the process environment or the test_config dict.
- Properties read the environment on access, with development-safe defaults.
- Domain knobs: token lifetimes, face-match thresholds, notification page size.
"""

import os
from dotenv import load_dotenv

ENV_FILES = {
    'development': 'config.env',
    'production': 'config.prod.env',
}


def _env_flag(name, default):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Base configuration class"""

    def __init__(self):
        env = os.getenv('FLASK_ENV', 'development')
        if env != 'testing':
            load_dotenv(ENV_FILES.get(env, ENV_FILES['development']))

    @property
    def SECRET_KEY(self):
        """Flask session signing key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        return os.getenv('DATABASE_URL', 'sqlite:///foundation.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def MAIL_SERVER(self):
        """SMTP host for outgoing notices"""
        return os.getenv('MAIL_SERVER', 'smtp.gmail.com')

    @property
    def MAIL_PORT(self):
        return int(os.getenv('MAIL_PORT', 587))

    @property
    def MAIL_USE_TLS(self):
        return _env_flag('MAIL_USE_TLS', 'true')

    @property
    def MAIL_USE_SSL(self):
        return _env_flag('MAIL_USE_SSL', 'false')

    @property
    def MAIL_USERNAME(self):
        return os.getenv('MAIL_USERNAME')

    @property
    def MAIL_PASSWORD(self):
        return os.getenv('MAIL_PASSWORD')

    @property
    def MAIL_DEFAULT_SENDER(self):
        return os.getenv('MAIL_DEFAULT_SENDER', 'no-reply@kmfoundation.org')

    @property
    def JWT_SECRET_KEY(self):
        """HS256 signing key for access and MPIN tokens"""
        return os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')

    @property
    def JWT_ACCESS_TOKEN_EXPIRES(self):
        """Access token lifetime in seconds (one day)"""
        return int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 86400))

    @property
    def MPIN_PENDING_TOKEN_EXPIRES(self):
        """Lifetime of the pre-MPIN admin token in seconds"""
        return int(os.getenv('MPIN_PENDING_TOKEN_EXPIRES', 300))

    @property
    def PASSWORD_RESET_TOKEN_EXPIRES(self):
        """Password reset token lifetime in seconds"""
        return int(os.getenv('PASSWORD_RESET_TOKEN_EXPIRES', 3600))

    @property
    def BCRYPT_LOG_ROUNDS(self):
        return int(os.getenv('BCRYPT_LOG_ROUNDS', 12))

    @property
    def FRONTEND_URL(self):
        """Base URL used in links sent by email"""
        return os.getenv('FRONTEND_URL', 'http://localhost:5173')

    @property
    def FACE_MATCH_THRESHOLD(self):
        """Similarity above which a face login is accepted"""
        return float(os.getenv('FACE_MATCH_THRESHOLD', 0.6))

    @property
    def FACE_PARTIAL_THRESHOLD(self):
        """Similarity above which a rescan is suggested"""
        return float(os.getenv('FACE_PARTIAL_THRESHOLD', 0.4))

    @property
    def NOTIFICATION_PAGE_SIZE(self):
        return int(os.getenv('NOTIFICATION_PAGE_SIZE', 20))

    @property
    def ADMIN_EMAIL(self):
        """Inbox that receives distribution receipt reports"""
        return os.getenv('ADMIN_EMAIL')
