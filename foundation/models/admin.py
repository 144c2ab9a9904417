"""
Admin Model

FLOW OVERVIEW
- AdminUser: administrator account stored in `admin_users`.
- authenticate(email, password): password step of the admin login.
- MPIN: a secondary 4-digit PIN (bcrypt hashed) checked after the password
  when mpin_enabled is set. set_mpin / toggle_mpin / verify_mpin manage it.
- update_profile(data): own name/email/photo.
"""

import logging
from datetime import datetime

from sqlalchemy import func

from .database import db
from .utils import isoformat, apply_patch
from ..utils.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..utils.validators import parse_bool, validate_email, validate_mpin

logger = logging.getLogger(__name__)


class AdminUser(db.Model):
    """Administrator account"""
    __tablename__ = 'admin_users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    profile_photo = db.Column(db.String(500))
    mpin_hash = db.Column(db.String(255))
    mpin_enabled = db.Column(db.Boolean, default=False, nullable=False)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<AdminUser {self.email}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'profile_photo': self.profile_photo,
            'role': 'admin',
            'mpin_enabled': self.mpin_enabled,
            'has_mpin': bool(self.mpin_hash),
            'last_login': isoformat(self.last_login),
            'created_at': isoformat(self.created_at),
        }

    @classmethod
    def get_or_404(cls, admin_id):
        admin = db.session.get(cls, admin_id)
        if not admin:
            raise NotFoundError('Admin not found')
        return admin

    @classmethod
    def authenticate(cls, email, password):
        from ..utils.auth_utils import verify_password

        if not email or not password:
            raise ValidationError('Email and password are required')
        admin = cls.query.filter(func.lower(cls.email) == email.strip().lower()).first()
        if not admin or not verify_password(password, admin.password_hash):
            raise AuthenticationError('Invalid credentials')
        return admin

    def mark_logged_in(self):
        self.last_login = datetime.utcnow()
        db.session.commit()

    def verify_mpin(self, mpin):
        """Raise unless MPIN login is enabled and `mpin` matches."""
        from ..utils.auth_utils import verify_password

        if not self.mpin_enabled or not self.mpin_hash:
            raise ValidationError('MPIN is not enabled for this account')
        if not verify_password(str(mpin or ''), self.mpin_hash):
            raise AuthenticationError('Invalid MPIN')
        return True

    def set_mpin(self, mpin):
        from ..utils.auth_utils import hash_password

        check = validate_mpin(mpin)
        if not check.is_valid:
            raise ValidationError(check.error_message, field='mpin')
        self.mpin_hash = hash_password(check.sanitized_value)
        self.mpin_enabled = True
        db.session.commit()
        logger.info("MPIN set for admin %s", self.id)
        return self

    def toggle_mpin(self, enabled, password=None):
        """Enable or disable MPIN login; disabling requires the account password."""
        from ..utils.auth_utils import verify_password

        enabled = parse_bool(enabled)
        if enabled and not self.mpin_hash:
            raise ValidationError('Set an MPIN before enabling it')
        if not enabled and not verify_password(password, self.password_hash):
            raise AuthenticationError('Password is incorrect')
        self.mpin_enabled = enabled
        db.session.commit()
        return self

    def update_profile(self, data):
        data = dict(data or {})
        if data.get('email'):
            email_check = validate_email(data['email'])
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            data['email'] = email_check.sanitized_value
            taken = AdminUser.query.filter(
                func.lower(AdminUser.email) == data['email'], AdminUser.id != self.id
            ).first()
            if taken:
                raise ConflictError('Email already registered', field='email')
        apply_patch(self, data, allowed=('name', 'email', 'profile_photo'),
                    aliases={'profilePhoto': 'profile_photo'})
        db.session.commit()
        return self
