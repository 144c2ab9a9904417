"""
Staff Model

FLOW OVERVIEW
- StaffUser: back-office account stored in `staff_users`.
- authenticate(email, password): staff portal login; inactive accounts get 403.
- create_staff / update_staff / delete_staff / bulk_delete: admin management.
- update_profile(data): self-service; requires the current password.
- dashboard(): volunteer count plus the five most recent events.
"""

import logging
from datetime import datetime

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat, apply_patch
from ..utils.errors import (
    AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError
)
from ..utils.validators import validate_email, validate_password_strength

logger = logging.getLogger(__name__)

STAFF_FIELDS = ('name', 'email', 'phone', 'department', 'profile_photo', 'status')


class StaffUser(db.Model):
    """Staff account"""
    __tablename__ = 'staff_users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30))
    department = db.Column(db.String(100))
    profile_photo = db.Column(db.String(500))
    status = db.Column(db.String(20), default='active', nullable=False)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<StaffUser {self.email}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'department': self.department,
            'profile_photo': self.profile_photo,
            'status': self.status,
            'role': 'staff',
            'last_login': isoformat(self.last_login),
            'created_at': isoformat(self.created_at),
        }

    @classmethod
    def get_or_404(cls, staff_id):
        staff = db.session.get(cls, staff_id)
        if not staff:
            raise NotFoundError('Staff member not found')
        return staff

    @classmethod
    def find_by_email(cls, email):
        return cls.query.filter(func.lower(cls.email) == (email or '').strip().lower()).first()

    @classmethod
    def authenticate(cls, email, password):
        """Password login for the staff portal; only active accounts get through."""
        from ..utils.auth_utils import verify_password

        if not email or not password:
            raise ValidationError('Email and password are required')
        staff = cls.find_by_email(email)
        if not staff or not verify_password(password, staff.password_hash):
            raise AuthenticationError('Invalid credentials')
        if staff.status != 'active':
            raise PermissionDeniedError('This staff account is not active')
        staff.last_login = datetime.utcnow()
        db.session.commit()
        return staff

    @classmethod
    def _ensure_email_free(cls, email, exclude_id=None):
        query = cls.query.filter(func.lower(cls.email) == email.lower())
        if exclude_id:
            query = query.filter(cls.id != exclude_id)
        if query.first():
            raise ConflictError('Email already registered', field='email')

    @classmethod
    def create_staff(cls, data):
        from ..utils.auth_utils import hash_password

        name = (data.get('name') or '').strip()
        password = data.get('password') or ''
        email_check = validate_email(data.get('email'))
        if not name or not password:
            raise ValidationError('Name, email and password are required')
        if not email_check.is_valid:
            raise ValidationError(email_check.error_message, field='email')
        cls._ensure_email_free(email_check.sanitized_value)

        staff = cls(
            name=name,
            email=email_check.sanitized_value,
            password_hash=hash_password(password),
            phone=data.get('phone'),
            department=data.get('department'),
            status=data.get('status') or 'active',
        )
        db.session.add(staff)
        db.session.commit()
        logger.info("Created staff account %s", staff.id)
        return staff

    def update_staff(self, data):
        from ..utils.auth_utils import hash_password

        data = dict(data or {})
        if data.get('email'):
            email_check = validate_email(data['email'])
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            data['email'] = email_check.sanitized_value
            StaffUser._ensure_email_free(data['email'], exclude_id=self.id)

        password = data.pop('password', None)
        with transaction():
            if password:
                self.password_hash = hash_password(password)
            if not password or any(key in STAFF_FIELDS for key in data):
                apply_patch(self, data, allowed=STAFF_FIELDS)
        return self

    def update_profile(self, data):
        """Self-service profile edit; the current password is always required."""
        from ..utils.auth_utils import hash_password, verify_password

        if not verify_password(data.get('currentPassword') or data.get('current_password'), self.password_hash):
            raise AuthenticationError('Current password is incorrect')

        new_password = data.get('newPassword') or data.get('new_password')
        if new_password:
            check = validate_password_strength(new_password)
            if not check.is_valid:
                raise ValidationError(check.error_message, field='password')

        updates = {key: data.get(key) for key in ('name', 'email', 'phone', 'profile_photo') if data.get(key)}
        if 'email' in updates:
            email_check = validate_email(updates['email'])
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            updates['email'] = email_check.sanitized_value
            StaffUser._ensure_email_free(updates['email'], exclude_id=self.id)

        with transaction():
            for key, value in updates.items():
                setattr(self, key, value)
            if new_password:
                self.password_hash = hash_password(new_password)
        return self

    @classmethod
    def delete_staff(cls, staff_id):
        from .cascade import purge_account_rows

        staff = cls.get_or_404(staff_id)
        with transaction():
            purge_account_rows('staff', [staff.id])
            db.session.delete(staff)
        return staff_id

    @classmethod
    def bulk_delete(cls, ids):
        from .cascade import purge_account_rows

        if not ids:
            raise ValidationError('No valid IDs provided for deletion')
        staff_members = cls.query.filter(cls.id.in_(ids)).all()
        if not staff_members:
            raise NotFoundError('No staff members found with the provided IDs')
        deleted = [staff.id for staff in staff_members]
        with transaction():
            purge_account_rows('staff', deleted)
            for staff in staff_members:
                db.session.delete(staff)
        return deleted

    @staticmethod
    def dashboard():
        from .user import User
        from .event import Event

        volunteer_count = User.query.filter_by(role='volunteer').count()
        recent_events = Event.query.order_by(Event.created_at.desc(), Event.id.desc()).limit(5).all()
        return {
            'volunteer_count': volunteer_count,
            'recent_events': [event.to_dict() for event in recent_events],
        }
