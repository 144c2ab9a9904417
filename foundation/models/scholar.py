"""
Scholar Model

FLOW OVERVIEW
- Scholar: sponsorship profile. Linked profiles extend a `users` row with
  role 'scholar' (user_id set); standalone profiles carry their own names.
- list_scholars(): verified scholar users joined with their profile.
- get_scholar(user_id): one scholar user with profile.
- create_standalone(data): profile without an account.
- update_scholar(id, data): for a scholar user, update user columns then upsert
  the profile; otherwise patch a standalone profile by its own id.
- delete_scholar(id) / bulk_delete(ids): scholar users are removed with all
  dependent rows; standalone profiles are removed directly.
- assign_user / unassign_user: link a profile to an account (one profile per account).
- approve(user_id): mark a registered scholar as verified.
"""

import logging
from datetime import datetime

from .database import db, transaction
from .utils import isoformat, apply_patch
from .notification import Notification
from ..utils.errors import NotFoundError, ValidationError
from ..utils.validators import parse_date, parse_float

logger = logging.getLogger(__name__)

SCHOLAR_FIELD_ALIASES = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'dateOfBirth': 'date_of_birth',
    'gradeLevel': 'grade_level',
    'guardianName': 'guardian_name',
    'guardianPhone': 'guardian_phone',
    'favoriteSubject': 'favorite_subject',
    'favoriteActivity': 'favorite_activity',
    'favoriteColor': 'favorite_color',
    'otherDetails': 'other_details',
    'imageUrl': 'image_url',
    'isActive': 'is_active',
    'currentAmount': 'current_amount',
    'amountNeeded': 'amount_needed',
}

PROFILE_FIELDS = (
    'favorite_subject', 'favorite_activity', 'favorite_color', 'other_details',
    'image_url', 'status', 'current_amount', 'amount_needed', 'is_active'
)

STANDALONE_FIELDS = PROFILE_FIELDS + (
    'first_name', 'last_name', 'address', 'date_of_birth', 'grade_level', 'school',
    'guardian_name', 'guardian_phone', 'gender'
)

# Request key -> users column for user-linked scholars
USER_COLUMN_MAP = {
    'first_name': 'first_name',
    'last_name': 'last_name',
    'gender': 'gender',
    'date_of_birth': 'date_of_birth',
    'address': 'address',
    'guardian_name': 'guardian_name',
    'guardian_phone': 'guardian_phone',
    'grade_level': 'education_level',
    'school': 'school',
}

SCHOLAR_COERCERS = {
    'date_of_birth': parse_date,
    'current_amount': lambda v: parse_float(v, 0.0),
    'amount_needed': lambda v: parse_float(v, 0.0),
}


def _normalize(data):
    return {SCHOLAR_FIELD_ALIASES.get(k, k): v for k, v in (data or {}).items()}


class Scholar(db.Model):
    """Scholar sponsorship profile"""
    __tablename__ = 'scholars'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    address = db.Column(db.Text)
    date_of_birth = db.Column(db.Date)
    grade_level = db.Column(db.String(50))
    school = db.Column(db.String(255))
    guardian_name = db.Column(db.String(255))
    guardian_phone = db.Column(db.String(30))
    gender = db.Column(db.String(20))
    favorite_subject = db.Column(db.String(100))
    favorite_activity = db.Column(db.String(100))
    favorite_color = db.Column(db.String(50))
    other_details = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)
    current_amount = db.Column(db.Float, default=0.0, nullable=False)
    amount_needed = db.Column(db.Float, default=0.0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Scholar {self.id} user={self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'address': self.address,
            'date_of_birth': isoformat(self.date_of_birth),
            'grade_level': self.grade_level,
            'school': self.school,
            'guardian_name': self.guardian_name,
            'guardian_phone': self.guardian_phone,
            'gender': self.gender,
            'favorite_subject': self.favorite_subject,
            'favorite_activity': self.favorite_activity,
            'favorite_color': self.favorite_color,
            'other_details': self.other_details,
            'image_url': self.image_url,
            'is_active': self.is_active,
            'status': self.status,
            'current_amount': self.current_amount,
            'amount_needed': self.amount_needed,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    @staticmethod
    def combined_dict(user, profile):
        """Scholar user merged with its profile; `id` is the user id."""
        profile = profile.to_dict() if profile else {}
        return {
            'id': user.id,
            'scholar_id': profile.get('id'),
            'first_name': user.first_name,
            'last_name': user.last_name,
            'name': user.name,
            'email': user.email,
            'gender': user.gender,
            'guardian_name': user.guardian_name,
            'guardian_phone': user.guardian_phone,
            'address': user.address,
            'date_of_birth': isoformat(user.date_of_birth),
            'education_level': user.education_level,
            'school': user.school,
            'profile_photo': user.profile_photo,
            'is_verified': user.is_verified,
            'document_paths': user.document_paths,
            'user_status': user.status,
            'favorite_subject': profile.get('favorite_subject'),
            'favorite_activity': profile.get('favorite_activity'),
            'favorite_color': profile.get('favorite_color'),
            'other_details': profile.get('other_details'),
            'image_url': profile.get('image_url'),
            'is_active': profile.get('is_active'),
            'scholar_status': profile.get('status'),
            'current_amount': profile.get('current_amount', 0.0),
            'amount_needed': profile.get('amount_needed', 0.0),
            'created_at': isoformat(user.created_at),
        }

    @classmethod
    def list_scholars(cls):
        from .user import User

        rows = (db.session.query(User, cls)
                .outerjoin(cls, cls.user_id == User.id)
                .filter(User.role == 'scholar', User.is_verified.is_(True))
                .order_by(User.created_at.desc(), User.id.desc())
                .all())
        return [cls.combined_dict(user, profile) for user, profile in rows]

    @classmethod
    def get_scholar(cls, user_id):
        from .user import User

        user = User.get_or_404(user_id, role='scholar', label='Scholar')
        profile = cls.query.filter_by(user_id=user.id).first()
        return cls.combined_dict(user, profile)

    @classmethod
    def create_standalone(cls, data):
        data = _normalize(data)
        if not data.get('first_name') or not data.get('last_name'):
            raise ValidationError('First name and last name are required')
        scholar = cls(
            first_name=data['first_name'],
            last_name=data['last_name'],
            address=data.get('address'),
            date_of_birth=parse_date(data.get('date_of_birth')),
            grade_level=data.get('grade_level'),
            school=data.get('school'),
            guardian_name=data.get('guardian_name'),
            guardian_phone=data.get('guardian_phone'),
            gender=data.get('gender'),
            favorite_subject=data.get('favorite_subject'),
            favorite_activity=data.get('favorite_activity'),
            favorite_color=data.get('favorite_color'),
            other_details=data.get('other_details'),
            image_url=data.get('image_url'),
            status=data.get('status') or 'active',
            current_amount=parse_float(data.get('current_amount'), 0.0),
            amount_needed=parse_float(data.get('amount_needed'), 0.0),
        )
        db.session.add(scholar)
        db.session.commit()
        return scholar

    @classmethod
    def update_scholar(cls, scholar_id, data):
        """
        Update a scholar by user id, or a standalone profile by profile id.

        Returns:
            The merged scholar dict (user-linked) or the profile dict (standalone)
        """
        from .user import User

        data = _normalize(data)
        if data.get('status') and len(str(data['status'])) > 20:
            raise ValidationError('Status value is too long (max 20 characters)', field='status')

        user = db.session.get(User, scholar_id)
        if user and user.role == 'scholar':
            with transaction():
                user_updates = {USER_COLUMN_MAP[k]: v for k, v in data.items()
                                if k in USER_COLUMN_MAP and v not in (None, '')}
                for column, value in user_updates.items():
                    setattr(user, column, parse_date(value) if column == 'date_of_birth' else value)
                if user_updates:
                    user.recompose_name()

                profile = cls.query.filter_by(user_id=user.id).first()
                if profile is None:
                    profile = cls(
                        user_id=user.id,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        gender=user.gender,
                        address=user.address,
                        date_of_birth=user.date_of_birth,
                        grade_level=user.education_level,
                        school=user.school,
                        guardian_name=user.guardian_name,
                        guardian_phone=user.guardian_phone,
                        status='active',
                        current_amount=0.0,
                        amount_needed=0.0,
                    )
                    db.session.add(profile)
                profile_updates = {k: v for k, v in data.items()
                                   if k in PROFILE_FIELDS and v not in (None, '')}
                if not user_updates and not profile_updates and profile.id is not None:
                    raise ValidationError('No valid fields to update')
                if profile_updates:
                    apply_patch(profile, profile_updates, allowed=PROFILE_FIELDS,
                                coercers=SCHOLAR_COERCERS)
            return cls.combined_dict(user, profile)

        profile = db.session.get(cls, scholar_id)
        if not profile:
            raise NotFoundError('Scholar not found')
        apply_patch(profile, data, allowed=STANDALONE_FIELDS, coercers=SCHOLAR_COERCERS)
        db.session.commit()
        return profile.to_dict()

    @classmethod
    def delete_scholar(cls, scholar_id):
        from .user import User
        from .cascade import delete_users

        user = db.session.get(User, scholar_id)
        if user and user.role == 'scholar':
            delete_users([user.id], role='scholar', label='Scholar')
            return scholar_id

        profile = db.session.get(cls, scholar_id)
        if not profile:
            raise NotFoundError('Scholar not found')
        db.session.delete(profile)
        db.session.commit()
        return scholar_id

    @classmethod
    def bulk_delete(cls, ids):
        from .user import User
        from .cascade import delete_users

        if not ids:
            raise ValidationError('No valid IDs provided for deletion')
        user_ids = [u.id for u in User.query.filter(User.id.in_(ids), User.role == 'scholar')]
        profile_ids = [i for i in ids if i not in user_ids]
        profiles = cls.query.filter(cls.id.in_(profile_ids)).all() if profile_ids else []
        if not user_ids and not profiles:
            raise NotFoundError('No scholars found with the provided IDs')

        deleted = []
        if user_ids:
            deleted.extend(delete_users(user_ids, role='scholar', label='Scholar'))
        if profiles:
            with transaction():
                for profile in profiles:
                    deleted.append(profile.id)
                    db.session.delete(profile)
        return deleted

    @classmethod
    def assign_user(cls, scholar_id, user_id):
        """Link profile `scholar_id` to account `user_id`, detaching any previous profile."""
        from .user import User

        profile = db.session.get(cls, scholar_id)
        if not profile:
            raise NotFoundError('Scholar not found')
        User.get_or_404(user_id)
        with transaction():
            previous = cls.query.filter(cls.user_id == user_id, cls.id != profile.id).all()
            for other in previous:
                other.user_id = None
            db.session.flush()
            profile.user_id = user_id
        return profile

    @classmethod
    def unassign_user(cls, scholar_id):
        profile = db.session.get(cls, scholar_id)
        if not profile:
            raise NotFoundError('Scholar not found')
        profile.user_id = None
        db.session.commit()
        return profile

    @classmethod
    def approve(cls, user_id, actor=None):
        from .user import User

        user = User.get_or_404(user_id, role='scholar', label='Scholar')
        with transaction():
            user.is_verified = True
            Notification.create(
                user.id, 'scholar_approved',
                'Your scholar application has been approved.', related_id=user.id, actor=actor
            )
        return user
