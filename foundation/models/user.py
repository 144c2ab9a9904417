"""
User Model

FLOW OVERVIEW
- User: role-discriminated portal account (volunteer / scholar / sponsor).
- create_user(data): duplicate email/username pre-checks (409 with field),
  full-name composition, bcrypt hash, verification token.
- authenticate(identifier, password): email or username + password, active only.
- Profile updates: photos, info, role-specific details, password, socials,
  location, face data, archive.
- verify_email(token), create_password_reset_token(email), reset_password(token, pw).
- find_by_face_data(descriptor): linear scan over stored face descriptors.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, or_

from .database import db, transaction
from .utils import (
    generate_verification_token, generate_password_reset_token,
    placeholder_email, isoformat, apply_patch
)
from ..utils.errors import (
    AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError
)
from ..utils.validators import (
    validate_email, validate_username, validate_password_strength,
    build_full_name, parse_bool, parse_date, parse_float
)

logger = logging.getLogger(__name__)

USER_ROLES = ('volunteer', 'scholar', 'sponsor')

# camelCase request keys accepted alongside snake_case
USER_FIELD_ALIASES = {
    'firstName': 'first_name',
    'middleName': 'middle_name',
    'lastName': 'last_name',
    'nameExtension': 'extension',
    'dateOfBirth': 'date_of_birth',
    'profilePhoto': 'profile_photo',
    'coverPhoto': 'cover_photo',
    'knownAs': 'known_as',
    'guardianName': 'guardian_name',
    'guardianPhone': 'guardian_phone',
    'educationLevel': 'education_level',
    'parentsIncome': 'parents_income',
    'salaryRange': 'salary_range',
    'skillEvidence': 'skill_evidence',
    'documentPaths': 'document_paths',
    'faceDescriptors': 'face_descriptors',
    'faceLandmarks': 'face_landmarks',
    'facebookUrl': 'facebook_url',
    'twitterUrl': 'twitter_url',
    'instagramUrl': 'instagram_url',
}

COMMON_DETAIL_FIELDS = (
    'first_name', 'middle_name', 'last_name', 'extension', 'email', 'phone',
    'gender', 'date_of_birth', 'address'
)

ROLE_DETAIL_FIELDS = {
    'scholar': ('guardian_name', 'guardian_phone', 'education_level', 'school', 'parents_income'),
    'volunteer': ('skills', 'disability', 'skill_evidence'),
    'sponsor': ('salary_range',),
}


ADMIN_EDITABLE_FIELDS = (
    'name', 'first_name', 'middle_name', 'last_name', 'extension', 'email', 'username',
    'phone', 'gender', 'date_of_birth', 'address', 'role', 'status', 'is_verified',
    'guardian_name', 'guardian_phone', 'education_level', 'school', 'parents_income',
    'skills', 'disability', 'skill_evidence', 'salary_range', 'profile_photo'
)

MAX_STATUS_LENGTH = 20


def normalize_keys(data, aliases=USER_FIELD_ALIASES):
    """Map camelCase request keys onto column names."""
    return {aliases.get(key, key): value for key, value in (data or {}).items()}


def _check_status_length(status):
    if status and len(str(status)) > MAX_STATUS_LENGTH:
        raise ValidationError(f'Status value is too long (max {MAX_STATUS_LENGTH} characters)', field='status')


class User(db.Model):
    """Portal account for volunteers, scholars and sponsors"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100))
    middle_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    extension = db.Column(db.String(20))
    name = db.Column(db.String(255), nullable=False)
    gender = db.Column(db.String(20))
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone = db.Column(db.String(30))
    password_hash = db.Column(db.String(255), nullable=False)
    date_of_birth = db.Column(db.Date)
    role = db.Column(db.String(20), nullable=False, default='volunteer')
    status = db.Column(db.String(20), nullable=False, default='active')
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    verification_token = db.Column(db.String(255))
    reset_token = db.Column(db.String(255))
    reset_token_expires = db.Column(db.DateTime)

    profile_photo = db.Column(db.String(500))
    cover_photo = db.Column(db.String(500))
    intro = db.Column(db.Text)
    known_as = db.Column(db.String(255))
    facebook_url = db.Column(db.String(500))
    twitter_url = db.Column(db.String(500))
    instagram_url = db.Column(db.String(500))

    address = db.Column(db.Text)
    guardian_name = db.Column(db.String(255))
    guardian_phone = db.Column(db.String(30))
    education_level = db.Column(db.String(100))
    school = db.Column(db.String(255))
    parents_income = db.Column(db.String(100))
    skills = db.Column(db.JSON)
    disability = db.Column(db.JSON)
    skill_evidence = db.Column(db.String(500))
    document_paths = db.Column(db.JSON)
    salary_range = db.Column(db.String(100))

    face_descriptors = db.Column(db.JSON)
    face_landmarks = db.Column(db.JSON)
    has_face_verification = db.Column(db.Boolean, default=False, nullable=False)

    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    location_verified = db.Column(db.Boolean, default=False, nullable=False)
    location_remark = db.Column(db.Text)
    location_updated_at = db.Column(db.DateTime)

    has_submitted_report = db.Column(db.Boolean, default=False, nullable=False)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'

    def is_active(self):
        """Check if user account is active"""
        return self.status == 'active'

    def to_dict(self):
        """Public representation; hashes, tokens and face data are never included."""
        return {
            'id': self.id,
            'name': self.name,
            'first_name': self.first_name,
            'middle_name': self.middle_name,
            'last_name': self.last_name,
            'extension': self.extension,
            'gender': self.gender,
            'username': self.username,
            'email': self.email,
            'phone': self.phone,
            'date_of_birth': isoformat(self.date_of_birth),
            'role': self.role,
            'status': self.status,
            'is_verified': self.is_verified,
            'profile_photo': self.profile_photo,
            'cover_photo': self.cover_photo,
            'intro': self.intro,
            'known_as': self.known_as,
            'facebook_url': self.facebook_url,
            'twitter_url': self.twitter_url,
            'instagram_url': self.instagram_url,
            'address': self.address,
            'guardian_name': self.guardian_name,
            'guardian_phone': self.guardian_phone,
            'education_level': self.education_level,
            'school': self.school,
            'parents_income': self.parents_income,
            'skills': self.skills,
            'disability': self.disability,
            'skill_evidence': self.skill_evidence,
            'document_paths': self.document_paths,
            'salary_range': self.salary_range,
            'has_face_verification': self.has_face_verification,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'location_verified': self.location_verified,
            'location_remark': self.location_remark,
            'has_submitted_report': self.has_submitted_report,
            'last_login': isoformat(self.last_login),
            'created_at': isoformat(self.created_at),
        }

    def recompose_name(self):
        full_name = build_full_name(self.first_name, self.middle_name, self.last_name, self.extension)
        if full_name:
            self.name = full_name

    # Lookups

    @classmethod
    def get_or_404(cls, user_id, role=None, label='User'):
        user = db.session.get(cls, user_id)
        if not user or (role and user.role != role):
            raise NotFoundError(f'{label} not found')
        return user

    @classmethod
    def find_by_email_or_username(cls, identifier):
        if not identifier:
            return None
        identifier = identifier.strip()
        return cls.query.filter(
            or_(func.lower(cls.email) == identifier.lower(), cls.username == identifier)
        ).first()

    @classmethod
    def list_by_role(cls, role):
        return cls.query.filter_by(role=role).order_by(cls.created_at.desc()).all()

    @classmethod
    def email_taken(cls, email, exclude_id=None):
        query = cls.query.filter(func.lower(cls.email) == email.lower())
        if exclude_id:
            query = query.filter(cls.id != exclude_id)
        return db.session.query(query.exists()).scalar()

    @classmethod
    def username_taken(cls, username, exclude_id=None):
        query = cls.query.filter(cls.username == username)
        if exclude_id:
            query = query.filter(cls.id != exclude_id)
        return db.session.query(query.exists()).scalar()

    @classmethod
    def ensure_unique(cls, email=None, username=None, exclude_id=None):
        """Raise a field-specific 409 for an email or username already in use."""
        if email and cls.email_taken(email, exclude_id):
            raise ConflictError('Email already registered', field='email')
        if username and cls.username_taken(username, exclude_id):
            raise ConflictError('Username already taken', field='username')

    # Registration and authentication

    @classmethod
    def create_user(cls, data, require_strong_password=True):
        """
        Register a new portal account.

        Returns:
            The new User; its verification_token is set for the email link.
        """
        from ..utils.auth_utils import hash_password

        data = normalize_keys(data)
        username_check = validate_username(data.get('username'))
        if not username_check.is_valid:
            raise ValidationError(username_check.error_message, field='username')
        username = username_check.sanitized_value

        password = data.get('password') or ''
        if require_strong_password:
            password_check = validate_password_strength(password)
            if not password_check.is_valid:
                raise ValidationError(password_check.error_message, field='password')
        elif not password:
            raise ValidationError('Password is required', field='password')

        email = (data.get('email') or '').strip()
        if email:
            email_check = validate_email(email)
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            email = email_check.sanitized_value
        else:
            email = placeholder_email(username)

        role = (data.get('role') or 'volunteer').lower()
        if role not in USER_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}", field='role')

        cls.ensure_unique(email=email, username=username)

        name = build_full_name(
            data.get('first_name'), data.get('middle_name'), data.get('last_name'), data.get('extension')
        ) or (data.get('name') or '').strip() or username

        descriptors = data.get('face_descriptors')
        user = cls(
            first_name=data.get('first_name'),
            middle_name=data.get('middle_name'),
            last_name=data.get('last_name'),
            extension=data.get('extension'),
            name=name,
            gender=data.get('gender'),
            username=username,
            email=email,
            phone=data.get('phone'),
            password_hash=hash_password(password),
            date_of_birth=parse_date(data.get('date_of_birth')),
            role=role,
            status='active',
            address=data.get('address'),
            guardian_name=data.get('guardian_name'),
            guardian_phone=data.get('guardian_phone'),
            education_level=data.get('education_level'),
            school=data.get('school'),
            parents_income=data.get('parents_income'),
            skills=data.get('skills'),
            disability=data.get('disability'),
            skill_evidence=data.get('skill_evidence'),
            document_paths=data.get('document_paths'),
            salary_range=data.get('salary_range'),
            face_descriptors=descriptors or None,
            face_landmarks=data.get('face_landmarks'),
            has_face_verification=bool(descriptors),
            verification_token=generate_verification_token(),
        )
        db.session.add(user)
        db.session.commit()
        logger.info("Registered %s account %s", role, user.id)
        return user

    @classmethod
    def authenticate(cls, identifier, password):
        """Authenticate by email or username; updates last_login on success."""
        from ..utils.auth_utils import verify_password

        user = cls.find_by_email_or_username(identifier)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError('Invalid credentials')
        if not user.is_active():
            raise PermissionDeniedError('This account has been archived')
        user.update_last_login()
        return user

    def update_last_login(self):
        """Update the last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    @classmethod
    def verify_email(cls, token):
        """
        Mark the account owning `token` as verified.

        Returns:
            (user, already_verified) or (None, False) for an unknown token
        """
        user = cls.query.filter_by(verification_token=token).first()
        if not user:
            return None, False
        if user.is_verified:
            return user, True
        user.is_verified = True
        user.verification_token = None
        db.session.commit()
        return user, False

    @classmethod
    def create_password_reset_token(cls, email, expires_in=3600):
        user = cls.query.filter(func.lower(cls.email) == (email or '').strip().lower()).first()
        if not user:
            return None
        user.reset_token = generate_password_reset_token()
        user.reset_token_expires = datetime.utcnow() + timedelta(seconds=expires_in)
        db.session.commit()
        return user

    @classmethod
    def verify_reset_token(cls, token):
        if not token:
            return None
        user = cls.query.filter_by(reset_token=token).first()
        if not user or not user.reset_token_expires or user.reset_token_expires < datetime.utcnow():
            return None
        return user

    @classmethod
    def reset_password(cls, token, new_password):
        from ..utils.auth_utils import hash_password

        user = cls.verify_reset_token(token)
        if not user:
            raise ValidationError('Invalid or expired reset token')
        check = validate_password_strength(new_password)
        if not check.is_valid:
            raise ValidationError(check.error_message, field='password')
        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        db.session.commit()
        return user

    # Profile updates

    def update_photos(self, profile_photo=None, cover_photo=None):
        if profile_photo is None and cover_photo is None:
            raise ValidationError('No photos provided')
        if profile_photo is not None:
            self.profile_photo = profile_photo
        if cover_photo is not None:
            self.cover_photo = cover_photo
        db.session.commit()
        return self

    def update_info(self, data):
        data = normalize_keys(data)
        apply_patch(self, data, allowed=('intro', 'known_as'), nullable=('intro', 'known_as'))
        db.session.commit()
        return self

    def update_details(self, data):
        """Update common plus role-specific columns; the full name is always recomposed."""
        data = normalize_keys(data)
        allowed = COMMON_DETAIL_FIELDS + ROLE_DETAIL_FIELDS.get(self.role, ())

        email = data.get('email')
        if email:
            email_check = validate_email(email)
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            data['email'] = email_check.sanitized_value
            User.ensure_unique(email=data['email'], exclude_id=self.id)

        with transaction():
            apply_patch(self, data, allowed=allowed, coercers={'date_of_birth': parse_date})
            self.recompose_name()
        return self

    def update_password(self, current_password, new_password):
        from ..utils.auth_utils import hash_password, verify_password

        if not verify_password(current_password, self.password_hash):
            raise AuthenticationError('Current password is incorrect')
        check = validate_password_strength(new_password)
        if not check.is_valid:
            raise ValidationError(check.error_message, field='password')
        self.password_hash = hash_password(new_password)
        db.session.commit()
        return self

    def update_socials(self, data):
        data = normalize_keys(data)
        fields = ('facebook_url', 'twitter_url', 'instagram_url')
        apply_patch(self, data, allowed=fields, nullable=fields)
        db.session.commit()
        return self

    def update_location(self, latitude, longitude, address=None):
        """Store a new location; any earlier verification is reset."""
        latitude = parse_float(latitude)
        longitude = parse_float(longitude)
        if latitude is None or longitude is None:
            raise ValidationError('Latitude and longitude are required')
        if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
            raise ValidationError('Coordinates out of range')
        self.latitude = latitude
        self.longitude = longitude
        if address:
            self.address = address
        self.location_verified = False
        self.location_remark = None
        self.location_updated_at = datetime.utcnow()
        db.session.commit()
        return self

    def set_location_verification(self, verified, remark=None):
        self.location_verified = parse_bool(verified)
        self.location_remark = remark
        db.session.commit()
        return self

    def update_face_data(self, descriptors, landmarks=None):
        if not descriptors or not isinstance(descriptors, list):
            raise ValidationError('Face descriptors are required')
        if not isinstance(descriptors[0], list):
            descriptors = [descriptors]
        self.face_descriptors = descriptors
        self.face_landmarks = landmarks
        self.has_face_verification = True
        db.session.commit()
        return self

    def archive(self):
        self.status = 'inactive'
        db.session.commit()
        return self

    # Back-office management

    @classmethod
    def admin_create(cls, data, role):
        """
        Create a role-scoped account from the admin/staff console.

        Names are split from `name` when first/last are missing; the password
        only has to be present, not strong.
        """
        data = normalize_keys(data)
        _check_status_length(data.get('status'))
        if not data.get('username'):
            raise ValidationError('Username is required', field='username')
        name = (data.get('name') or '').strip()
        if not data.get('first_name') and not data.get('last_name') and name:
            parts = name.split()
            data['first_name'] = ' '.join(parts[:-1]) or parts[0]
            data['last_name'] = parts[-1] if len(parts) > 1 else None
        data['role'] = role

        user = cls.create_user(data, require_strong_password=False)
        user.status = data.get('status') or 'active'
        user.is_verified = parse_bool(data.get('is_verified'))
        db.session.commit()
        return user

    def admin_update(self, data):
        """Patch any admin-editable column; a non-empty password is re-hashed."""
        from ..utils.auth_utils import hash_password

        data = normalize_keys(data)
        _check_status_length(data.get('status'))
        if data.get('email'):
            email_check = validate_email(data['email'])
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            data['email'] = email_check.sanitized_value
        if data.get('role') and data['role'] not in USER_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}", field='role')
        User.ensure_unique(email=data.get('email'), username=data.get('username'), exclude_id=self.id)

        password = data.pop('password', None)
        with transaction():
            if password:
                self.password_hash = hash_password(password)
            if not password or any(key in ADMIN_EDITABLE_FIELDS for key in data):
                changed = apply_patch(self, data, allowed=ADMIN_EDITABLE_FIELDS,
                                      coercers={'date_of_birth': parse_date, 'is_verified': parse_bool})
                if 'name' not in changed and set(changed) & {'first_name', 'middle_name', 'last_name', 'extension'}:
                    self.recompose_name()
        return self

    @classmethod
    def find_by_face_data(cls, descriptor, threshold=0.6, partial_threshold=0.4):
        """
        Match a face descriptor against every enrolled account.

        Returns:
            FaceMatchResult from utils.face_match
        """
        from ..utils.face_match import match_face

        candidates = cls.query.filter(
            cls.has_face_verification.is_(True), cls.status == 'active'
        ).all()
        return match_face(
            descriptor,
            ((user, user.face_descriptors) for user in candidates),
            threshold=threshold,
            partial_threshold=partial_threshold,
        )
