"""
Authentication Utilities

FLOW OVERVIEW
- hash_password / verify_password: bcrypt hashing, also used for admin MPINs.
- generate_jwt_token(account_id, account_type, role, ...): HS256 access token.
- verify_jwt_token(token): decoded payload or None when expired/invalid.
- login_required / roles_required(*roles): decorators reading
  `Authorization: Bearer <token>` and exposing the caller as `g.current_account`
  ({'id', 'account_type', 'role'}).
- load_current_account(): resolve g.current_account to its model row.
- current_actor(): the caller as a notification actor.
- ensure_self_or_privileged(user_id): owner-or-back-office gate.
"""

import logging
from datetime import datetime, timedelta
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, jsonify, request

logger = logging.getLogger(__name__)

ACCESS_SCOPE = 'access'
MPIN_SCOPE = 'mpin'


def hash_password(password):
    """Hash a password using bcrypt"""
    rounds = current_app.config.get('BCRYPT_LOG_ROUNDS', 12)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Password hash with unexpected format encountered")
        return False


def generate_jwt_token(account_id, account_type='user', role=None, expires_in=None, scope=ACCESS_SCOPE):
    """Generate a JWT token for account authentication"""
    if expires_in is None:
        expires_in = current_app.config.get('JWT_ACCESS_TOKEN_EXPIRES', 86400)
    now = datetime.utcnow()
    payload = {
        'user_id': account_id,
        'account_type': account_type,
        'role': role or account_type,
        'scope': scope,
        'exp': now + timedelta(seconds=expires_in),
        'iat': now
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm='HS256')


def verify_jwt_token(token, scope=ACCESS_SCOPE):
    """Verify and decode a JWT token"""
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get('scope', ACCESS_SCOPE) != scope:
        return None
    return payload


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


def login_required(f):
    """Decorator to require a valid access token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        payload = verify_jwt_token(token) if token else None
        if not payload:
            return jsonify({'error': 'Unauthorized. Please log in.'}), 401
        g.current_account = {
            'id': payload['user_id'],
            'account_type': payload.get('account_type', 'user'),
            'role': payload.get('role')
        }
        return f(*args, **kwargs)
    return decorated_function


def roles_required(*roles):
    """Decorator to require a valid access token whose role is in `roles`"""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if g.current_account['role'] not in roles:
                return jsonify({'error': 'You do not have permission to perform this action'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def is_privileged(account=None):
    """True for admin and staff callers"""
    account = account or g.get('current_account')
    return bool(account) and account['account_type'] in ('admin', 'staff')


def load_current_account():
    """Return the model row behind g.current_account, or None."""
    from ..models import db, User, StaffUser, AdminUser

    account = g.get('current_account')
    if not account:
        return None
    model = {'admin': AdminUser, 'staff': StaffUser}.get(account['account_type'], User)
    return db.session.get(model, account["id"])


def current_actor():
    """Notification actor dict (id, type, name, avatar) for the caller."""
    account = load_current_account()
    if account is None:
        return None
    return {
        'id': account.id,
        'type': g.current_account['account_type'],
        'name': account.name,
        'avatar': account.profile_photo,
    }


def ensure_self_or_privileged(user_id):
    """Allow admin/staff, or a portal user acting on their own records."""
    from .errors import PermissionDeniedError

    account = g.current_account
    if is_privileged(account):
        return
    if account['account_type'] == 'user' and account['id'] == user_id:
        return
    raise PermissionDeniedError('You do not have permission to perform this action')
