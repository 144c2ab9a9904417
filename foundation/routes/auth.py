"""
Authentication Routes

FLOW OVERVIEW
- /api/auth/register [POST]
  • Validate + create portal user → send verification email → 201 with token.
- /api/auth/login [POST]
  • Email or username + password → JWT access token.
- /api/auth/login/face [POST]
  • Face descriptor → best match over enrolled users → token, or 401 with
    a rescan hint when the match was partial.
- /api/auth/logout [POST]
  • Stateless; the client drops its token.
- /api/auth/verify-email/<token> [GET]
  • Mark the account verified (reports when it already was).
- /api/auth/forgot-password [POST], /api/auth/reset-password [POST]
  • One-hour reset token by email, then a new password.
- /api/auth/user [GET] and /api/auth/user/* [PUT]
  • Auth gate; the caller's own profile: photos, info, details, password,
    socials, location, archive, face enrollment.
- /api/auth/users/role/<role> [GET]
  • Auth gate; accounts with one role.
- /api/auth/check-username, /api/auth/check-email [GET]
  • Availability checks for the registration form.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..models import User
from ..models.user import USER_ROLES
from ..utils.auth_utils import generate_jwt_token, login_required
from ..utils.errors import NotFoundError, ValidationError
from ..utils.mail_utils import send_password_reset_email, send_verification_email

auth_bp = Blueprint('auth', __name__)


def _current_user():
    account = g.current_account
    if account['account_type'] != 'user':
        raise NotFoundError('User not found')
    return User.get_or_404(account['id'])


def _token_for(user):
    return generate_jwt_token(user.id, account_type='user', role=user.role)


@auth_bp.route('/register', methods=['POST'])
def register():
    """Portal account registration"""
    data = request.get_json(silent=True) or {}
    user = User.create_user(data)
    email_sent = send_verification_email(user)
    current_app.logger.info("Registered user %s (email sent: %s)", user.id, email_sent)
    return jsonify({
        'message': 'Registration successful! Please check your email to verify your account.',
        'user': user.to_dict(),
        'token': _token_for(user),
        'email_sent': email_sent
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    identifier = (data.get('email') or data.get('username') or data.get('identifier') or '').strip()
    password = data.get('password') or ''
    if not identifier or not password:
        raise ValidationError('Email/username and password are required')

    user = User.authenticate(identifier, password)
    return jsonify({
        'message': 'Login successful',
        'token': _token_for(user),
        'user': user.to_dict()
    }), 200


@auth_bp.route('/login/face', methods=['POST'])
def login_face():
    data = request.get_json(silent=True) or {}
    descriptor = data.get('descriptor') or data.get('faceDescriptor')
    if not descriptor:
        raise ValidationError('Face descriptor is required')

    result = User.find_by_face_data(
        descriptor,
        threshold=current_app.config.get('FACE_MATCH_THRESHOLD', 0.6),
        partial_threshold=current_app.config.get('FACE_PARTIAL_THRESHOLD', 0.4),
    )
    if not result.authenticated:
        return jsonify({
            'authenticated': False,
            'needs_rescan': result.needs_rescan,
            'similarity': round(result.similarity, 4),
            'error': result.message
        }), 401

    user = result.owner
    user.update_last_login()
    return jsonify({
        'authenticated': True,
        'similarity': round(result.similarity, 4),
        'message': result.message,
        'token': _token_for(user),
        'user': user.to_dict()
    }), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    return jsonify({'message': 'Logged out successfully'}), 200


@auth_bp.route('/verify-email/<token>')
def verify_email(token):
    user, already_verified = User.verify_email(token)
    if not user:
        raise ValidationError('Invalid or expired verification token')
    if already_verified:
        return jsonify({'message': 'Email already verified', 'already_verified': True}), 200
    return jsonify({'message': 'Email verified successfully', 'already_verified': False}), 200


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    if not email:
        raise ValidationError('Email is required', field='email')

    user = User.create_password_reset_token(
        email, expires_in=current_app.config.get('PASSWORD_RESET_TOKEN_EXPIRES', 3600)
    )
    if user:
        send_password_reset_email(user)
    # Same answer whether or not the address is registered
    return jsonify({'message': 'If an account exists for that email, a reset link has been sent.'}), 200


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}
    password = data.get('password') or data.get('newPassword')
    User.reset_password(data.get('token'), password)
    return jsonify({'message': 'Password has been reset successfully'}), 200


@auth_bp.route('/user')
@login_required
def get_current_user():
    return jsonify(_current_user().to_dict()), 200


@auth_bp.route('/user/photos', methods=['PUT'])
@login_required
def update_photos():
    data = request.get_json(silent=True) or {}
    user = _current_user().update_photos(
        profile_photo=data.get('profilePhoto', data.get('profile_photo')),
        cover_photo=data.get('coverPhoto', data.get('cover_photo')),
    )
    return jsonify(user.to_dict()), 200


@auth_bp.route('/user/info', methods=['PUT'])
@login_required
def update_info():
    user = _current_user().update_info(request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 200


@auth_bp.route('/user/details', methods=['PUT'])
@login_required
def update_details():
    user = _current_user().update_details(request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 200


@auth_bp.route('/user/password', methods=['PUT'])
@login_required
def update_password():
    data = request.get_json(silent=True) or {}
    _current_user().update_password(
        data.get('currentPassword') or data.get('current_password'),
        data.get('newPassword') or data.get('new_password'),
    )
    return jsonify({'message': 'Password updated successfully'}), 200


@auth_bp.route('/user/socials', methods=['PUT'])
@login_required
def update_socials():
    user = _current_user().update_socials(request.get_json(silent=True) or {})
    return jsonify(user.to_dict()), 200


@auth_bp.route('/user/location', methods=['PUT'])
@login_required
def update_location():
    data = request.get_json(silent=True) or {}
    user = _current_user().update_location(data.get('latitude'), data.get('longitude'), data.get('address'))
    return jsonify(user.to_dict()), 200


@auth_bp.route('/user/archive', methods=['PUT'])
@login_required
def archive_account():
    user = _current_user().archive()
    current_app.logger.info("User %s archived their account", user.id)
    return jsonify({'message': 'Account archived', 'user': user.to_dict()}), 200


@auth_bp.route('/user/face', methods=['PUT'])
@login_required
def update_face():
    data = request.get_json(silent=True) or {}
    descriptors = data.get('faceDescriptors') or data.get('descriptors')
    user = _current_user().update_face_data(descriptors, data.get('faceLandmarks') or data.get('landmarks'))
    return jsonify({'message': 'Face data updated', 'has_face_verification': user.has_face_verification}), 200


@auth_bp.route('/users/role/<role>')
@login_required
def users_by_role(role):
    if role not in USER_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(USER_ROLES)}")
    return jsonify([user.to_dict() for user in User.list_by_role(role)]), 200


@auth_bp.route('/check-username')
def check_username():
    username = (request.args.get('username') or '').strip()
    if not username:
        raise ValidationError('Username is required', field='username')
    return jsonify({'available': not User.username_taken(username)}), 200


@auth_bp.route('/check-email')
def check_email():
    email = (request.args.get('email') or '').strip()
    if not email:
        raise ValidationError('Email is required', field='email')
    return jsonify({'available': not User.email_taken(email)}), 200
