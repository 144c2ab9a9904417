"""
Admin Authentication Routes

FLOW OVERVIEW
- /api/admin/auth/login [POST]
  • Email + password against admin_users.
  • MPIN enabled → {mpin_required: true, token} with a short-lived MPIN-scope token.
  • Otherwise → full admin access token.
- /api/admin/auth/verify-mpin [POST]
  • {token, mpin}: MPIN-scope token must be valid (401), admin must exist (404),
    MPIN must be enabled (400) and match (401) → {verified: true, token}.
"""

from flask import Blueprint, current_app, jsonify, request

from ..models import AdminUser
from ..utils.auth_utils import MPIN_SCOPE, generate_jwt_token, verify_jwt_token
from ..utils.errors import AuthenticationError, ValidationError

admin_auth_bp = Blueprint('admin_auth', __name__)


def _access_token(admin):
    return generate_jwt_token(admin.id, account_type='admin', role='admin')


@admin_auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    admin = AdminUser.authenticate(data.get('email'), data.get('password'))

    if admin.mpin_enabled and admin.mpin_hash:
        pending = generate_jwt_token(
            admin.id, account_type='admin', role='admin', scope=MPIN_SCOPE,
            expires_in=current_app.config.get('MPIN_PENDING_TOKEN_EXPIRES', 300)
        )
        return jsonify({'mpin_required': True, 'token': pending}), 200

    admin.mark_logged_in()
    current_app.logger.info("Admin %s logged in", admin.id)
    return jsonify({
        'mpin_required': False,
        'token': _access_token(admin),
        'admin': admin.to_dict()
    }), 200


@admin_auth_bp.route('/verify-mpin', methods=['POST'])
def verify_mpin():
    data = request.get_json(silent=True) or {}
    token = data.get('token')
    mpin = data.get('mpin')
    if not token or not mpin:
        raise ValidationError('Token and MPIN are required')

    payload = verify_jwt_token(token, scope=MPIN_SCOPE)
    if not payload:
        raise AuthenticationError('Invalid or expired token')

    admin = AdminUser.get_or_404(payload['user_id'])
    admin.verify_mpin(mpin)
    admin.mark_logged_in()
    current_app.logger.info("Admin %s passed MPIN verification", admin.id)
    return jsonify({
        'verified': True,
        'token': _access_token(admin),
        'admin': admin.to_dict()
    }), 200
