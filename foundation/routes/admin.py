"""
Admin Routes

FLOW OVERVIEW
- /api/admin/users [GET], /api/admin/users/<id> [PUT, DELETE]
  /api/admin/users/<id>/location-verification [PUT]
  • Admin/staff; all portal accounts, edit name/email/role/status, cascade delete.
- /api/admin/staff[/<id>|/bulk] [GET, POST, PUT, DELETE]
  • Admin only; staff account management.
- /api/admin/<volunteers|scholars|sponsors>[/<id>] [GET, POST, PUT, DELETE]
  • Admin/staff; role-scoped account management with cascade deletes.
- /api/admin/<group>/bulk [DELETE] and /api/admin/<group>/bulk-delete [POST]
  • Ids coerced; none valid → 400; none found → 404.
- /api/admin/scholars/<id>/approve [PUT]
  • Admin/staff; mark a registered scholar verified and notify them.
- /api/admin/profile [GET, PUT], /api/admin/mpin-status [GET],
  /api/admin/toggle-mpin [POST], /api/admin/set-mpin [POST]
  • Admin only; own profile and MPIN settings.
- /api/admin/*-count [GET]
  • Admin/staff; dashboard counters (new accounts over the last 30 days).
"""

from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request

from ..models import AdminUser, Event, Notification, Scholar, StaffUser, User, transaction
from ..models.cascade import delete_users
from ..utils.auth_utils import current_actor, roles_required
from ..utils.errors import ValidationError
from ..utils.validators import parse_bool, parse_id_list

admin_bp = Blueprint('admin', __name__)

# URL group → (users.role, label used in messages)
ROLE_GROUPS = {
    'volunteers': ('volunteer', 'Volunteer'),
    'scholars': ('scholar', 'Scholar'),
    'sponsors': ('sponsor', 'Sponsor'),
}

USER_SUMMARY_FIELDS = ('name', 'email', 'role', 'status')

NEW_ACCOUNT_WINDOW_DAYS = 30


def _ids_from_request():
    data = request.get_json(silent=True) or {}
    ids = parse_id_list(data.get('ids'))
    if not ids:
        raise ValidationError('No valid IDs provided for deletion')
    return ids


def _current_admin():
    return AdminUser.get_or_404(g.current_account['id'])


# Users

@admin_bp.route('/users')
@roles_required('admin', 'staff')
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([user.to_dict() for user in users]), 200


@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@roles_required('admin', 'staff')
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    updates = {key: data[key] for key in USER_SUMMARY_FIELDS if key in data}
    user = User.get_or_404(user_id).admin_update(updates)
    return jsonify(user.to_dict()), 200


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_user(user_id):
    delete_users([user_id])
    return jsonify({'message': 'User deleted successfully', 'id': user_id}), 200


# Staff

@admin_bp.route('/staff')
@roles_required('admin')
def list_staff():
    staff = StaffUser.query.order_by(StaffUser.created_at.desc()).all()
    return jsonify([member.to_dict() for member in staff]), 200


@admin_bp.route('/staff/<int:staff_id>')
@roles_required('admin')
def get_staff(staff_id):
    return jsonify(StaffUser.get_or_404(staff_id).to_dict()), 200


@admin_bp.route('/staff', methods=['POST'])
@roles_required('admin')
def create_staff():
    staff = StaffUser.create_staff(request.get_json(silent=True) or {})
    return jsonify(staff.to_dict()), 201


@admin_bp.route('/staff/<int:staff_id>', methods=['PUT'])
@roles_required('admin')
def update_staff(staff_id):
    staff = StaffUser.get_or_404(staff_id).update_staff(request.get_json(silent=True) or {})
    return jsonify(staff.to_dict()), 200


@admin_bp.route('/staff/<int:staff_id>', methods=['DELETE'])
@roles_required('admin')
def delete_staff(staff_id):
    StaffUser.delete_staff(staff_id)
    return jsonify({'message': 'Staff member deleted successfully', 'id': staff_id}), 200


@admin_bp.route('/staff/bulk', methods=['DELETE'])
@roles_required('admin')
def bulk_delete_staff():
    deleted = StaffUser.bulk_delete(_ids_from_request())
    return jsonify({'message': f'{len(deleted)} staff members deleted', 'deleted_ids': deleted}), 200


# Volunteers, scholars and sponsors

@admin_bp.route('/<any(volunteers, scholars, sponsors):group>')
@roles_required('admin', 'staff')
def list_group(group):
    role, _ = ROLE_GROUPS[group]
    return jsonify([user.to_dict() for user in User.list_by_role(role)]), 200


@admin_bp.route('/<any(volunteers, scholars, sponsors):group>/<int:user_id>')
@roles_required('admin', 'staff')
def get_group_member(group, user_id):
    role, label = ROLE_GROUPS[group]
    return jsonify(User.get_or_404(user_id, role=role, label=label).to_dict()), 200


@admin_bp.route('/<any(volunteers, scholars, sponsors):group>', methods=['POST'])
@roles_required('admin', 'staff')
def create_group_member(group):
    role, _ = ROLE_GROUPS[group]
    user = User.admin_create(request.get_json(silent=True) or {}, role)
    current_app.logger.info("%s %s created %s %s", g.current_account['account_type'],
                            g.current_account['id'], role, user.id)
    return jsonify(user.to_dict()), 201


@admin_bp.route('/<any(volunteers, scholars, sponsors):group>/<int:user_id>', methods=['PUT'])
@roles_required('admin', 'staff')
def update_group_member(group, user_id):
    role, label = ROLE_GROUPS[group]
    data = dict(request.get_json(silent=True) or {})
    data.pop('role', None)
    user = User.get_or_404(user_id, role=role, label=label).admin_update(data)
    return jsonify(user.to_dict()), 200


@admin_bp.route('/<any(volunteers, scholars, sponsors):group>/<int:user_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_group_member(group, user_id):
    role, label = ROLE_GROUPS[group]
    delete_users([user_id], role=role, label=label)
    return jsonify({'message': f'{label} deleted successfully', 'id': user_id}), 200


@admin_bp.route('/<any(volunteers, scholars, sponsors):group>/bulk', methods=['DELETE'])
@admin_bp.route('/<any(volunteers, scholars, sponsors):group>/bulk-delete', methods=['POST'])
@roles_required('admin', 'staff')
def bulk_delete_group(group):
    role, label = ROLE_GROUPS[group]
    deleted = delete_users(_ids_from_request(), role=role, label=label)
    return jsonify({
        'message': f'{len(deleted)} {group} deleted successfully',
        'deleted_ids': deleted
    }), 200


@admin_bp.route('/scholars/<int:user_id>/approve', methods=['PUT'])
@roles_required('admin', 'staff')
def approve_scholar(user_id):
    user = Scholar.approve(user_id, actor=current_actor())
    return jsonify({'message': 'Scholar approved successfully', 'scholar': user.to_dict()}), 200


# Own profile and MPIN

@admin_bp.route('/profile')
@roles_required('admin')
def get_profile():
    return jsonify(_current_admin().to_dict()), 200


@admin_bp.route('/profile', methods=['PUT'])
@roles_required('admin')
def update_profile():
    admin = _current_admin().update_profile(request.get_json(silent=True) or {})
    return jsonify(admin.to_dict()), 200


@admin_bp.route('/mpin-status')
@roles_required('admin')
def mpin_status():
    admin = _current_admin()
    return jsonify({'mpin_enabled': admin.mpin_enabled, 'has_mpin': bool(admin.mpin_hash)}), 200


@admin_bp.route('/toggle-mpin', methods=['POST'])
@roles_required('admin')
def toggle_mpin():
    data = request.get_json(silent=True) or {}
    if 'enabled' not in data:
        raise ValidationError('enabled is required')
    admin = _current_admin().toggle_mpin(data['enabled'], data.get('password'))
    current_app.logger.info("Admin %s set MPIN enabled=%s", admin.id, admin.mpin_enabled)
    return jsonify({'mpin_enabled': admin.mpin_enabled}), 200


@admin_bp.route('/set-mpin', methods=['POST'])
@roles_required('admin')
def set_mpin():
    data = request.get_json(silent=True) or {}
    admin = _current_admin().set_mpin(data.get('mpin'))
    return jsonify({'message': 'MPIN set successfully', 'mpin_enabled': admin.mpin_enabled}), 200


# Dashboard counters

def _new_since():
    return datetime.utcnow() - timedelta(days=NEW_ACCOUNT_WINDOW_DAYS)


@admin_bp.route('/scholar-count')
@roles_required('admin', 'staff')
def scholar_count():
    return jsonify({'count': User.query.filter_by(role='scholar').count()}), 200


@admin_bp.route('/events-count')
@roles_required('admin', 'staff')
def events_count():
    return jsonify({'count': Event.query.count()}), 200


@admin_bp.route('/new-users-count')
@roles_required('admin', 'staff')
def new_users_count():
    return jsonify({'count': User.query.filter(User.created_at >= _new_since()).count()}), 200


@admin_bp.route('/new-sponsors-count')
@roles_required('admin', 'staff')
def new_sponsors_count():
    count = User.query.filter(User.role == 'sponsor', User.created_at >= _new_since()).count()
    return jsonify({'count': count}), 200


@admin_bp.route('/new-volunteers-count')
@roles_required('admin', 'staff')
def new_volunteers_count():
    count = User.query.filter(User.role == 'volunteer', User.created_at >= _new_since()).count()
    return jsonify({'count': count}), 200


@admin_bp.route('/users/<int:user_id>/location-verification', methods=['PUT'])
@roles_required('admin', 'staff')
def verify_location(user_id):
    data = request.get_json(silent=True) or {}
    verified = parse_bool(data.get('verified'))
    remark = data.get('remark')
    user = User.get_or_404(user_id).set_location_verification(verified, remark)
    with transaction():
        if verified:
            Notification.location_verification_notice(user.id, 'Your location has been verified.')
        else:
            Notification.location_remark_notice(
                user.id, f'Your location needs attention: {remark}' if remark else 'Your location needs attention.'
            )
    return jsonify(user.to_dict()), 200
