"""
Staff Routes

FLOW OVERVIEW
- /api/staff/login [POST]
  • Email + password against staff_users → staff access token.
- /api/staff/dashboard [GET]
  • Volunteer total and the five most recent events.
- /api/staff/profile [GET, PUT]
  • Own profile; updates require the current password.
- /api/staff/volunteers[/<id>] [GET, PUT]
  • Volunteer list/detail; edits limited to name, email, phone and status.
- /api/staff/events[/<id>] [GET, POST, PUT]
  • Event list, creation (created_by = caller) and edits.
Every route except login requires a staff token.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..models import Event, StaffUser, User
from ..utils.auth_utils import generate_jwt_token, roles_required

staff_bp = Blueprint('staff', __name__)

VOLUNTEER_EDIT_FIELDS = ('name', 'email', 'phone', 'status')
EVENT_EDIT_FIELDS = ('title', 'description', 'date', 'location')


def _current_staff():
    return StaffUser.get_or_404(g.current_account['id'])


@staff_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    staff = StaffUser.authenticate(data.get('email'), data.get('password'))
    current_app.logger.info("Staff %s logged in", staff.id)
    return jsonify({
        'message': 'Login successful',
        'token': generate_jwt_token(staff.id, account_type='staff', role='staff'),
        'staff': staff.to_dict()
    }), 200


@staff_bp.route('/dashboard')
@roles_required('staff')
def dashboard():
    return jsonify(StaffUser.dashboard()), 200


@staff_bp.route('/profile')
@roles_required('staff')
def get_profile():
    return jsonify(_current_staff().to_dict()), 200


@staff_bp.route('/profile', methods=['PUT'])
@roles_required('staff')
def update_profile():
    staff = _current_staff().update_profile(request.get_json(silent=True) or {})
    return jsonify(staff.to_dict()), 200


@staff_bp.route('/volunteers')
@roles_required('staff')
def list_volunteers():
    return jsonify([user.to_dict() for user in User.list_by_role('volunteer')]), 200


@staff_bp.route('/volunteers/<int:user_id>')
@roles_required('staff')
def get_volunteer(user_id):
    return jsonify(User.get_or_404(user_id, role='volunteer', label='Volunteer').to_dict()), 200


@staff_bp.route('/volunteers/<int:user_id>', methods=['PUT'])
@roles_required('staff')
def update_volunteer(user_id):
    data = request.get_json(silent=True) or {}
    updates = {key: data[key] for key in VOLUNTEER_EDIT_FIELDS if key in data}
    volunteer = User.get_or_404(user_id, role='volunteer', label='Volunteer').admin_update(updates)
    return jsonify(volunteer.to_dict()), 200


@staff_bp.route('/events')
@roles_required('staff')
def list_events():
    return jsonify([event.to_dict() for event in Event.list_events()]), 200


@staff_bp.route('/events', methods=['POST'])
@roles_required('staff')
def create_event():
    data = request.get_json(silent=True) or {}
    event = Event.create_event(data, created_by=g.current_account['id'])
    return jsonify(event.to_dict()), 201


@staff_bp.route('/events/<int:event_id>', methods=['PUT'])
@roles_required('staff')
def update_event(event_id):
    data = request.get_json(silent=True) or {}
    updates = {key: data[key] for key in EVENT_EDIT_FIELDS if key in data}
    event = Event.get_or_404(event_id).update_event(updates)
    return jsonify(event.to_dict()), 200
