"""
Event Routes

FLOW OVERVIEW
- /api/events [GET, POST], /api/events/<id> [GET, PUT, DELETE]
  • Public listing; admin/staff create, patch and cascade delete.
- /api/events/<id>/join [POST], /api/events/<id>/unjoin [POST],
  /api/events/<id>/has-joined [GET]
  • Portal users; seats counted per volunteer/scholar bucket.
- /api/events/<id>/participants [GET], .../participants/<uid> [DELETE],
  .../participants/bulk-remove [POST], .../volunteers [GET, POST],
  .../participants/<uid>/approve|reject [PUT]
  • Admin/staff participant management; the participant is notified and emailed.
- /api/events/<id>/remind [POST]
  • Admin/staff; reminder notification (needs confirmation) to every participant.
- /api/events/feedback/pending [GET], /api/events/<id>/feedback [GET, POST],
  .../scholar-feedback [POST], .../feedback/dismiss [POST]
  • Post-event feedback, once per user.
- /api/events/<id>/skills [GET], .../skill-counts [GET],
  .../participants/<uid>/skill [PUT]
  • Skill assignment for approved participants.
- /api/events/volunteer/<uid>/past [GET]
  • Ended events a volunteer joined.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..models import Event, Notification, User, transaction
from ..utils.auth_utils import current_actor, login_required, roles_required
from ..utils.errors import PermissionDeniedError, ValidationError
from ..utils.mail_utils import (
    send_participant_approved_email, send_participant_rejected_email, send_participant_removed_email
)
from ..utils.validators import parse_id_list

events_bp = Blueprint('events', __name__)


def _current_user():
    account = g.current_account
    if account['account_type'] != 'user':
        raise PermissionDeniedError('Only portal accounts can take part in events')
    return User.get_or_404(account['id'])


@events_bp.route('')
def list_events():
    return jsonify([event.to_dict() for event in Event.list_events()]), 200


@events_bp.route('/<int:event_id>')
def get_event(event_id):
    return jsonify(Event.get_or_404(event_id).to_dict()), 200


@events_bp.route('', methods=['POST'])
@roles_required('admin', 'staff')
def create_event():
    event = Event.create_event(request.get_json(silent=True) or {}, created_by=g.current_account['id'])
    return jsonify(event.to_dict()), 201


@events_bp.route('/<int:event_id>', methods=['PUT'])
@roles_required('admin', 'staff')
def update_event(event_id):
    event = Event.get_or_404(event_id).update_event(request.get_json(silent=True) or {})
    return jsonify(event.to_dict()), 200


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_event(event_id):
    Event.delete_event(event_id)
    return jsonify({'message': 'Event deleted successfully', 'id': event_id}), 200


# Participation

@events_bp.route('/<int:event_id>/join', methods=['POST'])
@login_required
def join_event(event_id):
    user = _current_user()
    event = Event.join(event_id, user)
    current_app.logger.info("User %s joined event %s", user.id, event_id)
    return jsonify({'message': 'Successfully joined the event', 'event': event.to_dict()}), 200


@events_bp.route('/<int:event_id>/unjoin', methods=['POST'])
@login_required
def unjoin_event(event_id):
    event = Event.unjoin(event_id, _current_user())
    return jsonify({'message': 'Successfully left the event', 'event': event.to_dict()}), 200


@events_bp.route('/<int:event_id>/has-joined')
@login_required
def has_joined(event_id):
    joined, status = Event.has_joined(event_id, _current_user().id)
    return jsonify({'hasJoined': joined, 'status': status}), 200


@events_bp.route('/<int:event_id>/participants')
@roles_required('admin', 'staff')
def participants(event_id):
    include_details = request.args.get('details', '').lower() in ('1', 'true', 'yes')
    return jsonify(Event.get_or_404(event_id).participants(include_details)), 200


@events_bp.route('/<int:event_id>/volunteers')
@roles_required('admin', 'staff')
def event_volunteers(event_id):
    rows = Event.get_or_404(event_id).participants(include_details=True)
    return jsonify([row for row in rows if row['role'] == 'volunteer']), 200


@events_bp.route('/<int:event_id>/volunteers', methods=['POST'])
@roles_required('admin', 'staff')
def add_volunteer(event_id):
    data = request.get_json(silent=True) or {}
    volunteer_id = data.get('volunteerId') or data.get('volunteer_id')
    if not volunteer_id:
        raise ValidationError('Volunteer ID is required')
    event = Event.add_volunteer(event_id, volunteer_id)
    return jsonify({'message': 'Volunteer added to event', 'event': event.to_dict()}), 200


@events_bp.route('/<int:event_id>/participants/<int:user_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def remove_participant(event_id, user_id):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    result = Event.remove_participant(event_id, user_id, reason=reason, actor=current_actor())
    send_participant_removed_email(result['user'], result['event_title'], reason)
    return jsonify({
        'message': 'Participant removed successfully',
        'event': result['event'].to_dict()
    }), 200


@events_bp.route('/<int:event_id>/participants/bulk-remove', methods=['POST'])
@roles_required('admin', 'staff')
def bulk_remove_participants(event_id):
    data = request.get_json(silent=True) or {}
    user_ids = parse_id_list(data.get('userIds') or data.get('user_ids'))
    reason = data.get('reason')
    result = Event.bulk_remove_participants(event_id, user_ids, reason=reason, actor=current_actor())
    for user in result['users']:
        send_participant_removed_email(user, result['event_title'], reason)
    return jsonify({
        'message': f"{result['removed_count']} participants removed",
        'removed_count': result['removed_count'],
        'event': result['event'].to_dict()
    }), 200


@events_bp.route('/<int:event_id>/participants/<int:user_id>/approve', methods=['PUT'])
@roles_required('admin', 'staff')
def approve_participant(event_id, user_id):
    event, participant = Event.approve_participant(event_id, user_id, actor=current_actor())
    send_participant_approved_email(User.get_or_404(user_id), event.title)
    return jsonify({'message': 'Participant approved', 'participant': participant.to_dict()}), 200


@events_bp.route('/<int:event_id>/participants/<int:user_id>/reject', methods=['PUT'])
@roles_required('admin', 'staff')
def reject_participant(event_id, user_id):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    user = User.get_or_404(user_id)
    event = Event.reject_participant(event_id, user_id, reason=reason, actor=current_actor())
    send_participant_rejected_email(user, event.title, reason)
    return jsonify({'message': 'Participant rejected', 'event': event.to_dict()}), 200


@events_bp.route('/<int:event_id>/remind', methods=['POST'])
@roles_required('admin', 'staff')
def remind_participants(event_id):
    event = Event.get_or_404(event_id)
    data = request.get_json(silent=True) or {}
    content = data.get('content') or f'Reminder: "{event.title}" is coming up. Will you attend?'
    actor = current_actor()
    rows = event.participants()
    with transaction():
        for row in rows:
            Notification.event_reminder(row['id'], event.id, content, actor=actor)
    return jsonify({'message': 'Reminders sent', 'count': len(rows)}), 200


# Feedback

@events_bp.route('/feedback/pending')
@login_required
def pending_feedback():
    return jsonify(Event.completed_needing_feedback(_current_user().id)), 200


@events_bp.route('/<int:event_id>/feedback')
@roles_required('admin', 'staff')
def event_feedback(event_id):
    return jsonify(Event.get_or_404(event_id).feedback()), 200


@events_bp.route('/<int:event_id>/feedback', methods=['POST'])
@login_required
def submit_feedback(event_id):
    user = _current_user()
    data = request.get_json(silent=True) or {}
    feedback = Event.submit_feedback(event_id, user.id, data.get('rating'), data.get('comment'),
                                     user_type=user.role)
    return jsonify(feedback.to_dict()), 201


@events_bp.route('/<int:event_id>/scholar-feedback', methods=['POST'])
@login_required
def submit_scholar_feedback(event_id):
    user = _current_user()
    if user.role != 'scholar':
        raise PermissionDeniedError('Only scholars can submit scholar feedback')
    data = request.get_json(silent=True) or {}
    event_feedback_row, volunteer_feedback = Event.submit_scholar_feedback(
        event_id, user.id,
        data.get('eventRating') or data.get('rating'),
        data.get('eventComment') or data.get('comment'),
        data.get('volunteerComment'),
    )
    return jsonify({
        'event_feedback': event_feedback_row.to_dict(),
        'volunteer_feedback': volunteer_feedback.to_dict()
    }), 201


@events_bp.route('/<int:event_id>/feedback/dismiss', methods=['POST'])
@login_required
def dismiss_feedback(event_id):
    Event.dismiss_feedback(event_id, _current_user().id)
    return jsonify({'message': 'Feedback dismissed'}), 200


# Skills

@events_bp.route('/<int:event_id>/skills')
@roles_required('admin', 'staff')
def participant_skills(event_id):
    return jsonify(Event.get_or_404(event_id).participant_skills()), 200


@events_bp.route('/<int:event_id>/skill-counts')
def skill_counts(event_id):
    return jsonify(Event.get_or_404(event_id).skill_counts()), 200


@events_bp.route('/<int:event_id>/participants/<int:user_id>/skill', methods=['PUT'])
@roles_required('admin', 'staff')
def assign_skill(event_id, user_id):
    data = request.get_json(silent=True) or {}
    assignment = Event.assign_skill(event_id, user_id, data.get('skill'),
                                    assigned_by=g.current_account['id'])
    if assignment is None:
        return jsonify({'message': 'Skill assignment removed'}), 200
    return jsonify(assignment.to_dict()), 200


@events_bp.route('/volunteer/<int:user_id>/past')
@login_required
def past_events(user_id):
    return jsonify([event.to_dict() for event in Event.past_events_for_volunteer(user_id)]), 200
