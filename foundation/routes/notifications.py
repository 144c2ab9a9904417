"""
Notification Routes

FLOW OVERVIEW
- /api/notifications [GET]
  • Auth gate; the caller's newest notifications (any account type).
- /api/notifications/user/<id> [GET], /api/notifications/user/<id>/read-all [POST]
  • Owner or admin/staff; newest NOTIFICATION_PAGE_SIZE for a portal user.
- /api/notifications/<id>/read [POST]
  • Recipient or admin/staff.
- /api/notifications/send [POST], /api/notifications/send-bulk [POST],
  /api/notifications/distribution [POST]
  • Admin/staff; free-form and distribution notices (a given distributionId must exist).
- /api/notifications/event-response [POST]
  • Portal user confirms or declines an event reminder.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..models import ItemDistribution, Notification, db, transaction
from ..utils.auth_utils import (
    current_actor, ensure_self_or_privileged, is_privileged, login_required, roles_required
)
from ..utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..utils.validators import parse_bool, parse_id_list, parse_int

notifications_bp = Blueprint('notifications', __name__)


def _page_size():
    return current_app.config.get('NOTIFICATION_PAGE_SIZE', 20)


@notifications_bp.route('')
@login_required
def my_notifications():
    account = g.current_account
    notifications = Notification.for_user(account['id'], limit=_page_size(),
                                          recipient_type=account['account_type'])
    return jsonify([n.to_dict() for n in notifications]), 200


@notifications_bp.route('/user/<int:user_id>')
@login_required
def user_notifications(user_id):
    ensure_self_or_privileged(user_id)
    notifications = Notification.for_user(user_id, limit=_page_size())
    return jsonify([n.to_dict() for n in notifications]), 200


@notifications_bp.route('/user/<int:user_id>/read-all', methods=['POST'])
@login_required
def mark_all_read(user_id):
    ensure_self_or_privileged(user_id)
    updated = Notification.mark_all_as_read(user_id)
    return jsonify({'message': 'All notifications marked as read', 'updated': updated}), 200


@notifications_bp.route('/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotFoundError('Notification not found')
    account = g.current_account
    is_recipient = (notification.recipient_type == account['account_type']
                    and notification.user_id == account['id'])
    if not is_recipient and not is_privileged(account):
        raise PermissionDeniedError('You do not have permission to perform this action')
    return jsonify(Notification.mark_as_read(notification_id).to_dict()), 200


@notifications_bp.route('/send', methods=['POST'])
@roles_required('admin', 'staff')
def send_notification():
    data = request.get_json(silent=True) or {}
    user_id = parse_int(data.get('userId') or data.get('user_id'), default=None)
    content = (data.get('content') or '').strip()
    if not user_id or not content:
        raise ValidationError('User ID and content are required')
    with transaction():
        notification = Notification.create(
            user_id, data.get('type') or 'general', content,
            related_id=data.get('relatedId'), actor=current_actor()
        )
    return jsonify(notification.to_dict()), 201


@notifications_bp.route('/send-bulk', methods=['POST'])
@roles_required('admin', 'staff')
def send_bulk():
    data = request.get_json(silent=True) or {}
    user_ids = parse_id_list(data.get('userIds') or data.get('user_ids'))
    content = (data.get('content') or '').strip()
    if not user_ids or not content:
        raise ValidationError('User IDs and content are required')
    actor = current_actor()
    with transaction():
        for user_id in user_ids:
            Notification.create(user_id, data.get('type') or 'general', content,
                                related_id=data.get('relatedId'), actor=actor)
    return jsonify({'message': 'Notifications sent', 'count': len(user_ids)}), 201


@notifications_bp.route('/distribution', methods=['POST'])
@roles_required('admin', 'staff')
def distribution_notice():
    data = request.get_json(silent=True) or {}
    user_id = parse_int(data.get('userId'), default=None)
    item_name = data.get('itemName')
    quantity = parse_int(data.get('quantity'), default=None)
    if not user_id or not item_name or not quantity:
        raise ValidationError('User ID, item name and quantity are required')
    distribution_id = parse_int(data.get('distributionId'), default=None)
    if distribution_id:
        ItemDistribution.get_or_404(distribution_id)
    with transaction():
        notification = Notification.distribution_notice(user_id, item_name, quantity,
                                                        distribution_id, unit=data.get('unit'))
    return jsonify(notification.to_dict()), 201


@notifications_bp.route('/event-response', methods=['POST'])
@login_required
def event_response():
    data = request.get_json(silent=True) or {}
    notification_id = parse_int(data.get('notificationId'), default=None)
    event_id = parse_int(data.get('eventId'), default=None)
    if not notification_id or not event_id or 'confirmed' not in data:
        raise ValidationError('Notification ID, event ID and confirmation are required')
    account = g.current_account
    if account['account_type'] != 'user':
        raise PermissionDeniedError('Only portal accounts can answer event reminders')
    result = Notification.handle_event_response(notification_id, account['id'], event_id,
                                                parse_bool(data['confirmed']))
    return jsonify(result), 200
