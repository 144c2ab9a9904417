"""
Notification Model

FLOW OVERVIEW
- Notification rows are addressed to (recipient_type, user_id); recipient_type is
  'user' for portal accounts and 'admin' / 'staff' for back-office accounts.
- create(...): add a row to the current session (callers own the commit, so a
  notification rides inside the transaction of the action that caused it).
- System notices (distribution, event reminder, location, report card) use the
  'System' actor and the shared notify icon.
- handle_event_response(...): confirm/decline a reminder in one transaction.
"""

import logging
from datetime import datetime

from .database import db, transaction
from .utils import isoformat
from ..utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_NAME = 'System'
SYSTEM_ACTOR_AVATAR = '/images/notify-icon.png'


class Notification(db.Model):
    """In-app notification"""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    recipient_type = db.Column(db.String(20), default='user', nullable=False)
    type = db.Column(db.String(50), nullable=False)
    content = db.Column(db.Text, nullable=False)
    related_id = db.Column(db.Integer)
    actor_id = db.Column(db.Integer)
    actor_type = db.Column(db.String(20))
    actor_name = db.Column(db.String(255))
    actor_avatar = db.Column(db.String(500))
    read = db.Column(db.Boolean, default=False, nullable=False)
    requires_confirmation = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Notification {self.type} -> {self.recipient_type}:{self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'recipient_type': self.recipient_type,
            'type': self.type,
            'content': self.content,
            'related_id': self.related_id,
            'actor_id': self.actor_id,
            'actor_type': self.actor_type,
            'actor_name': self.actor_name,
            'actor_avatar': self.actor_avatar,
            'read': self.read,
            'requires_confirmation': self.requires_confirmation,
            'created_at': isoformat(self.created_at),
        }

    @classmethod
    def create(cls, user_id, type, content, related_id=None, actor=None,
               requires_confirmation=False, recipient_type='user'):
        """
        Queue a notification on the session (no commit).

        Args:
            actor: optional dict with id/type/name/avatar; defaults to the System actor
        """
        from ..utils.prom_metrics import observe_notification

        actor = actor or {}
        notification = cls(
            user_id=user_id,
            recipient_type=recipient_type,
            type=type,
            content=content,
            related_id=related_id,
            actor_id=actor.get('id'),
            actor_type=actor.get('type'),
            actor_name=actor.get('name') or SYSTEM_ACTOR_NAME,
            actor_avatar=actor.get('avatar') or SYSTEM_ACTOR_AVATAR,
            requires_confirmation=requires_confirmation,
        )
        db.session.add(notification)
        observe_notification(type)
        return notification

    @classmethod
    def notify_admins(cls, type, content, related_id=None, actor=None):
        from .admin import AdminUser

        notifications = []
        for admin in AdminUser.query.all():
            notifications.append(cls.create(
                admin.id, type, content, related_id=related_id, actor=actor, recipient_type='admin'
            ))
        return notifications

    @classmethod
    def for_user(cls, user_id, limit=20, recipient_type='user'):
        return (cls.query
                .filter_by(user_id=user_id, recipient_type=recipient_type)
                .order_by(cls.created_at.desc(), cls.id.desc())
                .limit(limit)
                .all())

    @classmethod
    def mark_as_read(cls, notification_id):
        notification = db.session.get(cls, notification_id)
        if not notification:
            raise NotFoundError('Notification not found')
        notification.read = True
        db.session.commit()
        return notification

    @classmethod
    def mark_all_as_read(cls, user_id, recipient_type='user'):
        updated = (cls.query
                   .filter_by(user_id=user_id, recipient_type=recipient_type, read=False)
                   .update({'read': True}, synchronize_session=False))
        db.session.commit()
        return updated

    # System notices

    @classmethod
    def distribution_notice(cls, user_id, item_name, quantity, distribution_id=None, unit=None):
        amount = f'{quantity} {unit} of' if unit else str(quantity)
        return cls.create(
            user_id, 'distribution', f'You have received {amount} {item_name}',
            related_id=distribution_id
        )

    @classmethod
    def event_reminder(cls, user_id, event_id, content, actor=None):
        return cls.create(
            user_id, 'event_reminder', content, related_id=event_id,
            actor=actor, requires_confirmation=True
        )

    @classmethod
    def location_verification_notice(cls, user_id, content):
        return cls.create(user_id, 'location_verification', content, related_id=user_id)

    @classmethod
    def location_remark_notice(cls, user_id, content):
        return cls.create(user_id, 'location_remark', content, related_id=user_id)

    @classmethod
    def handle_event_response(cls, notification_id, user_id, event_id, confirmed):
        """
        Apply a volunteer's answer to an event reminder.

        Only the reminder addressed to `user_id` for `event_id` is accepted.
        Declining removes the participation and frees the seat; confirming
        promotes PENDING to ACTIVE (already ACTIVE is accepted).
        """
        from .event import Event, EventParticipant

        notification = db.session.get(cls, notification_id)
        if not notification or notification.recipient_type != 'user' or notification.user_id != user_id:
            raise NotFoundError('Notification not found')
        if notification.type != 'event_reminder' or notification.related_id != event_id:
            raise ValidationError('Notification is not a reminder for this event')

        with transaction():
            participant = EventParticipant.query.filter_by(event_id=event_id, user_id=user_id).first()
            if not participant:
                raise NotFoundError('Participant not found in event')

            if not confirmed:
                Event.release_seat(event_id, participant.participant_type)
                db.session.delete(participant)
            elif participant.status == 'PENDING':
                participant.status = 'ACTIVE'
            elif participant.status != 'ACTIVE':
                raise ValidationError('Failed to update participant status')

            notification.read = True
        logger.info("User %s %s event %s", user_id, 'confirmed' if confirmed else 'declined', event_id)
        return {'success': True}
