"""
Event Models

FLOW OVERVIEW
- Event: volunteer/scholar activity with capacity counters
  (total_/current_volunteers, total_/current_scholars) and skill requirements.
- EventParticipant: join row (PENDING until approved, then ACTIVE).
- Seats are taken and released with conditional UPDATEs
  (`current < total` / `current > 0`) so the bound holds in the database.
- join / unjoin / add_volunteer / remove_participant / bulk_remove_participants /
  approve_participant / reject_participant: transactional participant workflows.
- EventFeedback, ScholarVolunteerFeedback, DismissedFeedback: post-event feedback.
- EventParticipantSkill: one assigned skill per participant, bounded by the
  event's skill_requirements.
"""

import json
import logging
from datetime import datetime

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat, apply_patch
from .notification import Notification
from ..utils.errors import ConflictError, NotFoundError, ValidationError
from ..utils.validators import parse_date, parse_int, parse_float

logger = logging.getLogger(__name__)

PARTICIPANT_PENDING = 'PENDING'
PARTICIPANT_ACTIVE = 'ACTIVE'

EVENT_FIELD_ALIASES = {
    'totalVolunteers': 'total_volunteers',
    'currentVolunteers': 'current_volunteers',
    'totalScholars': 'total_scholars',
    'currentScholars': 'current_scholars',
    'contactPhone': 'contact_phone',
    'contactEmail': 'contact_email',
    'startTime': 'start_time',
    'endTime': 'end_time',
    'skillRequirements': 'skill_requirements',
    'createdBy': 'created_by',
}

EVENT_FIELDS = (
    'title', 'date', 'location', 'image', 'description', 'total_volunteers',
    'current_volunteers', 'total_scholars', 'current_scholars', 'status',
    'contact_phone', 'contact_email', 'start_time', 'end_time', 'latitude',
    'longitude', 'requirements', 'skill_requirements'
)


def parse_skill_requirements(value):
    """Accept a list of {skill, count} or its JSON text; unparsable text becomes None."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Ignoring unparsable skill requirements")
            return None
    if not isinstance(value, list):
        raise ValidationError('Skill requirements must be a list')
    requirements = []
    for item in value:
        if not isinstance(item, dict) or not item.get('skill'):
            raise ValidationError('Each skill requirement needs a skill name')
        requirements.append({'skill': str(item['skill']), 'count': parse_int(item.get('count'))})
    return requirements


EVENT_COERCERS = {
    'date': parse_date,
    'total_volunteers': parse_int,
    'current_volunteers': parse_int,
    'total_scholars': parse_int,
    'current_scholars': parse_int,
    'latitude': parse_float,
    'longitude': parse_float,
    'skill_requirements': parse_skill_requirements,
}


class Event(db.Model):
    """Foundation event"""
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    date = db.Column(db.Date, nullable=False)
    location = db.Column(db.String(255))
    image = db.Column(db.String(500))
    description = db.Column(db.Text)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    status = db.Column(db.String(20), default='OPEN', nullable=False)
    total_volunteers = db.Column(db.Integer, default=0, nullable=False)
    current_volunteers = db.Column(db.Integer, default=0, nullable=False)
    total_scholars = db.Column(db.Integer, default=0, nullable=False)
    current_scholars = db.Column(db.Integer, default=0, nullable=False)
    contact_phone = db.Column(db.String(30), default='')
    contact_email = db.Column(db.String(255), default='')
    start_time = db.Column(db.String(10))
    end_time = db.Column(db.String(10))
    requirements = db.Column(db.Text)
    skill_requirements = db.Column(db.JSON)
    created_by = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Event {self.id} {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'date': isoformat(self.date),
            'location': self.location,
            'image': self.image,
            'description': self.description,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'status': self.status,
            'total_volunteers': self.total_volunteers,
            'current_volunteers': self.current_volunteers,
            'total_scholars': self.total_scholars,
            'current_scholars': self.current_scholars,
            'contact_phone': self.contact_phone,
            'contact_email': self.contact_email,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'requirements': self.requirements,
            'skill_requirements': self.skill_requirements or [],
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def ends_at(self):
        """Event end as a datetime; falls back to end of day without an end_time."""
        if not self.date:
            return None
        try:
            hour, minute = (int(part) for part in (self.end_time or '23:59').split(':')[:2])
        except ValueError:
            hour, minute = 23, 59
        return datetime(self.date.year, self.date.month, self.date.day, hour, minute)

    # CRUD

    @classmethod
    def get_or_404(cls, event_id):
        event = db.session.get(cls, event_id)
        if not event:
            raise NotFoundError('Event not found')
        return event

    @classmethod
    def list_events(cls):
        return cls.query.order_by(cls.date.desc(), cls.id.desc()).all()

    @classmethod
    def create_event(cls, data, created_by=None):
        data = {EVENT_FIELD_ALIASES.get(k, k): v for k, v in (data or {}).items()}
        if not data.get('title') or not data.get('date'):
            raise ValidationError('Title and date are required')

        event = cls(
            title=data['title'].strip(),
            date=parse_date(data['date']),
            location=data.get('location'),
            image=data.get('image'),
            description=data.get('description'),
            total_volunteers=parse_int(data.get('total_volunteers')),
            current_volunteers=parse_int(data.get('current_volunteers')),
            total_scholars=parse_int(data.get('total_scholars')),
            current_scholars=parse_int(data.get('current_scholars')),
            status=data.get('status') or 'OPEN',
            contact_phone=data.get('contact_phone') or '',
            contact_email=data.get('contact_email') or '',
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            latitude=parse_float(data.get('latitude')),
            longitude=parse_float(data.get('longitude')),
            requirements=data.get('requirements'),
            skill_requirements=parse_skill_requirements(data.get('skill_requirements')),
            created_by=created_by or data.get('created_by'),
        )
        db.session.add(event)
        db.session.commit()
        logger.info("Created event %s", event.id)
        return event

    def update_event(self, data):
        """Patch the event; the image only changes when a new one is supplied."""
        apply_patch(self, data, allowed=EVENT_FIELDS, aliases=EVENT_FIELD_ALIASES,
                    coercers=EVENT_COERCERS)
        db.session.commit()
        return self

    @classmethod
    def delete_event(cls, event_id):
        from .forum import ForumPost

        event = cls.get_or_404(event_id)
        with transaction():
            DismissedFeedback.query.filter_by(event_id=event.id).delete(synchronize_session=False)
            EventFeedback.query.filter_by(event_id=event.id).delete(synchronize_session=False)
            ScholarVolunteerFeedback.query.filter_by(event_id=event.id).delete(synchronize_session=False)
            EventParticipantSkill.query.filter_by(event_id=event.id).delete(synchronize_session=False)
            EventParticipant.query.filter_by(event_id=event.id).delete(synchronize_session=False)
            for post in ForumPost.query.filter_by(event_id=event.id).all():
                post.purge()
            db.session.delete(event)
        logger.info("Deleted event %s", event_id)
        return event_id

    # Capacity counters

    @classmethod
    def _counter_columns(cls, bucket):
        if bucket == 'scholar':
            return cls.total_scholars, cls.current_scholars
        return cls.total_volunteers, cls.current_volunteers

    @classmethod
    def reserve_seat(cls, event_id, bucket):
        """Increment the bucket's counter only while below its total; True on success."""
        total, current = cls._counter_columns(bucket)
        updated = (db.session.query(cls)
                   .filter(cls.id == event_id, current < total)
                   .update({current: current + 1}, synchronize_session='fetch'))
        return updated == 1

    @classmethod
    def release_seat(cls, event_id, bucket, count=1):
        """Decrement the bucket's counter, never below zero."""
        _, current = cls._counter_columns(bucket)
        for _ in range(count):
            (db.session.query(cls)
             .filter(cls.id == event_id, current > 0)
             .update({current: current - 1}, synchronize_session='fetch'))

    # Participation

    @classmethod
    def join(cls, event_id, user):
        """Join as PENDING; scholars take a scholar seat, everyone else a volunteer seat."""
        event = cls.get_or_404(event_id)
        bucket = 'scholar' if user.role == 'scholar' else 'volunteer'
        with transaction():
            if EventParticipant.query.filter_by(event_id=event.id, user_id=user.id).first():
                raise ValidationError('You have already joined this event')
            db.session.add(EventParticipant(
                event_id=event.id, user_id=user.id, status=PARTICIPANT_PENDING, participant_type=bucket
            ))
            if not cls.reserve_seat(event.id, bucket):
                raise ValidationError(f'Event has reached maximum {bucket} capacity')
        db.session.refresh(event)
        _observe_join(bucket)
        return event

    @classmethod
    def unjoin(cls, event_id, user):
        event = cls.get_or_404(event_id)
        with transaction():
            participant = EventParticipant.query.filter_by(event_id=event.id, user_id=user.id).first()
            if not participant:
                raise ValidationError('You have not joined this event')
            cls.release_seat(event.id, participant.participant_type)
            EventParticipantSkill.query.filter_by(event_id=event.id, user_id=user.id).delete(
                synchronize_session=False)
            db.session.delete(participant)
        db.session.refresh(event)
        return event

    @classmethod
    def has_joined(cls, event_id, user_id):
        participant = EventParticipant.query.filter_by(event_id=event_id, user_id=user_id).first()
        return participant is not None, participant.status if participant else None

    def participants(self, include_details=False):
        from .user import User

        rows = (db.session.query(EventParticipant, User)
                .join(User, EventParticipant.user_id == User.id)
                .filter(EventParticipant.event_id == self.id)
                .order_by(EventParticipant.joined_at.desc(), EventParticipant.id.desc())
                .all())
        result = []
        for participant, user in rows:
            item = {
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'phone': user.phone,
                'profile_photo': user.profile_photo,
                'role': user.role,
                'joined_at': isoformat(participant.joined_at),
                'status': participant.status,
            }
            if include_details:
                item['skills'] = user.skills
                item['disability'] = user.disability
            result.append(item)
        return result

    @classmethod
    def add_volunteer(cls, event_id, volunteer_id):
        from .user import User

        event = cls.get_or_404(event_id)
        User.get_or_404(volunteer_id, role='volunteer', label='Volunteer')
        with transaction():
            if EventParticipant.query.filter_by(event_id=event.id, user_id=volunteer_id).first():
                raise ValidationError('Volunteer is already added to this event')
            db.session.add(EventParticipant(
                event_id=event.id, user_id=volunteer_id,
                status=PARTICIPANT_PENDING, participant_type='volunteer'
            ))
            if not cls.reserve_seat(event.id, 'volunteer'):
                raise ValidationError('Event has reached maximum volunteer capacity')
        db.session.refresh(event)
        _observe_join('volunteer')
        return event

    @classmethod
    def remove_participant(cls, event_id, user_id, reason=None, actor=None):
        """
        Remove one participant (admin/staff action) and notify them.

        Returns:
            dict with the updated event, the removed user and the event title
        """
        from .user import User

        event = cls.get_or_404(event_id)
        user = User.get_or_404(user_id)
        with transaction():
            participant = EventParticipant.query.filter_by(event_id=event.id, user_id=user.id).first()
            if not participant:
                raise NotFoundError('Participant not found in this event')
            cls.release_seat(event.id, participant.participant_type)
            EventParticipantSkill.query.filter_by(event_id=event.id, user_id=user.id).delete(
                synchronize_session=False)
            db.session.delete(participant)
            content = f'You have been removed from "{event.title}".'
            if reason:
                content += f' Reason: {reason}'
            Notification.create(user.id, 'participant_removed', content, related_id=event.id, actor=actor)
        db.session.refresh(event)
        return {'event': event, 'user': user, 'event_title': event.title}

    @classmethod
    def bulk_remove_participants(cls, event_id, user_ids, reason=None, actor=None):
        from .user import User

        event = cls.get_or_404(event_id)
        if not user_ids:
            raise ValidationError('No valid users found')
        users = User.query.filter(User.id.in_(user_ids)).all()
        if not users:
            raise NotFoundError('No valid users found')

        with transaction():
            participants = EventParticipant.query.filter(
                EventParticipant.event_id == event.id, EventParticipant.user_id.in_(user_ids)
            ).all()
            if not participants:
                raise NotFoundError('No participants found in this event')
            removed_ids = [p.user_id for p in participants]
            for participant in participants:
                cls.release_seat(event.id, participant.participant_type)
                db.session.delete(participant)
            EventParticipantSkill.query.filter(
                EventParticipantSkill.event_id == event.id,
                EventParticipantSkill.user_id.in_(removed_ids)
            ).delete(synchronize_session=False)
            content = f'You have been removed from "{event.title}".'
            if reason:
                content += f' Reason: {reason}'
            for removed_id in removed_ids:
                Notification.create(removed_id, 'participant_removed', content,
                                    related_id=event.id, actor=actor)
        db.session.refresh(event)
        return {
            'event': event,
            'users': [u for u in users if u.id in removed_ids],
            'removed_count': len(removed_ids),
            'event_title': event.title,
        }

    @classmethod
    def approve_participant(cls, event_id, user_id, actor=None):
        event = cls.get_or_404(event_id)
        participant = EventParticipant.query.filter_by(event_id=event.id, user_id=user_id).first()
        if not participant:
            raise NotFoundError('Participant not found in this event')
        if participant.status != PARTICIPANT_PENDING:
            raise ValidationError('Participant is already approved or has another status')
        with transaction():
            participant.status = PARTICIPANT_ACTIVE
            Notification.create(
                user_id, 'event_approval',
                f'Your participation in "{event.title}" has been approved!',
                related_id=event.id, actor=actor
            )
        return event, participant

    @classmethod
    def reject_participant(cls, event_id, user_id, reason=None, actor=None):
        event = cls.get_or_404(event_id)
        participant = EventParticipant.query.filter_by(event_id=event.id, user_id=user_id).first()
        if not participant:
            raise NotFoundError('Participant not found in this event')
        with transaction():
            cls.release_seat(event.id, participant.participant_type)
            db.session.delete(participant)
            content = f'Your request to join "{event.title}" was not approved.'
            if reason:
                content += f' Reason: {reason}'
            Notification.create(user_id, 'event_rejection', content, related_id=event.id, actor=actor)
        db.session.refresh(event)
        return event

    # Feedback

    @classmethod
    def completed_needing_feedback(cls, user_id, now=None):
        """Ended events the user took part in (ACTIVE) without feedback or dismissal."""
        now = now or datetime.now()
        rows = (db.session.query(cls, EventParticipant)
                .join(EventParticipant, EventParticipant.event_id == cls.id)
                .filter(EventParticipant.user_id == user_id,
                        EventParticipant.status == PARTICIPANT_ACTIVE)
                .all())
        answered = {f.event_id for f in EventFeedback.query.filter_by(user_id=user_id)}
        dismissed = {d.event_id for d in DismissedFeedback.query.filter_by(user_id=user_id)}
        pending = []
        for event, _ in rows:
            if event.id in answered or event.id in dismissed:
                continue
            ends_at = event.ends_at()
            if ends_at and ends_at < now:
                pending.append({
                    'id': event.id,
                    'title': event.title,
                    'date': isoformat(event.date),
                    'end_time': event.end_time,
                    'user_id': user_id,
                })
        return pending

    @classmethod
    def submit_feedback(cls, event_id, user_id, rating, comment=None, user_type='volunteer'):
        cls.get_or_404(event_id)
        rating = parse_int(rating, default=None)
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError('Rating must be between 1 and 5')
        if EventFeedback.query.filter_by(event_id=event_id, user_id=user_id).first():
            raise ConflictError('You have already submitted feedback for this event')
        feedback = EventFeedback(event_id=event_id, user_id=user_id, rating=rating,
                                 comment=comment, user_type=user_type)
        db.session.add(feedback)
        db.session.commit()
        return feedback

    @classmethod
    def submit_scholar_feedback(cls, event_id, scholar_id, event_rating, event_comment=None,
                                volunteer_comment=None):
        """Event rating and a comment about the volunteers, stored together."""
        cls.get_or_404(event_id)
        rating = parse_int(event_rating, default=None)
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError('Rating must be between 1 and 5')
        with transaction():
            if EventFeedback.query.filter_by(event_id=event_id, user_id=scholar_id).first():
                raise ConflictError('You have already submitted feedback for this event')
            event_feedback = EventFeedback(event_id=event_id, user_id=scholar_id, rating=rating,
                                           comment=event_comment, user_type='scholar')
            volunteer_feedback = ScholarVolunteerFeedback(
                event_id=event_id, scholar_id=scholar_id, volunteer_comment=volunteer_comment
            )
            db.session.add_all([event_feedback, volunteer_feedback])
        return event_feedback, volunteer_feedback

    @classmethod
    def dismiss_feedback(cls, event_id, user_id):
        """Idempotent: repeated dismissals keep the first row."""
        cls.get_or_404(event_id)
        dismissed = DismissedFeedback.query.filter_by(event_id=event_id, user_id=user_id).first()
        if not dismissed:
            dismissed = DismissedFeedback(event_id=event_id, user_id=user_id)
            db.session.add(dismissed)
            db.session.commit()
        return dismissed

    def feedback(self):
        from .user import User

        rows = (db.session.query(EventFeedback, User)
                .join(User, EventFeedback.user_id == User.id)
                .filter(EventFeedback.event_id == self.id)
                .order_by(EventFeedback.created_at.desc())
                .all())
        return [dict(fb.to_dict(), user_name=user.name) for fb, user in rows]

    # Skills

    @classmethod
    def assign_skill(cls, event_id, user_id, skill, assigned_by=None):
        """
        Assign (or with an empty skill, remove) a participant's skill.

        Returns:
            The EventParticipantSkill row, or None when the assignment was removed
        """
        event = cls.get_or_404(event_id)
        participant = EventParticipant.query.filter_by(event_id=event.id, user_id=user_id).first()
        if not participant:
            raise NotFoundError('Participant not found for this event')
        if participant.status != PARTICIPANT_ACTIVE:
            raise ValidationError('Can only assign skills to approved participants')

        with transaction():
            existing = EventParticipantSkill.query.filter_by(event_id=event.id, user_id=user_id).first()
            if not skill:
                if existing:
                    db.session.delete(existing)
                return None

            requirements = event.skill_requirements or []
            if requirements:
                requirement = next((r for r in requirements if r.get('skill') == skill), None)
                if requirement is None:
                    raise ValidationError('Invalid skill for this event')
                taken = EventParticipantSkill.query.filter(
                    EventParticipantSkill.event_id == event.id,
                    EventParticipantSkill.skill == skill,
                    EventParticipantSkill.user_id != user_id
                ).count()
                if taken >= parse_int(requirement.get('count')):
                    raise ValidationError('Skill position is already at maximum capacity')

            if existing:
                existing.skill = skill
                existing.assigned_by = assigned_by
                existing.assigned_at = datetime.utcnow()
            else:
                existing = EventParticipantSkill(event_id=event.id, user_id=user_id,
                                                 skill=skill, assigned_by=assigned_by)
                db.session.add(existing)
        return existing

    def participant_skills(self):
        from .user import User

        rows = (db.session.query(EventParticipantSkill, User)
                .join(User, EventParticipantSkill.user_id == User.id)
                .filter(EventParticipantSkill.event_id == self.id)
                .order_by(EventParticipantSkill.assigned_at.desc())
                .all())
        return [dict(skill.to_dict(), user_name=user.name) for skill, user in rows]

    def skill_counts(self):
        rows = (db.session.query(EventParticipantSkill.skill, func.count(EventParticipantSkill.id))
                .filter(EventParticipantSkill.event_id == self.id)
                .group_by(EventParticipantSkill.skill)
                .all())
        return [{'skill': skill, 'count': count} for skill, count in rows]

    @classmethod
    def past_events_for_volunteer(cls, user_id, now=None):
        now = now or datetime.now()
        events = (cls.query
                  .join(EventParticipant, EventParticipant.event_id == cls.id)
                  .filter(EventParticipant.user_id == user_id)
                  .order_by(cls.date.desc())
                  .all())
        return [e for e in events if e.ends_at() and e.ends_at() < now]


class EventParticipant(db.Model):
    """User participation in an event"""
    __tablename__ = 'event_participants'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.String(20), default=PARTICIPANT_PENDING, nullable=False)
    # Which capacity counter the seat came from: 'volunteer' or 'scholar'
    participant_type = db.Column(db.String(20), default='volunteer', nullable=False)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('event_id', 'user_id', name='unique_event_participant'),)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'status': self.status,
            'participant_type': self.participant_type,
            'joined_at': isoformat(self.joined_at),
        }


class EventFeedback(db.Model):
    __tablename__ = 'event_feedback'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    user_type = db.Column(db.String(20), default='volunteer', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('event_id', 'user_id', name='unique_event_feedback'),)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'rating': self.rating,
            'comment': self.comment,
            'user_type': self.user_type,
            'created_at': isoformat(self.created_at),
        }


class ScholarVolunteerFeedback(db.Model):
    __tablename__ = 'scholar_volunteer_feedback'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False)
    scholar_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    volunteer_comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'scholar_id': self.scholar_id,
            'volunteer_comment': self.volunteer_comment,
            'created_at': isoformat(self.created_at),
        }


class DismissedFeedback(db.Model):
    __tablename__ = 'dismissed_feedback'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    dismissed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('event_id', 'user_id', name='unique_dismissed_feedback'),)


class EventParticipantSkill(db.Model):
    __tablename__ = 'event_participant_skills'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    skill = db.Column(db.String(100), nullable=False)
    assigned_by = db.Column(db.Integer)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('event_id', 'user_id', name='unique_participant_skill'),)

    def to_dict(self):
        return {
            'event_id': self.event_id,
            'user_id': self.user_id,
            'skill': self.skill,
            'assigned_by': self.assigned_by,
            'assigned_at': isoformat(self.assigned_at),
        }


def _observe_join(bucket):
    from ..utils.prom_metrics import observe_event_join
    observe_event_join(bucket)
