"""
Report Card Models

FLOW OVERVIEW
- ReportCard: a scholar's current grade submission.
  status: pending → in_review → verified, or rejected; verification_step 1..3.
- submit(...): blocked while a pending/in_review card exists; sets the user's
  has_submitted_report flag; notifies the scholar and admins.
- review / verify / reject: status transitions, each notifying the scholar.
- renew(id): archive the card into ReportCardHistory, delete it and clear
  has_submitted_report so the scholar submits again (one transaction).
- History, per-user, statistics and per-grade listings.
"""

import logging
from datetime import datetime

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat
from .notification import Notification
from ..utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ('pending', 'in_review')
MAX_VERIFICATION_STEP = 3

STATUS_MESSAGES = {
    'pending': 'Your report card has been submitted and is pending review.',
    'in_review': 'Your report card is now being reviewed.',
    'verified': 'Your report card has been verified.',
    'rejected': 'Your report card was rejected.',
    'renewal_requested': ('You need to submit a new report card with updated information. '
                          'Your previous report card history is still available.'),
}


def report_card_notice(user_id, status, content=None, related_id=None):
    """Queue a report card status notification for the scholar."""
    return Notification.create(
        user_id, 'report_card_' + status, content or STATUS_MESSAGES.get(status, status),
        related_id=related_id
    )


class ReportCard(db.Model):
    """Current report card submission"""
    __tablename__ = 'report_cards'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    front_image = db.Column(db.String(500), nullable=False)
    back_image = db.Column(db.String(500), nullable=False)
    grade_level = db.Column(db.String(50), nullable=False)
    grading_period = db.Column(db.String(50), nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    verification_step = db.Column(db.Integer, default=1, nullable=False)
    rejection_reason = db.Column(db.Text)
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<ReportCard {self.id} user={self.user_id} {self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'front_image': self.front_image,
            'back_image': self.back_image,
            'grade_level': self.grade_level,
            'grading_period': self.grading_period,
            'status': self.status,
            'verification_step': self.verification_step,
            'rejection_reason': self.rejection_reason,
            'submitted_at': isoformat(self.submitted_at),
            'updated_at': isoformat(self.updated_at),
        }

    @classmethod
    def get_or_404(cls, report_card_id):
        card = db.session.get(cls, report_card_id)
        if not card:
            raise NotFoundError('Report card not found')
        return card

    @classmethod
    def active_for_user(cls, user_id):
        return (cls.query
                .filter(cls.user_id == user_id, cls.status.in_(ACTIVE_STATUSES))
                .order_by(cls.submitted_at.desc(), cls.id.desc())
                .first())

    @classmethod
    def latest_for_user(cls, user_id):
        return (cls.query.filter_by(user_id=user_id)
                .order_by(cls.submitted_at.desc(), cls.id.desc())
                .first())

    @classmethod
    def submit(cls, user_id, front_image, back_image, grade_level, grading_period):
        from .user import User

        if user_id and cls.active_for_user(user_id):
            raise ValidationError(
                'Active submission exists',
                detail='You already have an active report card submission. Please wait for it to be processed.'
            )
        missing = {
            'userId': not user_id,
            'frontImage': not front_image,
            'backImage': not back_image,
            'gradeLevel': not grade_level,
            'gradingPeriod': not grading_period,
        }
        if any(missing.values()):
            raise ValidationError('Missing required fields', detail=missing)

        user = User.get_or_404(user_id, role='scholar', label='Scholar')
        with transaction():
            card = cls(
                user_id=user.id,
                front_image=front_image,
                back_image=back_image,
                grade_level=str(grade_level),
                grading_period=str(grading_period),
                status='pending',
                verification_step=1,
            )
            db.session.add(card)
            user.has_submitted_report = True
            db.session.flush()
            report_card_notice(user.id, 'pending', related_id=card.id)
            Notification.notify_admins(
                'report_card_pending',
                f'New report card submitted by {user.name} (Grade: {grade_level})',
                related_id=card.id
            )
        logger.info("Report card %s submitted by scholar %s", card.id, user.id)
        return card

    @classmethod
    def review(cls, report_card_id):
        card = cls.get_or_404(report_card_id)
        if card.status not in ACTIVE_STATUSES:
            raise ValidationError('Only pending report cards can be moved to review')
        with transaction():
            card.status = 'in_review'
            card.verification_step = max(card.verification_step, 2)
            report_card_notice(card.user_id, 'in_review', related_id=card.id)
        return card

    @classmethod
    def verify(cls, report_card_id):
        """Advance one verification step: step 1 → in_review, step 2 → verified."""
        card = cls.get_or_404(report_card_id)
        with transaction():
            if card.verification_step == 1:
                card.status = 'in_review'
            elif card.verification_step == 2:
                card.status = 'verified'
            card.verification_step = min(card.verification_step + 1, MAX_VERIFICATION_STEP)
            report_card_notice(card.user_id, card.status, related_id=card.id)
        return card

    @classmethod
    def reject(cls, report_card_id, reason):
        if not reason or not str(reason).strip():
            raise ValidationError('Rejection reason is required')
        card = cls.get_or_404(report_card_id)
        with transaction():
            card.status = 'rejected'
            card.rejection_reason = str(reason).strip()
            report_card_notice(
                card.user_id, 'rejected',
                content=f'Your report card was rejected. Reason: {card.rejection_reason}',
                related_id=card.id
            )
        return card

    @classmethod
    def renew(cls, report_card_id):
        """Archive the card and ask the scholar for a fresh submission."""
        from .user import User

        card = cls.get_or_404(report_card_id)
        user = db.session.get(User, card.user_id)
        with transaction():
            history = ReportCardHistory.from_report_card(card)
            db.session.add(history)
            db.session.delete(card)
            if user:
                user.has_submitted_report = False
            db.session.flush()
            report_card_notice(card.user_id, 'renewal_requested', related_id=history.id)
            if user:
                Notification.notify_admins(
                    'report_card_renewal_requested',
                    f"Renewal requested for {user.name}'s report card",
                    related_id=history.id
                )
        logger.info("Report card %s archived as history %s", report_card_id, history.id)
        return history, user

    @classmethod
    def delete_card(cls, report_card_id):
        card = cls.get_or_404(report_card_id)
        db.session.delete(card)
        db.session.commit()
        return report_card_id

    @classmethod
    def all_with_users(cls, grade_level=None):
        from .user import User

        query = (db.session.query(cls, User)
                 .outerjoin(User, cls.user_id == User.id))
        if grade_level:
            query = query.filter(cls.grade_level == grade_level)
        rows = query.order_by(cls.submitted_at.desc(), cls.id.desc()).all()
        return [dict(card.to_dict(),
                     user_name=user.name if user else None,
                     user_email=user.email if user else None)
                for card, user in rows]

    @classmethod
    def statistics(cls):
        by_status = dict(db.session.query(cls.status, func.count(cls.id)).group_by(cls.status).all())
        by_grade = dict(db.session.query(cls.grade_level, func.count(cls.id))
                        .group_by(cls.grade_level).all())
        return {
            'total': sum(by_status.values()),
            'by_status': {status: by_status.get(status, 0)
                          for status in ('pending', 'in_review', 'verified', 'rejected')},
            'by_grade_level': by_grade,
        }


class ReportCardHistory(db.Model):
    """Archived report card"""
    __tablename__ = 'report_card_history'

    id = db.Column(db.Integer, primary_key=True)
    original_id = db.Column(db.Integer)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    front_image = db.Column(db.String(500))
    back_image = db.Column(db.String(500))
    grade_level = db.Column(db.String(50))
    grading_period = db.Column(db.String(50))
    status = db.Column(db.String(20))
    verification_step = db.Column(db.Integer)
    rejection_reason = db.Column(db.Text)
    submitted_at = db.Column(db.DateTime)
    archived_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def from_report_card(cls, card):
        return cls(
            original_id=card.id,
            user_id=card.user_id,
            front_image=card.front_image,
            back_image=card.back_image,
            grade_level=card.grade_level,
            grading_period=card.grading_period,
            status=card.status,
            verification_step=card.verification_step,
            rejection_reason=card.rejection_reason,
            submitted_at=card.submitted_at,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'original_id': self.original_id,
            'user_id': self.user_id,
            'front_image': self.front_image,
            'back_image': self.back_image,
            'grade_level': self.grade_level,
            'grading_period': self.grading_period,
            'status': self.status,
            'verification_step': self.verification_step,
            'rejection_reason': self.rejection_reason,
            'submitted_at': isoformat(self.submitted_at),
            'archived_at': isoformat(self.archived_at),
        }

    @classmethod
    def for_user(cls, user_id):
        return (cls.query.filter_by(user_id=user_id)
                .order_by(cls.archived_at.desc(), cls.id.desc()).all())

    @classmethod
    def get_or_404(cls, history_id):
        entry = db.session.get(cls, history_id)
        if not entry:
            raise NotFoundError('Report card history entry not found')
        return entry
