"""
Scholar Donation Model

FLOW OVERVIEW
- ScholarDonation: money pledged to a scholar (scholar_id -> users.id), optionally
  by a registered sponsor, with a tri-state verification_status.
- submit(data): scholar must exist (404); admins are notified.
- verify(id, verifier_id): status -> verified, scholar profile current_amount grows,
  sponsor notified.
- reject(id, rejecter_id, reason): status -> rejected, sponsor notified with reason.
- Listing: all, by sponsor, verified history by scholar; stats().
"""

import logging
from datetime import datetime

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat
from .notification import Notification
from ..utils.errors import NotFoundError, ValidationError
from ..utils.validators import parse_float, parse_int, validate_email

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_VERIFIED = 'verified'
STATUS_REJECTED = 'rejected'


class ScholarDonation(db.Model):
    """Donation to a scholar"""
    __tablename__ = 'scholar_donations'

    id = db.Column(db.Integer, primary_key=True)
    scholar_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    sponsor_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    donor_name = db.Column(db.String(255))
    donor_email = db.Column(db.String(255))
    donor_phone = db.Column(db.String(30))
    amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(50))
    proof_image = db.Column(db.String(500))
    message = db.Column(db.Text, default='')
    verification_status = db.Column(db.String(20), default=STATUS_PENDING, nullable=False)
    verified_at = db.Column(db.DateTime)
    verified_by = db.Column(db.Integer)
    rejected_at = db.Column(db.DateTime)
    rejected_by = db.Column(db.Integer)
    rejection_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<ScholarDonation {self.id} {self.amount} {self.verification_status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'scholar_id': self.scholar_id,
            'sponsor_id': self.sponsor_id,
            'donor_name': self.donor_name,
            'donor_email': self.donor_email,
            'donor_phone': self.donor_phone,
            'amount': self.amount,
            'payment_method': self.payment_method,
            'proof_image': self.proof_image,
            'message': self.message,
            'verification_status': self.verification_status,
            'verified_at': isoformat(self.verified_at),
            'verified_by': self.verified_by,
            'rejected_at': isoformat(self.rejected_at),
            'rejected_by': self.rejected_by,
            'rejection_reason': self.rejection_reason,
            'created_at': isoformat(self.created_at),
        }

    def to_detail_dict(self):
        """Donation with sponsor and scholar names."""
        from .user import User

        data = self.to_dict()
        sponsor = db.session.get(User, self.sponsor_id) if self.sponsor_id else None
        scholar = db.session.get(User, self.scholar_id)
        data['sponsor_name'] = sponsor.name if sponsor else self.donor_name
        data['sponsor_email'] = sponsor.email if sponsor else self.donor_email
        data['scholar_name'] = scholar.name if scholar else None
        return data

    @classmethod
    def get_or_404(cls, donation_id):
        donation = db.session.get(cls, donation_id)
        if not donation:
            raise NotFoundError('Donation not found')
        return donation

    @classmethod
    def submit(cls, data):
        from .user import User

        scholar_id = parse_int(data.get('scholarId') or data.get('scholar_id'), default=None)
        scholar = db.session.get(User, scholar_id) if scholar_id else None
        if not scholar or scholar.role != 'scholar':
            raise NotFoundError(
                'Scholar not found',
                detail=f'No scholar found with ID {scholar_id}. The donation must be linked to a valid scholar account.'
            )

        amount = parse_float(data.get('amount'))
        if amount is None or amount <= 0:
            raise ValidationError('Amount must be greater than zero', field='amount')

        email = data.get('email') or data.get('donor_email')
        if email:
            check = validate_email(email)
            if not check.is_valid:
                raise ValidationError(check.error_message, field='email')
            email = check.sanitized_value

        sponsor_id = parse_int(data.get('sponsorId') or data.get('sponsor_id'), default=None)
        if sponsor_id and not db.session.get(User, sponsor_id):
            raise NotFoundError('Sponsor not found')

        with transaction():
            donation = cls(
                scholar_id=scholar.id,
                sponsor_id=sponsor_id or None,
                donor_name=data.get('name') or data.get('donor_name'),
                donor_email=email,
                donor_phone=data.get('phone') or data.get('donor_phone'),
                amount=amount,
                payment_method=data.get('paymentMethod') or data.get('payment_method'),
                proof_image=data.get('proofImage') or data.get('proof_image'),
                message=data.get('message') or '',
            )
            db.session.add(donation)
            db.session.flush()
            donor = donation.donor_name or 'A donor'
            Notification.notify_admins(
                'new_donation',
                f'{donor} submitted a donation of {amount:,.2f} for {scholar.name}',
                related_id=donation.id
            )
        _observe_donation(STATUS_PENDING)
        logger.info("Donation %s submitted for scholar %s", donation.id, scholar.id)
        return donation

    @classmethod
    def list_all(cls):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc()).all()

    @classmethod
    def by_sponsor(cls, sponsor_id):
        return (cls.query.filter_by(sponsor_id=sponsor_id)
                .order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def history_for_scholar(cls, scholar_id):
        return (cls.query.filter_by(scholar_id=scholar_id, verification_status=STATUS_VERIFIED)
                .order_by(cls.created_at.desc(), cls.id.desc()).all())

    @classmethod
    def verify(cls, donation_id, verifier_id):
        from .scholar import Scholar

        donation = cls.get_or_404(donation_id)
        if donation.verification_status == STATUS_VERIFIED:
            raise ValidationError('Donation is already verified')
        with transaction():
            donation.verification_status = STATUS_VERIFIED
            donation.verified_at = datetime.utcnow()
            donation.verified_by = verifier_id
            donation.rejected_at = None
            donation.rejected_by = None
            donation.rejection_reason = None
            profile = Scholar.query.filter_by(user_id=donation.scholar_id).first()
            if profile:
                profile.current_amount = (profile.current_amount or 0.0) + donation.amount
            if donation.sponsor_id:
                Notification.create(donation.sponsor_id, 'donation_verified',
                                    'Your donation has been verified', related_id=donation.id)
        _observe_donation(STATUS_VERIFIED)
        return donation

    @classmethod
    def reject(cls, donation_id, rejecter_id, reason=None):
        donation = cls.get_or_404(donation_id)
        if donation.verification_status == STATUS_VERIFIED:
            raise ValidationError('A verified donation cannot be rejected')
        with transaction():
            donation.verification_status = STATUS_REJECTED
            donation.rejected_at = datetime.utcnow()
            donation.rejected_by = rejecter_id
            donation.rejection_reason = reason
            donation.verified_at = None
            donation.verified_by = None
            if donation.sponsor_id:
                content = 'Your donation was rejected.'
                if reason:
                    content += f' Reason: {reason}'
                Notification.create(donation.sponsor_id, 'donation_rejected', content,
                                    related_id=donation.id)
        _observe_donation(STATUS_REJECTED)
        return donation

    @classmethod
    def stats(cls):
        total_donors = (db.session.query(func.count(func.distinct(cls.sponsor_id)))
                        .filter(cls.sponsor_id.isnot(None)).scalar())
        total_amount = (db.session.query(func.coalesce(func.sum(cls.amount), 0.0))
                        .filter(cls.verification_status == STATUS_VERIFIED).scalar())
        status_counts = {STATUS_PENDING: 0, STATUS_VERIFIED: 0, STATUS_REJECTED: 0}
        rows = (db.session.query(cls.verification_status, func.count(cls.id))
                .group_by(cls.verification_status).all())
        for status, count in rows:
            status_counts[status] = count
        return {
            'total_donors': total_donors or 0,
            'total_amount': float(total_amount or 0.0),
            'status_counts': status_counts,
        }


def _observe_donation(status):
    from ..utils.prom_metrics import observe_donation
    observe_donation(status)
