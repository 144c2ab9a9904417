"""
Monetary Donation Model

FLOW OVERVIEW
- MonetaryDonation: a general cash donation to the foundation (not tied to a
  scholar), submitted from the public donation form.
- submit(data): donor name, email, contact number, amount and date are required;
  amount must lie in (0, 999,999,999.99]; admins are notified.
- verify / reject: tri-state verification_status; admins are notified, the
  route emails the donor.
- send_certificate(id): verified donations with an email only; records
  certificate_sent / certificate_sent_at once the mail went out.
"""

import logging
from datetime import datetime

from .database import db, transaction
from .utils import isoformat
from .notification import Notification
from ..utils.errors import MailDeliveryError, NotFoundError, ValidationError
from ..utils.validators import parse_date, parse_float, validate_email

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_VERIFIED = 'verified'
STATUS_REJECTED = 'rejected'

MAX_AMOUNT = 999999999.99

DONATE_ICON = '/images/donate-icon.png'
SUCCESS_ICON = '/images/success-icon.png'
ERROR_ICON = '/images/error-icon.png'


class MonetaryDonation(db.Model):
    """General donation"""
    __tablename__ = 'monetary_donations'

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    contact_number = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    message = db.Column(db.Text)
    proof_of_payment = db.Column(db.String(500))
    payment_method = db.Column(db.String(50))
    date = db.Column(db.Date, nullable=False)
    verification_status = db.Column(db.String(20), default=STATUS_PENDING, nullable=False)
    verified_at = db.Column(db.DateTime)
    verified_by = db.Column(db.Integer)
    rejected_at = db.Column(db.DateTime)
    rejected_by = db.Column(db.Integer)
    rejection_reason = db.Column(db.Text)
    certificate_sent = db.Column(db.Boolean, default=False, nullable=False)
    certificate_sent_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<MonetaryDonation {self.id} {self.amount} {self.verification_status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'email': self.email,
            'contact_number': self.contact_number,
            'amount': self.amount,
            'message': self.message,
            'proof_of_payment': self.proof_of_payment,
            'payment_method': self.payment_method,
            'date': isoformat(self.date),
            'verification_status': self.verification_status,
            'verified_at': isoformat(self.verified_at),
            'verified_by': self.verified_by,
            'rejected_at': isoformat(self.rejected_at),
            'rejected_by': self.rejected_by,
            'rejection_reason': self.rejection_reason,
            'certificate_sent': self.certificate_sent,
            'certificate_sent_at': isoformat(self.certificate_sent_at),
            'created_at': isoformat(self.created_at),
        }

    @classmethod
    def get_or_404(cls, donation_id):
        donation = db.session.get(cls, donation_id)
        if not donation:
            raise NotFoundError('Donation not found')
        return donation

    @classmethod
    def list_all(cls):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc()).all()

    @classmethod
    def submit(cls, data):
        full_name = (data.get('fullName') or data.get('full_name') or '').strip()
        email = data.get('email')
        contact_number = (data.get('contactNumber') or data.get('contact_number') or '').strip()
        raw_amount = data.get('amount')
        raw_date = data.get('date')
        if not full_name or not email or not contact_number or raw_amount in (None, '') or not raw_date:
            raise ValidationError('Missing required fields')

        email_check = validate_email(email)
        if not email_check.is_valid:
            raise ValidationError(email_check.error_message, field='email')

        amount = parse_float(raw_amount)
        if amount is None or amount <= 0 or amount > MAX_AMOUNT:
            raise ValidationError('Invalid amount. Amount must be between 0 and 999,999,999.99',
                                  field='amount')

        with transaction():
            donation = cls(
                full_name=full_name,
                email=email_check.sanitized_value,
                contact_number=contact_number,
                amount=amount,
                message=data.get('message') or None,
                proof_of_payment=data.get('proofOfPayment') or data.get('proof_of_payment'),
                payment_method=data.get('paymentMethod') or data.get('payment_method'),
                date=parse_date(raw_date),
            )
            db.session.add(donation)
            db.session.flush()
            Notification.notify_admins(
                'donation',
                f'New donation of {amount:,.2f} from {full_name} is waiting for verification.',
                related_id=donation.id,
                actor={'name': full_name, 'avatar': DONATE_ICON}
            )
        _observe_donation(STATUS_PENDING)
        logger.info("Monetary donation %s submitted", donation.id)
        return donation

    @classmethod
    def verify(cls, donation_id, verifier_id):
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
            Notification.notify_admins(
                'donation_verified',
                f'Donation of {donation.amount:,.2f} from {donation.full_name} has been verified.',
                related_id=donation.id,
                actor={'avatar': SUCCESS_ICON}
            )
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
            Notification.notify_admins(
                'donation_rejected',
                f'Donation of {donation.amount:,.2f} from {donation.full_name} has been rejected.'
                f' Reason: {reason or "Not specified"}',
                related_id=donation.id,
                actor={'avatar': ERROR_ICON}
            )
        _observe_donation(STATUS_REJECTED)
        return donation

    @classmethod
    def delete_donation(cls, donation_id):
        donation = cls.get_or_404(donation_id)
        with transaction():
            db.session.delete(donation)
        return donation_id

    @classmethod
    def send_certificate(cls, donation_id):
        """
        Email a donation certificate and record that it was sent.

        Raises:
            ValidationError: donation not verified, or no donor email
            MailDeliveryError: the mail server refused the message
        """
        from ..utils.mail_utils import send_donation_certificate_email

        donation = cls.get_or_404(donation_id)
        if donation.verification_status != STATUS_VERIFIED:
            raise ValidationError('Only verified donations can receive certificates')
        if not donation.email:
            raise ValidationError('Donor email is missing')

        sent = send_donation_certificate_email(
            donation.email, donation.full_name, donation.amount,
            isoformat(donation.date or donation.created_at), donation.id
        )
        if not sent:
            raise MailDeliveryError('Failed to send certificate')

        donation.certificate_sent = True
        donation.certificate_sent_at = datetime.utcnow()
        db.session.commit()
        return donation


def _observe_donation(status):
    from ..utils.prom_metrics import observe_donation
    observe_donation(status, kind='monetary')
