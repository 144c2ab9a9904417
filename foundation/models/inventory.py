"""
Inventory Model

FLOW OVERVIEW
- InventoryItem: a donated good, either a recurring 'regular' donation or a
  one-off 'inkind' donation, with stock `quantity` and a tri-state
  verification_status.
- submit_item(item_type, data): public donation form; contact details are
  validated, food and medical goods need a future expiration date; admins are
  notified.
- update_item / delete_item / verify_item / reject_item: back-office upkeep.
- distribute(item_id, data, actor): stock is taken with a conditional UPDATE
  (`quantity >= requested`) and an ItemDistribution row is recorded in the same
  transaction; scholar recipients get a distribution notice.
- ItemDistribution.confirm_receipt(...): the recipient reports received /
  not_received; admins are notified.
- Reports: distribution list, per-recipient history, recipients with a known
  location, and per-item totals of verified stock (distribution_stats).
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat, apply_patch
from .notification import Notification
from ..utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..utils.validators import (
    parse_date, parse_int, parse_positive_int, validate_email, validate_phone
)

logger = logging.getLogger(__name__)

ITEM_TYPES = ('regular', 'inkind')

STANDARD_CATEGORIES = [
    'Food & Nutrition',
    'Clothing & Footwear',
    'School Supplies',
    'Medical Supplies',
    'Hygiene Supplies',
]

# Goods that spoil need an expiration date
EXPIRING_CATEGORIES = ('Food & Nutrition', 'Medical Supplies')

RECIPIENT_TYPES = ('scholar', 'volunteer', 'sponsor')

RECEIPT_STATUSES = ('received', 'not_received')

STATS_WINDOWS = {
    'today': timedelta(days=0),
    'week': timedelta(days=7),
    'month': timedelta(days=30),
    'year': timedelta(days=365),
}

ITEM_ALIASES = {
    'donatorName': 'donator_name',
    'contactNumber': 'contact_number',
    'expirationDate': 'expiration_date',
}

ITEM_FIELDS = ('donator_name', 'email', 'contact_number', 'item', 'quantity', 'unit',
               'category', 'frequency', 'expiration_date')

INVENTORY_ICON = '/images/inventory-icon.png'
DONATE_ICON = '/images/donate-icon.png'
VERIFICATION_ICON = '/images/verification-icon.png'


def _type_label(item_type):
    return 'in-kind' if item_type == 'inkind' else item_type


def _positive_quantity(value):
    quantity = parse_positive_int(value)
    if quantity is None:
        raise ValidationError('Quantity must be a positive integer', field='quantity')
    return quantity


class InventoryItem(db.Model):
    """Donated goods held in stock"""
    __tablename__ = 'inventory_items'

    id = db.Column(db.Integer, primary_key=True)
    item_type = db.Column(db.String(10), nullable=False, index=True)
    donator_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    contact_number = db.Column(db.String(30), nullable=False)
    item = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, default=0, nullable=False)
    unit = db.Column(db.String(50), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    frequency = db.Column(db.String(50))
    expiration_date = db.Column(db.Date)
    verification_status = db.Column(db.String(20), default='pending', nullable=False)
    verified_at = db.Column(db.DateTime)
    verified_by = db.Column(db.Integer)
    rejected_at = db.Column(db.DateTime)
    rejected_by = db.Column(db.Integer)
    rejection_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    distributions = db.relationship('ItemDistribution', back_populates='inventory_item',
                                    cascade='all, delete-orphan')

    def __repr__(self):
        return f'<InventoryItem {self.item_type}:{self.item} x{self.quantity}>'

    def to_dict(self):
        return {
            'id': self.id,
            'type': _type_label(self.item_type),
            'donator_name': self.donator_name,
            'email': self.email,
            'contact_number': self.contact_number,
            'item': self.item,
            'quantity': self.quantity,
            'unit': self.unit,
            'category': self.category,
            'frequency': self.frequency,
            'expiration_date': isoformat(self.expiration_date),
            'verification_status': self.verification_status,
            'verified_at': isoformat(self.verified_at),
            'verified_by': self.verified_by,
            'rejected_at': isoformat(self.rejected_at),
            'rejected_by': self.rejected_by,
            'rejection_reason': self.rejection_reason,
            'created_at': isoformat(self.created_at),
            'last_updated': isoformat(self.last_updated),
        }

    @classmethod
    def get_or_404(cls, item_id, item_type=None, message='Item not found'):
        item = db.session.get(cls, item_id)
        if not item or (item_type and item.item_type != item_type):
            raise NotFoundError(message)
        return item

    @classmethod
    def list_items(cls, item_type=None):
        query = cls.query
        if item_type:
            query = query.filter_by(item_type=item_type)
        return query.order_by(cls.created_at.desc(), cls.id.desc()).all()

    @staticmethod
    def _check_expiration(category, expiration_date):
        if category in EXPIRING_CATEGORIES:
            if not expiration_date:
                raise ValidationError('Expiration date is required for food and medical items',
                                      field='expiration_date')
            if expiration_date <= date.today():
                raise ValidationError('Expiration date must be in the future', field='expiration_date')

    @classmethod
    def submit_item(cls, item_type, data):
        """Record a donation of goods from the public form."""
        required = ('donatorName', 'email', 'contactNumber', 'item', 'quantity', 'category', 'unit')
        if any(data.get(key) in (None, '') for key in required):
            raise ValidationError('All fields are required')

        email_check = validate_email(data['email'])
        if not email_check.is_valid:
            raise ValidationError('Please enter a valid email address (e.g., example@domain.com)',
                                  field='email')
        phone_check = validate_phone(data['contactNumber'])
        if not phone_check.is_valid:
            raise ValidationError(phone_check.error_message, field='contact_number')
        quantity = _positive_quantity(data['quantity'])
        expiration_date = parse_date(data.get('expirationDate'))
        cls._check_expiration(data['category'], expiration_date)

        with transaction():
            item = cls(
                item_type=item_type,
                donator_name=data['donatorName'].strip(),
                email=email_check.sanitized_value,
                contact_number=phone_check.sanitized_value,
                item=data['item'].strip(),
                quantity=quantity,
                unit=data['unit'],
                category=data['category'],
                frequency=data.get('frequency') if item_type == 'regular' else None,
                expiration_date=expiration_date,
            )
            db.session.add(item)
            db.session.flush()
            Notification.notify_admins(
                'donation',
                f'New {_type_label(item_type)} donation: {quantity} {item.unit} of {item.item}'
                f' from {item.donator_name} is waiting for verification.',
                related_id=item.id,
                actor={'name': item.donator_name, 'avatar': DONATE_ICON}
            )
        logger.info("Inventory %s item %s submitted", item_type, item.id)
        return item

    def update_item(self, data):
        data = dict(data or {})
        if data.get('email'):
            email_check = validate_email(data['email'])
            if not email_check.is_valid:
                raise ValidationError(email_check.error_message, field='email')
            data['email'] = email_check.sanitized_value
        phone = data.get('contactNumber') or data.get('contact_number')
        if phone:
            phone_check = validate_phone(phone)
            if not phone_check.is_valid:
                raise ValidationError(phone_check.error_message, field='contact_number')
            data.pop('contactNumber', None)
            data['contact_number'] = phone_check.sanitized_value

        with transaction():
            apply_patch(self, data, allowed=ITEM_FIELDS, aliases=ITEM_ALIASES,
                        coercers={'quantity': _positive_quantity, 'expiration_date': parse_date},
                        nullable=('frequency', 'expiration_date'))
        return self

    @classmethod
    def delete_item(cls, item_id, item_type):
        item = cls.get_or_404(item_id, item_type)
        with transaction():
            db.session.delete(item)
        logger.info("Deleted inventory %s item %s", item_type, item_id)
        return item_id

    @classmethod
    def verify_item(cls, item_id, item_type, verifier_id, expiration_date=None):
        item = cls.get_or_404(item_id, item_type, message='Donation not found')
        with transaction():
            item.verification_status = 'verified'
            item.verified_at = datetime.utcnow()
            item.verified_by = verifier_id
            item.rejected_at = None
            item.rejected_by = None
            item.rejection_reason = None
            if expiration_date:
                item.expiration_date = parse_date(expiration_date)
            Notification.notify_admins(
                'donation_verified',
                f'{_type_label(item_type).capitalize()} donation of {item.quantity} {item.unit}'
                f' {item.item} from {item.donator_name} has been verified.',
                related_id=item.id
            )
        return item

    @classmethod
    def reject_item(cls, item_id, item_type, rejecter_id, reason=None):
        item = cls.get_or_404(item_id, item_type, message='Donation not found')
        with transaction():
            item.verification_status = 'rejected'
            item.rejected_at = datetime.utcnow()
            item.rejected_by = rejecter_id
            item.rejection_reason = reason
            Notification.notify_admins(
                'donation_rejected',
                f'{_type_label(item_type).capitalize()} donation of {item.quantity} {item.unit}'
                f' {item.item} from {item.donator_name} has been rejected.'
                f' Reason: {reason or "Not specified"}',
                related_id=item.id
            )
        return item

    # Distribution

    @classmethod
    def take_stock(cls, item_id, quantity):
        """Decrement stock only while enough is left; True on success."""
        updated = (db.session.query(cls)
                   .filter(cls.id == item_id, cls.quantity >= quantity)
                   .update({cls.quantity: cls.quantity - quantity,
                            cls.last_updated: datetime.utcnow()},
                           synchronize_session='fetch'))
        return updated == 1

    @classmethod
    def distribute(cls, item_id, item_type, data, actor=None):
        """
        Hand `quantity` units of an item to a portal user.

        Returns:
            (item, distribution)
        """
        from .user import User

        recipient_type = data.get('recipientType')
        if data.get('quantity') in (None, '') or not data.get('recipientId') or not recipient_type:
            raise ValidationError('All fields are required')
        quantity = _positive_quantity(data['quantity'])
        if recipient_type not in RECIPIENT_TYPES:
            raise ValidationError('Invalid recipient type', field='recipientType')

        item = cls.get_or_404(item_id, item_type)
        recipient_id = parse_int(data['recipientId'], default=None)
        recipient = db.session.get(User, recipient_id) if recipient_id else None
        if not recipient:
            raise NotFoundError('Recipient not found')

        unit = data.get('unit') or item.unit
        with transaction():
            if not cls.take_stock(item.id, quantity):
                raise ValidationError('Insufficient quantity')
            distribution = ItemDistribution(
                item_id=item.id,
                item_type=item.item_type,
                recipient_id=recipient.id,
                recipient_type=recipient_type,
                quantity=quantity,
                unit=unit,
                distributed_by=(actor or {}).get('id'),
            )
            db.session.add(distribution)
            db.session.flush()
            if recipient_type == 'scholar':
                Notification.distribution_notice(recipient.id, item.item, quantity,
                                                 distribution.id, unit=unit)
            Notification.notify_admins(
                'distribution',
                f'{quantity} {unit} of {item.item} has been distributed to'
                f' {recipient.name} ({recipient_type})',
                related_id=distribution.id,
                actor=dict(actor or {}, avatar=INVENTORY_ICON)
            )
        db.session.refresh(item)
        _observe_distribution(item.item_type)
        logger.info("Distributed %s x%s to user %s", item.id, quantity, recipient.id)
        return item, distribution

    @classmethod
    def distribution_stats(cls, category=None, time_range=None):
        """Verified stock grouped by item, category, unit and type."""
        query = db.session.query(
            cls.item, cls.category, cls.unit, cls.item_type,
            func.sum(cls.quantity), func.count(cls.id), func.max(cls.created_at)
        ).filter(cls.verification_status == 'verified')
        if category and category != 'all':
            query = query.filter(cls.category == category)
        if time_range and time_range != 'all':
            if time_range not in STATS_WINDOWS:
                raise ValidationError(f'Unknown time range: {time_range}')
            since = datetime.combine(date.today(), datetime.min.time()) - STATS_WINDOWS[time_range]
            query = query.filter(cls.created_at >= since)
        rows = (query.group_by(cls.item, cls.category, cls.unit, cls.item_type)
                .order_by(cls.category, cls.item).all())
        return [{
            'id': f'{group}-{name}'.replace(' ', '-').lower(),
            'item': name,
            'category': group,
            'quantity': int(total or 0),
            'unit': unit,
            'source': source,
            'donation_count': count,
            'last_donated': isoformat(last_donated),
        } for name, group, unit, source, total, count, last_donated in rows]


class ItemDistribution(db.Model):
    """Goods handed from inventory to a portal user"""
    __tablename__ = 'item_distributions'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False, index=True)
    item_type = db.Column(db.String(10), nullable=False)
    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    recipient_type = db.Column(db.String(20), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(50))
    status = db.Column(db.String(20), default='pending', nullable=False)
    verification_date = db.Column(db.DateTime)
    verification_message = db.Column(db.Text)
    distributed_by = db.Column(db.Integer)
    distributed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    inventory_item = db.relationship('InventoryItem', back_populates='distributions')

    def __repr__(self):
        return f'<ItemDistribution {self.item_id} -> {self.recipient_id} x{self.quantity}>'

    def to_dict(self):
        return {
            'id': self.id,
            'item_id': self.item_id,
            'item_type': _type_label(self.item_type),
            'recipient_id': self.recipient_id,
            'recipient_type': self.recipient_type,
            'quantity': self.quantity,
            'unit': self.unit,
            'status': self.status,
            'verification_date': isoformat(self.verification_date),
            'verification_message': self.verification_message,
            'distributed_by': self.distributed_by,
            'distributed_at': isoformat(self.distributed_at),
        }

    def to_detail_dict(self):
        """Distribution with item and recipient names."""
        from .user import User

        data = self.to_dict()
        recipient = db.session.get(User, self.recipient_id)
        data['item_name'] = self.inventory_item.item
        data['category'] = self.inventory_item.category
        data['recipient_name'] = recipient.name if recipient else None
        data['recipient_email'] = recipient.email if recipient else None
        return data

    @property
    def item_label(self):
        return f'{self.quantity} {self.unit} of {self.inventory_item.item}'

    @classmethod
    def get_or_404(cls, distribution_id):
        distribution = db.session.get(cls, distribution_id)
        if not distribution:
            raise NotFoundError('Distribution not found')
        return distribution

    @classmethod
    def list_all(cls):
        return cls.query.order_by(cls.distributed_at.desc(), cls.id.desc()).all()

    @classmethod
    def for_recipient(cls, recipient_id):
        from .user import User

        if not db.session.get(User, recipient_id):
            raise NotFoundError('Recipient not found')
        return (cls.query.filter_by(recipient_id=recipient_id)
                .order_by(cls.distributed_at.desc(), cls.id.desc()).all())

    @classmethod
    def with_locations(cls, recipient_type=None):
        """Distributions whose recipient has saved map coordinates."""
        from .user import User

        query = (db.session.query(cls, User)
                 .join(User, User.id == cls.recipient_id)
                 .filter(User.latitude.isnot(None), User.longitude.isnot(None)))
        if recipient_type:
            query = query.filter(cls.recipient_type == recipient_type)
        rows = query.order_by(cls.distributed_at.desc(), cls.id.desc()).all()
        results = []
        for distribution, user in rows:
            data = distribution.to_dict()
            data.update({
                'item_name': distribution.inventory_item.item,
                'category': distribution.inventory_item.category,
                'recipient_name': user.name,
                'latitude': user.latitude,
                'longitude': user.longitude,
            })
            results.append(data)
        return results

    @classmethod
    def confirm_receipt(cls, distribution_id, user_id, status, message=None):
        """Recipient reports whether the goods arrived; admins are told either way."""
        from .user import User

        if status not in RECEIPT_STATUSES:
            raise ValidationError('Invalid status')
        distribution = cls.get_or_404(distribution_id)
        if distribution.recipient_id != user_id:
            raise PermissionDeniedError('Only the recipient can confirm this distribution')
        recipient = User.get_or_404(user_id)

        with transaction():
            distribution.status = status
            distribution.verification_date = datetime.utcnow()
            distribution.verification_message = message or None
            outcome = 'verified receipt of' if status == 'received' else 'reported an issue with'
            content = f'{recipient.name} has {outcome} {distribution.item_label}'
            if message:
                content += f'. Message: {message}'
            Notification.notify_admins(
                'distribution_verification', content, related_id=distribution.id,
                actor={'id': recipient.id, 'type': 'user', 'name': recipient.name,
                       'avatar': VERIFICATION_ICON}
            )
        return distribution


def _observe_distribution(item_type):
    from ..utils.prom_metrics import observe_distribution
    observe_distribution(item_type)
