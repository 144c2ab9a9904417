"""
General Donation Routes

FLOW OVERVIEW
- /api/donations [POST]
  • Public donation form; 201 with the stored donation, admins notified.
- /api/donations [GET], /api/donations/<id> [GET]
  • Admin/staff review list.
- /api/donations/<id>/verify [PUT], /api/donations/<id>/reject [PUT]
  • Admin/staff; the donor is emailed the outcome.
- /api/donations/<id> [DELETE]
  • Admin/staff.
- /api/donations/<id>/send-certificate [POST]
  • Admin/staff; verified donations with an email only.
"""

from flask import Blueprint, g, jsonify, request

from ..models import MonetaryDonation
from ..utils.auth_utils import roles_required
from ..utils.mail_utils import (
    send_general_donation_rejected_email, send_general_donation_verified_email
)

monetary_donations_bp = Blueprint('monetary_donations', __name__)


@monetary_donations_bp.route('', methods=['POST'])
def submit_donation():
    donation = MonetaryDonation.submit(request.get_json(silent=True) or {})
    return jsonify(donation.to_dict()), 201


@monetary_donations_bp.route('')
@roles_required('admin', 'staff')
def list_donations():
    return jsonify([donation.to_dict() for donation in MonetaryDonation.list_all()]), 200


@monetary_donations_bp.route('/<int:donation_id>')
@roles_required('admin', 'staff')
def get_donation(donation_id):
    return jsonify(MonetaryDonation.get_or_404(donation_id).to_dict()), 200


@monetary_donations_bp.route('/<int:donation_id>/verify', methods=['PUT'])
@roles_required('admin', 'staff')
def verify_donation(donation_id):
    donation = MonetaryDonation.verify(donation_id, g.current_account['id'])
    send_general_donation_verified_email(donation.email, donation.full_name, donation.amount,
                                         donation.payment_method)
    return jsonify(donation.to_dict()), 200


@monetary_donations_bp.route('/<int:donation_id>/reject', methods=['PUT'])
@roles_required('admin', 'staff')
def reject_donation(donation_id):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    donation = MonetaryDonation.reject(donation_id, g.current_account['id'], reason)
    send_general_donation_rejected_email(donation.email, donation.full_name, donation.amount, reason)
    return jsonify(donation.to_dict()), 200


@monetary_donations_bp.route('/<int:donation_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_donation(donation_id):
    MonetaryDonation.delete_donation(donation_id)
    return jsonify({'message': 'Donation deleted successfully', 'id': donation_id}), 200


@monetary_donations_bp.route('/<int:donation_id>/send-certificate', methods=['POST'])
@roles_required('admin', 'staff')
def send_certificate(donation_id):
    donation = MonetaryDonation.send_certificate(donation_id)
    return jsonify({
        'success': True,
        'message': 'Certificate sent successfully',
        'donation': donation.to_dict()
    }), 200
