"""
Scholar Donation Routes

FLOW OVERVIEW
- /api/scholar-donations [POST]
  • Submit a donation for a scholar; a logged-in sponsor is recorded as sponsor.
- /api/scholar-donations [GET], /api/scholar-donations/<id> [GET],
  /api/scholar-donations/stats [GET]
  • Admin/staff review lists with sponsor and scholar names.
- /api/scholar-donations/<id>/verify [PUT], /api/scholar-donations/<id>/reject [PUT]
  • Admin/staff; the donor is notified and emailed.
- /api/scholar-donations/sponsor/<id> [GET]
  • A sponsor's own donations.
"""

from flask import Blueprint, g, jsonify, request

from ..models import ScholarDonation, User, db
from ..utils.auth_utils import (
    ensure_self_or_privileged, login_required, roles_required, verify_jwt_token
)
from ..utils.mail_utils import send_donation_rejected_email, send_donation_verified_email

donations_bp = Blueprint('donations', __name__)


def _bearer_sponsor_id():
    """Sponsor id from an optional bearer token on a public endpoint."""
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    payload = verify_jwt_token(header[len('Bearer '):].strip())
    if payload and payload.get('account_type') == 'user' and payload.get('role') == 'sponsor':
        return payload['user_id']
    return None


def _donor_contact(donation):
    sponsor = db.session.get(User, donation.sponsor_id) if donation.sponsor_id else None
    scholar = db.session.get(User, donation.scholar_id)
    email = sponsor.email if sponsor else donation.donor_email
    name = sponsor.name if sponsor else donation.donor_name
    return email, name, scholar.name if scholar else 'a scholar'


@donations_bp.route('', methods=['POST'])
def submit_donation():
    data = dict(request.get_json(silent=True) or {})
    sponsor_id = _bearer_sponsor_id()
    if sponsor_id:
        data['sponsorId'] = sponsor_id
    donation = ScholarDonation.submit(data)
    return jsonify({'message': 'Donation submitted successfully', 'donation': donation.to_dict()}), 201


@donations_bp.route('')
@roles_required('admin', 'staff')
def list_donations():
    return jsonify([donation.to_detail_dict() for donation in ScholarDonation.list_all()]), 200


@donations_bp.route('/stats')
@roles_required('admin', 'staff')
def donation_stats():
    return jsonify(ScholarDonation.stats()), 200


@donations_bp.route('/<int:donation_id>')
@roles_required('admin', 'staff')
def get_donation(donation_id):
    return jsonify(ScholarDonation.get_or_404(donation_id).to_detail_dict()), 200


@donations_bp.route('/sponsor/<int:sponsor_id>')
@login_required
def sponsor_donations(sponsor_id):
    ensure_self_or_privileged(sponsor_id)
    return jsonify([donation.to_detail_dict() for donation in ScholarDonation.by_sponsor(sponsor_id)]), 200


@donations_bp.route('/<int:donation_id>/verify', methods=['PUT'])
@roles_required('admin', 'staff')
def verify_donation(donation_id):
    donation = ScholarDonation.verify(donation_id, g.current_account['id'])
    email, name, scholar_name = _donor_contact(donation)
    send_donation_verified_email(email, name, scholar_name, donation.amount)
    return jsonify({'message': 'Donation verified', 'donation': donation.to_dict()}), 200


@donations_bp.route('/<int:donation_id>/reject', methods=['PUT'])
@roles_required('admin', 'staff')
def reject_donation(donation_id):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    donation = ScholarDonation.reject(donation_id, g.current_account['id'], reason)
    email, name, scholar_name = _donor_contact(donation)
    send_donation_rejected_email(email, name, scholar_name, donation.amount, reason)
    return jsonify({'message': 'Donation rejected', 'donation': donation.to_dict()}), 200
