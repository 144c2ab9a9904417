"""
Report Card Routes

FLOW OVERVIEW
- /api/report-cards [POST]
  • Scholar submits front/back images, grade level and grading period.
- /api/report-cards/user/<uid>/latest|active|history [GET]
  • Owner or admin/staff.
- /api/report-cards [GET] (?grade=), /api/report-cards/statistics [GET],
  /api/report-cards/history/<id> [GET]
  • Admin/staff review views.
- /api/report-cards/<id>/review|verify|reject [PUT], /api/report-cards/<id>/renew [POST],
  /api/report-cards/<id> [DELETE]
  • Admin/staff transitions; the scholar is notified (and emailed for
    verified, rejected and renewal requests).
"""

from flask import Blueprint, g, jsonify, request

from ..models import ReportCard, ReportCardHistory, User, db
from ..utils.auth_utils import ensure_self_or_privileged, login_required, roles_required
from ..utils.errors import PermissionDeniedError
from ..utils.mail_utils import send_report_card_status_email

report_cards_bp = Blueprint('report_cards', __name__)


def _email_scholar(card, status, detail=None):
    user = db.session.get(User, card.user_id)
    if user:
        send_report_card_status_email(user, status, detail)


@report_cards_bp.route('', methods=['POST'])
@login_required
def submit_report_card():
    account = g.current_account
    if account['account_type'] != 'user':
        raise PermissionDeniedError('Only scholars can submit report cards')
    data = request.get_json(silent=True) or {}
    card = ReportCard.submit(
        account['id'],
        data.get('frontImage') or data.get('front_image'),
        data.get('backImage') or data.get('back_image'),
        data.get('gradeLevel') or data.get('grade_level'),
        data.get('gradingPeriod') or data.get('grading_period'),
    )
    return jsonify(card.to_dict()), 201


@report_cards_bp.route('/user/<int:user_id>/latest')
@login_required
def latest_report_card(user_id):
    ensure_self_or_privileged(user_id)
    card = ReportCard.latest_for_user(user_id)
    return jsonify(card.to_dict() if card else None), 200


@report_cards_bp.route('/user/<int:user_id>/active')
@login_required
def active_report_card(user_id):
    ensure_self_or_privileged(user_id)
    card = ReportCard.active_for_user(user_id)
    return jsonify(card.to_dict() if card else None), 200


@report_cards_bp.route('/user/<int:user_id>/history')
@login_required
def report_card_history(user_id):
    ensure_self_or_privileged(user_id)
    return jsonify([entry.to_dict() for entry in ReportCardHistory.for_user(user_id)]), 200


@report_cards_bp.route('')
@roles_required('admin', 'staff')
def all_report_cards():
    return jsonify(ReportCard.all_with_users(grade_level=request.args.get('grade'))), 200


@report_cards_bp.route('/statistics')
@roles_required('admin', 'staff')
def report_card_statistics():
    return jsonify(ReportCard.statistics()), 200


@report_cards_bp.route('/history/<int:history_id>')
@roles_required('admin', 'staff')
def history_entry(history_id):
    return jsonify(ReportCardHistory.get_or_404(history_id).to_dict()), 200


@report_cards_bp.route('/<int:report_card_id>/review', methods=['PUT'])
@roles_required('admin', 'staff')
def review_report_card(report_card_id):
    return jsonify(ReportCard.review(report_card_id).to_dict()), 200


@report_cards_bp.route('/<int:report_card_id>/verify', methods=['PUT'])
@roles_required('admin', 'staff')
def verify_report_card(report_card_id):
    card = ReportCard.verify(report_card_id)
    if card.status == 'verified':
        _email_scholar(card, 'verified', f'Grading period: {card.grading_period}')
    return jsonify(card.to_dict()), 200


@report_cards_bp.route('/<int:report_card_id>/reject', methods=['PUT'])
@roles_required('admin', 'staff')
def reject_report_card(report_card_id):
    data = request.get_json(silent=True) or {}
    card = ReportCard.reject(report_card_id, data.get('reason'))
    _email_scholar(card, 'rejected', f'Reason: {card.rejection_reason}')
    return jsonify(card.to_dict()), 200


@report_cards_bp.route('/<int:report_card_id>/renew', methods=['POST'])
@roles_required('admin', 'staff')
def renew_report_card(report_card_id):
    history, user = ReportCard.renew(report_card_id)
    if user:
        send_report_card_status_email(user, 'renewal_requested')
    return jsonify({'message': 'Report card renewal requested', 'history': history.to_dict()}), 200


@report_cards_bp.route('/<int:report_card_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_report_card(report_card_id):
    ReportCard.delete_card(report_card_id)
    return jsonify({'message': 'Report card deleted', 'id': report_card_id}), 200
