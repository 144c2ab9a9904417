"""
Scholar Routes

FLOW OVERVIEW
- /api/scholars [GET]
  • Verified scholar accounts merged with their sponsorship profile.
- /api/scholars/<id> [GET]
  • One scholar account (id is the user id).
- /api/scholars [POST], /api/scholars/<id> [PUT, DELETE], /api/scholars/bulk-delete [POST]
  • Admin/staff. <id> is a scholar user id, or a standalone profile id when no
    scholar account has that id.
- /api/scholars/<profile_id>/assign [PUT], /api/scholars/<profile_id>/unassign [PUT]
  • Admin/staff; link a profile to an account.
- /api/scholars/<id>/donations [GET]
  • Verified donations received by a scholar.
"""

from flask import Blueprint, jsonify, request

from ..models import Scholar, ScholarDonation
from ..utils.auth_utils import roles_required
from ..utils.errors import ValidationError
from ..utils.validators import parse_id_list, parse_int

scholars_bp = Blueprint('scholars', __name__)


@scholars_bp.route('')
def list_scholars():
    return jsonify(Scholar.list_scholars()), 200


@scholars_bp.route('/<int:user_id>')
def get_scholar(user_id):
    return jsonify(Scholar.get_scholar(user_id)), 200


@scholars_bp.route('', methods=['POST'])
@roles_required('admin', 'staff')
def create_scholar():
    scholar = Scholar.create_standalone(request.get_json(silent=True) or {})
    return jsonify(scholar.to_dict()), 201


@scholars_bp.route('/<int:scholar_id>', methods=['PUT'])
@roles_required('admin', 'staff')
def update_scholar(scholar_id):
    return jsonify(Scholar.update_scholar(scholar_id, request.get_json(silent=True) or {})), 200


@scholars_bp.route('/<int:scholar_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_scholar(scholar_id):
    Scholar.delete_scholar(scholar_id)
    return jsonify({'message': 'Scholar deleted successfully', 'id': scholar_id}), 200


@scholars_bp.route('/bulk-delete', methods=['POST'])
@roles_required('admin', 'staff')
def bulk_delete_scholars():
    data = request.get_json(silent=True) or {}
    deleted = Scholar.bulk_delete(parse_id_list(data.get('ids')))
    return jsonify({'message': f'{len(deleted)} scholars deleted', 'deleted_ids': deleted}), 200


@scholars_bp.route('/<int:scholar_id>/assign', methods=['PUT'])
@roles_required('admin', 'staff')
def assign_user(scholar_id):
    data = request.get_json(silent=True) or {}
    user_id = parse_int(data.get('userId') or data.get('user_id'), default=None)
    if not user_id:
        raise ValidationError('User ID is required')
    return jsonify(Scholar.assign_user(scholar_id, user_id).to_dict()), 200


@scholars_bp.route('/<int:scholar_id>/unassign', methods=['PUT'])
@roles_required('admin', 'staff')
def unassign_user(scholar_id):
    return jsonify(Scholar.unassign_user(scholar_id).to_dict()), 200


@scholars_bp.route('/<int:user_id>/donations')
def donation_history(user_id):
    donations = ScholarDonation.history_for_scholar(user_id)
    return jsonify([donation.to_detail_dict() for donation in donations]), 200
