"""
Inventory Routes

FLOW OVERVIEW
- /api/inventory [GET], /api/inventory/categories [GET]
  • Admin/staff; every item of both kinds, and the standard category list.
- /api/inventory/<regular|inkind> [GET, POST]
  • GET is admin/staff; POST is the public goods donation form.
- /api/inventory/<regular|inkind>/<id> [PUT, DELETE]
  • Admin/staff upkeep; deleting an item drops its distribution records.
- /api/inventory/<regular|inkind>/<id>/verify [POST], .../reject [POST]
  • Admin/staff review of a donated item.
- /api/inventory/<regular|inkind>/<id>/distribute [POST]
  • Admin/staff; {quantity, recipientId, recipientType, unit?}; stock never
    goes below zero (400 Insufficient quantity).
- /api/inventory/distributions [GET], /api/inventory/distribution-stats [GET],
  /api/inventory/distributions/locations [GET], /api/inventory/scholar-distributions [GET]
  • Admin/staff reports.
- /api/inventory/distributions/<id>/verify [PUT]
  • Recipient confirms receipt ({status: received|not_received, message?}).
- /api/inventory/recipient-distributions/<id> [GET]
  • The recipient or admin/staff.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..models import InventoryItem, ItemDistribution
from ..models.inventory import STANDARD_CATEGORIES
from ..utils.auth_utils import (
    current_actor, ensure_self_or_privileged, login_required, roles_required
)
from ..utils.errors import PermissionDeniedError
from ..utils.mail_utils import send_distribution_report_email

inventory_bp = Blueprint('inventory', __name__)

ITEM_KIND = '<any(regular, inkind):kind>'


@inventory_bp.route('')
@roles_required('admin', 'staff')
def list_inventory():
    return jsonify([item.to_dict() for item in InventoryItem.list_items()]), 200


@inventory_bp.route('/categories')
def list_categories():
    return jsonify(STANDARD_CATEGORIES), 200


@inventory_bp.route(f'/{ITEM_KIND}')
@roles_required('admin', 'staff')
def list_items(kind):
    return jsonify([item.to_dict() for item in InventoryItem.list_items(kind)]), 200


@inventory_bp.route(f'/{ITEM_KIND}', methods=['POST'])
def submit_item(kind):
    item = InventoryItem.submit_item(kind, request.get_json(silent=True) or {})
    return jsonify(item.to_dict()), 201


@inventory_bp.route(f'/{ITEM_KIND}/<int:item_id>', methods=['PUT'])
@roles_required('admin', 'staff')
def update_item(kind, item_id):
    item = InventoryItem.get_or_404(item_id, kind).update_item(request.get_json(silent=True) or {})
    return jsonify(item.to_dict()), 200


@inventory_bp.route(f'/{ITEM_KIND}/<int:item_id>', methods=['DELETE'])
@roles_required('admin', 'staff')
def delete_item(kind, item_id):
    InventoryItem.delete_item(item_id, kind)
    label = 'Regular' if kind == 'regular' else 'In-kind'
    return jsonify({'message': f'{label} donation deleted successfully', 'id': item_id}), 200


@inventory_bp.route(f'/{ITEM_KIND}/<int:item_id>/verify', methods=['POST'])
@roles_required('admin', 'staff')
def verify_item(kind, item_id):
    data = request.get_json(silent=True) or {}
    item = InventoryItem.verify_item(item_id, kind, g.current_account['id'],
                                     expiration_date=data.get('expirationDate'))
    return jsonify(item.to_dict()), 200


@inventory_bp.route(f'/{ITEM_KIND}/<int:item_id>/reject', methods=['POST'])
@roles_required('admin', 'staff')
def reject_item(kind, item_id):
    data = request.get_json(silent=True) or {}
    item = InventoryItem.reject_item(item_id, kind, g.current_account['id'], data.get('reason'))
    return jsonify(item.to_dict()), 200


@inventory_bp.route(f'/{ITEM_KIND}/<int:item_id>/distribute', methods=['POST'])
@roles_required('admin', 'staff')
def distribute_item(kind, item_id):
    item, distribution = InventoryItem.distribute(item_id, kind, request.get_json(silent=True) or {},
                                                  actor=current_actor())
    return jsonify({'item': item.to_dict(), 'distribution': distribution.to_dict()}), 200


# Distributions

@inventory_bp.route('/distributions')
@roles_required('admin', 'staff')
def list_distributions():
    return jsonify([d.to_detail_dict() for d in ItemDistribution.list_all()]), 200


@inventory_bp.route('/distributions/locations')
@roles_required('admin', 'staff')
def distribution_locations():
    return jsonify(ItemDistribution.with_locations()), 200


@inventory_bp.route('/scholar-distributions')
@roles_required('admin', 'staff')
def scholar_distributions():
    return jsonify(ItemDistribution.with_locations(recipient_type='scholar')), 200


@inventory_bp.route('/distribution-stats')
@roles_required('admin', 'staff')
def distribution_stats():
    stats = InventoryItem.distribution_stats(category=request.args.get('category'),
                                             time_range=request.args.get('timeRange'))
    return jsonify(stats), 200


@inventory_bp.route('/distributions/<int:distribution_id>/verify', methods=['PUT'])
@login_required
def confirm_receipt(distribution_id):
    account = g.current_account
    if account['account_type'] != 'user':
        raise PermissionDeniedError('Only the recipient can confirm this distribution')
    data = request.get_json(silent=True) or {}
    distribution = ItemDistribution.confirm_receipt(distribution_id, account['id'],
                                                    data.get('status'), data.get('message'))
    recipient_name = distribution.to_detail_dict()['recipient_name']
    send_distribution_report_email(current_app.config.get('ADMIN_EMAIL'), recipient_name,
                                   distribution.status, distribution.item_label,
                                   distribution.verification_message)
    return jsonify({
        'success': True,
        'message': 'Distribution verification updated',
        'distribution': distribution.to_dict()
    }), 200


@inventory_bp.route('/recipient-distributions/<int:recipient_id>')
@login_required
def recipient_distributions(recipient_id):
    ensure_self_or_privileged(recipient_id)
    return jsonify([d.to_detail_dict() for d in ItemDistribution.for_recipient(recipient_id)]), 200
