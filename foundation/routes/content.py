"""
Content Routes

FLOW OVERVIEW
- /api/content/pages [GET]
  • Fixed list of editable public pages.
- /api/content/<page> [GET]
  • Stored page document, or the page's default layout.
- /api/content/<page> [PUT, POST]
  • Admin/staff; JSON body, or a form field `content` holding JSON.
"""

import json

from flask import Blueprint, jsonify, request

from ..models import PageContent
from ..models.page_content import EDITABLE_PAGES
from ..utils.auth_utils import roles_required
from ..utils.errors import ValidationError

content_bp = Blueprint('content', __name__)


@content_bp.route('/pages')
def list_pages():
    return jsonify(EDITABLE_PAGES), 200


@content_bp.route('/<page>')
def get_content(page):
    return jsonify(PageContent.get_page(page)), 200


@content_bp.route('/<page>', methods=['PUT', 'POST'])
@roles_required('admin', 'staff')
def update_content(page):
    if request.is_json:
        content = request.get_json(silent=True)
        if content is None:
            raise ValidationError('Invalid JSON format')
    elif request.form.get('content'):
        try:
            content = json.loads(request.form['content'])
        except ValueError:
            raise ValidationError('Invalid JSON format')
    else:
        raise ValidationError('No content provided')

    row = PageContent.save_page(page, content)
    return jsonify(row.to_dict()), 200
