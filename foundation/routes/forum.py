"""
Forum Routes

FLOW OVERVIEW
- /api/forum/posts [GET] (?category=), /api/forum/events/<event_id>/posts [GET]
  • Public; posts newest first with author, comments and poll.
- /api/forum/posts [POST], /api/forum/posts/<id> [DELETE]
  • Auth gate; the caller (user, staff or admin) is the author. Deleting
    needs authorship or a back-office account.
- /api/forum/posts/<id>/comments [POST]
- /api/forum/posts/<id>/like [POST, DELETE],
  /api/forum/posts/<id>/comments/<cid>/like [POST, DELETE]
  • One like per account; duplicates → 409.
- /api/forum/posts/<id>/vote [POST]
  • One vote per account per poll.
- /api/forum/likes [GET]
  • Post and comment ids the caller has liked.
"""

from flask import Blueprint, g, jsonify, request

from ..models import ForumComment, ForumPoll, ForumPost
from ..utils.auth_utils import login_required
from ..utils.errors import ValidationError
from ..utils.validators import parse_int

forum_bp = Blueprint('forum', __name__)


def _caller():
    account = g.current_account
    return account['id'], account['account_type']


@forum_bp.route('/posts')
def list_posts():
    posts = ForumPost.list_posts(category=request.args.get('category'))
    return jsonify([post.to_dict() for post in posts]), 200


@forum_bp.route('/events/<event_id>/posts')
def event_posts(event_id):
    return jsonify([post.to_dict() for post in ForumPost.event_posts(event_id)]), 200


@forum_bp.route('/posts', methods=['POST'])
@login_required
def create_post():
    author_id, author_type = _caller()
    post = ForumPost.create_post(request.get_json(silent=True) or {}, author_id, author_type)
    return jsonify(post.to_dict()), 201


@forum_bp.route('/posts/<int:post_id>', methods=['DELETE'])
@login_required
def delete_post(post_id):
    ForumPost.delete_post(post_id, g.current_account)
    return jsonify({'message': 'Post deleted successfully', 'id': post_id}), 200


@forum_bp.route('/posts/<int:post_id>/comments', methods=['POST'])
@login_required
def add_comment(post_id):
    data = request.get_json(silent=True) or {}
    author_id, author_type = _caller()
    comment = ForumPost.add_comment(post_id, data.get('content'), author_id, author_type)
    return jsonify(comment.to_dict()), 201


@forum_bp.route('/posts/<int:post_id>/like', methods=['POST'])
@login_required
def like_post(post_id):
    liker_id, liker_type = _caller()
    post = ForumPost.like(post_id, liker_id, liker_type)
    return jsonify({'likes': post.likes}), 200


@forum_bp.route('/posts/<int:post_id>/like', methods=['DELETE'])
@login_required
def unlike_post(post_id):
    liker_id, liker_type = _caller()
    post = ForumPost.unlike(post_id, liker_id, liker_type)
    return jsonify({'likes': post.likes}), 200


@forum_bp.route('/posts/<int:post_id>/comments/<int:comment_id>/like', methods=['POST'])
@login_required
def like_comment(post_id, comment_id):
    liker_id, liker_type = _caller()
    comment = ForumComment.like(post_id, comment_id, liker_id, liker_type)
    return jsonify({'likes': comment.likes}), 200


@forum_bp.route('/posts/<int:post_id>/comments/<int:comment_id>/like', methods=['DELETE'])
@login_required
def unlike_comment(post_id, comment_id):
    liker_id, liker_type = _caller()
    comment = ForumComment.unlike(post_id, comment_id, liker_id, liker_type)
    return jsonify({'likes': comment.likes}), 200


@forum_bp.route('/posts/<int:post_id>/vote', methods=['POST'])
@login_required
def vote(post_id):
    data = request.get_json(silent=True) or {}
    option_id = parse_int(data.get('optionId') or data.get('option_id'), default=None)
    if not option_id:
        raise ValidationError('Option ID is required')
    voter_id, voter_type = _caller()
    poll = ForumPoll.vote(post_id, option_id, voter_id, voter_type)
    return jsonify(poll.to_dict()), 200


@forum_bp.route('/likes')
@login_required
def my_likes():
    liker_id, liker_type = _caller()
    return jsonify({
        'post_ids': ForumPost.liked_post_ids(liker_id, liker_type),
        'comment_ids': ForumPost.liked_comment_ids(liker_id, liker_type)
    }), 200
