"""
Forum Models

FLOW OVERVIEW
- Authors and likers are accounts from three tables. Each row stores
  (author_type, author_id) with author_type in {'user', 'admin', 'staff'};
  resolve_author() reads the right table, and with no type falls back to
  searching users, then admins, then staff.
- ForumPost.create_post(...): 'announcements' (and 'events' without an event)
  are reserved for admin/staff; poll posts create a ForumPoll with options.
- list_posts / event_posts: posts newest first with author info, comments and poll.
- add_comment: notifies the post author unless they commented on their own post.
- like/unlike for posts and comments: one like per account, counts recomputed
  from the like rows, author notified on like.
- vote(...): one vote per account per poll.
- purge_forum_activity(account_type, ids): remove an account's forum footprint.
"""

import json
import logging
from datetime import datetime

from sqlalchemy import func

from .database import db, transaction
from .utils import isoformat
from .notification import Notification
from ..utils.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..utils.validators import parse_int

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = ('user', 'admin', 'staff')
RESTRICTED_CATEGORIES = ('announcements',)


def _account_models():
    from .user import User
    from .admin import AdminUser
    from .staff import StaffUser
    return {'user': User, 'admin': AdminUser, 'staff': StaffUser}


def resolve_author(author_id, author_type=None):
    """
    Look up an author across the account tables.

    Returns:
        dict(id, type, name, avatar, role) or None
    """
    author_id = parse_int(author_id, default=None)
    if author_id is None:
        return None
    models = _account_models()
    search = [author_type] if author_type in models else list(ACCOUNT_TYPES)
    for account_type in search:
        account = db.session.get(models[account_type], author_id)
        if account is None:
            continue
        return {
            'id': account.id,
            'type': account_type,
            'name': account.name,
            'avatar': account.profile_photo,
            'role': account.role if account_type == 'user' else account_type,
        }
    return None


def _author_fields(author_id, author_type):
    author = resolve_author(author_id, author_type) or {}
    return {
        'author_name': author.get('name'),
        'author_avatar': author.get('avatar'),
        'author_role': author.get('role'),
    }


class ForumPost(db.Model):
    __tablename__ = 'forum_posts'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, nullable=False)
    author_type = db.Column(db.String(20), default='user', nullable=False)
    author_role = db.Column(db.String(20))
    category = db.Column(db.String(100), nullable=False, default='general')
    type = db.Column(db.String(20), nullable=False, default='discussion')
    image_url = db.Column(db.String(500))
    event_id = db.Column(db.Integer, db.ForeignKey('events.id'))
    likes = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<ForumPost {self.id} {self.title}>'

    def to_dict(self, include_comments=True):
        data = {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'author_id': self.author_id,
            'author_type': self.author_type,
            'category': self.category,
            'type': self.type,
            'image_url': self.image_url,
            'event_id': self.event_id,
            'likes': self.likes,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        data.update(_author_fields(self.author_id, self.author_type))
        data['author_role'] = data['author_role'] or self.author_role
        if include_comments:
            comments = (ForumComment.query.filter_by(post_id=self.id)
                        .order_by(ForumComment.created_at.desc(), ForumComment.id.desc()).all())
            data['comments'] = [comment.to_dict() for comment in comments]
        poll = ForumPoll.query.filter_by(post_id=self.id).first()
        data['poll'] = poll.to_dict() if poll else None
        return data

    @classmethod
    def get_or_404(cls, post_id):
        post = db.session.get(cls, post_id)
        if not post:
            raise NotFoundError('Post not found')
        return post

    @classmethod
    def create_post(cls, data, author_id, author_type=None):
        from .event import Event

        author = resolve_author(author_id, author_type)
        if not author:
            raise NotFoundError(f'No user, admin, or staff found with ID: {author_id}')

        title = (data.get('title') or '').strip()
        content = (data.get('content') or '').strip()
        if not title or not content:
            raise ValidationError('Title and content are required')

        category = (data.get('category') or 'general').strip()
        event_id = parse_int(data.get('eventId') or data.get('event_id'), default=None)
        lowered = category.lower()
        if lowered in RESTRICTED_CATEGORIES or (lowered == 'events' and not event_id):
            if author['type'] not in ('admin', 'staff'):
                raise PermissionDeniedError(f'Only administrators and staff can post in {category}')
        if event_id:
            Event.get_or_404(event_id)

        post_type = data.get('type') or 'discussion'
        poll_data = data.get('poll')
        if post_type == 'poll':
            if isinstance(poll_data, str):
                try:
                    poll_data = json.loads(poll_data)
                except ValueError:
                    raise ValidationError('Invalid poll format')
            options = (poll_data or {}).get('options') or []
            if len(options) < 2:
                raise ValidationError('A poll needs at least two options')

        with transaction():
            post = cls(
                title=title,
                content=content,
                author_id=author['id'],
                author_type=author['type'],
                author_role=author['role'],
                category=category,
                type=post_type,
                image_url=data.get('imageUrl') or data.get('image_url'),
                event_id=event_id,
            )
            db.session.add(post)
            db.session.flush()
            if post_type == 'poll':
                poll = ForumPoll(post_id=post.id, question=poll_data.get('question') or title, total_votes=0)
                db.session.add(poll)
                db.session.flush()
                for option in poll_data['options']:
                    text = option.get('text') if isinstance(option, dict) else option
                    if not text:
                        raise ValidationError('Poll options need text')
                    db.session.add(ForumPollOption(poll_id=poll.id, text=str(text), votes=0))
        logger.info("Forum post %s created by %s %s", post.id, author['type'], author['id'])
        return post

    @classmethod
    def list_posts(cls, category=None):
        query = cls.query
        if category:
            query = query.filter(func.lower(cls.category) == category.lower())
        return query.order_by(cls.created_at.desc(), cls.id.desc()).all()

    @classmethod
    def event_posts(cls, event_id):
        event_id = parse_int(event_id, default=None)
        if not event_id or event_id < 1:
            raise ValidationError('Invalid event ID provided')
        return (cls.query.filter_by(event_id=event_id)
                .order_by(cls.created_at.desc(), cls.id.desc()).all())

    def purge(self):
        """Delete the post with its comments, likes and poll (caller commits)."""
        comment_ids = [c.id for c in ForumComment.query.filter_by(post_id=self.id)]
        if comment_ids:
            ForumCommentLike.query.filter(ForumCommentLike.comment_id.in_(comment_ids)).delete(
                synchronize_session=False)
        ForumComment.query.filter_by(post_id=self.id).delete(synchronize_session=False)
        ForumPostLike.query.filter_by(post_id=self.id).delete(synchronize_session=False)
        poll = ForumPoll.query.filter_by(post_id=self.id).first()
        if poll:
            ForumPollVote.query.filter_by(poll_id=poll.id).delete(synchronize_session=False)
            ForumPollOption.query.filter_by(poll_id=poll.id).delete(synchronize_session=False)
            db.session.delete(poll)
        db.session.delete(self)

    @classmethod
    def delete_post(cls, post_id, account):
        post = cls.get_or_404(post_id)
        is_author = post.author_type == account['account_type'] and post.author_id == account['id']
        if not is_author and account['account_type'] not in ('admin', 'staff'):
            raise PermissionDeniedError('You can only delete your own posts')
        with transaction():
            post.purge()
        return post_id

    # Comments

    @classmethod
    def add_comment(cls, post_id, content, author_id, author_type=None):
        post = cls.get_or_404(post_id)
        author = resolve_author(author_id, author_type)
        if not author:
            raise NotFoundError('Author not found in any user table')
        content = (content or '').strip()
        if not content:
            raise ValidationError('Comment content is required')

        with transaction():
            comment = ForumComment(post_id=post.id, content=content,
                                   author_id=author['id'], author_type=author['type'])
            db.session.add(comment)
            db.session.flush()
            if (post.author_type, post.author_id) != (author['type'], author['id']):
                Notification.create(
                    post.author_id, 'new_comment', f'{author["name"]} commented on your post',
                    related_id=post.id, actor=author, recipient_type=post.author_type
                )
        return comment

    # Likes

    @classmethod
    def like(cls, post_id, liker_id, liker_type='user'):
        post = cls.get_or_404(post_id)
        liker = resolve_author(liker_id, liker_type)
        if not liker:
            raise NotFoundError('User not found')
        with transaction():
            existing = ForumPostLike.query.filter_by(
                post_id=post.id, liker_id=liker['id'], liker_type=liker['type']).first()
            if existing:
                raise ConflictError('User already liked this post')
            db.session.add(ForumPostLike(post_id=post.id, liker_id=liker['id'], liker_type=liker['type']))
            db.session.flush()
            post.likes = ForumPostLike.query.filter_by(post_id=post.id).count()
            if (post.author_type, post.author_id) != (liker['type'], liker['id']):
                Notification.create(
                    post.author_id, 'post_like', f'{liker["name"]} liked your post "{post.title}"',
                    related_id=post.id, actor=liker, recipient_type=post.author_type
                )
        return post

    @classmethod
    def unlike(cls, post_id, liker_id, liker_type='user'):
        post = cls.get_or_404(post_id)
        with transaction():
            ForumPostLike.query.filter_by(
                post_id=post.id, liker_id=liker_id, liker_type=liker_type
            ).delete(synchronize_session=False)
            post.likes = ForumPostLike.query.filter_by(post_id=post.id).count()
        return post

    @staticmethod
    def liked_post_ids(liker_id, liker_type='user'):
        rows = ForumPostLike.query.filter_by(liker_id=liker_id, liker_type=liker_type).all()
        return [row.post_id for row in rows]

    @staticmethod
    def liked_comment_ids(liker_id, liker_type='user'):
        rows = ForumCommentLike.query.filter_by(liker_id=liker_id, liker_type=liker_type).all()
        return [row.comment_id for row in rows]


class ForumComment(db.Model):
    __tablename__ = 'forum_comments'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('forum_posts.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, nullable=False)
    author_type = db.Column(db.String(20), default='user', nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        data = {
            'id': self.id,
            'post_id': self.post_id,
            'content': self.content,
            'author_id': self.author_id,
            'author_type': self.author_type,
            'likes': self.likes,
            'created_at': isoformat(self.created_at),
        }
        data.update(_author_fields(self.author_id, self.author_type))
        return data

    @classmethod
    def like(cls, post_id, comment_id, liker_id, liker_type='user'):
        comment = cls.query.filter_by(id=comment_id, post_id=post_id).first()
        if not comment:
            raise NotFoundError('Comment not found')
        liker = resolve_author(liker_id, liker_type)
        if not liker:
            raise NotFoundError('User not found')
        post = db.session.get(ForumPost, post_id)
        with transaction():
            existing = ForumCommentLike.query.filter_by(
                comment_id=comment.id, liker_id=liker['id'], liker_type=liker['type']).first()
            if existing:
                raise ConflictError('User already liked this comment')
            db.session.add(ForumCommentLike(comment_id=comment.id, liker_id=liker['id'],
                                            liker_type=liker['type']))
            db.session.flush()
            comment.likes = ForumCommentLike.query.filter_by(comment_id=comment.id).count()
            if (comment.author_type, comment.author_id) != (liker['type'], liker['id']):
                Notification.create(
                    comment.author_id, 'comment_like',
                    f'{liker["name"]} liked your comment on "{post.title}"',
                    related_id=post.id, actor=liker, recipient_type=comment.author_type
                )
        return comment

    @classmethod
    def unlike(cls, post_id, comment_id, liker_id, liker_type='user'):
        comment = cls.query.filter_by(id=comment_id, post_id=post_id).first()
        if not comment:
            raise NotFoundError('Comment not found')
        with transaction():
            ForumCommentLike.query.filter_by(
                comment_id=comment.id, liker_id=liker_id, liker_type=liker_type
            ).delete(synchronize_session=False)
            comment.likes = ForumCommentLike.query.filter_by(comment_id=comment.id).count()
        return comment


class ForumPoll(db.Model):
    __tablename__ = 'forum_polls'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('forum_posts.id'), unique=True, nullable=False)
    question = db.Column(db.String(500), nullable=False)
    total_votes = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        options = ForumPollOption.query.filter_by(poll_id=self.id).order_by(ForumPollOption.id).all()
        return {
            'id': self.id,
            'question': self.question,
            'total_votes': self.total_votes,
            'options': [{'id': o.id, 'text': o.text, 'votes': o.votes} for o in options],
        }

    @classmethod
    def vote(cls, post_id, option_id, voter_id, voter_type='user'):
        poll = cls.query.filter_by(post_id=post_id).first()
        if not poll:
            raise NotFoundError('Poll not found')
        option = ForumPollOption.query.filter_by(id=option_id, poll_id=poll.id).first()
        if not option:
            raise NotFoundError('Poll option not found')
        with transaction():
            if ForumPollVote.query.filter_by(poll_id=poll.id, voter_id=voter_id,
                                             voter_type=voter_type).first():
                raise ConflictError('You have already voted in this poll')
            db.session.add(ForumPollVote(poll_id=poll.id, option_id=option.id,
                                         voter_id=voter_id, voter_type=voter_type))
            option.votes = (option.votes or 0) + 1
            poll.total_votes = (poll.total_votes or 0) + 1
        return poll


class ForumPollOption(db.Model):
    __tablename__ = 'forum_poll_options'

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('forum_polls.id'), nullable=False, index=True)
    text = db.Column(db.String(255), nullable=False)
    votes = db.Column(db.Integer, default=0, nullable=False)


class ForumPostLike(db.Model):
    __tablename__ = 'forum_post_likes'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('forum_posts.id'), nullable=False, index=True)
    liker_id = db.Column(db.Integer, nullable=False)
    liker_type = db.Column(db.String(20), default='user', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('post_id', 'liker_type', 'liker_id', name='unique_post_like'),)


class ForumCommentLike(db.Model):
    __tablename__ = 'forum_comment_likes'

    id = db.Column(db.Integer, primary_key=True)
    comment_id = db.Column(db.Integer, db.ForeignKey('forum_comments.id'), nullable=False, index=True)
    liker_id = db.Column(db.Integer, nullable=False)
    liker_type = db.Column(db.String(20), default='user', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('comment_id', 'liker_type', 'liker_id', name='unique_comment_like'),)


class ForumPollVote(db.Model):
    __tablename__ = 'forum_poll_votes'

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(db.Integer, db.ForeignKey('forum_polls.id'), nullable=False)
    option_id = db.Column(db.Integer, db.ForeignKey('forum_poll_options.id'), nullable=False)
    voter_id = db.Column(db.Integer, nullable=False)
    voter_type = db.Column(db.String(20), default='user', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('poll_id', 'voter_type', 'voter_id', name='unique_poll_vote'),)


def purge_forum_activity(account_type, ids):
    """Remove posts, comments, likes and votes belonging to the given accounts."""
    for post in ForumPost.query.filter(ForumPost.author_type == account_type,
                                       ForumPost.author_id.in_(ids)).all():
        post.purge()

    comments = ForumComment.query.filter(ForumComment.author_type == account_type,
                                         ForumComment.author_id.in_(ids)).all()
    for comment in comments:
        ForumCommentLike.query.filter_by(comment_id=comment.id).delete(synchronize_session=False)
        db.session.delete(comment)

    liked_posts = {like.post_id for like in ForumPostLike.query.filter(
        ForumPostLike.liker_type == account_type, ForumPostLike.liker_id.in_(ids))}
    ForumPostLike.query.filter(ForumPostLike.liker_type == account_type,
                               ForumPostLike.liker_id.in_(ids)).delete(synchronize_session=False)
    liked_comments = {like.comment_id for like in ForumCommentLike.query.filter(
        ForumCommentLike.liker_type == account_type, ForumCommentLike.liker_id.in_(ids))}
    ForumCommentLike.query.filter(ForumCommentLike.liker_type == account_type,
                                  ForumCommentLike.liker_id.in_(ids)).delete(synchronize_session=False)
    db.session.flush()
    for post in ForumPost.query.filter(ForumPost.id.in_(liked_posts)).all():
        post.likes = ForumPostLike.query.filter_by(post_id=post.id).count()
    for comment in ForumComment.query.filter(ForumComment.id.in_(liked_comments)).all():
        comment.likes = ForumCommentLike.query.filter_by(comment_id=comment.id).count()

    for vote in ForumPollVote.query.filter(ForumPollVote.voter_type == account_type,
                                           ForumPollVote.voter_id.in_(ids)).all():
        option = db.session.get(ForumPollOption, vote.option_id)
        poll = db.session.get(ForumPoll, vote.poll_id)
        if option and option.votes:
            option.votes -= 1
        if poll and poll.total_votes:
            poll.total_votes -= 1
        db.session.delete(vote)
