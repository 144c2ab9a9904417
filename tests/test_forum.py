"""
Tests for forum posts, comments, likes and polls across account types.
"""

import pytest

from foundation.models import ForumComment, ForumPost, Notification
from foundation.models.forum import resolve_author


def _post(client, headers, **overrides):
    payload = {'title': 'Volunteer tips', 'content': 'Bring water', 'category': 'general'}
    payload.update(overrides)
    return client.post('/api/forum/posts', headers=headers, json=payload)


@pytest.fixture
def post(client, test_user, auth_headers):
    response = _post(client, auth_headers(test_user))
    assert response.status_code == 201
    return response.json


class TestPosts:

    def test_create_and_list(self, client, post):
        assert post['author_name'] == 'Vince Cruz'
        assert post['author_role'] == 'volunteer'
        assert post['author_type'] == 'user'
        listing = client.get('/api/forum/posts')
        assert [p['id'] for p in listing.json] == [post['id']]
        assert client.get('/api/forum/posts?category=GENERAL').json[0]['id'] == post['id']
        assert client.get('/api/forum/posts?category=events').json == []

    def test_title_and_content_required(self, client, test_user, auth_headers):
        response = _post(client, auth_headers(test_user), content='  ')
        assert response.status_code == 400

    def test_announcements_are_reserved(self, client, test_user, staff_user, auth_headers):
        denied = _post(client, auth_headers(test_user), category='announcements')
        assert denied.status_code == 403
        allowed = _post(client, auth_headers(staff_user), category='announcements')
        assert allowed.status_code == 201
        assert allowed.json['author_type'] == 'staff'
        assert allowed.json['author_name'] == 'Stan Staff'

    def test_event_posts(self, client, test_event, test_user, auth_headers):
        headers = auth_headers(test_user)
        assert _post(client, headers, category='events').status_code == 403
        created = _post(client, headers, category='events', eventId=test_event.id)
        assert created.status_code == 201
        assert _post(client, headers, eventId=999).status_code == 404

        posts = client.get(f'/api/forum/events/{test_event.id}/posts')
        assert [p['id'] for p in posts.json] == [created.json['id']]
        assert client.get('/api/forum/events/abc/posts').status_code == 400
        assert client.get('/api/forum/events/0/posts').json['error'] == 'Invalid event ID provided'

    def test_poll_needs_two_options(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        response = _post(client, headers, type='poll', poll={'question': 'When?', 'options': ['Sat']})
        assert response.status_code == 400
        assert _post(client, headers, type='poll', poll='{not json').status_code == 400

    def test_delete_permissions(self, client, db_session, post, scholar_user, admin_user, auth_headers):
        denied = client.delete(f"/api/forum/posts/{post['id']}", headers=auth_headers(scholar_user))
        assert denied.status_code == 403
        allowed = client.delete(f"/api/forum/posts/{post['id']}", headers=auth_headers(admin_user))
        assert allowed.status_code == 200
        assert ForumPost.query.count() == 0

    def test_author_deletes_post_with_comments(self, client, post, test_user, scholar_user, auth_headers):
        client.post(f"/api/forum/posts/{post['id']}/comments", headers=auth_headers(scholar_user),
                    json={'content': 'Thanks!'})
        response = client.delete(f"/api/forum/posts/{post['id']}", headers=auth_headers(test_user))
        assert response.status_code == 200
        assert ForumComment.query.count() == 0


class TestComments:

    def test_comment_notifies_post_author(self, client, post, test_user, scholar_user, auth_headers):
        response = client.post(f"/api/forum/posts/{post['id']}/comments",
                               headers=auth_headers(scholar_user), json={'content': 'Thanks!'})
        assert response.status_code == 201
        assert response.json['author_name'] == 'Sam Reyes'
        notice = Notification.query.filter_by(user_id=test_user.id, type='new_comment').one()
        assert notice.content == 'Sam Reyes commented on your post'
        assert notice.actor_type == 'user'

    def test_own_comment_does_not_notify(self, client, post, test_user, auth_headers):
        client.post(f"/api/forum/posts/{post['id']}/comments", headers=auth_headers(test_user),
                    json={'content': 'Also bring hats'})
        assert Notification.query.count() == 0

    def test_comment_on_staff_post_notifies_staff(self, client, staff_user, test_user, auth_headers):
        created = _post(client, auth_headers(staff_user), category='announcements')
        client.post(f"/api/forum/posts/{created.json['id']}/comments", headers=auth_headers(test_user),
                    json={'content': 'Noted'})
        notice = Notification.query.filter_by(type='new_comment').one()
        assert (notice.recipient_type, notice.user_id) == ('staff', staff_user.id)

    def test_empty_comment(self, client, post, test_user, auth_headers):
        response = client.post(f"/api/forum/posts/{post['id']}/comments", headers=auth_headers(test_user),
                               json={'content': ''})
        assert response.status_code == 400
        assert client.post('/api/forum/posts/999/comments', headers=auth_headers(test_user),
                           json={'content': 'x'}).status_code == 404


class TestLikesAndVotes:

    def test_like_once_per_account(self, client, post, scholar_user, admin_user, auth_headers):
        url = f"/api/forum/posts/{post['id']}/like"
        assert client.post(url, headers=auth_headers(scholar_user)).json == {'likes': 1}
        duplicate = client.post(url, headers=auth_headers(scholar_user))
        assert duplicate.status_code == 409
        assert duplicate.json['error'] == 'User already liked this post'
        assert client.post(url, headers=auth_headers(admin_user)).json == {'likes': 2}

        likes = client.get('/api/forum/likes', headers=auth_headers(scholar_user)).json
        assert likes == {'post_ids': [post['id']], 'comment_ids': []}

        assert client.delete(url, headers=auth_headers(scholar_user)).json == {'likes': 1}
        assert client.delete(url, headers=auth_headers(scholar_user)).json == {'likes': 1}

    def test_comment_likes(self, client, post, test_user, scholar_user, auth_headers):
        comment = client.post(f"/api/forum/posts/{post['id']}/comments", headers=auth_headers(scholar_user),
                              json={'content': 'Thanks!'}).json
        url = f"/api/forum/posts/{post['id']}/comments/{comment['id']}/like"
        assert client.post(url, headers=auth_headers(test_user)).json == {'likes': 1}
        assert client.post(url, headers=auth_headers(test_user)).status_code == 409
        assert Notification.query.filter_by(user_id=scholar_user.id, type='comment_like').count() == 1
        assert client.delete(url, headers=auth_headers(test_user)).json == {'likes': 0}
        missing = f"/api/forum/posts/{post['id']}/comments/999/like"
        assert client.post(missing, headers=auth_headers(test_user)).status_code == 404

    def test_poll_votes(self, client, admin_user, test_user, scholar_user, auth_headers):
        created = _post(client, auth_headers(admin_user), category='announcements', type='poll',
                        poll={'question': 'Which Saturday?', 'options': ['May 4', {'text': 'May 11'}]})
        assert created.status_code == 201
        poll = created.json['poll']
        assert [o['text'] for o in poll['options']] == ['May 4', 'May 11']

        url = f"/api/forum/posts/{created.json['id']}/vote"
        option_id = poll['options'][1]['id']
        voted = client.post(url, headers=auth_headers(test_user), json={'optionId': option_id})
        assert voted.json['total_votes'] == 1
        assert voted.json['options'][1]['votes'] == 1

        assert client.post(url, headers=auth_headers(test_user),
                           json={'optionId': option_id}).status_code == 409
        assert client.post(url, headers=auth_headers(scholar_user), json={}).status_code == 400
        assert client.post(url, headers=auth_headers(scholar_user),
                           json={'optionId': 999}).status_code == 404


def test_resolve_author_searches_every_account_table(db_session, staff_user):
    assert resolve_author(staff_user.id)['type'] == 'staff'
    assert resolve_author(staff_user.id, 'staff')['name'] == 'Stan Staff'
    assert resolve_author(staff_user.id, 'user') is None
    assert resolve_author('abc') is None
