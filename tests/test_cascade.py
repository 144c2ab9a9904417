"""
Tests for account deletion cascades across every dependent table.
"""

import pytest

from foundation.models import (
    AdminUser, EventFeedback, EventParticipant, ForumComment, ForumPost, ForumPostLike,
    Notification, ReportCard, Scholar, ScholarDonation, StaffUser
)
from foundation.models.cascade import delete_users
from foundation.utils.errors import NotFoundError


def _seed_scholar_activity(client, auth_headers, scholar_user, test_user, past_event):
    scholar_headers = auth_headers(scholar_user)
    client.post(f'/api/events/{past_event.id}/join', headers=scholar_headers)
    client.post(f'/api/events/{past_event.id}/feedback', headers=scholar_headers, json={'rating': 4})
    client.post('/api/report-cards', headers=scholar_headers, json={
        'frontImage': 'front.jpg', 'backImage': 'back.jpg', 'gradeLevel': '8', 'gradingPeriod': 'Q2'})
    post = client.post('/api/forum/posts', headers=scholar_headers,
                       json={'title': 'Thank you', 'content': 'To all sponsors'}).json
    client.post(f"/api/forum/posts/{post['id']}/comments", headers=auth_headers(test_user),
                json={'content': 'Congrats'})
    volunteer_post = client.post('/api/forum/posts', headers=auth_headers(test_user),
                                 json={'title': 'Hello', 'content': 'First post'}).json
    client.post(f"/api/forum/posts/{volunteer_post['id']}/like", headers=scholar_headers)
    return volunteer_post


def test_deleting_a_scholar_removes_everything_they_own(client, db_session, scholar_profile, scholar_user,
                                                        sponsor_user, test_user, past_event, admin_user,
                                                        auth_headers):
    db_session.add(ScholarDonation(scholar_id=scholar_user.id, sponsor_id=sponsor_user.id, amount=500.0))
    db_session.commit()
    volunteer_post = _seed_scholar_activity(client, auth_headers, scholar_user, test_user, past_event)
    assert past_event.current_scholars == 1

    response = client.delete(f'/api/admin/scholars/{scholar_user.id}', headers=auth_headers(admin_user))
    assert response.status_code == 200

    assert past_event.current_scholars == 0
    assert EventParticipant.query.count() == 0
    assert EventFeedback.query.count() == 0
    assert ReportCard.query.count() == 0
    assert Scholar.query.count() == 0
    assert ScholarDonation.query.count() == 0
    assert ForumComment.query.count() == 0
    assert [p.id for p in ForumPost.query.all()] == [volunteer_post['id']]
    assert ForumPostLike.query.count() == 0
    assert db_session.get(ForumPost, volunteer_post['id']).likes == 0
    assert Notification.query.filter_by(recipient_type='user', user_id=scholar_user.id).count() == 0
    assert Notification.query.filter_by(actor_type='user', actor_id=scholar_user.id).count() == 0


def test_role_scoped_delete_ignores_other_roles(client, test_user, admin_user, auth_headers):
    response = client.delete(f'/api/admin/scholars/{test_user.id}', headers=auth_headers(admin_user))
    assert response.status_code == 404
    assert response.json['error'] == 'Scholar not found'


def test_delete_users_reports_missing_ids(db_session):
    with pytest.raises(NotFoundError) as excinfo:
        delete_users([101, 102])
    assert excinfo.value.message == 'No users found with the provided IDs'


def test_deleting_staff_removes_their_forum_posts(client, db_session, staff_user, admin_user, auth_headers):
    client.post('/api/forum/posts', headers=auth_headers(staff_user),
                json={'title': 'Schedule', 'content': 'Office closed Monday', 'category': 'announcements'})
    response = client.delete(f'/api/admin/staff/{staff_user.id}', headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert StaffUser.query.count() == 0
    assert ForumPost.query.count() == 0
    assert AdminUser.query.count() == 1
