"""
Tests for admin authentication (password + MPIN) and back-office account management.
"""

from foundation.models import AdminUser, Notification, StaffUser, User
from foundation.utils.auth_utils import generate_jwt_token
from conftest import TEST_PASSWORD


def _login(client, password=TEST_PASSWORD):
    return client.post('/api/admin/auth/login', json={'email': 'admin@example.com', 'password': password})


class TestAdminLogin:

    def test_login_without_mpin(self, client, admin_user):
        response = _login(client)
        assert response.status_code == 200
        assert response.json['mpin_required'] is False
        assert response.json['admin']['email'] == 'admin@example.com'
        assert response.json['token']

    def test_wrong_password(self, client, admin_user):
        assert _login(client, 'Wrong1234').status_code == 401

    def test_mpin_flow(self, client, admin_user):
        admin_user.set_mpin('1234')

        first = _login(client)
        assert first.status_code == 200
        assert first.json['mpin_required'] is True
        assert 'admin' not in first.json
        pending = first.json['token']

        # the pending token is not an access token
        blocked = client.get('/api/admin/profile', headers={'Authorization': f'Bearer {pending}'})
        assert blocked.status_code == 401

        wrong = client.post('/api/admin/auth/verify-mpin', json={'token': pending, 'mpin': '9999'})
        assert wrong.status_code == 401
        assert wrong.json['error'] == 'Invalid MPIN'

        ok = client.post('/api/admin/auth/verify-mpin', json={'token': pending, 'mpin': '1234'})
        assert ok.status_code == 200
        assert ok.json['verified'] is True
        profile = client.get('/api/admin/profile', headers={'Authorization': f"Bearer {ok.json['token']}"})
        assert profile.status_code == 200

    def test_verify_mpin_requires_fields(self, client, admin_user):
        response = client.post('/api/admin/auth/verify-mpin', json={'mpin': '1234'})
        assert response.status_code == 400
        assert response.json['error'] == 'Token and MPIN are required'

    def test_verify_mpin_rejects_access_token(self, client, admin_user):
        admin_user.set_mpin('1234')
        access = generate_jwt_token(admin_user.id, account_type='admin', role='admin')
        response = client.post('/api/admin/auth/verify-mpin', json={'token': access, 'mpin': '1234'})
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid or expired token'

    def test_verify_mpin_when_disabled(self, client, admin_user):
        pending = generate_jwt_token(admin_user.id, account_type='admin', role='admin', scope='mpin')
        response = client.post('/api/admin/auth/verify-mpin', json={'token': pending, 'mpin': '1234'})
        assert response.status_code == 400


class TestMpinSettings:

    def test_set_and_toggle(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        assert client.get('/api/admin/mpin-status', headers=headers).json == {
            'mpin_enabled': False, 'has_mpin': False}

        enable_first = client.post('/api/admin/toggle-mpin', headers=headers, json={'enabled': True})
        assert enable_first.status_code == 400

        bad = client.post('/api/admin/set-mpin', headers=headers, json={'mpin': '12a4'})
        assert bad.status_code == 400
        assert bad.json['field'] == 'mpin'

        assert client.post('/api/admin/set-mpin', headers=headers, json={'mpin': '4321'}).status_code == 200

        no_password = client.post('/api/admin/toggle-mpin', headers=headers, json={'enabled': False})
        assert no_password.status_code == 401
        disabled = client.post('/api/admin/toggle-mpin', headers=headers,
                               json={'enabled': False, 'password': TEST_PASSWORD})
        assert disabled.json == {'mpin_enabled': False}

        enabled = client.post('/api/admin/toggle-mpin', headers=headers, json={'enabled': 'true'})
        assert enabled.json == {'mpin_enabled': True}
        string_false = client.post('/api/admin/toggle-mpin', headers=headers,
                                   json={'enabled': 'false', 'password': TEST_PASSWORD})
        assert string_false.json == {'mpin_enabled': False}

        missing = client.post('/api/admin/toggle-mpin', headers=headers, json={})
        assert missing.json['error'] == 'enabled is required'

    def test_staff_cannot_manage_mpin(self, client, staff_user, auth_headers):
        response = client.get('/api/admin/mpin-status', headers=auth_headers(staff_user))
        assert response.status_code == 403

    def test_update_profile(self, client, admin_user, auth_headers):
        response = client.put('/api/admin/profile', headers=auth_headers(admin_user),
                              json={'name': 'Ada L.', 'profilePhoto': 'https://example.com/a.png'})
        assert response.status_code == 200
        assert response.json['name'] == 'Ada L.'
        assert response.json['profile_photo'] == 'https://example.com/a.png'


class TestAccountManagement:

    def test_create_volunteer(self, client, staff_user, auth_headers):
        response = client.post('/api/admin/volunteers', headers=auth_headers(staff_user), json={
            'username': 'newvol', 'email': 'newvol@example.com', 'password': 'x',
            'name': 'Maria Clara Santos', 'status': 'active'
        })
        assert response.status_code == 201
        assert response.json['role'] == 'volunteer'
        assert response.json['first_name'] == 'Maria Clara'
        assert response.json['last_name'] == 'Santos'

    def test_create_with_blank_name_falls_back_to_username(self, client, admin_user, auth_headers):
        response = client.post('/api/admin/volunteers', headers=auth_headers(admin_user), json={
            'username': 'blanky', 'password': 'x', 'name': '   '})
        assert response.status_code == 201
        assert response.json['name'] == 'blanky'

    def test_string_flags_are_parsed(self, client, admin_user, test_user, auth_headers):
        test_user.is_verified = True
        response = client.put(f'/api/admin/volunteers/{test_user.id}', headers=auth_headers(admin_user),
                              json={'is_verified': 'false'})
        assert response.status_code == 200
        assert response.json['is_verified'] is False

    def test_create_duplicate_username(self, client, admin_user, test_user, auth_headers):
        response = client.post('/api/admin/sponsors', headers=auth_headers(admin_user), json={
            'username': test_user.username, 'email': 'other@example.com', 'password': 'x'})
        assert response.status_code == 409
        assert response.json == {'error': 'Username already taken', 'field': 'username'}

    def test_status_too_long(self, client, admin_user, test_user, auth_headers):
        response = client.put(f'/api/admin/volunteers/{test_user.id}', headers=auth_headers(admin_user),
                              json={'status': 'x' * 21})
        assert response.status_code == 400
        assert response.json['field'] == 'status'

    def test_update_scoped_by_role(self, client, admin_user, test_user, auth_headers):
        wrong_group = client.put(f'/api/admin/sponsors/{test_user.id}', headers=auth_headers(admin_user),
                                 json={'phone': '0917'})
        assert wrong_group.status_code == 404
        assert wrong_group.json['error'] == 'Sponsor not found'

        response = client.put(f'/api/admin/volunteers/{test_user.id}', headers=auth_headers(admin_user),
                              json={'phone': '0917', 'role': 'sponsor'})
        assert response.status_code == 200
        assert response.json['phone'] == '0917'
        assert response.json['role'] == 'volunteer'

    def test_update_user_summary(self, client, admin_user, test_user, auth_headers):
        response = client.put(f'/api/admin/users/{test_user.id}', headers=auth_headers(admin_user),
                              json={'name': 'Renamed', 'role': 'sponsor', 'phone': 'ignored'})
        assert response.status_code == 200
        assert response.json['name'] == 'Renamed'
        assert response.json['role'] == 'sponsor'
        assert response.json['phone'] is None

    def test_delete_and_bulk_delete(self, client, admin_user, test_user, auth_headers, db_session):
        other = User(username='vol2', email='vol2@example.com', name='Vol Two',
                     password_hash='x', role='volunteer')
        db_session.add(other)
        db_session.commit()
        headers = auth_headers(admin_user)

        invalid = client.delete('/api/admin/volunteers/bulk', headers=headers, json={'ids': ['a', -2]})
        assert invalid.status_code == 400
        assert invalid.json['error'] == 'No valid IDs provided for deletion'

        missing = client.post('/api/admin/volunteers/bulk-delete', headers=headers, json={'ids': [999, 998]})
        assert missing.status_code == 404

        response = client.delete('/api/admin/volunteers/bulk', headers=headers,
                                 json={'ids': [test_user.id, other.id]})
        assert response.status_code == 200
        assert sorted(response.json['deleted_ids']) == sorted([test_user.id, other.id])
        assert User.query.count() == 0

    def test_delete_single_missing(self, client, admin_user, auth_headers):
        response = client.delete('/api/admin/scholars/4242', headers=auth_headers(admin_user))
        assert response.status_code == 404
        assert response.json['error'] == 'Scholar not found'

    def test_approve_scholar(self, client, admin_user, db_session, auth_headers):
        pending = User(username='applicant', email='app@example.com', name='Applicant',
                       password_hash='x', role='scholar', is_verified=False)
        db_session.add(pending)
        db_session.commit()
        response = client.put(f'/api/admin/scholars/{pending.id}/approve', headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert response.json['scholar']['is_verified'] is True
        notice = Notification.query.filter_by(user_id=pending.id, type='scholar_approved').one()
        assert notice.actor_name == 'Ada Admin'
        assert notice.actor_type == 'admin'

    def test_location_verification(self, client, staff_user, test_user, auth_headers):
        url = f'/api/admin/users/{test_user.id}/location-verification'
        response = client.put(url, headers=auth_headers(staff_user),
                              json={'verified': False, 'remark': 'Pin is off by a block'})
        assert response.status_code == 200
        assert response.json['location_verified'] is False
        assert response.json['location_remark'] == 'Pin is off by a block'
        assert Notification.query.filter_by(user_id=test_user.id, type='location_remark').count() == 1

        client.put(url, headers=auth_headers(staff_user), json={'verified': True})
        assert Notification.query.filter_by(user_id=test_user.id, type='location_verification').count() == 1

    def test_counts(self, client, admin_user, test_user, sponsor_user, scholar_user, test_event, auth_headers):
        headers = auth_headers(admin_user)
        assert client.get('/api/admin/scholar-count', headers=headers).json == {'count': 1}
        assert client.get('/api/admin/events-count', headers=headers).json == {'count': 1}
        assert client.get('/api/admin/new-users-count', headers=headers).json == {'count': 3}
        assert client.get('/api/admin/new-sponsors-count', headers=headers).json == {'count': 1}
        assert client.get('/api/admin/new-volunteers-count', headers=headers).json == {'count': 1}


class TestStaffManagement:

    def test_admin_creates_staff(self, client, admin_user, auth_headers):
        response = client.post('/api/admin/staff', headers=auth_headers(admin_user), json={
            'name': 'New Staff', 'email': 'NewStaff@example.com', 'password': 'whatever1'})
        assert response.status_code == 201
        assert response.json['email'] == 'newstaff@example.com'

        duplicate = client.post('/api/admin/staff', headers=auth_headers(admin_user), json={
            'name': 'Again', 'email': 'newstaff@example.com', 'password': 'whatever1'})
        assert duplicate.status_code == 409
        assert duplicate.json['field'] == 'email'

    def test_staff_cannot_manage_staff(self, client, staff_user, auth_headers):
        response = client.get('/api/admin/staff', headers=auth_headers(staff_user))
        assert response.status_code == 403

    def test_delete_staff_removes_their_notifications(self, client, admin_user, staff_user, auth_headers,
                                                      db_session):
        Notification.create(staff_user.id, 'general', 'hello', recipient_type='staff')
        db_session.commit()
        response = client.delete(f'/api/admin/staff/{staff_user.id}', headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert StaffUser.query.count() == 0
        assert Notification.query.filter_by(recipient_type='staff').count() == 0

    def test_bulk_delete_staff(self, client, admin_user, staff_user, auth_headers):
        response = client.delete('/api/admin/staff/bulk', headers=auth_headers(admin_user),
                                 json={'ids': [staff_user.id, 555]})
        assert response.status_code == 200
        assert response.json['deleted_ids'] == [staff_user.id]
        assert AdminUser.query.count() == 1
