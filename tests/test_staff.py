"""
Tests for the staff console routes.
"""

from conftest import TEST_PASSWORD


def test_dashboard(client, staff_user, test_user, test_event, auth_headers):
    response = client.get('/api/staff/dashboard', headers=auth_headers(staff_user))
    assert response.status_code == 200
    assert response.json['volunteer_count'] == 1
    assert [e['id'] for e in response.json['recent_events']] == [test_event.id]


def test_admin_token_is_not_staff(client, admin_user, auth_headers):
    response = client.get('/api/staff/dashboard', headers=auth_headers(admin_user))
    assert response.status_code == 403


def test_profile_update_requires_current_password(client, staff_user, auth_headers):
    headers = auth_headers(staff_user)
    denied = client.put('/api/staff/profile', headers=headers, json={'name': 'New Name'})
    assert denied.status_code == 401

    response = client.put('/api/staff/profile', headers=headers, json={
        'name': 'New Name', 'currentPassword': TEST_PASSWORD, 'newPassword': 'Changed123'})
    assert response.status_code == 200
    assert response.json['name'] == 'New Name'


def test_profile_update_weak_new_password(client, staff_user, auth_headers):
    response = client.put('/api/staff/profile', headers=auth_headers(staff_user), json={
        'currentPassword': TEST_PASSWORD, 'newPassword': 'weak'})
    assert response.status_code == 400


def test_volunteer_edits_are_limited(client, staff_user, test_user, auth_headers):
    response = client.put(f'/api/staff/volunteers/{test_user.id}', headers=auth_headers(staff_user),
                          json={'phone': '0918', 'role': 'sponsor'})
    assert response.status_code == 200
    assert response.json['phone'] == '0918'
    assert response.json['role'] == 'volunteer'


def test_volunteer_lookup_checks_role(client, staff_user, sponsor_user, auth_headers):
    response = client.get(f'/api/staff/volunteers/{sponsor_user.id}', headers=auth_headers(staff_user))
    assert response.status_code == 404
    assert response.json['error'] == 'Volunteer not found'


def test_staff_events(client, staff_user, auth_headers):
    headers = auth_headers(staff_user)
    created = client.post('/api/staff/events', headers=headers,
                          json={'title': 'Clean-up Drive', 'date': '2030-01-15', 'totalVolunteers': 10})
    assert created.status_code == 201
    assert created.json['created_by'] == staff_user.id
    assert created.json['total_volunteers'] == 10

    updated = client.put(f"/api/staff/events/{created.json['id']}", headers=headers,
                         json={'location': 'Quezon City', 'total_volunteers': 99})
    assert updated.status_code == 200
    assert updated.json['location'] == 'Quezon City'
    assert updated.json['total_volunteers'] == 10

    listing = client.get('/api/staff/events', headers=headers)
    assert len(listing.json) == 1


def test_login_token_opens_the_staff_portal(client, staff_user):
    response = client.post('/api/staff/login', json={'email': 'STAFF@example.com', 'password': TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json['staff']['id'] == staff_user.id

    headers = {'Authorization': f"Bearer {response.json['token']}"}
    dashboard = client.get('/api/staff/dashboard', headers=headers)
    assert dashboard.status_code == 200
    assert client.get('/api/admin/users', headers=headers).status_code == 200


def test_login_wrong_password(client, staff_user):
    response = client.post('/api/staff/login', json={'email': 'staff@example.com', 'password': 'wrong-pass1'})
    assert response.status_code == 401
    assert response.json['error'] == 'Invalid credentials'


def test_login_requires_fields(client, staff_user):
    assert client.post('/api/staff/login', json={'email': 'staff@example.com'}).status_code == 400


def test_inactive_staff_cannot_login(client, db_session, staff_user):
    staff_user.status = 'inactive'
    db_session.commit()
    response = client.post('/api/staff/login', json={'email': 'staff@example.com', 'password': TEST_PASSWORD})
    assert response.status_code == 403
