"""
Tests for editable public page content.
"""

import json

from foundation.models import PageContent

CLOUDINARY = 'https://res.cloudinary.com/demo/image/upload/v1699/banner.jpg'


def test_pages_listing(client):
    response = client.get('/api/content/pages')
    assert response.status_code == 200
    assert 'home' in response.json
    assert 'contact' in response.json


def test_default_content_when_nothing_is_stored(client, db_session):
    contact = client.get('/api/content/contact').json
    assert contact['page_name'] == 'contact'
    assert contact['content']['mainHeading'] == 'Contact Us'
    assert len(contact['content']['sections']) == 3

    unknown = client.get('/api/content/anything').json
    assert unknown['content'] == {'bannerImage': '', 'sections': []}


def test_save_cleans_images(client, admin_user, auth_headers):
    content = {
        'bannerImage': CLOUDINARY,
        'sections': [{'title': 'Old', 'image': '/uploads/old.png'}],
        'features': [{'title': 'Meals'}, {'title': 'Books', 'image': 'https://cdn.example.com/b.png'}],
    }
    response = client.put('/api/content/home', headers=auth_headers(admin_user), json=content)
    assert response.status_code == 200
    saved = response.json['content']
    assert saved['bannerImage'] == CLOUDINARY
    assert saved['sections'][0]['image'] is None
    assert saved['features'][0]['image'] is None
    assert saved['features'][1]['image'] == 'https://cdn.example.com/b.png'

    assert client.get('/api/content/home').json['content'] == saved


def test_save_replaces_existing_document(client, staff_user, auth_headers):
    headers = auth_headers(staff_user)
    client.put('/api/content/story', headers=headers, json={'headerText': 'First'})
    client.put('/api/content/story', headers=headers, json={'headerText': 'Second'})
    assert PageContent.query.count() == 1
    assert client.get('/api/content/story').json['content'] == {'headerText': 'Second'}


def test_save_from_form_field(client, admin_user, auth_headers):
    response = client.put('/api/content/team', headers=auth_headers(admin_user),
                          data={'content': json.dumps({'headerText': 'Our Team'})})
    assert response.status_code == 200
    assert response.json['content'] == {'headerText': 'Our Team'}

    bad = client.put('/api/content/team', headers=auth_headers(admin_user), data={'content': '{oops'})
    assert bad.status_code == 400
    assert bad.json['error'] == 'Invalid JSON format'


def test_invalid_payloads(client, admin_user, auth_headers):
    headers = auth_headers(admin_user)
    malformed = client.put('/api/content/home', headers=dict(headers, **{'Content-Type': 'application/json'}),
                           data='{broken')
    assert malformed.status_code == 400
    assert malformed.json['error'] == 'Invalid JSON format'

    assert client.put('/api/content/home', headers=headers).json['error'] == 'No content provided'

    not_a_dict = client.put('/api/content/home', headers=headers, json=['a', 'b'])
    assert not_a_dict.status_code == 400
    assert not_a_dict.json['error'] == 'Invalid content data'


def test_portal_users_cannot_edit(client, test_user, auth_headers):
    response = client.put('/api/content/home', headers=auth_headers(test_user), json={'x': 1})
    assert response.status_code == 403


def test_save_with_post(client, admin_user, auth_headers):
    response = client.post('/api/content/contact', headers=auth_headers(admin_user),
                           json={'headerText': 'Reach Us'})
    assert response.status_code == 200
    assert client.get('/api/content/contact').json['content'] == {'headerText': 'Reach Us'}
