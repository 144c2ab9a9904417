"""
Tests for donated goods: the public forms, review, distribution to portal users
and receipt confirmation.
"""

from datetime import date, timedelta

import pytest

from conftest import make_user
from foundation.models import InventoryItem, ItemDistribution, Notification
from foundation.utils.mail_utils import mail


def _future(days=30):
    return (date.today() + timedelta(days=days)).isoformat()


ITEM_FORM = {
    'donatorName': 'Gina Goods',
    'email': 'gina@example.com',
    'contactNumber': '0917-123-4567',
    'item': 'Rice',
    'quantity': '10',
    'unit': 'sacks',
    'category': 'Food & Nutrition',
    'frequency': 'monthly',
    'expirationDate': _future(),
}


@pytest.fixture
def rice(db_session):
    item = InventoryItem(item_type='regular', donator_name='Gina Goods', email='gina@example.com',
                         contact_number='09171234567', item='Rice', quantity=10, unit='sacks',
                         category='Food & Nutrition', verification_status='verified',
                         expiration_date=date.today() + timedelta(days=30))
    db_session.add(item)
    db_session.commit()
    return item


def _distribute(client, headers, item, recipient, recipient_type, quantity=3):
    return client.post(f'/api/inventory/{item.item_type}/{item.id}/distribute', headers=headers,
                       json={'quantity': quantity, 'recipientId': recipient.id,
                             'recipientType': recipient_type})


class TestSubmitItems:

    def test_regular_donation_is_stored_pending(self, client, admin_user):
        response = client.post('/api/inventory/regular', json=ITEM_FORM)
        assert response.status_code == 201
        assert response.json['type'] == 'regular'
        assert response.json['contact_number'] == '09171234567'
        assert response.json['quantity'] == 10
        assert response.json['frequency'] == 'monthly'
        assert response.json['verification_status'] == 'pending'

        notice = Notification.query.filter_by(recipient_type='admin', user_id=admin_user.id).one()
        assert notice.type == 'donation'
        assert '10 sacks of Rice' in notice.content

    def test_inkind_donation_drops_frequency(self, client, db_session):
        form = dict(ITEM_FORM, item='Notebooks', category='School Supplies', unit='pcs')
        del form['expirationDate']
        response = client.post('/api/inventory/inkind', json=form)
        assert response.status_code == 201
        assert response.json['type'] == 'in-kind'
        assert response.json['frequency'] is None

    def test_unknown_kind_is_not_routed(self, client, db_session):
        assert client.post('/api/inventory/bulk', json=ITEM_FORM).status_code == 404

    def test_missing_fields(self, client, db_session):
        response = client.post('/api/inventory/regular', json=dict(ITEM_FORM, unit=''))
        assert response.status_code == 400
        assert response.json['error'] == 'All fields are required'

    @pytest.mark.parametrize('field, value', [
        ('email', 'not-an-email'),
        ('contactNumber', '12345'),
        ('quantity', '0'),
        ('quantity', '2.5'),
        ('expirationDate', (date.today() - timedelta(days=1)).isoformat()),
    ])
    def test_invalid_values(self, client, db_session, field, value):
        response = client.post('/api/inventory/regular', json=dict(ITEM_FORM, **{field: value}))
        assert response.status_code == 400
        assert InventoryItem.query.count() == 0

    def test_food_needs_expiration_date(self, client, db_session):
        form = dict(ITEM_FORM)
        del form['expirationDate']
        response = client.post('/api/inventory/inkind', json=form)
        assert response.status_code == 400
        assert response.json['field'] == 'expiration_date'

    def test_categories_are_public(self, client, db_session):
        response = client.get('/api/inventory/categories')
        assert response.status_code == 200
        assert 'School Supplies' in response.json


class TestManageItems:

    def test_listing_by_kind(self, client, rice, staff_user, test_user, auth_headers):
        assert client.get('/api/inventory/regular', headers=auth_headers(test_user)).status_code == 403
        headers = auth_headers(staff_user)
        assert [i['id'] for i in client.get('/api/inventory/regular', headers=headers).json] == [rice.id]
        assert client.get('/api/inventory/inkind', headers=headers).json == []
        assert len(client.get('/api/inventory', headers=headers).json) == 1

    def test_update(self, client, rice, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        response = client.put(f'/api/inventory/regular/{rice.id}', headers=headers,
                              json={'quantity': 25, 'contactNumber': '+63 917 765 4321'})
        assert response.status_code == 200
        assert response.json['quantity'] == 25
        assert response.json['contact_number'] == '+639177654321'

        bad = client.put(f'/api/inventory/regular/{rice.id}', headers=headers, json={'quantity': -1})
        assert bad.status_code == 400

    def test_kind_must_match(self, client, rice, admin_user, auth_headers):
        response = client.put(f'/api/inventory/inkind/{rice.id}', headers=auth_headers(admin_user),
                              json={'quantity': 1})
        assert response.status_code == 404

    def test_verify_and_reject(self, client, db_session, admin_user, auth_headers):
        item = InventoryItem(item_type='inkind', donator_name='Ned', email='ned@example.com',
                             contact_number='09171234567', item='Shirts', quantity=5, unit='pcs',
                             category='Clothing & Footwear')
        db_session.add(item)
        db_session.commit()
        headers = auth_headers(admin_user)

        rejected = client.post(f'/api/inventory/inkind/{item.id}/reject', headers=headers,
                               json={'reason': 'Damaged'})
        assert rejected.json['verification_status'] == 'rejected'
        assert rejected.json['rejection_reason'] == 'Damaged'

        verified = client.post(f'/api/inventory/inkind/{item.id}/verify', headers=headers)
        assert verified.json['verification_status'] == 'verified'
        assert verified.json['verified_by'] == admin_user.id
        assert verified.json['rejection_reason'] is None
        assert Notification.query.filter_by(type='donation_verified').count() == 1

        missing = client.post('/api/inventory/inkind/999/verify', headers=headers)
        assert missing.status_code == 404
        assert missing.json['error'] == 'Donation not found'

    def test_delete_drops_distributions(self, client, rice, scholar_user, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        _distribute(client, headers, rice, scholar_user, 'scholar')
        response = client.delete(f'/api/inventory/regular/{rice.id}', headers=headers)
        assert response.status_code == 200
        assert response.json['message'] == 'Regular donation deleted successfully'
        assert InventoryItem.query.count() == 0
        assert ItemDistribution.query.count() == 0


class TestDistribute:

    def test_scholar_gets_notice_and_stock_drops(self, client, rice, scholar_user, admin_user,
                                                 auth_headers):
        response = _distribute(client, auth_headers(admin_user), rice, scholar_user, 'scholar')
        assert response.status_code == 200
        assert response.json['item']['quantity'] == 7
        distribution = response.json['distribution']
        assert distribution['recipient_id'] == scholar_user.id
        assert distribution['status'] == 'pending'
        assert distribution['distributed_by'] == admin_user.id

        notice = Notification.query.filter_by(user_id=scholar_user.id, recipient_type='user').one()
        assert notice.type == 'distribution'
        assert notice.content == 'You have received 3 sacks of Rice'
        assert notice.related_id == distribution['id']
        assert Notification.query.filter_by(recipient_type='admin', type='distribution').count() == 1

    def test_volunteer_gets_no_notice(self, client, rice, test_user, admin_user, auth_headers):
        response = _distribute(client, auth_headers(admin_user), rice, test_user, 'volunteer')
        assert response.status_code == 200
        assert Notification.query.filter_by(recipient_type='user').count() == 0

    def test_insufficient_quantity_changes_nothing(self, client, db_session, rice, scholar_user,
                                                   admin_user, auth_headers):
        response = _distribute(client, auth_headers(admin_user), rice, scholar_user, 'scholar',
                               quantity=11)
        assert response.status_code == 400
        assert response.json['error'] == 'Insufficient quantity'
        assert db_session.get(InventoryItem, rice.id).quantity == 10
        assert ItemDistribution.query.count() == 0
        assert Notification.query.count() == 0

    def test_whole_stock_can_be_handed_out(self, client, rice, scholar_user, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        assert _distribute(client, headers, rice, scholar_user, 'scholar', quantity=10).status_code == 200
        again = _distribute(client, headers, rice, scholar_user, 'scholar', quantity=1)
        assert again.status_code == 400

    def test_bad_requests(self, client, rice, scholar_user, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        url = f'/api/inventory/regular/{rice.id}/distribute'
        assert client.post(url, headers=headers, json={'quantity': 1}).status_code == 400
        invalid_type = client.post(url, headers=headers, json={
            'quantity': 1, 'recipientId': scholar_user.id, 'recipientType': 'donor'})
        assert invalid_type.json['error'] == 'Invalid recipient type'
        unknown = client.post(url, headers=headers, json={
            'quantity': 1, 'recipientId': 999, 'recipientType': 'scholar'})
        assert unknown.status_code == 404
        assert unknown.json['error'] == 'Recipient not found'

    def test_portal_users_cannot_distribute(self, client, rice, scholar_user, auth_headers):
        response = _distribute(client, auth_headers(scholar_user), rice, scholar_user, 'scholar')
        assert response.status_code == 403


class TestReceipts:

    @pytest.fixture
    def handed_out(self, client, rice, scholar_user, admin_user, auth_headers):
        response = _distribute(client, auth_headers(admin_user), rice, scholar_user, 'scholar')
        return response.json['distribution']['id']

    def test_recipient_confirms_receipt(self, app, client, handed_out, scholar_user, auth_headers):
        app.config['ADMIN_EMAIL'] = 'office@example.com'
        with mail.record_messages() as outbox:
            response = client.put(f'/api/inventory/distributions/{handed_out}/verify',
                                  headers=auth_headers(scholar_user),
                                  json={'status': 'received', 'message': 'Thank you'})
        assert response.status_code == 200
        assert response.json['distribution']['status'] == 'received'
        assert response.json['distribution']['verification_message'] == 'Thank you'
        assert outbox[0].subject == 'Distribution Receipt Update'
        assert outbox[0].recipients == ['office@example.com']

        notice = Notification.query.filter_by(type='distribution_verification').one()
        assert notice.content == 'Sam Reyes has verified receipt of 3 sacks of Rice. Message: Thank you'

    def test_only_the_recipient_confirms(self, client, handed_out, test_user, admin_user, auth_headers):
        url = f'/api/inventory/distributions/{handed_out}/verify'
        other = client.put(url, headers=auth_headers(test_user), json={'status': 'received'})
        assert other.status_code == 403
        office = client.put(url, headers=auth_headers(admin_user), json={'status': 'received'})
        assert office.status_code == 403

    def test_invalid_status(self, client, handed_out, scholar_user, auth_headers):
        response = client.put(f'/api/inventory/distributions/{handed_out}/verify',
                              headers=auth_headers(scholar_user), json={'status': 'maybe'})
        assert response.status_code == 400
        assert response.json['error'] == 'Invalid status'


class TestDistributionReports:

    def test_distribution_list_names_item_and_recipient(self, client, rice, scholar_user, staff_user,
                                                        admin_user, auth_headers):
        _distribute(client, auth_headers(admin_user), rice, scholar_user, 'scholar')
        listing = client.get('/api/inventory/distributions', headers=auth_headers(staff_user))
        assert listing.status_code == 200
        assert listing.json[0]['item_name'] == 'Rice'
        assert listing.json[0]['recipient_name'] == 'Sam Reyes'

    def test_recipient_history_access(self, client, rice, scholar_user, test_user, admin_user,
                                      auth_headers):
        _distribute(client, auth_headers(admin_user), rice, scholar_user, 'scholar')
        url = f'/api/inventory/recipient-distributions/{scholar_user.id}'
        own = client.get(url, headers=auth_headers(scholar_user))
        assert [d['quantity'] for d in own.json] == [3]
        assert client.get(url, headers=auth_headers(test_user)).status_code == 403
        assert client.get(url, headers=auth_headers(admin_user)).status_code == 200
        missing = client.get('/api/inventory/recipient-distributions/999', headers=auth_headers(admin_user))
        assert missing.status_code == 404

    def test_locations_only_include_mapped_recipients(self, client, db_session, rice, scholar_user,
                                                      test_user, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        scholar_user.latitude, scholar_user.longitude = 14.6, 121.0
        db_session.commit()
        _distribute(client, headers, rice, scholar_user, 'scholar')
        _distribute(client, headers, rice, test_user, 'volunteer')

        everywhere = client.get('/api/inventory/distributions/locations', headers=headers)
        assert [d['recipient_id'] for d in everywhere.json] == [scholar_user.id]
        assert everywhere.json[0]['latitude'] == 14.6
        scholars = client.get('/api/inventory/scholar-distributions', headers=headers)
        assert len(scholars.json) == 1

    def test_stats_group_verified_stock(self, client, db_session, rice, admin_user, auth_headers):
        db_session.add_all([
            InventoryItem(item_type='inkind', donator_name='Ana', email='ana@example.com',
                          contact_number='09171234567', item='Rice', quantity=5, unit='sacks',
                          category='Food & Nutrition', verification_status='verified'),
            InventoryItem(item_type='regular', donator_name='Ben', email='ben@example.com',
                          contact_number='09171234567', item='Rice', quantity=4, unit='sacks',
                          category='Food & Nutrition', verification_status='verified'),
            InventoryItem(item_type='regular', donator_name='Cy', email='cy@example.com',
                          contact_number='09171234567', item='Pencils', quantity=50, unit='pcs',
                          category='School Supplies'),
        ])
        db_session.commit()
        headers = auth_headers(admin_user)

        stats = client.get('/api/inventory/distribution-stats', headers=headers).json
        by_source = {(row['item'], row['source']): row for row in stats}
        assert set(by_source) == {('Rice', 'regular'), ('Rice', 'inkind')}
        assert by_source[('Rice', 'regular')]['quantity'] == 14
        assert by_source[('Rice', 'regular')]['donation_count'] == 2

        filtered = client.get('/api/inventory/distribution-stats?category=School%20Supplies&timeRange=week',
                              headers=headers)
        assert filtered.json == []
        bad = client.get('/api/inventory/distribution-stats?timeRange=decade', headers=headers)
        assert bad.status_code == 400

    def test_deleting_a_recipient_drops_their_distributions(self, client, db_session, rice, admin_user,
                                                            auth_headers):
        volunteer = make_user(db_session, 'helper', name='Helper Person')
        headers = auth_headers(admin_user)
        _distribute(client, headers, rice, volunteer, 'volunteer')
        response = client.delete(f'/api/admin/volunteers/{volunteer.id}', headers=headers)
        assert response.status_code == 200
        assert ItemDistribution.query.count() == 0
        assert db_session.get(InventoryItem, rice.id).quantity == 7
