"""
Tests for scholar donations: submission, verification, rejection and stats.
"""

import pytest

from foundation.models import Notification, ScholarDonation
from conftest import make_user


def _submit(client, scholar, headers=None, **overrides):
    payload = {'scholarId': scholar.id, 'amount': 1500, 'name': 'Dina Donor',
               'email': 'dina@example.com', 'paymentMethod': 'gcash'}
    payload.update(overrides)
    return client.post('/api/scholar-donations', json=payload, headers=headers or {})


@pytest.fixture
def donation(db_session, scholar_profile, scholar_user, sponsor_user):
    row = ScholarDonation(scholar_id=scholar_user.id, sponsor_id=sponsor_user.id, amount=1000.0)
    db_session.add(row)
    db_session.commit()
    return row


class TestSubmit:

    def test_unknown_scholar(self, client, db_session):
        response = client.post('/api/scholar-donations', json={'scholarId': 999, 'amount': 10})
        assert response.status_code == 404
        assert response.json['error'] == 'Scholar not found'
        assert 'No scholar found with ID 999' in response.json['detail']

    def test_non_scholar_account_is_not_a_scholar(self, client, test_user):
        assert _submit(client, test_user).status_code == 404

    def test_amount_must_be_positive(self, client, scholar_user):
        response = _submit(client, scholar_user, amount=0)
        assert response.status_code == 400
        assert response.json['field'] == 'amount'

    def test_amount_must_be_finite(self, client, scholar_user):
        for amount in ('nan', 'inf', '-inf'):
            response = _submit(client, scholar_user, amount=amount)
            assert response.status_code == 400
            assert response.json['field'] == 'amount'
        assert ScholarDonation.query.count() == 0

    def test_invalid_email(self, client, scholar_user):
        response = _submit(client, scholar_user, email='not-an-email')
        assert response.status_code == 400
        assert response.json['field'] == 'email'

    def test_anonymous_donation_notifies_admins(self, client, scholar_user, admin_user):
        response = _submit(client, scholar_user, scholarId=str(scholar_user.id))
        assert response.status_code == 201
        donation = response.json['donation']
        assert donation['sponsor_id'] is None
        assert donation['verification_status'] == 'pending'

        notice = Notification.query.filter_by(recipient_type='admin', user_id=admin_user.id).one()
        assert notice.type == 'new_donation'
        assert 'Dina Donor' in notice.content
        assert 'Sam Reyes' in notice.content

    def test_logged_in_sponsor_is_recorded(self, client, scholar_user, sponsor_user, auth_headers):
        response = _submit(client, scholar_user, headers=auth_headers(sponsor_user))
        assert response.json['donation']['sponsor_id'] == sponsor_user.id

    def test_volunteer_token_does_not_become_sponsor(self, client, scholar_user, test_user, auth_headers):
        response = _submit(client, scholar_user, headers=auth_headers(test_user))
        assert response.json['donation']['sponsor_id'] is None


class TestReview:

    def test_verify_updates_scholar_total(self, client, donation, scholar_profile, sponsor_user,
                                          admin_user, auth_headers):
        headers = auth_headers(admin_user)
        response = client.put(f'/api/scholar-donations/{donation.id}/verify', headers=headers)
        assert response.status_code == 200
        assert response.json['donation']['verification_status'] == 'verified'
        assert response.json['donation']['verified_by'] == admin_user.id
        assert scholar_profile.current_amount == 1000.0
        assert Notification.query.filter_by(user_id=sponsor_user.id, type='donation_verified').count() == 1

        again = client.put(f'/api/scholar-donations/{donation.id}/verify', headers=headers)
        assert again.status_code == 400
        assert scholar_profile.current_amount == 1000.0

        reject = client.put(f'/api/scholar-donations/{donation.id}/reject', headers=headers)
        assert reject.status_code == 400
        assert reject.json['error'] == 'A verified donation cannot be rejected'

    def test_reject_with_reason(self, client, donation, sponsor_user, staff_user, auth_headers):
        response = client.put(f'/api/scholar-donations/{donation.id}/reject',
                              headers=auth_headers(staff_user), json={'reason': 'Blurry receipt'})
        assert response.status_code == 200
        assert response.json['donation']['rejection_reason'] == 'Blurry receipt'
        notice = Notification.query.filter_by(user_id=sponsor_user.id, type='donation_rejected').one()
        assert notice.content == 'Your donation was rejected. Reason: Blurry receipt'

    def test_rejected_donation_can_still_be_verified(self, client, donation, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        client.put(f'/api/scholar-donations/{donation.id}/reject', headers=headers)
        response = client.put(f'/api/scholar-donations/{donation.id}/verify', headers=headers)
        assert response.json['donation']['verification_status'] == 'verified'
        assert response.json['donation']['rejection_reason'] is None

    def test_unknown_donation(self, client, admin_user, auth_headers):
        response = client.put('/api/scholar-donations/999/verify', headers=auth_headers(admin_user))
        assert response.status_code == 404


class TestListings:

    def test_list_and_detail_require_back_office(self, client, donation, admin_user, sponsor_user,
                                                 auth_headers):
        assert client.get('/api/scholar-donations').status_code == 401
        assert client.get('/api/scholar-donations', headers=auth_headers(sponsor_user)).status_code == 403

        listing = client.get('/api/scholar-donations', headers=auth_headers(admin_user))
        assert listing.json[0]['scholar_name'] == 'Sam Reyes'
        assert listing.json[0]['sponsor_name'] == 'Sofia Lim'
        detail = client.get(f'/api/scholar-donations/{donation.id}', headers=auth_headers(admin_user))
        assert detail.json['id'] == donation.id

    def test_sponsor_sees_own_donations(self, client, db_session, donation, sponsor_user, admin_user,
                                        auth_headers):
        other = make_user(db_session, 'sponsor2', role='sponsor')
        url = f'/api/scholar-donations/sponsor/{sponsor_user.id}'
        assert len(client.get(url, headers=auth_headers(sponsor_user)).json) == 1
        assert client.get(url, headers=auth_headers(other)).status_code == 403
        assert client.get(url, headers=auth_headers(admin_user)).status_code == 200

    def test_stats(self, client, db_session, donation, scholar_user, admin_user, auth_headers):
        db_session.add_all([
            ScholarDonation(scholar_id=scholar_user.id, amount=250.0, verification_status='verified'),
            ScholarDonation(scholar_id=scholar_user.id, amount=75.0, verification_status='rejected'),
        ])
        db_session.commit()
        stats = client.get('/api/scholar-donations/stats', headers=auth_headers(admin_user)).json
        assert stats['total_donors'] == 1
        assert stats['total_amount'] == 250.0
        assert stats['status_counts'] == {'pending': 1, 'verified': 1, 'rejected': 1}

    def test_deleting_a_sponsor_keeps_their_donations(self, client, db_session, donation, sponsor_user, admin_user,
                                                      auth_headers):
        client.delete(f'/api/admin/sponsors/{sponsor_user.id}', headers=auth_headers(admin_user))
        kept = db_session.get(ScholarDonation, donation.id)
        assert kept is not None
        assert kept.sponsor_id is None
