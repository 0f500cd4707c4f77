"""
Tests for OTP login.
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from app import create_app
from app.extensions import db
from app.models import OtpCode, User
from app.services.auth_service import decode_token

KNOWN_OTP_OFFSET = 23456  # randbelow() result -> OTP '123456'


def _request_otp(client, phone):
    with patch('app.services.auth_service.secrets.randbelow', return_value=KNOWN_OTP_OFFSET):
        return client.post('/auth/otp', json={'phone': phone})


class TestRequestOtp:

    def test_request_otp(self, client):
        response = _request_otp(client, '+919812300000')

        assert response.status_code == 202
        record = OtpCode.query.one()
        assert record.phone == '+919812300000'
        assert record.otp_hash != '123456'
        assert record.verified is False
        assert record.expires_at > datetime.utcnow()

    def test_otp_is_logged(self, client, caplog):
        with caplog.at_level('INFO', logger='app.services.auth_service'):
            _request_otp(client, '+919812300001')

        assert 'OTP: 123456' in caplog.text

    def test_invalid_phone(self, client):
        response = client.post('/auth/otp', json={'phone': 'abc'})
        assert response.status_code == 400


class TestVerifyOtp:

    def test_new_phone_becomes_mason(self, client):
        _request_otp(client, '+919812300002')

        response = client.post('/auth/verify', json={'phone': '+919812300002', 'otp': '123456'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['user']['role'] == 'user'

        mason = User.query.filter_by(phone='+919812300002').one()
        claims = decode_token(data['token'])
        assert claims == {'id': mason.id, 'phone': '+919812300002', 'role': 'user'}

    def test_dealer_phone_gets_dealer_role(self, client, sample_dealer):
        _request_otp(client, sample_dealer.phone)

        response = client.post('/auth/verify', json={'phone': sample_dealer.phone, 'otp': '123456'})

        data = response.get_json()
        assert data['user']['role'] == 'dealer'
        assert data['user']['id'] == sample_dealer.id
        assert User.query.count() == 0

    def test_wrong_otp(self, client):
        _request_otp(client, '+919812300003')

        response = client.post('/auth/verify', json={'phone': '+919812300003', 'otp': '000000'})

        assert response.status_code == 401

    def test_otp_single_use(self, client):
        _request_otp(client, '+919812300004')
        client.post('/auth/verify', json={'phone': '+919812300004', 'otp': '123456'})

        response = client.post('/auth/verify', json={'phone': '+919812300004', 'otp': '123456'})

        assert response.status_code == 401

    def test_expired_otp(self, client):
        _request_otp(client, '+919812300005')
        record = OtpCode.query.one()
        record.expires_at = datetime.utcnow() - timedelta(seconds=1)
        db.session.commit()

        response = client.post('/auth/verify', json={'phone': '+919812300005', 'otp': '123456'})

        assert response.status_code == 401

    def test_malformed_otp(self, client):
        response = client.post('/auth/verify', json={'phone': '+919812300006', 'otp': '12ab'})
        assert response.status_code == 400


@pytest.fixture
def limited_app():
    app = create_app('testing', {'RATELIMIT_ENABLED': True})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


class TestRateLimits:

    def test_one_otp_per_phone_per_minute(self, limited_app):
        client = limited_app.test_client()

        first = _request_otp(client, '+919812300007')
        second = _request_otp(client, '+919812300007')
        other_phone = _request_otp(client, '+919812300008')

        assert first.status_code == 202
        assert second.status_code == 429
        assert second.get_json()['error']['code'] == 'RATE_LIMITED'
        assert other_phone.status_code == 202

    def test_admin_rate_limit(self, limited_app):
        client = limited_app.test_client()
        headers = {'X-Admin-Key': 'test-admin-key'}

        statuses = [client.get('/admin/audit', headers=headers).status_code for _ in range(21)]

        assert statuses[:20] == [200] * 20
        assert statuses[20] == 429
