"""
Tests for POST /scan and coupon lookup endpoints.
"""
import json

from app.extensions import db
from app.models import Coupon, Scan


class TestScan:
    """Tests for POST /scan."""

    def test_scan_credits_mason(self, client, mason_headers, make_coupon):
        make_coupon('API-1', points=50)

        response = client.post('/scan', headers=mason_headers, data=json.dumps({
            'token': 'API-1',
            'device_id': 'pixel-7',
            'gps': {'lat': 18.52, 'lng': 73.85},
            'client_time': '2024-06-01T09:30:00Z',
        }))

        assert response.status_code == 200
        data = response.get_json()
        assert data == {'success': True, 'pointsCredited': 50, 'newWalletPoints': 50}

        scan = Scan.query.one()
        assert scan.device_id == 'pixel-7'
        assert scan.client_time.year == 2024

    def test_wallet_points_accumulate(self, client, mason_headers, make_coupon):
        make_coupon('API-2', points=50)
        make_coupon('API-3', points=25)

        client.post('/scan', headers=mason_headers, json={'token': 'API-2'})
        response = client.post('/scan', headers=mason_headers, json={'token': 'API-3'})

        assert response.get_json()['newWalletPoints'] == 75

    def test_rescan_conflict(self, client, mason_headers, make_coupon):
        make_coupon('API-4', points=50)
        client.post('/scan', headers=mason_headers, json={'token': 'API-4'})

        response = client.post('/scan', headers=mason_headers, json={'token': 'API-4'})

        assert response.status_code == 409
        data = response.get_json()
        assert data['success'] is False
        assert data['error']['code'] == 'ALREADY_REDEEMED'
        assert data['error']['message'] == 'Token already redeemed'

    def test_unknown_token(self, client, mason_headers):
        response = client.post('/scan', headers=mason_headers, json={'token': 'MISSING'})

        assert response.status_code == 404
        assert response.get_json()['error']['message'] == 'Token MISSING not found'

    def test_missing_token(self, client, mason_headers):
        response = client.post('/scan', headers=mason_headers, json={})
        assert response.status_code == 400

    def test_bad_client_time(self, client, mason_headers, make_coupon):
        make_coupon('API-5')
        response = client.post('/scan', headers=mason_headers, json={'token': 'API-5', 'client_time': 'yesterday'})

        assert response.status_code == 400
        db.session.expire_all()
        assert Coupon.query.filter_by(token='API-5').one().status == 'issued'

    def test_requires_token(self, client, make_coupon):
        make_coupon('API-6')
        response = client.post('/scan', json={'token': 'API-6'})
        assert response.status_code == 401

    def test_invalid_jwt(self, client):
        response = client.post('/scan', headers={'Authorization': 'Bearer not.a.jwt'}, json={'token': 'X'})
        assert response.status_code == 401
        assert response.get_json()['error']['code'] == 'INVALID_TOKEN'

    def test_dealer_cannot_use_mason_scan(self, client, dealer_headers, make_coupon):
        make_coupon('API-7')
        response = client.post('/scan', headers=dealer_headers, json={'token': 'API-7'})
        assert response.status_code == 403


class TestCoupons:
    """Tests for /coupons and /batches."""

    def test_create_batch(self, client, mason_headers):
        response = client.post('/batches', headers=mason_headers, json={'name': 'Grout', 'sku': 'GR-1'})

        assert response.status_code == 201
        data = response.get_json()
        assert data['name'] == 'Grout'
        assert data['sku'] == 'GR-1'

    def test_generate_json(self, client, mason_headers, sample_batch):
        response = client.post('/coupons/generate', headers=mason_headers, json={
            'batch_id': sample_batch.id, 'quantity': 3, 'points': 20, 'prefix': 'GR',
        })

        assert response.status_code == 201
        data = response.get_json()
        assert data['count'] == 3
        assert all(c['token'].startswith('GR-') for c in data['coupons'])
        assert Coupon.query.filter_by(batch_id=sample_batch.id).count() == 3

    def test_generate_token_list(self, client, mason_headers, sample_batch):
        headers = dict(mason_headers, Accept='text/csv')
        response = client.post('/coupons/generate', headers=headers, json={
            'batch_id': sample_batch.id, 'quantity': 4, 'points': 5,
        })

        assert response.status_code == 201
        assert response.mimetype == 'text/csv'
        assert len(response.get_data(as_text=True).split('\n')) == 4

    def test_generate_quantity_bounds(self, client, mason_headers, sample_batch):
        for quantity in (0, 10001):
            response = client.post('/coupons/generate', headers=mason_headers, json={
                'batch_id': sample_batch.id, 'quantity': quantity, 'points': 5,
            })
            assert response.status_code == 400

    def test_generate_unknown_batch(self, client, mason_headers):
        response = client.post('/coupons/generate', headers=mason_headers, json={
            'batch_id': 12345, 'quantity': 1, 'points': 5,
        })
        assert response.status_code == 404

    def test_get_coupon(self, client, make_coupon):
        make_coupon('LOOK-1', points=15)

        response = client.get('/coupons/LOOK-1')

        assert response.status_code == 200
        assert response.get_json()['points'] == 15
        assert response.get_json()['status'] == 'issued'

    def test_get_unknown_coupon(self, client):
        assert client.get('/coupons/NOPE').status_code == 404


class TestHealth:

    def test_health(self, client):
        assert client.get('/health').get_json() == {'status': 'ok'}

    def test_version(self, client):
        data = client.get('/version').get_json()
        assert data['version'] == '0.1.0'
        assert data['env'] == 'testing'

    def test_request_id_echoed(self, client):
        response = client.get('/health', headers={'X-Request-ID': 'abc-123'})
        assert response.headers['X-Request-ID'] == 'abc-123'

    def test_unknown_route_is_json(self, client):
        response = client.get('/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'NOT_FOUND'
