"""
Tests for the mason wallet API.
"""
from app.extensions import db
from app.models import Payout, Transaction


class TestUserWallet:

    def test_wallet(self, client, mason_headers, sample_mason, fund_mason):
        fund_mason(sample_mason, 120)

        response = client.get(f'/users/{sample_mason.id}/wallet', headers=mason_headers)

        assert response.status_code == 200
        data = response.get_json()
        assert data['user_id'] == sample_mason.id
        assert data['points'] == 120
        assert data['rupeeEquivalent'] == 120

    def test_other_users_wallet_forbidden(self, client, mason_headers, sample_mason):
        response = client.get(f'/users/{sample_mason.id + 1}/wallet', headers=mason_headers)
        assert response.status_code == 403


class TestRedeemPoints:

    def test_redeem_creates_pending_payout(self, client, mason_headers, sample_mason, fund_mason):
        fund_mason(sample_mason, 100)

        response = client.post(f'/users/{sample_mason.id}/redeem', headers=mason_headers, json={
            'amount': 70, 'method': 'upi', 'account': 'ramesh@okbank',
        })

        assert response.status_code == 202
        data = response.get_json()
        assert data['status'] == 'pending'

        payout = db.session.get(Payout, data['payout_id'])
        assert payout.amount == 70
        assert payout.account == 'ramesh@okbank'

        wallet = client.get(f'/users/{sample_mason.id}/wallet', headers=mason_headers).get_json()
        assert wallet['points'] == 30

    def test_redeem_more_than_balance(self, client, mason_headers, sample_mason, fund_mason):
        fund_mason(sample_mason, 10)

        response = client.post(f'/users/{sample_mason.id}/redeem', headers=mason_headers, json={
            'amount': 11, 'method': 'upi', 'account': 'x@upi',
        })

        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INSUFFICIENT_BALANCE'
        assert Transaction.query.filter_by(type='payout').count() == 0

    def test_method_and_account_required(self, client, mason_headers, sample_mason, fund_mason):
        fund_mason(sample_mason, 10)

        response = client.post(f'/users/{sample_mason.id}/redeem', headers=mason_headers, json={'amount': 5})

        assert response.status_code == 400

    def test_cannot_redeem_for_someone_else(self, client, mason_headers, sample_mason):
        response = client.post(f'/users/{sample_mason.id + 1}/redeem', headers=mason_headers, json={
            'amount': 5, 'method': 'upi', 'account': 'x@upi',
        })
        assert response.status_code == 403
