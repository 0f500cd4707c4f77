"""
Tests for the token redemption state machine.

Covers:
- Direct mason scan (status change, ledger row, scan row, linkage)
- Unknown and already-redeemed tokens
- Rollback when the crediting step fails
"""
from datetime import datetime
from unittest.mock import patch

import pytest

from app.extensions import db
from app.models import Coupon, CouponStatus, Scan, Transaction, DealerTransaction
from app.services.crediting import MasonActor, DealerActor
from app.services.redemption_service import RedemptionService, ScanContext
from app.utils.exceptions import (
    CouponNotFoundError,
    AlreadyRedeemedError,
    RedemptionInternalError,
    ValidationError,
)


class TestRedeemDirectScan:
    """Mason scanning a coupon for themselves."""

    def test_redeem_marks_coupon_redeemed(self, app, sample_mason, make_coupon):
        make_coupon('TKN-1', points=50)

        result = RedemptionService().redeem('TKN-1', MasonActor(user_id=sample_mason.id))

        coupon = Coupon.query.filter_by(token='TKN-1').one()
        assert coupon.status == CouponStatus.REDEEMED.value
        assert coupon.redeemed_at is not None
        assert result.points_credited == 50
        assert result.credited_party == 'mason'
        assert result.user_id == sample_mason.id

    def test_redeem_writes_one_ledger_row_and_one_scan(self, app, sample_mason, make_coupon):
        make_coupon('TKN-2', points=30)

        result = RedemptionService().redeem(
            'TKN-2',
            MasonActor(user_id=sample_mason.id),
            ScanContext(device_id='dev-1', gps={'lat': 19.07, 'lng': 72.87}, client_time=datetime(2024, 5, 1, 10, 0)),
        )

        entries = Transaction.query.filter_by(user_id=sample_mason.id).all()
        assert len(entries) == 1
        assert entries[0].amount == 30
        assert entries[0].type == 'redemption'
        assert entries[0].reference_id == result.scan_id

        scan = db.session.get(Scan, result.scan_id)
        assert scan.token == 'TKN-2'
        assert scan.user_id == sample_mason.id
        assert scan.dealer_id is None
        assert scan.device_id == 'dev-1'
        assert scan.gps == {'lat': 19.07, 'lng': 72.87}
        assert scan.success is True

    def test_result_serializes(self, app, sample_mason, make_coupon):
        make_coupon('TKN-3', points=10)
        data = RedemptionService().redeem('TKN-3', MasonActor(user_id=sample_mason.id)).to_dict()
        assert data['token'] == 'TKN-3'
        assert data['points_credited'] == 10


class TestRedeemRejections:
    """Failure paths leave no trace."""

    def test_unknown_token(self, app, sample_mason):
        with pytest.raises(CouponNotFoundError) as exc:
            RedemptionService().redeem('NOPE', MasonActor(user_id=sample_mason.id))

        assert exc.value.code == 'TOKEN_NOT_FOUND'
        assert Scan.query.count() == 0
        assert Transaction.query.count() == 0

    def test_second_redeem_is_rejected(self, app, sample_mason, make_coupon):
        make_coupon('TKN-4', points=50)
        service = RedemptionService()
        service.redeem('TKN-4', MasonActor(user_id=sample_mason.id))

        with pytest.raises(AlreadyRedeemedError):
            service.redeem('TKN-4', MasonActor(user_id=sample_mason.id))

        assert Scan.query.filter_by(token='TKN-4').count() == 1
        assert Transaction.query.count() == 1

    def test_already_redeemed_by_dealer_rejects_mason(self, app, sample_mason, sample_dealer, make_coupon):
        make_coupon('TKN-5', points=20)
        service = RedemptionService()
        service.redeem('TKN-5', DealerActor(dealer_id=sample_dealer.id, credit_to_dealer=True))

        with pytest.raises(AlreadyRedeemedError):
            service.redeem('TKN-5', MasonActor(user_id=sample_mason.id))

        assert Transaction.query.count() == 0
        assert DealerTransaction.query.count() == 1

    def test_empty_token_rejected(self, app, sample_mason):
        with pytest.raises(ValidationError):
            RedemptionService().redeem('', MasonActor(user_id=sample_mason.id))

    def test_unsupported_actor_rejected(self, app, make_coupon):
        make_coupon('TKN-6')
        with pytest.raises(ValidationError):
            RedemptionService().redeem('TKN-6', object())

        assert Coupon.query.filter_by(token='TKN-6').one().status == CouponStatus.ISSUED.value


class TestRedeemRollback:
    """A failure after the lock leaves the coupon issued with no credit."""

    def test_crediting_failure_rolls_back(self, app, sample_mason, make_coupon):
        make_coupon('TKN-7', points=40)

        with patch('app.services.redemption_service.apply_credit', side_effect=RuntimeError('disk full')):
            with pytest.raises(RedemptionInternalError) as exc:
                RedemptionService().redeem('TKN-7', MasonActor(user_id=sample_mason.id))

        assert exc.value.token == 'TKN-7'
        assert isinstance(exc.value.original_error, RuntimeError)

        coupon = Coupon.query.filter_by(token='TKN-7').one()
        assert coupon.status == CouponStatus.ISSUED.value
        assert coupon.redeemed_at is None
        assert Scan.query.count() == 0
        assert Transaction.query.count() == 0

    def test_coupon_redeemable_after_failed_attempt(self, app, sample_mason, make_coupon):
        make_coupon('TKN-8', points=40)

        with patch('app.services.redemption_service.apply_credit', side_effect=RuntimeError('boom')):
            with pytest.raises(RedemptionInternalError):
                RedemptionService().redeem('TKN-8', MasonActor(user_id=sample_mason.id))

        result = RedemptionService().redeem('TKN-8', MasonActor(user_id=sample_mason.id))
        assert result.points_credited == 40
