"""
Business logic services for the rewards backend.
"""
from .crediting import MasonActor, DealerActor, CreditOutcome, apply_credit
from .redemption_service import RedemptionService, RedemptionResult, ScanContext
from .wallet_service import WalletService
from .payout_service import PayoutService
from .coupon_service import CouponService

__all__ = [
    'MasonActor',
    'DealerActor',
    'CreditOutcome',
    'apply_credit',
    'RedemptionService',
    'RedemptionResult',
    'ScanContext',
    'WalletService',
    'PayoutService',
    'CouponService',
]
