"""
Database models for the CacEasy rewards backend.
Coupons, scans, mason and dealer ledgers, payouts, and admin records.
"""
from .party import User, Dealer
from .coupon import Batch, Coupon, CouponStatus
from .scan import Scan
from .ledger import (
    Transaction,
    TransactionType,
    DealerTransaction,
    DealerTransactionType,
    DEALER_CREDIT_TYPES,
    DEALER_DEBIT_TYPES,
)
from .payout import Payout, PayoutStatus, PayoutType
from .admin import AdminAudit, FlaggedEvent
from .otp import OtpCode

__all__ = [
    # Parties
    'User',
    'Dealer',
    # Coupons
    'Batch',
    'Coupon',
    'CouponStatus',
    'Scan',
    # Ledgers
    'Transaction',
    'TransactionType',
    'DealerTransaction',
    'DealerTransactionType',
    'DEALER_CREDIT_TYPES',
    'DEALER_DEBIT_TYPES',
    # Payouts
    'Payout',
    'PayoutStatus',
    'PayoutType',
    # Admin
    'AdminAudit',
    'FlaggedEvent',
    # Auth
    'OtpCode',
]
