"""
Ledger models.

Both ledgers are append-only. Wallet balances are folded from them on
demand (see WalletService); nothing caches a balance.
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class TransactionType(str, Enum):
    """Mason ledger entry types. Amounts are signed."""
    REDEMPTION = 'redemption'          # +points from a coupon
    PAYOUT = 'payout'                  # -amount reserved by a withdrawal request
    PAYOUT_REVERSAL = 'payout_reversal'  # +amount released by a rejected withdrawal


class DealerTransactionType(str, Enum):
    """Dealer ledger entry types. Amounts are magnitudes; sign comes from the type."""
    CREDIT = 'credit'
    DEBIT = 'debit'
    PAYOUT = 'payout'
    REIMBURSEMENT_REQUEST = 'reimbursement_request'
    PAYOUT_REVERSAL = 'payout_reversal'


DEALER_CREDIT_TYPES = (
    DealerTransactionType.CREDIT.value,
    DealerTransactionType.PAYOUT_REVERSAL.value,
)
DEALER_DEBIT_TYPES = (
    DealerTransactionType.DEBIT.value,
    DealerTransactionType.PAYOUT.value,
    DealerTransactionType.REIMBURSEMENT_REQUEST.value,
)


class Transaction(db.Model):
    """
    Mason ledger entry.

    Positive amounts are credits, negative amounts are debits. A user's
    wallet balance is the sum of their amounts.
    """
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(30), nullable=False)

    # Dealer that performed a proxy scan for this mason
    dealer_id = db.Column(db.Integer, db.ForeignKey('dealers.id'), nullable=True)
    # Scan id for redemptions, payout id for payout entries
    reference_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<Transaction {self.id}: {self.amount} for user {self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': self.amount,
            'type': self.type,
            'dealer_id': self.dealer_id,
            'reference_id': self.reference_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class DealerTransaction(db.Model):
    """
    Dealer ledger entry.

    Balance = sum(credit, payout_reversal) - sum(debit, payout, reimbursement_request).
    """
    __tablename__ = 'dealer_transactions'

    id = db.Column(db.Integer, primary_key=True)
    dealer_id = db.Column(db.Integer, db.ForeignKey('dealers.id'), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    note = db.Column(db.String(500))
    reference_id = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        db.CheckConstraint('amount >= 0', name='ck_dealer_transactions_amount_non_negative'),
    )

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type in DEALER_CREDIT_TYPES else -self.amount

    def __repr__(self):
        return f'<DealerTransaction {self.id}: {self.type} {self.amount} for dealer {self.dealer_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'dealer_id': self.dealer_id,
            'type': self.type,
            'amount': self.amount,
            'note': self.note,
            'reference_id': self.reference_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
