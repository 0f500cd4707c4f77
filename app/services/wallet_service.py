"""
Wallet Service.

Balances are never stored. They are folded from the append-only ledgers:

- mason:  sum(transactions.amount)
- dealer: sum(credit, payout_reversal) - sum(debit, payout, reimbursement_request)

Withdrawal requests reserve funds immediately by writing the debit in the
same transaction as the Payout row, after locking the party row and
recomputing the balance. Two concurrent requests from the same party
therefore serialize on the party lock and the second one sees the first
one's reservation.
"""
import logging
from typing import Dict, Any, List

from ..extensions import db
from ..models import (
    User,
    Dealer,
    Transaction,
    TransactionType,
    DealerTransaction,
    DealerTransactionType,
    DEALER_CREDIT_TYPES,
    DEALER_DEBIT_TYPES,
    Payout,
    PayoutType,
    PayoutStatus,
)
from ..utils.exceptions import (
    RewardsError,
    InsufficientBalanceError,
    PartyNotFoundError,
    ValidationError,
    InternalError,
)
from ..utils.locking import acquire_row_lock

logger = logging.getLogger(__name__)

PARTY_MASON = 'user'
PARTY_DEALER = 'dealer'
PARTY_TYPES = (PARTY_MASON, PARTY_DEALER)

# 1 point = 1 rupee
POINT_VALUE_RUPEES = 1

DEFAULT_HISTORY_LIMIT = 50


class WalletService:
    """
    Balance projection and withdrawal requests for masons and dealers.

    Usage:
        service = WalletService()

        points = service.balance(user_id, 'user')
        payout = service.request_withdrawal(dealer_id, 'dealer', 250)
    """

    def balance(self, party_id: int, party_type: str) -> int:
        """Current spendable balance folded from the party's ledger."""
        _check_party_type(party_type)

        if party_type == PARTY_MASON:
            result = db.session.query(
                db.func.coalesce(db.func.sum(Transaction.amount), 0)
            ).filter(
                Transaction.user_id == party_id
            ).scalar()
            return int(result or 0)

        credits = db.func.coalesce(db.func.sum(db.case(
            (DealerTransaction.type.in_(DEALER_CREDIT_TYPES), DealerTransaction.amount),
            else_=0
        )), 0)
        debits = db.func.coalesce(db.func.sum(db.case(
            (DealerTransaction.type.in_(DEALER_DEBIT_TYPES), DealerTransaction.amount),
            else_=0
        )), 0)

        result = db.session.query(credits - debits).filter(
            DealerTransaction.dealer_id == party_id
        ).scalar()
        return int(result or 0)

    def wallet(self, party_id: int, party_type: str, limit: int = DEFAULT_HISTORY_LIMIT) -> Dict[str, Any]:
        """Balance plus the most recent ledger entries, newest first."""
        _check_party_type(party_type)
        self._get_party(party_id, party_type)

        points = self.balance(party_id, party_type)

        if party_type == PARTY_MASON:
            entries = (
                Transaction.query
                .filter_by(user_id=party_id)
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
                .limit(limit)
                .all()
            )
            return {
                'user_id': party_id,
                'points': points,
                'rupee_equivalent': points * POINT_VALUE_RUPEES,
                'transactions': [e.to_dict() for e in entries],
            }

        entries = (
            DealerTransaction.query
            .filter_by(dealer_id=party_id)
            .order_by(DealerTransaction.created_at.desc(), DealerTransaction.id.desc())
            .limit(limit)
            .all()
        )
        return {
            'dealer_id': party_id,
            'balance': points,
            'transactions': [e.to_dict() for e in entries],
        }

    def request_withdrawal(
        self,
        party_id: int,
        party_type: str,
        amount: int,
        method: str = None,
        account: str = None,
    ) -> Payout:
        """
        Create a pending payout and reserve its amount in the ledger.

        Args:
            party_id: User or dealer id
            party_type: 'user' or 'dealer'
            amount: Points to withdraw (>= 1)
            method: Payment method (UPI, bank, ...) for mason payouts
            account: Destination account for mason payouts

        Returns:
            The pending Payout

        Raises:
            ValidationError: amount is not a positive integer
            PartyNotFoundError: No such user/dealer
            InsufficientBalanceError: amount exceeds the balance at evaluation time
        """
        _check_party_type(party_type)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise ValidationError("Amount must be a positive integer", "amount")

        model = User if party_type == PARTY_MASON else Dealer

        try:
            # Serialize withdrawals of this party; balance is read under the lock
            party = acquire_row_lock(model, model.id == party_id)
            if party is None:
                raise PartyNotFoundError(party_type, party_id)

            current = self.balance(party_id, party_type)
            if amount > current:
                raise InsufficientBalanceError(current, amount, party_id)

            if party_type == PARTY_MASON:
                payout = self._reserve_mason_payout(party_id, amount, method, account)
            else:
                payout = self._reserve_dealer_payout(party_id, amount)

            db.session.commit()

        except RewardsError as e:
            db.session.rollback()
            logger.info(f"Withdrawal of {amount} by {party_type} {party_id} refused: {e.message}")
            raise

        except Exception as e:
            db.session.rollback()
            logger.exception(f"Withdrawal of {amount} by {party_type} {party_id} failed: {e}")
            raise InternalError(original_error=e) from e

        logger.info(
            f"Payout {payout.id} requested: {party_type} {party_id} -{amount} "
            f"(balance was {current})"
        )
        return payout

    def history(self, party_id: int, party_type: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Dict[str, Any]]:
        return self.wallet(party_id, party_type, limit)['transactions']

    # ==================== Helper Methods ====================

    def _reserve_mason_payout(self, user_id: int, amount: int, method: str, account: str) -> Payout:
        payout = Payout(
            user_id=user_id,
            type=PayoutType.USER.value,
            amount=amount,
            status=PayoutStatus.PENDING.value,
            method=method,
            account=account,
        )
        db.session.add(payout)
        db.session.flush()

        db.session.add(Transaction(
            user_id=user_id,
            amount=-amount,
            type=TransactionType.PAYOUT.value,
            reference_id=payout.id,
        ))
        return payout

    def _reserve_dealer_payout(self, dealer_id: int, amount: int) -> Payout:
        payout = Payout(
            dealer_id=dealer_id,
            type=PayoutType.DEALER.value,
            amount=amount,
            status=PayoutStatus.PENDING.value,
            reference='Reimbursement Request',
        )
        db.session.add(payout)
        db.session.flush()

        db.session.add(DealerTransaction(
            dealer_id=dealer_id,
            type=DealerTransactionType.REIMBURSEMENT_REQUEST.value,
            amount=amount,
            note=f"Payout request {payout.id}",
            reference_id=payout.id,
        ))
        return payout

    def _get_party(self, party_id: int, party_type: str):
        model = User if party_type == PARTY_MASON else Dealer
        party = db.session.get(model, party_id)
        if party is None:
            raise PartyNotFoundError(party_type, party_id)
        return party


def _check_party_type(party_type: str) -> None:
    if party_type not in PARTY_TYPES:
        raise ValidationError(f"Unknown party type '{party_type}'", "party_type")
