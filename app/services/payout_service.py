"""
Payout Approval Service.

Admins settle withdrawal requests. A payout moves pending -> approved or
pending -> rejected exactly once; both are terminal.

The payout row is locked for the decision so that two admins acting on the
same request serialize and the loser sees a non-pending payout (404).

Funds were reserved in the ledger when the request was made:
- approve: nothing to post, the reservation becomes the settled payout
- reject:  a payout_reversal entry releases the reservation
"""
import logging
from datetime import datetime
from typing import List, Optional

from ..extensions import db
from ..models import (
    Payout,
    PayoutStatus,
    PayoutType,
    Transaction,
    TransactionType,
    DealerTransaction,
    DealerTransactionType,
)
from ..utils.exceptions import RewardsError, PayoutNotFoundError, ValidationError, InternalError
from ..utils.locking import acquire_row_lock
from .admin_service import write_audit

logger = logging.getLogger(__name__)


class PayoutService:
    """
    Approve, reject and list payouts.

    Usage:
        service = PayoutService()
        service.approve(12, reference='UTR123456', admin='abcd1234...')
        service.reject(13, notes='Account number invalid', admin='abcd1234...')
    """

    def list_payouts(self, status: str = None, payout_type: str = None) -> List[Payout]:
        query = Payout.query
        if status:
            query = query.filter(Payout.status == status)
        if payout_type:
            query = query.filter(Payout.type == payout_type)
        return query.order_by(Payout.created_at.desc(), Payout.id.desc()).all()

    def approve(self, payout_id: int, reference: str, admin: str, payout_type: str = None) -> Payout:
        """
        Mark a pending payout as paid.

        Args:
            payout_id: Payout to approve
            reference: Settlement reference (bank UTR, UPI ref, ...)
            admin: Masked identifier of the approving admin
            payout_type: Restrict to 'user' or 'dealer' payouts

        Raises:
            ValidationError: reference missing
            PayoutNotFoundError: No pending payout with this id (and type)
        """
        if not reference:
            raise ValidationError("Reference is required", "reference")

        payout = self._decide(payout_id, PayoutStatus.APPROVED, reference, payout_type)

        action = 'dealer_payout_approved' if payout.type == PayoutType.DEALER.value else 'payout_approved'
        write_audit(admin, action, {'payoutId': payout.id, 'reference': reference, 'amount': payout.amount})
        return payout

    def reject(self, payout_id: int, notes: str, admin: str) -> Payout:
        """Reject a pending payout and return its reserved amount to the requester."""
        if not notes:
            raise ValidationError("Notes are required", "notes")

        payout = self._decide(payout_id, PayoutStatus.REJECTED, notes)

        write_audit(admin, 'payout_rejected', {'payoutId': payout.id, 'notes': notes, 'amount': payout.amount})
        return payout

    # ==================== Helper Methods ====================

    def _decide(
        self,
        payout_id: int,
        new_status: PayoutStatus,
        reference: str,
        payout_type: Optional[str] = None,
    ) -> Payout:
        criteria = [Payout.id == payout_id]
        if payout_type:
            criteria.append(Payout.type == payout_type)

        try:
            payout = acquire_row_lock(Payout, *criteria)
            if payout is None or not payout.is_pending:
                raise PayoutNotFoundError(payout_id)

            payout.status = new_status.value
            payout.reference = reference
            payout.updated_at = datetime.utcnow()

            if new_status == PayoutStatus.REJECTED:
                self._release_reservation(payout)

            db.session.commit()

        except RewardsError as e:
            db.session.rollback()
            logger.info(f"Payout {payout_id} {new_status.value} refused: {e.message}")
            raise

        except Exception as e:
            db.session.rollback()
            logger.exception(f"Payout {payout_id} {new_status.value} failed: {e}")
            raise InternalError(original_error=e) from e

        logger.info(f"Payout {payout.id} {new_status.value} ({payout.type} {payout.amount})")
        return payout

    def _release_reservation(self, payout: Payout) -> None:
        if payout.type == PayoutType.DEALER.value:
            db.session.add(DealerTransaction(
                dealer_id=payout.dealer_id,
                type=DealerTransactionType.PAYOUT_REVERSAL.value,
                amount=payout.amount,
                note=f"Payout {payout.id} rejected",
                reference_id=payout.id,
            ))
        else:
            db.session.add(Transaction(
                user_id=payout.user_id,
                amount=payout.amount,
                type=TransactionType.PAYOUT_REVERSAL.value,
                reference_id=payout.id,
            ))
