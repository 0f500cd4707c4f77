"""
Coupon Redemption Service.

The token redemption state machine. Guarantees that a coupon token is
redeemed at most once no matter how many scans race for it, and that the
status change, the crediting ledger rows and the Scan audit row commit
together or not at all.

Protocol (one database transaction):
1. Lock the coupon row by token (blocks other redeemers of the same token only)
2. Unknown token            -> CouponNotFoundError, rollback
3. Status is not 'issued'   -> AlreadyRedeemedError, rollback
4. Mark redeemed, stamp redeemed_at
5. Apply the crediting policy (app.services.crediting)
6. Insert the Scan row and link the ledger rows to it
7. Commit

Anything failing in 4-7 rolls back and raises RedemptionInternalError, so the
coupon stays 'issued' with no partial credit. Losers of a race see the
winner's committed 'redeemed' status once the lock is released. Nothing is
retried here: AlreadyRedeemedError is a final answer.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any

from ..extensions import db
from ..models import Coupon, CouponStatus, Scan
from ..utils.exceptions import (
    RewardsError,
    CouponNotFoundError,
    AlreadyRedeemedError,
    ValidationError,
    RedemptionInternalError,
)
from ..utils.locking import acquire_row_lock
from .crediting import apply_credit, MasonActor, DealerActor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanContext:
    """Client metadata copied onto the Scan row as-is."""
    device_id: Optional[str] = None
    gps: Optional[Dict[str, Any]] = None
    client_time: Optional[datetime] = None


@dataclass
class RedemptionResult:
    token: str
    points_credited: int
    credited_party: Optional[str]
    user_id: Optional[int]
    dealer_id: Optional[int]
    scan_id: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RedemptionService:
    """
    Redeems coupon tokens for masons and dealers.

    Usage:
        service = RedemptionService()

        result = service.redeem('TOKEN-123', MasonActor(user_id=7), ScanContext(device_id='abc'))
        result = service.redeem('TOKEN-456', DealerActor(dealer_id=3, credit_to_dealer=True))
    """

    def redeem(self, token: str, actor, context: ScanContext = None) -> RedemptionResult:
        """
        Redeem `token` on behalf of `actor`.

        Args:
            token: Coupon token from the QR code
            actor: MasonActor or DealerActor
            context: Device/GPS metadata for the Scan row

        Returns:
            RedemptionResult for the committed redemption

        Raises:
            CouponNotFoundError: No coupon has this token
            AlreadyRedeemedError: Coupon was redeemed earlier or by a concurrent scan
            RedemptionInternalError: Storage failure; nothing was written
        """
        if not token or not isinstance(token, str):
            raise ValidationError("Token is required", "token")
        if not isinstance(actor, (MasonActor, DealerActor)):
            raise ValidationError(f"Unsupported actor {actor!r}", "actor")

        context = context or ScanContext()

        try:
            coupon = acquire_row_lock(Coupon, Coupon.token == token)

            if coupon is None:
                raise CouponNotFoundError(token)

            if not coupon.is_redeemable:
                raise AlreadyRedeemedError(token)

            coupon.status = CouponStatus.REDEEMED.value
            coupon.redeemed_at = datetime.utcnow()

            outcome = apply_credit(actor, coupon)

            scan = Scan(
                token=token,
                user_id=outcome.user_id,
                dealer_id=outcome.dealer_id,
                device_id=context.device_id,
                gps=context.gps,
                client_time=context.client_time,
                success=True,
            )
            db.session.add(scan)
            db.session.flush()
            scan_id = scan.id

            for entry in outcome.entries:
                entry.reference_id = scan_id

            db.session.commit()

        except RewardsError as e:
            db.session.rollback()
            if isinstance(e, AlreadyRedeemedError):
                logger.warning(f"Redeem rejected: token {token} already redeemed ({_describe(actor)})")
            else:
                logger.info(f"Redeem rejected: {e.message} ({_describe(actor)})")
            raise

        except Exception as e:
            db.session.rollback()
            logger.exception(f"Redemption of token {token} failed ({_describe(actor)}): {e}")
            raise RedemptionInternalError(token, e) from e

        logger.info(
            f"Token {token} redeemed: {outcome.points} pts to {outcome.credited_party or 'nobody'} "
            f"(user={outcome.user_id}, dealer={outcome.dealer_id}, scan={scan_id})"
        )

        return RedemptionResult(
            token=token,
            points_credited=outcome.points,
            credited_party=outcome.credited_party,
            user_id=outcome.user_id,
            dealer_id=outcome.dealer_id,
            scan_id=scan_id,
        )


def _describe(actor) -> str:
    if isinstance(actor, MasonActor):
        return f"mason {actor.user_id}"
    if isinstance(actor, DealerActor):
        return f"dealer {actor.dealer_id}"
    return repr(actor)
