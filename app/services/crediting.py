"""
Crediting policy for coupon redemptions.

Decides who receives a redeemed coupon's points and writes the matching
ledger rows. Runs inside the redemption transaction: it only adds and
flushes, it never commits or rolls back. Any write error propagates to
the caller, which aborts the whole redemption.

Variants, selected by actor:
- MasonActor                          -> mason ledger +points
- DealerActor with mason_phone        -> find-or-create mason, mason ledger
                                         +points attributed to the dealer,
                                         plus a dealer debit if cash_paid
- DealerActor with credit_to_dealer   -> dealer ledger credit
Exactly one variant applies per redemption; mason_phone wins if both
dealer options are set.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    User,
    Coupon,
    Transaction,
    TransactionType,
    DealerTransaction,
    DealerTransactionType,
)

logger = logging.getLogger(__name__)

CREDITED_MASON = 'mason'
CREDITED_DEALER = 'dealer'


@dataclass(frozen=True)
class MasonActor:
    """Authenticated mason scanning for themselves."""
    user_id: int


@dataclass(frozen=True)
class DealerActor:
    """Authenticated dealer scanning on behalf of a mason or themselves."""
    dealer_id: int
    mason_phone: Optional[str] = None
    cash_paid: bool = False
    credit_to_dealer: bool = False


@dataclass
class CreditOutcome:
    """What the policy did; ids feed the Scan row, entries get its id."""
    credited_party: Optional[str]
    points: int
    user_id: Optional[int] = None
    dealer_id: Optional[int] = None
    entries: List[object] = field(default_factory=list)


def apply_credit(actor, coupon: Coupon) -> CreditOutcome:
    """Credit `coupon.points` according to the actor's capability."""
    if isinstance(actor, MasonActor):
        return credit_mason_scan(actor, coupon)

    if isinstance(actor, DealerActor):
        if actor.mason_phone:
            return credit_proxy_mason(actor, coupon)
        if actor.credit_to_dealer:
            return credit_proxy_dealer(actor, coupon)
        # The API rejects this input; the coupon is still consumed if a caller gets here
        logger.warning(
            f"Dealer {actor.dealer_id} redeemed {coupon.token} with no beneficiary selected"
        )
        return CreditOutcome(credited_party=None, points=0, dealer_id=actor.dealer_id)

    raise TypeError(f"Unsupported actor: {actor!r}")


def credit_mason_scan(actor: MasonActor, coupon: Coupon) -> CreditOutcome:
    entry = Transaction(
        user_id=actor.user_id,
        amount=coupon.points,
        type=TransactionType.REDEMPTION.value,
    )
    db.session.add(entry)

    return CreditOutcome(
        credited_party=CREDITED_MASON,
        points=coupon.points,
        user_id=actor.user_id,
        entries=[entry],
    )


def credit_proxy_mason(actor: DealerActor, coupon: Coupon) -> CreditOutcome:
    """
    Dealer scanned for a mason identified only by phone.

    The mason record is created on first sight of the phone with no OTP
    check; the dealer is trusted for the phone number.
    """
    mason = find_or_create_mason(actor.mason_phone)

    entries = [
        Transaction(
            user_id=mason.id,
            amount=coupon.points,
            type=TransactionType.REDEMPTION.value,
            dealer_id=actor.dealer_id,
        )
    ]

    if actor.cash_paid:
        # Dealer fronted cash to the mason; tracked as dealer debt
        entries.append(DealerTransaction(
            dealer_id=actor.dealer_id,
            type=DealerTransactionType.DEBIT.value,
            amount=coupon.points,
            note=f"Cash paid to mason {actor.mason_phone} for token {coupon.token}",
        ))

    db.session.add_all(entries)

    return CreditOutcome(
        credited_party=CREDITED_MASON,
        points=coupon.points,
        user_id=mason.id,
        dealer_id=actor.dealer_id,
        entries=entries,
    )


def credit_proxy_dealer(actor: DealerActor, coupon: Coupon) -> CreditOutcome:
    entry = DealerTransaction(
        dealer_id=actor.dealer_id,
        type=DealerTransactionType.CREDIT.value,
        amount=coupon.points,
        note=f"Direct redemption for token {coupon.token}",
    )
    db.session.add(entry)

    return CreditOutcome(
        credited_party=CREDITED_DEALER,
        points=coupon.points,
        dealer_id=actor.dealer_id,
        entries=[entry],
    )


def find_or_create_mason(phone: str) -> User:
    """Return the mason with `phone`, inserting one if none exists."""
    mason = User.query.filter_by(phone=phone).first()
    if mason:
        return mason

    try:
        # Savepoint so a concurrent insert of the same phone does not sink the redemption
        with db.session.begin_nested():
            mason = User(phone=phone)
            db.session.add(mason)
    except IntegrityError:
        mason = User.query.filter_by(phone=phone).one()
    else:
        logger.info(f"Created mason {mason.id} for phone {phone} via proxy scan")

    return mason
