"""
Phone OTP login, JWT issuance and dealer registration.

OTP delivery is stubbed: the code is written to the log at INFO instead of
being sent by SMS.
"""
import logging
import re
import secrets
from datetime import datetime, timedelta

import jwt
from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from ..extensions import db
from ..models import User, Dealer, OtpCode
from ..utils.exceptions import AuthorizationError, DuplicateError, ValidationError

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')
OTP_PATTERN = re.compile(r'^\d{6}$')

ROLE_USER = 'user'
ROLE_DEALER = 'dealer'


def validate_phone(phone, field: str = 'phone') -> str:
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone):
        raise ValidationError("Invalid phone number", field)
    return phone


def create_access_token(party_id: int, phone: str, role: str) -> str:
    """Sign a bearer token for a mason or dealer."""
    now = datetime.utcnow()
    payload = {
        'sub': str(party_id),
        'phone': phone,
        'role': role,
        'iat': now,
        'exp': now + timedelta(days=current_app.config['JWT_EXPIRY_DAYS']),
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config['JWT_ALGORITHM'],
    )


def decode_token(token: str) -> dict:
    """
    Verify a bearer token.

    Raises:
        AuthorizationError (401): expired, tampered or malformed token
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config['JWT_ALGORITHM']],
        )
    except jwt.ExpiredSignatureError:
        raise AuthorizationError("Token has expired", status_code=401)
    except jwt.InvalidTokenError:
        raise AuthorizationError("Invalid token", status_code=401)

    try:
        party_id = int(payload['sub'])
    except (KeyError, TypeError, ValueError):
        raise AuthorizationError("Invalid token", status_code=401)

    return {
        'id': party_id,
        'phone': payload.get('phone'),
        'role': payload.get('role') or ROLE_USER,
    }


def request_otp(phone: str) -> OtpCode:
    """Generate, hash and store a 6-digit OTP for `phone`."""
    validate_phone(phone)

    otp = f"{secrets.randbelow(900000) + 100000}"
    record = OtpCode(
        phone=phone,
        otp_hash=generate_password_hash(otp),
        expires_at=datetime.utcnow() + timedelta(minutes=current_app.config['OTP_TTL_MINUTES']),
    )
    db.session.add(record)
    db.session.commit()

    # Delivery stub
    logger.info(f"[OTP] Phone: {phone}, OTP: {otp}")
    return record


def verify_otp(phone: str, otp: str) -> dict:
    """
    Check `otp` against the latest live code for `phone` and log the caller in.

    A phone registered as a dealer logs in with role 'dealer'; any other
    phone is a mason, created on first login.

    Returns:
        {'token': <jwt>, 'user': {...}}

    Raises:
        ValidationError: malformed input
        AuthorizationError (401): no live OTP or wrong code
    """
    if not phone or not isinstance(phone, str):
        raise ValidationError("Phone is required", "phone")
    if not isinstance(otp, str) or not OTP_PATTERN.match(otp):
        raise ValidationError("OTP must be 6 digits", "otp")

    record = (
        OtpCode.query
        .filter(
            OtpCode.phone == phone,
            OtpCode.verified.is_(False),
            OtpCode.expires_at > datetime.utcnow(),
        )
        .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
        .first()
    )
    if record is None:
        raise AuthorizationError("OTP not found or expired", status_code=401)
    if not check_password_hash(record.otp_hash, otp):
        raise AuthorizationError("Incorrect OTP", status_code=401)

    record.verified = True

    dealer = Dealer.query.filter_by(phone=phone).first()
    if dealer:
        entity, role = dealer, ROLE_DEALER
    else:
        entity = User.query.filter_by(phone=phone).first()
        if entity is None:
            entity = User(phone=phone)
            db.session.add(entity)
            logger.info(f"New mason registered via OTP: {phone}")
        role = ROLE_USER

    db.session.commit()

    return {
        'token': create_access_token(entity.id, phone, role),
        'user': {
            'id': entity.id,
            'phone': phone,
            'name': entity.name,
            'role': role,
            'created_at': entity.created_at.isoformat() if entity.created_at else None,
        },
    }


def register_dealer(name: str, phone: str, gst: str = None) -> Dealer:
    if not name or not isinstance(name, str):
        raise ValidationError("Name is required", "name")
    validate_phone(phone)
    if gst is not None and not isinstance(gst, str):
        raise ValidationError("GST must be a string", "gst")

    if Dealer.query.filter_by(phone=phone).first():
        raise DuplicateError("Dealer", f"phone {phone}")

    dealer = Dealer(name=name, phone=phone, gst=gst)
    db.session.add(dealer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateError("Dealer", f"phone {phone}")

    logger.info(f"Dealer {dealer.id} registered: {name} ({phone})")
    return dealer
