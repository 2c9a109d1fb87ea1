"""
Account registration, login, profile updates and session validation.

Admin bootstrap: the very first admin account may be created without a
secret key. Every later admin registration must present the configured
ADMIN_SECRET (or its fallback default).
"""

import hmac
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vehicle_portal.config import Settings, settings
from vehicle_portal.models.account import Account, AccountRole
from vehicle_portal.schemas.account import AccountRegister, ProfileUpdate
from vehicle_portal.services import errors
from vehicle_portal.services.notification_service import Notifier, dispatch, welcome_email
from vehicle_portal.utils.logger import get_logger
from vehicle_portal.utils.security import (
    InvalidToken, create_access_token, decode_access_token, hash_password, verify_password,
)

logger = get_logger(__name__)


@dataclass
class AuthSession:
    account: Account
    token: str


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _validated_email(email: Optional[str]) -> str:
    email = normalize_email(email)
    if not email or "@" not in email or email.startswith("@") or email.endswith("@"):
        raise errors.ValidationError("A valid email address is required")
    return email


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def count_admins(db: Session) -> int:
    return db.query(Account).filter(Account.role == AccountRole.ADMIN.value).count()


def register_account(db: Session, payload: AccountRegister, config: Settings = settings,
                     notifier: Optional[Notifier] = None) -> AuthSession:
    email = _validated_email(payload.email)
    if not payload.name or not payload.name.strip():
        raise errors.ValidationError("Name is required")
    if not payload.password:
        raise errors.ValidationError("Password is required")

    if get_account_by_email(db, email):
        raise errors.DuplicateEmail()

    role = payload.role or AccountRole.USER.value
    if role == AccountRole.ADMIN.value and count_admins(db) > 0:
        if not hmac.compare_digest((payload.secret_key or "").encode(), config.admin_secret.encode()):
            logger.warning(f"[AUTH] Admin registration refused for {email}: bad secret key")
            raise errors.Forbidden(
                "Invalid Admin Secret Key. Please contact an existing admin or system owner."
            )

    now = datetime.utcnow()
    account = Account(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password, config),
        role=role,
        phone=payload.phone,
        address=payload.address,
        created_at=now,
        updated_at=now,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.DuplicateEmail()
    db.refresh(account)
    logger.info(f"[AUTH] Registered account {account.id} ({email}) role={role}")

    dispatch(notifier, account.email, *welcome_email(account.name))
    return AuthSession(account=account, token=create_access_token(account.id, config))


def login(db: Session, email: str, password: str, config: Settings = settings) -> AuthSession:
    account = get_account_by_email(db, email)
    if account is None or not verify_password(password, account.password_hash, config):
        logger.info(f"[AUTH] Failed login for {normalize_email(email)}")
        raise errors.InvalidCredentials()
    return AuthSession(account=account, token=create_access_token(account.id, config))


def update_profile(db: Session, account_id: int, changes: ProfileUpdate,
                   config: Settings = settings) -> AuthSession:
    """Apply only the fields that were provided; blank values leave the stored value."""
    account = db.get(Account, account_id)
    if account is None:
        raise errors.NotFound("User not found")

    if changes.name and changes.name.strip():
        account.name = changes.name.strip()
    if changes.email and changes.email.strip():
        email = _validated_email(changes.email)
        if email != account.email:
            other = get_account_by_email(db, email)
            if other is not None and other.id != account.id:
                raise errors.DuplicateEmail()
            account.email = email
    if changes.phone:
        account.phone = changes.phone
    if changes.address:
        account.address = changes.address
    if changes.password:
        account.password_hash = hash_password(changes.password, config)
    account.updated_at = datetime.utcnow()

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.DuplicateEmail()
    db.refresh(account)
    logger.info(f"[AUTH] Profile updated for account {account.id}")
    return AuthSession(account=account, token=create_access_token(account.id, config))


def authenticate_token(db: Session, token: Optional[str], config: Settings = settings) -> Account:
    """Resolve a session token to its account, or raise Unauthenticated."""
    try:
        claims = decode_access_token(token, config)
    except InvalidToken as e:
        logger.debug(f"[AUTH] Rejected token: {e}")
        raise errors.Unauthenticated()

    account = db.get(Account, claims.account_id)
    if account is None:
        raise errors.Unauthenticated()
    return account


def list_admins(db: Session) -> list[Account]:
    return db.query(Account).filter(Account.role == AccountRole.ADMIN.value).order_by(Account.id).all()


def reset_admin_password(db: Session, email: str, new_password: str,
                         config: Settings = settings) -> Account:
    """Out-of-band reset used by scripts/admin/reset_admin_password.py. Admin accounts only."""
    if not new_password:
        raise errors.ValidationError("A new password is required")
    account = get_account_by_email(db, email)
    if account is None:
        raise errors.NotFound(f"User with email {email} not found")
    if not account.is_admin:
        raise errors.Forbidden(f"User {email} is not an admin (Role: {account.role})")

    account.password_hash = hash_password(new_password, config)
    account.updated_at = datetime.utcnow()
    db.commit()
    logger.warning(f"[AUTH] Admin password reset out-of-band for account {account.id}")
    return account
