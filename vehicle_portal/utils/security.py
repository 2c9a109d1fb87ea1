"""
Password hashing and session token helpers.

- Argon2id hashes (argon2-cffi) for stored passwords
- HS256-signed JWTs (python-jose) carrying the account id and issue/expiry times

Nothing in here touches the database; decoding a token is pure computation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHash
from jose import JWTError, jwt

from vehicle_portal.config import Settings


@dataclass(frozen=True)
class TokenClaims:
    account_id: int
    issued_at: datetime
    expires_at: datetime


class InvalidToken(Exception):
    """Raised when a session token is missing, malformed, tampered with or expired."""


_hashers = {}


def _hasher(config: Settings) -> PasswordHasher:
    key = (config.ARGON2_TIME_COST, config.ARGON2_MEMORY_COST, config.ARGON2_PARALLELISM)
    if key not in _hashers:
        _hashers[key] = PasswordHasher(
            time_cost=config.ARGON2_TIME_COST,
            memory_cost=config.ARGON2_MEMORY_COST,
            parallelism=config.ARGON2_PARALLELISM,
        )
    return _hashers[key]


def hash_password(password: str, config: Settings) -> str:
    """Hash a password for storing in the database (Argon2id)."""
    return _hasher(config).hash(password)


def verify_password(plain_password: str, hashed_password: str, config: Settings) -> bool:
    """Return True if the plain password matches the hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return _hasher(config).verify(hashed_password, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def create_access_token(account_id: int, config: Settings,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token for the given account."""
    issued_at = datetime.utcnow()
    expires_at = issued_at + (expires_delta if expires_delta is not None
                              else timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))
    claims = {"sub": str(account_id), "iat": issued_at, "exp": expires_at}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: Optional[str], config: Settings) -> TokenClaims:
    """Verify signature and expiry, returning the claims. Raises InvalidToken."""
    if not token:
        raise InvalidToken("missing token")
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    sub, iat, exp = payload.get("sub"), payload.get("iat"), payload.get("exp")
    if sub is None or iat is None or exp is None:
        raise InvalidToken("token is missing required claims")
    try:
        account_id = int(sub)
    except (TypeError, ValueError) as e:
        raise InvalidToken("malformed subject") from e

    return TokenClaims(
        account_id=account_id,
        issued_at=datetime.utcfromtimestamp(iat),
        expires_at=datetime.utcfromtimestamp(exp),
    )
