"""
Vehicle registration workflow.

Lifecycle:
  submit  → Pending (owner = submitting account)
  review  → Approved | Rejected            (admin only, re-review allowed)
  edit    → non-admin edit resets to Pending, admin edit keeps status
  renew   → expiry_date + 1 calendar year   (from the stored expiry, not from now)
  delete  → hard delete

Every operation on a specific registration is allowed iff the actor is an
admin or owns it. VIN / plate uniqueness is enforced by the table's unique
constraints; a constraint violation on commit surfaces as DuplicateKey.
Notifications are handed off only after the commit succeeded.
"""

from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from vehicle_portal.models.account import Account
from vehicle_portal.models.registration import Registration, RegistrationStatus
from vehicle_portal.services import errors
from vehicle_portal.services.notification_service import (
    Notifier, dispatch, renewal_email, status_update_email,
)
from vehicle_portal.utils.logger import get_logger

logger = get_logger(__name__)

VEHICLE_FIELDS = (
    "vehicle_type", "make", "model", "year", "vin",
    "license_plate", "owner_name", "owner_contact", "expiry_date",
)
REVIEW_STATUSES = {RegistrationStatus.APPROVED.value, RegistrationStatus.REJECTED.value}
MIN_MODEL_YEAR = 1886


# ── Authorization ────────────────────────────────────────────────────────────

def can_access(actor: Account, registration: Registration) -> bool:
    return actor.is_admin or actor.id == registration.owner_id


def _require_access(actor: Account, registration: Registration, action: str):
    if not can_access(actor, registration):
        logger.warning(f"[REG] Account {actor.id} denied {action} on registration {registration.id}")
        raise errors.Forbidden()


def _require_admin(actor: Account, action: str):
    if not actor.is_admin:
        logger.warning(f"[REG] Non-admin account {actor.id} denied {action}")
        raise errors.Forbidden("Not authorized as an admin")


# ── Field handling ───────────────────────────────────────────────────────────

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_year(value: Any) -> int:
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise errors.ValidationError("year must be a whole number")
    if year < MIN_MODEL_YEAR:
        raise errors.ValidationError(f"year must be {MIN_MODEL_YEAR} or later")
    return year


def _parse_datetime(value: Any) -> datetime:
    """Accept datetime, date or ISO-8601 string; store as naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise errors.ValidationError("expiry_date must be an ISO-8601 date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _clean_fields(fields: Mapping[str, Any], require_all: bool) -> dict:
    """Pick the vehicle fields out of `fields`, validating the ones present."""
    cleaned = {}
    missing = []
    for name in VEHICLE_FIELDS:
        value = fields.get(name)
        if _is_blank(value):
            missing.append(name)
            continue
        if name == "year":
            value = _parse_year(value)
        elif name == "expiry_date":
            value = _parse_datetime(value)
        cleaned[name] = value

    if require_all and missing:
        raise errors.ValidationError(f"Missing required fields: {', '.join(missing)}")
    return cleaned


def _ensure_unique(db: Session, vin: Optional[str], plate: Optional[str], exclude_id: Optional[int] = None):
    """Early, friendly duplicate check. The unique constraints remain authoritative."""
    clauses = []
    if vin is not None:
        clauses.append(Registration.vin == vin)
    if plate is not None:
        clauses.append(Registration.license_plate == plate)
    if not clauses:
        return

    q = db.query(Registration).filter(or_(*clauses))
    if exclude_id is not None:
        q = q.filter(Registration.id != exclude_id)
    clash = q.first()
    if clash is None:
        return
    if vin is not None and clash.vin == vin:
        raise errors.DuplicateKey(f"A vehicle with VIN {vin} is already registered")
    raise errors.DuplicateKey(f"A vehicle with license plate {plate} is already registered")


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.DuplicateKey("VIN or license plate already registered")


def _load(db: Session, registration_id: int, for_update: bool = False) -> Registration:
    q = db.query(Registration).filter(Registration.id == registration_id)
    if for_update:
        q = q.with_for_update()
    registration = q.first()
    if registration is None:
        raise errors.NotFound("Vehicle not found")
    return registration


def add_one_year(value: datetime) -> datetime:
    """Same month/day next year; 29 Feb rolls over to 1 Mar in non-leap years."""
    try:
        return value.replace(year=value.year + 1)
    except ValueError:
        return value.replace(year=value.year + 1, month=3, day=1)


# ── Transitions ──────────────────────────────────────────────────────────────

def submit_registration(db: Session, owner: Account, fields: Mapping[str, Any],
                        documents: Optional[list] = None) -> Registration:
    cleaned = _clean_fields(fields, require_all=True)
    _ensure_unique(db, cleaned["vin"], cleaned["license_plate"])

    now = datetime.utcnow()
    registration = Registration(
        owner_id=owner.id,
        documents=list(documents or []),
        status=RegistrationStatus.PENDING.value,
        registration_date=now,
        created_at=now,
        updated_at=now,
        **cleaned,
    )
    db.add(registration)
    _commit(db)
    db.refresh(registration)
    logger.info(f"[REG] Submitted registration {registration.id} plate={registration.license_plate} "
                f"by account {owner.id} ({len(registration.documents)} documents)")
    return registration


def review_registration(db: Session, actor: Account, registration_id: int, target_status: str,
                        notifier: Optional[Notifier] = None) -> Registration:
    _require_admin(actor, "review")
    if target_status not in REVIEW_STATUSES:
        raise errors.ValidationError(f"status must be one of: {', '.join(sorted(REVIEW_STATUSES))}")

    registration = _load(db, registration_id, for_update=True)
    previous = registration.status
    registration.status = target_status
    registration.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(registration)
    logger.info(f"[REG] Registration {registration.id}: {previous} → {target_status} by admin {actor.id}")

    owner = registration.owner
    if owner is not None:
        dispatch(notifier, owner.email, *status_update_email(
            owner.name, registration.make, registration.model, registration.license_plate, target_status))
    return registration


def edit_registration(db: Session, actor: Account, registration_id: int,
                      fields: Mapping[str, Any]) -> Registration:
    registration = _load(db, registration_id, for_update=True)
    _require_access(actor, registration, "edit")

    changes = _clean_fields(fields, require_all=False)
    _ensure_unique(db, changes.get("vin"), changes.get("license_plate"), exclude_id=registration.id)

    for name, value in changes.items():
        setattr(registration, name, value)
    if not actor.is_admin:
        # Any self-service edit sends the record back for review
        registration.status = RegistrationStatus.PENDING.value
    registration.updated_at = datetime.utcnow()

    _commit(db)
    db.refresh(registration)
    logger.info(f"[REG] Registration {registration.id} edited by account {actor.id} "
                f"fields={sorted(changes)} status={registration.status}")
    return registration


def renew_registration(db: Session, actor: Account, registration_id: int,
                       notifier: Optional[Notifier] = None) -> Registration:
    registration = _load(db, registration_id, for_update=True)
    _require_access(actor, registration, "renew")

    registration.expiry_date = add_one_year(registration.expiry_date)
    registration.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(registration)
    logger.info(f"[REG] Registration {registration.id} renewed until {registration.expiry_date:%Y-%m-%d}")

    owner = registration.owner
    if owner is not None:
        dispatch(notifier, owner.email, *renewal_email(
            owner.name, registration.make, registration.model,
            registration.license_plate, registration.expiry_date))
    return registration


def delete_registration(db: Session, actor: Account, registration_id: int) -> list:
    """Hard delete. Returns the removed record's document references."""
    registration = _load(db, registration_id, for_update=True)
    _require_access(actor, registration, "delete")

    documents = list(registration.documents or [])
    db.delete(registration)
    db.commit()
    logger.info(f"[REG] Registration {registration_id} deleted by account {actor.id}")
    return documents


# ── Queries ──────────────────────────────────────────────────────────────────

def get_registration(db: Session, actor: Account, registration_id: int) -> Registration:
    registration = _load(db, registration_id)
    _require_access(actor, registration, "view")
    return registration


def list_registrations(db: Session, actor: Account) -> list[Registration]:
    """Admins see every registration, everyone else only their own. Newest first."""
    q = db.query(Registration).options(joinedload(Registration.owner))
    if not actor.is_admin:
        q = q.filter(Registration.owner_id == actor.id)
    return q.order_by(Registration.created_at.desc(), Registration.id.desc()).all()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_registrations(db: Session, actor: Account, query: Optional[str]) -> list[Registration]:
    """Case-insensitive substring match on VIN or license plate, scoped to the actor."""
    if _is_blank(query):
        raise errors.ValidationError("A search query is required")
    pattern = f"%{_escape_like(query.strip())}%"

    q = db.query(Registration).options(joinedload(Registration.owner)).filter(or_(
        Registration.vin.ilike(pattern, escape="\\"),
        Registration.license_plate.ilike(pattern, escape="\\"),
    ))
    if not actor.is_admin:
        q = q.filter(Registration.owner_id == actor.id)
    return q.order_by(Registration.created_at.desc(), Registration.id.desc()).all()


def registration_stats(db: Session, actor: Account) -> dict:
    _require_admin(actor, "stats")

    counts = dict(
        db.query(Registration.status, func.count(Registration.id))
        .group_by(Registration.status)
        .all()
    )
    by_type = (
        db.query(Registration.vehicle_type, func.count(Registration.id))
        .group_by(Registration.vehicle_type)
        .order_by(Registration.vehicle_type)
        .all()
    )
    return {
        "total": sum(counts.values()),
        "pending": counts.get(RegistrationStatus.PENDING.value, 0),
        "approved": counts.get(RegistrationStatus.APPROVED.value, 0),
        "rejected": counts.get(RegistrationStatus.REJECTED.value, 0),
        "by_type": [{"vehicle_type": t, "count": c} for t, c in by_type],
    }
