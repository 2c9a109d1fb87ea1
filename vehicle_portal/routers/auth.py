"""Account registration, login and profile endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from vehicle_portal.config import Settings, get_settings
from vehicle_portal.database import get_db
from vehicle_portal.dependencies import get_current_account, get_notifier
from vehicle_portal.models.account import Account
from vehicle_portal.schemas.account import (
    AccountLogin, AccountOut, AccountRegister, AuthResponse, ProfileUpdate,
)
from vehicle_portal.services import auth_service
from vehicle_portal.services.notification_service import Notifier

router = APIRouter(prefix="/auth")


def _auth_response(session: auth_service.AuthSession) -> AuthResponse:
    a = session.account
    return AuthResponse(id=a.id, name=a.name, email=a.email, role=a.role, token=session.token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
             summary="Create an account")
def register(
    body: AccountRegister,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
):
    """Admin accounts need `secret_key` unless no admin exists yet."""
    return _auth_response(auth_service.register_account(db, body, config, notifier))


@router.post("/login", response_model=AuthResponse, summary="Log in and get a session token")
def login(body: AccountLogin, db: Session = Depends(get_db), config: Settings = Depends(get_settings)):
    return _auth_response(auth_service.login(db, body.email, body.password, config))


@router.put("/profile", response_model=AuthResponse, summary="Update own profile")
def update_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    current: Account = Depends(get_current_account),
):
    return _auth_response(auth_service.update_profile(db, current.id, body, config))


@router.get("/me", response_model=AccountOut, summary="Current account")
def me(current: Account = Depends(get_current_account)):
    return current
