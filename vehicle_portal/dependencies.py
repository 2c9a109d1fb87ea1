"""
FastAPI dependencies shared by the routers: current account and notifier.
"""

from typing import Optional

from fastapi import BackgroundTasks, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from vehicle_portal.config import Settings, get_settings
from vehicle_portal.database import get_db
from vehicle_portal.models.account import Account
from vehicle_portal.services.auth_service import authenticate_token
from vehicle_portal.services.notification_service import BackgroundEmailNotifier, Notifier

# auto_error=False so a missing header goes through the same Unauthenticated path
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_account(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
) -> Account:
    return authenticate_token(db, token, config)


def get_notifier(
    background_tasks: BackgroundTasks,
    config: Settings = Depends(get_settings),
) -> Notifier:
    return BackgroundEmailNotifier(background_tasks, config)
