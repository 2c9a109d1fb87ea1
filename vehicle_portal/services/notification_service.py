"""
Best-effort email notifications.

Services hand a (recipient, subject, message) triple to a Notifier once their
own database work is committed. The HTTP layer uses BackgroundEmailNotifier,
which defers the SMTP call to a FastAPI background task so the response never
waits on mail delivery. Delivery is at-most-once: failures are logged, never
retried, never raised.
"""

import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional

from fastapi import BackgroundTasks

from vehicle_portal.config import Settings, settings
from vehicle_portal.utils.logger import get_logger

logger = get_logger(__name__)

SIGNATURE = "Regards,\nVehicle Registration Team"


def send_email(recipient: str, subject: str, message: str, config: Settings = settings) -> bool:
    """Send one plain-text email. Returns False instead of raising on failure."""
    if not config.SMTP_HOST:
        # Development mode: no SMTP server configured
        logger.info(f"[MAIL] SMTP_HOST not set, not sending. To={recipient} | Subject={subject}\n{message}")
        return True

    msg = EmailMessage()
    msg["From"] = f"{config.FROM_NAME} <{config.FROM_EMAIL}>"
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(message)

    try:
        with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=10) as s:
            if config.SMTP_USE_TLS:
                s.starttls()
            if config.SMTP_EMAIL and config.SMTP_PASSWORD:
                s.login(config.SMTP_EMAIL, config.SMTP_PASSWORD)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"[MAIL] Sending '{subject}' to {recipient} failed: {e}", exc_info=True)
        return False

    logger.info(f"[MAIL] Sent '{subject}' to {recipient}")
    return True


class Notifier(ABC):
    """Accepts outbound messages. notify() must return without waiting for delivery."""

    @abstractmethod
    def notify(self, recipient: str, subject: str, message: str) -> None:
        ...


class NullNotifier(Notifier):
    def notify(self, recipient: str, subject: str, message: str) -> None:
        return None


class BackgroundEmailNotifier(Notifier):
    """Queues send_email on the request's BackgroundTasks (runs after the response)."""

    def __init__(self, background_tasks: BackgroundTasks, config: Settings = settings):
        self.background_tasks = background_tasks
        self.config = config

    def notify(self, recipient: str, subject: str, message: str) -> None:
        self.background_tasks.add_task(send_email, recipient, subject, message, self.config)


def dispatch(notifier: Optional[Notifier], recipient: Optional[str], subject: str, message: str) -> None:
    """Hand a message to the notifier. Never raises; the caller's outcome is already decided."""
    if notifier is None or not recipient:
        return
    try:
        notifier.notify(recipient, subject, message)
    except Exception as e:
        logger.error(f"[MAIL] Could not queue '{subject}' for {recipient}: {e}", exc_info=True)


# ── Message templates ───────────────────────────────────────────────────────

def welcome_email(name: str):
    subject = "Welcome to Vehicle Registration System"
    message = (f"Hi {name},\n\nThank you for registering with us. "
               f"You can now login and register your vehicles.\n\n{SIGNATURE}")
    return subject, message


def status_update_email(name: str, make: str, model: str, plate: str, status: str):
    subject = "Vehicle Registration Status Update"
    message = (f"Hi {name},\n\nThe status of your vehicle registration for {make} {model} "
               f"({plate}) has been updated to: {status}.\n\n{SIGNATURE}")
    return subject, message


def renewal_email(name: str, make: str, model: str, plate: str, new_expiry):
    subject = "Vehicle Registration Renewed"
    message = (f"Hi {name},\n\nYour vehicle registration for {make} {model} ({plate}) "
               f"has been successfully renewed. New expiry date: {new_expiry:%Y-%m-%d}.\n\n{SIGNATURE}")
    return subject, message
