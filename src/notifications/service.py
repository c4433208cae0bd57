"""
Notification service - records in-app notifications for donors.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .models import Notification
from ..registrations.models import RegistrationStatus

# Set up logging
logger = logging.getLogger(__name__)

REGISTRATION_STATUS_NOTIFICATION = "REGISTRATION_STATUS"

STATUS_MESSAGES = {
    RegistrationStatus.IN_CONSULT: "Your health check has started",
    RegistrationStatus.WAITING_DONATION: "You are eligible to donate, please wait to be called",
    RegistrationStatus.REGISTERED: "You are not eligible to donate this time",
}

def send_registration_status_notification(
    db: Session,
    user_id: str,
    new_status: RegistrationStatus,
    facility_name: Optional[str],
    registration_id: str,
) -> Notification:
    """
    Notify a donor that their registration moved to a new status.

    Like the audit log, the notification is only added to the session so it commits or
    rolls back with the status change.

    Args:
        db: Database session
        user_id: Donor to notify
        new_status: Status the registration moved to
        facility_name: Name of the hosting facility, if known
        registration_id: Registration the notification refers to

    Returns:
        Notification: The pending notification row
    """
    where = f" at {facility_name}" if facility_name else ""
    summary = STATUS_MESSAGES.get(new_status, f"Status changed to {new_status.value}")

    notification = Notification(
        user_id=user_id,
        type=REGISTRATION_STATUS_NOTIFICATION,
        title="Blood donation registration update",
        message=f"{summary}{where}.",
        related_id=registration_id,
    )
    db.add(notification)
    logger.info(f"Queued {new_status.value} notification for user {user_id} (registration {registration_id})")
    return notification
