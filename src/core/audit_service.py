import logging
from typing import Optional

from sqlalchemy.orm import Session

from .audit_models import ProcessDonationLog
from ..registrations.models import RegistrationStatus

logger = logging.getLogger(__name__)

def create_process_donation_log(
    db: Session,
    registration_id: str,
    user_id: Optional[str],
    changed_by: Optional[str],
    status: RegistrationStatus,
    notes: Optional[str] = None,
) -> ProcessDonationLog:
    """
    Records one registration status change.

    The entry is added to the session but not committed: it belongs to the caller's unit
    of work and is rolled back together with the status change it describes.

    Args:
        db: The database session.
        registration_id: Registration whose status changed.
        user_id: Donor owning the registration.
        changed_by: Staff id of the actor.
        status: The status the registration moved to.
        notes: Human readable note shown in the donor's timeline.

    Returns:
        The pending ProcessDonationLog object.
    """
    log_entry = ProcessDonationLog(
        registration_id=registration_id,
        user_id=user_id,
        changed_by=changed_by,
        status=status,
        notes=notes,
    )
    db.add(log_entry)
    logger.info(f"Registration {registration_id} -> {status.value} by staff {changed_by}")
    return log_entry
