"""
Health Check Service - Business logic for the pre-donation screening workflow.

Registration transitions driven here:
- create: CHECKED_IN -> IN_CONSULT
- update: IN_CONSULT -> WAITING_DONATION (eligible) | REGISTERED (not eligible)

Each transition writes the registration, the health check, one
ProcessDonationLog entry and one donor notification in a single commit.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.exc import SQLAlchemyError

from ..auth.models import User, UserRole
from ..auth.service import Identity
from ..core.audit_service import create_process_donation_log
from ..core.pagination import PageResponse, paginate
from ..core.utils import generate_id, is_valid_id
from ..exceptions import AppException, BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ..facilities.models import FacilityStaff, StaffPosition
from ..notifications.service import send_registration_status_notification
from ..registrations.models import BloodDonationRegistration, RegistrationStatus
from .models import HealthCheck
from .schemas import HealthCheckCreate, HealthCheckResponse, HealthCheckUpdate

# Set up logging
logger = logging.getLogger(__name__)

LOG_NOTE_IN_CONSULT = "Kiểm tra sức khỏe"
LOG_NOTE_ELIGIBLE = "Đã đủ điều kiện hiến máu"
LOG_NOTE_NOT_ELIGIBLE = "Không đủ điều kiện hiến máu"

VALID_SORT_FIELDS = {
    "created_at": HealthCheck.created_at,
    "updated_at": HealthCheck.updated_at,
    "check_date": HealthCheck.check_date,
}

SEARCH_FIELDS = (HealthCheck.general_condition, HealthCheck.notes, HealthCheck.deferral_reason)

UPDATABLE_FIELDS = (
    "is_eligible",
    "blood_pressure",
    "hemoglobin",
    "weight",
    "pulse",
    "temperature",
    "general_condition",
    "deferral_reason",
    "notes",
)

# A decision may be revised until the donation itself starts
UPDATABLE_REGISTRATION_STATUSES = (
    RegistrationStatus.IN_CONSULT,
    RegistrationStatus.WAITING_DONATION,
    RegistrationStatus.REGISTERED,
)

DETAIL_NOT_FOUND = "Health check not found or you do not have permission to access it"


def _populated_query(db: Session):
    """Health check query with its references loaded for the projected view."""
    return db.query(HealthCheck).options(
        joinedload(HealthCheck.user),
        joinedload(HealthCheck.staff),
        joinedload(HealthCheck.doctor),
        joinedload(HealthCheck.registration).joinedload(BloodDonationRegistration.facility),
    )


def _to_response(db: Session, health_check_id: str) -> HealthCheckResponse:
    health_check = _populated_query(db).filter(HealthCheck.id == health_check_id).first()
    return HealthCheckResponse.model_validate(health_check)


def _commit(db: Session, action: str) -> None:
    """
    Commit the current unit of work, rolling everything back on failure.

    Raises:
        ConflictError: The registration was changed by a concurrent request
        AppException: Any other database failure (500)
    """
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent modification while trying to {action}: {str(e)}")
        raise ConflictError("Registration was modified by another request, please retry")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error while trying to {action}: {str(e)}")
        raise AppException(500, f"An error occurred while trying to {action}")


def _facility_name(registration: BloodDonationRegistration) -> Optional[str]:
    return registration.facility.name if registration.facility else None


def create_health_check(db: Session, payload: HealthCheckCreate, staff_id: str) -> HealthCheckResponse:
    """
    Open a health check for a checked-in registration.

    Args:
        db: Database session
        payload: registration_id, user_id and doctor_id
        staff_id: Staff id of the nurse opening the check

    Returns:
        HealthCheckResponse: The created record

    Raises:
        BadRequestError: Invalid nurse, missing/malformed ids, user not the
            registration owner, doctor outside the nurse's facility, or
            registration not CHECKED_IN
        NotFoundError: Registration or user does not exist
    """
    staff = db.query(FacilityStaff).filter(
        FacilityStaff.id == staff_id,
        FacilityStaff.position == StaffPosition.NURSE,
        FacilityStaff.is_deleted.is_(False),
    ).first()
    if not staff:
        raise BadRequestError("Staff does not exist or is not allowed to create health checks")

    if not payload.registration_id or not payload.user_id or not payload.doctor_id:
        raise BadRequestError("Missing registration_id, user_id or doctor_id")

    for field_name in ("registration_id", "user_id", "doctor_id"):
        if not is_valid_id(getattr(payload, field_name)):
            raise BadRequestError(f"Invalid {field_name}")

    registration = db.query(BloodDonationRegistration).filter(
        BloodDonationRegistration.id == payload.registration_id
    ).first()
    if not registration:
        raise NotFoundError("Blood donation registration not found")

    user = db.query(User).filter(User.id == payload.user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if user.id != registration.user_id:
        raise BadRequestError("User does not match the blood donation registration")

    doctor = db.query(FacilityStaff).filter(
        FacilityStaff.id == payload.doctor_id,
        FacilityStaff.position == StaffPosition.DOCTOR,
        FacilityStaff.facility_id == staff.facility_id,
        FacilityStaff.is_deleted.is_(False),
    ).first()
    if not doctor:
        raise BadRequestError("Doctor does not exist or does not belong to this facility")

    if registration.status != RegistrationStatus.CHECKED_IN:
        raise BadRequestError("Blood donation registration is not in CHECKED_IN status")

    registration.status = RegistrationStatus.IN_CONSULT
    registration.check_in_at = datetime.now(timezone.utc)

    health_check = HealthCheck(
        id=generate_id(),
        registration_id=registration.id,
        user_id=user.id,
        staff_id=staff.id,
        doctor_id=doctor.id,
        facility_id=staff.facility_id,
        check_date=registration.check_in_at,
    )
    db.add(health_check)

    create_process_donation_log(
        db,
        registration_id=registration.id,
        user_id=user.id,
        changed_by=staff.id,
        status=RegistrationStatus.IN_CONSULT,
        notes=LOG_NOTE_IN_CONSULT,
    )
    send_registration_status_notification(
        db,
        user_id=user.id,
        new_status=RegistrationStatus.IN_CONSULT,
        facility_name=_facility_name(registration),
        registration_id=registration.id,
    )
    health_check_id = health_check.id
    _commit(db, "create the health check")

    logger.info(f"Health check {health_check_id} opened by nurse {staff.id} for registration {registration.id}")
    return _to_response(db, health_check_id)


def update_health_check(
    db: Session,
    health_check_id: str,
    payload: HealthCheckUpdate,
    staff_id: str,
) -> HealthCheckResponse:
    """
    Record the doctor's screening result and move the registration on.

    Calling it again repeats the transition, including the audit log entry
    and the notification; there is no deduplication. Once the registration
    has moved past IN_CONSULT, WAITING_DONATION or REGISTERED it is rejected.

    Args:
        db: Database session
        health_check_id: Health check to update
        payload: Fields present in the request body
        staff_id: Staff id of the acting doctor

    Returns:
        HealthCheckResponse: The updated record

    Raises:
        BadRequestError: Malformed id, registration already past screening,
            or not eligible without a deferral reason
        NotFoundError: Health check (or its registration) does not exist
        ForbiddenError: The acting doctor is not the one assigned
        ConflictError: The registration changed concurrently
    """
    if not is_valid_id(health_check_id):
        raise BadRequestError("Invalid health check id")

    health_check = db.query(HealthCheck).filter(HealthCheck.id == health_check_id).first()
    if not health_check:
        raise NotFoundError("Health check not found")

    if str(health_check.doctor_id) != str(staff_id):
        raise ForbiddenError("You are not assigned to this health check")

    changes = payload.model_dump(exclude_unset=True)
    update_data = {
        field: changes[field] if field in changes else getattr(health_check, field)
        for field in UPDATABLE_FIELDS
    }

    if update_data["is_eligible"] is False and not update_data["deferral_reason"]:
        raise BadRequestError("A deferral_reason is required when the donor is not eligible")

    registration = health_check.registration
    if registration is None:
        raise NotFoundError("Blood donation registration not found")
    if registration.status not in UPDATABLE_REGISTRATION_STATUSES:
        raise BadRequestError(
            f"Blood donation registration is in {registration.status.value} status and can no longer be screened"
        )

    if update_data["is_eligible"] is True:
        update_data["deferral_reason"] = None
        new_status = RegistrationStatus.WAITING_DONATION
        log_note = LOG_NOTE_ELIGIBLE
    else:
        new_status = RegistrationStatus.REGISTERED
        log_note = LOG_NOTE_NOT_ELIGIBLE

    send_registration_status_notification(
        db,
        user_id=registration.user_id,
        new_status=new_status,
        facility_name=_facility_name(registration),
        registration_id=registration.id,
    )
    registration.status = new_status

    for field, value in update_data.items():
        setattr(health_check, field, value)

    create_process_donation_log(
        db,
        registration_id=health_check.registration_id,
        user_id=health_check.user_id,
        changed_by=staff_id,
        status=new_status,
        notes=log_note,
    )
    _commit(db, "update the health check")

    logger.info(f"Health check {health_check_id} updated by doctor {staff_id}: registration -> {new_status.value}")
    return _to_response(db, health_check_id)


def _list_health_checks(
    db: Session,
    scope: dict,
    page: int,
    limit: int,
    status: Optional[str],
    search: Optional[str],
    sort_by: str,
    sort_order: int,
) -> PageResponse[HealthCheckResponse]:
    sort_column = VALID_SORT_FIELDS.get(sort_by)
    if sort_column is None:
        raise BadRequestError(f"Invalid sort field. Valid fields: {', '.join(VALID_SORT_FIELDS)}")

    query = _populated_query(db).filter_by(**scope)
    if status:
        query = query.filter(HealthCheck.is_eligible == (status == "eligible"))

    order = sort_column.asc() if int(sort_order) == 1 else sort_column.desc()

    return paginate(
        query,
        page=page,
        limit=limit,
        search=search,
        search_fields=SEARCH_FIELDS,
        order_by=[order],
        schema_class=HealthCheckResponse,
    )


def _get_staff(db: Session, staff_id: Optional[str]) -> FacilityStaff:
    staff = db.query(FacilityStaff).filter(FacilityStaff.id == staff_id).first() if staff_id else None
    if not staff:
        raise BadRequestError("Staff information not found")
    return staff


def get_facility_health_checks(
    db: Session,
    facility_id: str,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: int = -1,
) -> PageResponse[HealthCheckResponse]:
    """All health checks of a facility."""
    return _list_health_checks(
        db, {"facility_id": facility_id}, page, limit, status, search, sort_by, sort_order
    )


def get_doctor_health_checks(
    db: Session,
    staff_id: str,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: int = -1,
) -> PageResponse[HealthCheckResponse]:
    """Health checks assigned to a doctor, within the doctor's facility."""
    staff = _get_staff(db, staff_id)
    return _list_health_checks(
        db,
        {"doctor_id": staff.id, "facility_id": staff.facility_id},
        page, limit, status, search, sort_by, sort_order,
    )


def get_user_health_checks(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: int = -1,
) -> PageResponse[HealthCheckResponse]:
    """A donor's own health checks."""
    return _list_health_checks(
        db, {"user_id": user_id}, page, limit, status, search, sort_by, sort_order
    )


def get_nurse_health_checks(
    db: Session,
    staff_id: str,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: int = -1,
) -> PageResponse[HealthCheckResponse]:
    """Health checks opened by a nurse, within the nurse's facility."""
    staff = _get_staff(db, staff_id)
    return _list_health_checks(
        db,
        {"staff_id": staff.id, "facility_id": staff.facility_id},
        page, limit, status, search, sort_by, sort_order,
    )


def get_health_check_detail(db: Session, health_check_id: str, identity: Identity) -> HealthCheckResponse:
    """
    Fetch one health check, narrowed by the caller's role.

    Donors only see their own records and doctors only the ones assigned to
    them in their facility; other roles are not narrowed. Missing and
    out-of-scope records produce the same error.

    Raises:
        BadRequestError: Doctor identity without a staff record
        NotFoundError: Not found or not visible to the caller
    """
    query = _populated_query(db).filter(HealthCheck.id == health_check_id)

    if identity.role == UserRole.USER:
        query = query.filter(HealthCheck.user_id == identity.user_id)
    elif identity.role == UserRole.DOCTOR:
        staff = _get_staff(db, identity.staff_id)
        query = query.filter(
            HealthCheck.doctor_id == staff.id,
            HealthCheck.facility_id == staff.facility_id,
        )

    health_check = query.first()
    if not health_check:
        raise NotFoundError(DETAIL_NOT_FOUND)
    return HealthCheckResponse.model_validate(health_check)
