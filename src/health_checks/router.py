"""
Health Check Router - API endpoints for the pre-donation screening workflow.

Nurses open health checks, the assigned doctor records the result, and each
role lists the checks within its own scope.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.dependencies import (
    get_current_identity,
    require_any_staff,
    require_doctor,
    require_doctor_staff,
    require_donor,
    require_nurse,
    require_nurse_staff,
)
from ..auth.service import Identity
from ..database import get_db
from ..facilities.models import FacilityStaff
from .schemas import HealthCheckCreate, HealthCheckUpdate
from .service import (
    create_health_check,
    update_health_check,
    get_facility_health_checks,
    get_doctor_health_checks,
    get_user_health_checks,
    get_nurse_health_checks,
    get_health_check_detail,
)

router = APIRouter()


class ListParams:
    """Query parameters shared by the list endpoints."""
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(10, ge=1, le=100, description="Items per page"),
        status: Optional[str] = Query(None, description="'eligible' or 'ineligible'"),
        search: Optional[str] = Query(None, description="Search general condition, notes and deferral reason"),
        sort_by: str = Query("created_at", description="created_at, updated_at or check_date"),
        sort_order: int = Query(-1, description="-1 for descending, 1 for ascending"),
    ):
        self.page = page
        self.limit = limit
        self.status = status
        self.search = search
        self.sort_by = sort_by
        self.sort_order = sort_order

    def as_kwargs(self) -> dict:
        return vars(self).copy()


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_nurse)])
def create_health_check_route(
    payload: HealthCheckCreate,
    db: Session = Depends(get_db),
    staff: FacilityStaff = Depends(require_nurse_staff),
):
    """
    Open a health check for a checked-in registration (nurse only).
    """
    result = create_health_check(db, payload, staff.id)
    return {"message": "Health check created successfully", "data": result}


@router.get("/facility")
def list_facility_health_checks(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    staff: FacilityStaff = Depends(require_any_staff),
):
    """
    List every health check of the caller's facility.
    """
    result = get_facility_health_checks(db, staff.facility_id, **params.as_kwargs())
    return {"message": "Health checks retrieved successfully", "data": result}


@router.get("/doctor", dependencies=[Depends(require_doctor)])
def list_doctor_health_checks(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    staff: FacilityStaff = Depends(require_doctor_staff),
):
    """
    List the health checks assigned to the calling doctor.
    """
    result = get_doctor_health_checks(db, staff.id, **params.as_kwargs())
    return {"message": "Health checks retrieved successfully", "data": result}


@router.get("/nurse", dependencies=[Depends(require_nurse)])
def list_nurse_health_checks(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    staff: FacilityStaff = Depends(require_nurse_staff),
):
    """
    List the health checks opened by the calling nurse.
    """
    result = get_nurse_health_checks(db, staff.id, **params.as_kwargs())
    return {"message": "Health checks retrieved successfully", "data": result}


@router.get("/user")
def list_user_health_checks(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_donor),
):
    """
    List the calling donor's own health checks.
    """
    result = get_user_health_checks(db, identity.user_id, **params.as_kwargs())
    return {"message": "Health checks retrieved successfully", "data": result}


@router.get("/{health_check_id}")
def get_health_check(
    health_check_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Get one health check, narrowed to what the caller may see.
    """
    result = get_health_check_detail(db, health_check_id, identity)
    return {"message": "Health check retrieved successfully", "data": result}


@router.put("/{health_check_id}", dependencies=[Depends(require_doctor)])
def update_health_check_route(
    health_check_id: str,
    payload: HealthCheckUpdate,
    db: Session = Depends(get_db),
    staff: FacilityStaff = Depends(require_doctor_staff),
):
    """
    Record the screening result (assigned doctor only).
    """
    result = update_health_check(db, health_check_id, payload, staff.id)
    return {"message": "Health check updated successfully", "data": result}
