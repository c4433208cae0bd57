"""
Test configuration for the blood donation backend.
"""
import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ACCESS_TOKEN_SECRET_SIGNATURE"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET_SIGNATURE"] = "test-refresh-secret"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.database import Base, get_db
from src.main import app
from src.auth.models import User, UserRole
from src.auth.tokens import IdentityClaim, create_token_pair
from src.core.security import hash_password
from src.facilities.models import Facility, FacilityStaff, StaffPosition
from src.registrations.models import BloodDonationRegistration, RegistrationStatus

# Test database URL
TEST_DATABASE_URL = "sqlite://"

TEST_PASSWORD = "Str0ng!Passw0rd"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the get_db dependency
    app.dependency_overrides[get_db] = override_get_db

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def token_config():
    return app.state.token_config


def _user(db, email, full_name, role):
    user = User(email=email, full_name=full_name, password_hash=TEST_PASSWORD_HASH, role=role)
    db.add(user)
    return user


def _staff(db, user, facility, position, is_deleted=False):
    staff = FacilityStaff(user=user, facility=facility, position=position, is_deleted=is_deleted)
    db.add(staff)
    return staff


@pytest.fixture
def seed(db):
    """
    Two facilities, their staff, a donor and a checked-in registration.
    """
    facility = Facility(name="Central Blood Bank", address="1 Tran Hung Dao, Hanoi")
    other_facility = Facility(name="District 7 Blood Center", address="7 Nguyen Van Linh, HCMC")
    db.add_all([facility, other_facility])

    nurse_user = _user(db, "nurse@example.com", "Nurse Lan", UserRole.NURSE)
    doctor_user = _user(db, "doctor@example.com", "Doctor Minh", UserRole.DOCTOR)
    second_doctor_user = _user(db, "doctor2@example.com", "Doctor Hoa", UserRole.DOCTOR)
    foreign_doctor_user = _user(db, "doctor3@example.com", "Doctor Tuan", UserRole.DOCTOR)
    manager_user = _user(db, "manager@example.com", "Manager Ha", UserRole.MANAGER)
    admin_user = _user(db, "admin@example.com", "Admin", UserRole.ADMIN)
    donor = _user(db, "donor@example.com", "Donor An", UserRole.USER)
    other_donor = _user(db, "donor2@example.com", "Donor Binh", UserRole.USER)

    nurse = _staff(db, nurse_user, facility, StaffPosition.NURSE)
    doctor = _staff(db, doctor_user, facility, StaffPosition.DOCTOR)
    second_doctor = _staff(db, second_doctor_user, facility, StaffPosition.DOCTOR)
    foreign_doctor = _staff(db, foreign_doctor_user, other_facility, StaffPosition.DOCTOR)
    manager = _staff(db, manager_user, facility, StaffPosition.MANAGER)

    registration = BloodDonationRegistration(
        user=donor, facility=facility, status=RegistrationStatus.CHECKED_IN
    )
    other_registration = BloodDonationRegistration(
        user=other_donor, facility=facility, status=RegistrationStatus.CHECKED_IN
    )
    db.add_all([registration, other_registration])
    db.commit()

    return SimpleNamespace(
        facility=facility,
        other_facility=other_facility,
        nurse_user=nurse_user,
        doctor_user=doctor_user,
        second_doctor_user=second_doctor_user,
        foreign_doctor_user=foreign_doctor_user,
        manager_user=manager_user,
        admin_user=admin_user,
        donor=donor,
        other_donor=other_donor,
        nurse=nurse,
        doctor=doctor,
        second_doctor=second_doctor,
        foreign_doctor=foreign_doctor,
        manager=manager,
        registration=registration,
        other_registration=other_registration,
    )


@pytest.fixture
def issue_tokens(token_config):
    """
    Sign a token pair for a user, optionally as a facility staff member.
    """
    def _issue(user, staff=None, access_ttl=None, refresh_ttl=None, access_secret=None):
        claim = IdentityClaim(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
            staff_id=staff.id if staff else None,
            facility_id=staff.facility_id if staff else None,
        )
        return create_token_pair(
            claim,
            access_secret or token_config.access_secret,
            token_config.refresh_secret,
            access_ttl if access_ttl is not None else token_config.access_ttl,
            refresh_ttl if refresh_ttl is not None else token_config.refresh_ttl,
        )
    return _issue


@pytest.fixture
def auth_headers(issue_tokens):
    def _headers(user, staff=None):
        tokens = issue_tokens(user, staff)
        return {"Authorization": f"Bearer {tokens.access_token}"}
    return _headers


@pytest.fixture
def password():
    """Plain text password shared by every seeded user."""
    return TEST_PASSWORD
