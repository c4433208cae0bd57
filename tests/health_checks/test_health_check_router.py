"""
End-to-end tests for the health check endpoints.
"""
from datetime import timedelta

from src.auth.tokens import verify_token
from src.core.audit_models import ProcessDonationLog
from src.health_checks.models import HealthCheck
from src.registrations.models import RegistrationStatus

BASE_URL = "/api/v1/health-checks"


def _open_check(client, seed, auth_headers):
    response = client.post(
        BASE_URL,
        json={
            "registration_id": seed.registration.id,
            "user_id": seed.donor.id,
            "doctor_id": seed.doctor.id,
        },
        headers=auth_headers(seed.nurse_user, seed.nurse),
    )
    assert response.status_code == 201
    return response.json()["data"]


def test_nurse_opens_health_check(client, db, seed, auth_headers):
    data = _open_check(client, seed, auth_headers)

    assert data["registration"]["status"] == "IN_CONSULT"
    assert data["doctor_id"] == seed.doctor.id
    assert data["staff"]["position"] == "NURSE"
    assert data["user"]["email"] == "donor@example.com"

    db.refresh(seed.registration)
    assert seed.registration.status == RegistrationStatus.IN_CONSULT
    assert seed.registration.check_in_at is not None


def test_doctor_cannot_open_health_check(client, db, seed, auth_headers):
    response = client.post(
        BASE_URL,
        json={
            "registration_id": seed.registration.id,
            "user_id": seed.donor.id,
            "doctor_id": seed.doctor.id,
        },
        headers=auth_headers(seed.doctor_user, seed.doctor),
    )

    assert response.status_code == 403
    assert response.json()["message"].startswith("User does not have permission")
    assert db.query(HealthCheck).count() == 0


def test_nurse_role_without_staff_record_is_rejected(client, seed, auth_headers):
    response = client.post(
        BASE_URL,
        json={"registration_id": seed.registration.id},
        headers=auth_headers(seed.nurse_user),
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Staff information not found"


def test_create_rejects_registration_not_checked_in(client, db, seed, auth_headers):
    seed.registration.status = RegistrationStatus.REGISTERED
    db.commit()

    response = client.post(
        BASE_URL,
        json={
            "registration_id": seed.registration.id,
            "user_id": seed.donor.id,
            "doctor_id": seed.doctor.id,
        },
        headers=auth_headers(seed.nurse_user, seed.nurse),
    )

    assert response.status_code == 400
    assert response.json()["status"] == "error"


def test_doctor_records_ineligible_result(client, db, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    response = client.put(
        f"{BASE_URL}/{check['id']}",
        json={"is_eligible": False, "deferral_reason": "Huyết áp thấp"},
        headers=auth_headers(seed.doctor_user, seed.doctor),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_eligible"] is False
    assert data["deferral_reason"] == "Huyết áp thấp"
    assert data["registration"]["status"] == "REGISTERED"

    log = db.query(ProcessDonationLog).filter(
        ProcessDonationLog.registration_id == seed.registration.id,
        ProcessDonationLog.status == RegistrationStatus.REGISTERED,
    ).one()
    assert log.notes == "Không đủ điều kiện hiến máu"
    assert log.changed_by == seed.doctor.id


def test_doctor_records_eligible_result(client, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    response = client.put(
        f"{BASE_URL}/{check['id']}",
        json={"is_eligible": True, "hemoglobin": 14.2, "pulse": 0},
        headers=auth_headers(seed.doctor_user, seed.doctor),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["registration"]["status"] == "WAITING_DONATION"
    assert data["hemoglobin"] == 14.2
    assert data["pulse"] == 0


def test_unassigned_doctor_cannot_update(client, db, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    response = client.put(
        f"{BASE_URL}/{check['id']}",
        json={"is_eligible": True},
        headers=auth_headers(seed.second_doctor_user, seed.second_doctor),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "You are not assigned to this health check"

    db.refresh(seed.registration)
    assert seed.registration.status == RegistrationStatus.IN_CONSULT
    assert db.query(ProcessDonationLog).count() == 1


def test_nurse_cannot_update(client, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    response = client.put(
        f"{BASE_URL}/{check['id']}",
        json={"is_eligible": True},
        headers=auth_headers(seed.nurse_user, seed.nurse),
    )
    assert response.status_code == 403


def test_update_rejects_negative_vitals(client, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    response = client.put(
        f"{BASE_URL}/{check['id']}",
        json={"weight": -1},
        headers=auth_headers(seed.doctor_user, seed.doctor),
    )
    assert response.status_code == 422


def test_list_endpoints_are_scoped(client, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)

    facility = client.get(f"{BASE_URL}/facility", headers=auth_headers(seed.manager_user, seed.manager))
    doctor = client.get(f"{BASE_URL}/doctor", headers=auth_headers(seed.doctor_user, seed.doctor))
    other_doctor = client.get(
        f"{BASE_URL}/doctor", headers=auth_headers(seed.second_doctor_user, seed.second_doctor)
    )
    nurse = client.get(f"{BASE_URL}/nurse", headers=auth_headers(seed.nurse_user, seed.nurse))
    donor = client.get(f"{BASE_URL}/user", headers=auth_headers(seed.donor))
    other_donor = client.get(f"{BASE_URL}/user", headers=auth_headers(seed.other_donor))

    for response, expected in (
        (facility, [check["id"]]),
        (doctor, [check["id"]]),
        (other_doctor, []),
        (nurse, [check["id"]]),
        (donor, [check["id"]]),
        (other_donor, []),
    ):
        assert response.status_code == 200
        page = response.json()["data"]
        assert [item["id"] for item in page["items"]] == expected
        assert page["total"] == len(expected)


def test_list_rejects_invalid_sort_field(client, seed, auth_headers):
    response = client.get(
        f"{BASE_URL}/facility",
        params={"sort_by": "weight"},
        headers=auth_headers(seed.manager_user, seed.manager),
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid sort field")


def test_user_list_requires_donor_role(client, seed, auth_headers):
    response = client.get(f"{BASE_URL}/user", headers=auth_headers(seed.nurse_user, seed.nurse))
    assert response.status_code == 403


def test_detail_visibility(client, seed, auth_headers):
    check = _open_check(client, seed, auth_headers)
    url = f"{BASE_URL}/{check['id']}"

    assert client.get(url, headers=auth_headers(seed.donor)).status_code == 200
    assert client.get(url, headers=auth_headers(seed.doctor_user, seed.doctor)).status_code == 200
    assert client.get(url, headers=auth_headers(seed.nurse_user, seed.nurse)).status_code == 200

    hidden = client.get(url, headers=auth_headers(seed.other_donor))
    assert hidden.status_code == 404
    assert hidden.json()["message"] == "Health check not found or you do not have permission to access it"

    assert client.get(url, headers=auth_headers(seed.second_doctor_user, seed.second_doctor)).status_code == 404


def test_detail_requires_token(client, seed):
    response = client.get(f"{BASE_URL}/00000000-0000-4000-8000-000000000000")
    assert response.status_code == 400


def _refreshing_headers(issue_tokens, user, staff=None):
    tokens = issue_tokens(user, staff, access_ttl=timedelta(seconds=-30))
    return {"Authorization": f"Bearer {tokens.access_token}", "x-refresh-token": tokens.refresh_token}


def test_refreshed_tokens_returned_on_success(client, seed, issue_tokens):
    response = client.get(f"{BASE_URL}/user", headers=_refreshing_headers(issue_tokens, seed.donor))

    assert response.status_code == 200
    assert response.headers["x-access-token"]
    assert response.headers["x-refresh-token"]


def test_refreshed_tokens_returned_on_service_error(client, seed, issue_tokens, token_config):
    response = client.get(
        f"{BASE_URL}/user",
        params={"sort_by": "bogus"},
        headers=_refreshing_headers(issue_tokens, seed.donor),
    )

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid sort field")
    claims = verify_token(response.headers["x-access-token"], token_config.access_secret)
    assert claims["user_id"] == seed.donor.id
    verify_token(response.headers["x-refresh-token"], token_config.refresh_secret)


def test_refreshed_tokens_returned_on_guard_rejection(client, seed, issue_tokens):
    response = client.get(
        f"{BASE_URL}/nurse",
        headers=_refreshing_headers(issue_tokens, seed.nurse_user, seed.nurse),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Staff information not found"
    assert response.headers["x-access-token"]
    assert response.headers["x-refresh-token"]


def test_create_rejects_user_other_than_registrant(client, db, seed, auth_headers):
    response = client.post(
        BASE_URL,
        json={
            "registration_id": seed.registration.id,
            "user_id": seed.other_donor.id,
            "doctor_id": seed.doctor.id,
        },
        headers=auth_headers(seed.nurse_user, seed.nurse),
    )

    assert response.status_code == 400
    assert db.query(HealthCheck).count() == 0
