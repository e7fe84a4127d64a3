"""HTTP surface tests: auth, role checks and the error envelope."""

import uuid
from datetime import datetime

from app.models.user import UserRole

from tests.conftest import auth_headers, make_schedule, make_token, make_user, utc

WEEKDAYS_PAYLOAD = {
    "slot_step_minutes": 30,
    "days": [
        {
            "day_of_week": 1,
            "enabled": True,
            "start": "09:00",
            "end": "17:00",
            "breaks": [{"start": "13:00", "end": "14:00"}, {"start": "18:00", "end": "19:00"}],
        },
        {"day_of_week": 2, "enabled": False},
    ],
}


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def book(api, client, business, start_at="2030-01-07T09:00:00Z", duration=60):
    return api.post(
        "/api/v1/appointments",
        json={"business_id": str(business.id), "start_at": start_at, "duration_minutes": duration},
        headers=auth_headers(client),
    )


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health(self, api):
        body = api.get("/health/detailed").json()
        assert body["database"] == "healthy"
        assert body["overall"] == "healthy"

    def test_correlation_id_is_echoed(self, api):
        response = api.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestAuthentication:
    def test_missing_token(self, api, business):
        response = api.get(f"/api/v1/businesses/{business.id}/availability")
        assert response.status_code in (401, 403)
        assert "error" in response.json()

    def test_garbage_token(self, api, business):
        response = api.get(
            f"/api/v1/businesses/{business.id}/availability",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_refresh_token_is_rejected(self, api, business):
        response = api.get(
            f"/api/v1/businesses/{business.id}/availability",
            headers={"Authorization": f"Bearer {make_token(business, token_type='refresh')}"},
        )
        assert response.status_code == 401

    def test_inactive_user(self, api, db_session, business):
        disabled = make_user(db_session, UserRole.CLIENT, is_active=False)
        response = api.get(f"/api/v1/businesses/{business.id}/availability", headers=auth_headers(disabled))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"


class TestAvailabilityEndpoints:
    def test_replace_and_read_back(self, api, business):
        response = api.put("/api/v1/availability/me", json=WEEKDAYS_PAYLOAD, headers=auth_headers(business))
        assert response.status_code == 200
        body = response.json()
        assert body["slot_step_minutes"] == 30
        assert [d["day_of_week"] for d in body["days"]] == [1]
        assert body["days"][0]["breaks"] == [
            {"start": "13:00", "end": "14:00", "start_minute": 780, "end_minute": 840},
        ]

        mine = api.get("/api/v1/availability/me", headers=auth_headers(business)).json()
        assert mine["days"] == body["days"]

    def test_clients_cannot_manage_availability(self, api, client_user):
        response = api.put("/api/v1/availability/me", json=WEEKDAYS_PAYLOAD, headers=auth_headers(client_user))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_malformed_time_is_a_validation_error(self, api, business):
        payload = {"days": [{"day_of_week": 1, "enabled": True, "start": "9am", "end": "17:00"}]}
        response = api.put("/api/v1/availability/me", json=payload, headers=auth_headers(business))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_bad_body_is_a_validation_error(self, api, business):
        response = api.put("/api/v1/availability/me", json={"days": []}, headers=auth_headers(business))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_public_schedule_view(self, api, db_session, business, client_user):
        make_schedule(db_session, business)
        response = api.get(f"/api/v1/businesses/{business.id}/availability", headers=auth_headers(client_user))
        assert response.status_code == 200
        assert response.json()["business_id"] == str(business.id)

    def test_unknown_business(self, api, client_user):
        response = api.get(f"/api/v1/businesses/{uuid.uuid4()}/availability", headers=auth_headers(client_user))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestSlotEndpoint:
    def test_range_query(self, api, db_session, business, client_user):
        make_schedule(db_session, business)
        response = api.get(
            f"/api/v1/businesses/{business.id}/slots",
            params={"from": "2030-01-07T00:00:00Z", "to": "2030-01-08T00:00:00Z", "duration_minutes": 60},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 200
        slots = [parse_instant(s) for s in response.json()["slots"]]
        assert slots[0] == utc(2030, 1, 7, 9, 0)
        assert slots[-1] == utc(2030, 1, 7, 16, 0)
        assert utc(2030, 1, 7, 13, 0) not in slots

    def test_date_query_uses_business_timezone(self, api, db_session, client_user):
        business = make_user(db_session, UserRole.BUSINESS, timezone_offset_minutes=-120)
        make_schedule(db_session, business)
        response = api.get(
            f"/api/v1/businesses/{business.id}/slots",
            params={"date": "2030-01-07", "duration_minutes": 60, "slot_step_minutes": 60},
            headers=auth_headers(client_user),
        )
        body = response.json()
        assert body["local_date"] == "2030-01-07"
        assert parse_instant(body["slots"][0]) == utc(2030, 1, 7, 7, 0)

    def test_range_is_required(self, api, business, client_user):
        response = api.get(
            f"/api/v1/businesses/{business.id}/slots",
            params={"duration_minutes": 60},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_duration_out_of_range(self, api, business, client_user):
        response = api.get(
            f"/api/v1/businesses/{business.id}/slots",
            params={"date": "2030-01-07", "duration_minutes": 300},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAppointmentEndpoints:
    def test_create(self, api, db_session, business, client_user):
        make_schedule(db_session, business)
        response = book(api, client_user, business, start_at="2030-01-07T11:00:00+02:00")
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "BOOKED"
        assert parse_instant(body["start_at"]) == utc(2030, 1, 7, 9, 0)
        assert parse_instant(body["end_at"]) == utc(2030, 1, 7, 10, 0)
        assert body["business"]["id"] == str(business.id)

    def test_double_booking_is_a_conflict(self, api, db_session, business, client_user, other_client):
        make_schedule(db_session, business)
        assert book(api, client_user, business).status_code == 201

        response = book(api, other_client, business, start_at="2030-01-07T09:30:00Z")
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "CONFLICT"
        assert error["details"]["reason"] == "ALREADY_BOOKED"

    def test_outside_availability(self, api, db_session, business, client_user):
        make_schedule(db_session, business)
        response = book(api, client_user, business, start_at="2030-01-07T16:01:00Z")
        assert response.status_code == 409
        assert response.json()["error"]["details"]["reason"] == "OUTSIDE_AVAILABILITY"

    def test_past_start(self, api, business, client_user):
        response = book(api, client_user, business, start_at="2001-01-01T09:00:00Z")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_business_cannot_book(self, api, db_session, business):
        other = make_user(db_session, UserRole.BUSINESS)
        response = book(api, other, business)
        assert response.status_code == 403

    def test_missing_fields(self, api, client_user):
        response = api.post("/api/v1/appointments", json={}, headers=auth_headers(client_user))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_list_get_reschedule_cancel(self, api, db_session, business, client_user, other_client):
        make_schedule(db_session, business)
        appointment_id = book(api, client_user, business).json()["id"]

        listing = api.get("/api/v1/appointments/me", headers=auth_headers(client_user)).json()
        assert listing["total"] == 1
        assert listing["appointments"][0]["id"] == appointment_id

        business_listing = api.get("/api/v1/appointments/me", headers=auth_headers(business)).json()
        assert business_listing["total"] == 1

        assert api.get(f"/api/v1/appointments/{appointment_id}", headers=auth_headers(other_client)).status_code == 403
        assert api.get(f"/api/v1/appointments/{appointment_id}", headers=auth_headers(business)).status_code == 200

        moved = api.patch(
            f"/api/v1/appointments/{appointment_id}",
            json={"start_at": "2030-01-07T15:00:00Z", "duration_minutes": 30},
            headers=auth_headers(client_user),
        )
        assert moved.status_code == 200
        assert parse_instant(moved.json()["start_at"]) == utc(2030, 1, 7, 15, 0)
        assert moved.json()["duration_minutes"] == 30

        foreign = api.patch(
            f"/api/v1/appointments/{appointment_id}",
            json={"start_at": "2030-01-07T10:00:00Z", "duration_minutes": 30},
            headers=auth_headers(other_client),
        )
        assert foreign.status_code == 403

        canceled = api.post(f"/api/v1/appointments/{appointment_id}/cancel", headers=auth_headers(business))
        assert canceled.status_code == 200
        assert canceled.json()["status"] == "CANCELED"

        again = api.post(f"/api/v1/appointments/{appointment_id}/cancel", headers=auth_headers(client_user))
        assert again.status_code == 200
        assert again.json()["status"] == "CANCELED"

        stale = api.patch(
            f"/api/v1/appointments/{appointment_id}",
            json={"start_at": "2030-01-07T10:00:00Z", "duration_minutes": 30},
            headers=auth_headers(client_user),
        )
        assert stale.status_code == 409
        assert stale.json()["error"]["details"]["reason"] == "INVALID_STATE"

    def test_unknown_appointment(self, api, client_user):
        response = api.get(f"/api/v1/appointments/{uuid.uuid4()}", headers=auth_headers(client_user))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_oversized_range(self, api, business, client_user):
        response = api.get(
            f"/api/v1/businesses/{business.id}/slots",
            params={"from": "2000-01-01T00:00:00Z", "to": "3000-01-01T00:00:00Z", "duration_minutes": 60},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
