"""Unit tests for exception to HTTP response mapping."""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from schedula.api.middleware.errors import ErrorHandlingMiddleware
from schedula.core.exceptions import (
    AnonymousBookingError,
    BookingConflictError,
    DeleteNotAllowedError,
    FeatureNotAvailableError,
    InvalidStatusTransitionError,
    NotFoundError,
    QuotaExceededError,
    RescheduleWindowError,
    ScheduleOverlapError,
    StoreUnavailableError,
    TenantAccessDeniedError,
    TenantContextRequiredError,
    TenantNotFoundError,
    TrialExpiredError,
)


@pytest.fixture
def middleware() -> ErrorHandlingMiddleware:
    return ErrorHandlingMiddleware(app=MagicMock())


@pytest.fixture
def request_with_id() -> MagicMock:
    request = MagicMock()
    request.state.request_id = uuid4()
    request.url.path = "/v1/appointments"
    return request


def body(response) -> dict:
    return json.loads(response.body)


class TestExceptionMapping:
    """Status codes and error codes per exception."""

    @pytest.mark.parametrize(
        "exc, status_code, error_code",
        [
            (TenantNotFoundError("nope"), 404, "tenant_not_found"),
            (TenantAccessDeniedError(uuid4(), "SUSPENDED"), 403, "tenant_access_denied"),
            (TrialExpiredError(uuid4(), datetime(2026, 1, 1, tzinfo=UTC)), 402, "trial_expired"),
            (TenantContextRequiredError(), 400, "tenant_required"),
            (FeatureNotAvailableError("webhooks", "FREE"), 403, "feature_not_available"),
            (AnonymousBookingError(), 401, "unauthorized"),
            (NotFoundError("service", uuid4()), 404, "not_found"),
            (BookingConflictError(uuid4(), [uuid4()]), 409, "booking_conflict"),
            (ScheduleOverlapError(uuid4()), 409, "schedule_overlap"),
            (DeleteNotAllowedError(uuid4()), 403, "policy_violation"),
            (RescheduleWindowError(2, 1), 400, "policy_violation"),
            (InvalidStatusTransitionError("CANCELLED", "SCHEDULED"), 400, "policy_violation"),
            (QuotaExceededError("locations", 3, 3), 429, "quota_exceeded"),
            (StoreUnavailableError(), 503, "service_unavailable"),
            (RuntimeError("boom"), 500, "internal_error"),
        ],
    )
    def test_mapping(self, middleware, request_with_id, exc, status_code, error_code):
        response = middleware._handle_exception(request_with_id, exc)

        assert response.status_code == status_code
        assert body(response)["error_code"] == error_code

    def test_request_id_in_body_and_header(self, middleware, request_with_id):
        response = middleware._handle_exception(request_with_id, NotFoundError("service"))

        request_id = str(request_with_id.state.request_id)
        assert body(response)["request_id"] == request_id
        assert response.headers["X-Request-ID"] == request_id


class TestErrorDetails:
    """Details carried in the error body."""

    def test_quota_details(self, middleware, request_with_id):
        response = middleware._handle_exception(
            request_with_id, QuotaExceededError("appointments_per_month", 500, 500)
        )
        data = body(response)

        assert data["message"] == "Quota exceeded for appointments_per_month"
        assert data["details"] == {
            "resource": "appointments_per_month",
            "limit": 500,
            "current": 500,
        }

    def test_conflict_details(self, middleware, request_with_id):
        employee_id, other_id = uuid4(), uuid4()
        response = middleware._handle_exception(
            request_with_id, BookingConflictError(employee_id, [other_id])
        )
        data = body(response)

        assert data["message"] == "Time slot is already booked"
        assert data["details"]["conflicting_ids"] == [str(other_id)]

    def test_policy_rule_in_details(self, middleware, request_with_id):
        response = middleware._handle_exception(request_with_id, RescheduleWindowError(2, 1))
        data = body(response)

        assert data["details"] == {"rule": "reschedule_window"}
        assert "2 hours" in data["message"]

    def test_trial_expired_details(self, middleware, request_with_id):
        ended = datetime(2026, 1, 1, tzinfo=UTC)
        response = middleware._handle_exception(request_with_id, TrialExpiredError(uuid4(), ended))

        assert body(response)["details"]["trial_ends_at"] == ended.isoformat()

    def test_store_failure_hides_driver_message(self, middleware, request_with_id):
        response = middleware._handle_exception(
            request_with_id, StoreUnavailableError("could not connect to 10.0.0.5")
        )
        assert "10.0.0.5" not in body(response)["message"]

    def test_missing_request_id(self, middleware):
        request = MagicMock()
        request.state = MagicMock(spec=[])
        response = middleware._handle_exception(request, NotFoundError("service"))

        assert body(response)["request_id"] == "unknown"
