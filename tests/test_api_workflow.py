from __future__ import annotations

import asyncio
import json
from datetime import date, time

import pytest

# Skip suite when FastAPI dependency is not present in local environment.
pytest.importorskip("fastapi")

from fastapi import HTTPException

from guidant import schemas
from guidant.api.auth import login, register
from guidant.api.booking import get_mentor_dashboard, get_my_bookings
from guidant.api.payment import create_checkout, payment_callback
from guidant.api.session import (
    book_session,
    cancel_session,
    get_session,
    join_session,
    rate_session,
    reschedule_session,
    update_session_payment,
)
from guidant.api.session_request import (
    create_session_request,
    get_mentor_requests,
    get_my_requests,
    get_pending_count,
    update_session_request_status,
)
from guidant.api.users import get_user, update_my_price
from guidant.config import settings
from guidant.exceptions import InvalidOperationError, PermissionDeniedError
from guidant.utils.security import decode_access_token


class _GatewayRequest:
    """Stands in for the raw request the gateway posts to the callback route."""

    def __init__(self, payload):
        self._body = json.dumps(payload).encode("utf-8")

    async def body(self):
        return self._body


def test_register_and_login(db_session):
    created = asyncio.run(register(
        schemas.UserCreate(
            name="Nia Mentor",
            email="Nia@Test.edu",
            password="secret123",
            role="mentor",
            price_per_session=300,
        ),
        db=db_session,
    ))
    assert created.email == "nia@test.edu"
    assert created.role == "mentor"
    assert created.price_per_session == 300

    token = asyncio.run(login(
        schemas.LoginRequest(email="nia@test.edu", password="secret123"), db=db_session
    ))
    assert token["role"] == "mentor"
    assert decode_access_token(token["access_token"]).email == "nia@test.edu"

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(login(schemas.LoginRequest(email="nia@test.edu", password="wrong"), db=db_session))
    assert exc_info.value.status_code == 401

    with pytest.raises(HTTPException):
        asyncio.run(register(
            schemas.UserCreate(name="Dup", email="nia@test.edu", password="secret123"),
            db=db_session,
        ))


def test_student_pays_and_rates_through_the_api(db_session, student, mentor):
    created = create_session_request(
        schemas.SessionRequestCreate(
            mentor_id=mentor.id,
            session_date=date(2024, 1, 10),
            session_time=time(10, 0),
            session_type="video",
        ),
        current_user=student,
        db=db_session,
    )
    assert created.kind == "request"
    assert created.display_status == "Pending Approval"
    assert get_pending_count(current_user=mentor, db=db_session)["pending_count"] == 1

    decision = update_session_request_status(
        created.id,
        schemas.SessionRequestStatusUpdate(status="Accepted"),
        current_user=mentor,
        db=db_session,
    )
    assert decision["status"] == "accepted"
    assert decision["display_status"] == "Payment Required"
    session_id = decision["session_id"]
    assert session_id is not None

    order = create_checkout(session_id, current_user=student, db=db_session)
    assert order["amount"] == 50000
    assert order["order_id"] is None

    callback = _GatewayRequest({"session_id": session_id, "transaction_id": "txn_123"})
    paid = asyncio.run(payment_callback(callback, x_razorpay_signature=None, db=db_session))
    assert paid.display_status == "Confirmed"

    room = join_session(session_id, current_user=mentor, db=db_session)
    assert room["participant_ids"] == [student.id, mentor.id]

    rated = rate_session(
        session_id,
        schemas.SessionRating(rating=4, feedback="Clear and practical"),
        current_user=student,
        db=db_session,
    )
    assert rated.status == "completed"
    assert rated.display_status == "Completed"
    assert get_user(mentor.id, db=db_session).sessions_completed == 1

    bookings = get_my_bookings(role="student", current_user=student, db=db_session)
    assert sorted(b.kind for b in bookings) == ["request", "session"]
    assert {b.display_status for b in bookings} == {"Completed"}

    assert [r.id for r in get_my_requests(status=None, current_user=student, db=db_session)] == [created.id]
    assert get_mentor_requests(status="pending", current_user=mentor, db=db_session) == []


def test_direct_booking_reschedule_and_cancel(db_session, student, mentor):
    booked = book_session(
        schemas.DirectSessionCreate(
            mentor_id=mentor.id,
            session_date=date(2024, 2, 1),
            session_time=time(9, 0),
            session_type="chat",
        ),
        current_user=student,
        db=db_session,
    )
    assert booked.display_status == "Pending Approval"

    moved = reschedule_session(
        booked.id,
        schemas.SessionReschedule(session_date=date(2024, 2, 3), session_time=time(11, 0)),
        current_user=student,
        db=db_session,
    )
    assert moved.display_status == "Rescheduled"
    assert moved.rescheduled_by == student.id

    cancelled = cancel_session(booked.id, current_user=mentor, db=db_session)
    assert cancelled.display_status == "Cancelled"
    assert get_session(booked.id, current_user=student, db=db_session).status == "cancelled"

    with pytest.raises(InvalidOperationError):
        join_session(booked.id, current_user=student, db=db_session)


def test_mentor_only_endpoints(db_session, student, mentor):
    with pytest.raises(PermissionDeniedError):
        get_pending_count(current_user=student, db=db_session)
    with pytest.raises(PermissionDeniedError):
        get_mentor_dashboard(current_user=student, db=db_session)
    with pytest.raises(PermissionDeniedError):
        update_my_price(schemas.PriceUpdate(price_per_session=10), current_user=student, db=db_session)

    updated = update_my_price(
        schemas.PriceUpdate(price_per_session=750), current_user=mentor, db=db_session
    )
    assert updated.price_per_session == 750

    summary = get_mentor_dashboard(current_user=mentor, db=db_session)
    assert summary.pending_count == 0
    assert summary.latest_pending == []


def test_client_cannot_self_confirm_once_the_gateway_confirms(db_session, student, mentor, monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "whsec_test")
    booking = dict(mentor_id=mentor.id, session_date=date(2024, 3, 1), session_time=time(9, 0))

    with pytest.raises(PermissionDeniedError):
        book_session(
            schemas.DirectSessionCreate(payment_id="made_up", **booking),
            current_user=student,
            db=db_session,
        )

    booked = book_session(schemas.DirectSessionCreate(**booking), current_user=student, db=db_session)
    with pytest.raises(PermissionDeniedError):
        update_session_payment(
            booked.id,
            schemas.SessionPaymentUpdate(payment_id="forged"),
            current_user=student,
            db=db_session,
        )

    assert get_session(booked.id, current_user=student, db=db_session).display_status == "Pending Approval"
