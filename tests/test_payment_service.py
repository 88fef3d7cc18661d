from __future__ import annotations

import hashlib
import hmac
import json
from datetime import date, time
from types import SimpleNamespace

import pytest
import requests

from guidant.config import settings
from guidant.exceptions import (
    DependencyTimeoutError,
    InvalidOperationError,
    PermissionDeniedError,
    ValidationError,
)
from guidant.models.session import Session as SessionModel
from guidant.services import gateway, lifecycle, payment_service

KEY_SECRET = "rzp_secret_test"
WEBHOOK_SECRET = "whsec_test"


def _gateway_signature(message: str, secret: str) -> str:
    # What Razorpay sends back: hex HMAC-SHA256 of the message
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def _callback_body(session_id: int, transaction_id: str) -> str:
    return json.dumps({"session_id": session_id, "transaction_id": transaction_id})


def _unpaid_session(db, student, mentor):
    return lifecycle.create_direct_session(
        db,
        student_id=student.id,
        mentor_id=mentor.id,
        session_date=date(2024, 5, 1),
        session_time=time(18, 0),
    )


@pytest.fixture
def gateway_keys(monkeypatch):
    monkeypatch.setattr(settings, "RAZORPAY_KEY_ID", "rzp_test_key")
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", KEY_SECRET)


def test_checkout_order_uses_minor_units(db_session, student, make_user):
    mentor = make_user("mentor", name="Priya", price=499.99)
    session = _unpaid_session(db_session, student, mentor)

    order = payment_service.prepare_checkout(db_session, session.id, student.id)

    assert order == {
        "session_id": session.id,
        "amount": 49999,
        "currency": settings.PAYMENT_CURRENCY,
        "description": "Session with Priya",
        "order_id": None,
        "key_id": None,
    }


def test_checkout_creates_gateway_order_when_keys_are_set(
    db_session, student, mentor, gateway_keys, monkeypatch
):
    created = []

    def create(data, **options):
        created.append((data, options))
        return {"id": "order_abc", "amount": data["amount"]}

    monkeypatch.setattr(
        gateway, "get_client", lambda: SimpleNamespace(order=SimpleNamespace(create=create))
    )
    session = _unpaid_session(db_session, student, mentor)

    order = payment_service.prepare_checkout(db_session, session.id, student.id)

    assert order["order_id"] == "order_abc"
    assert order["key_id"] == "rzp_test_key"
    data, options = created[0]
    assert data == {"amount": 50000, "currency": settings.PAYMENT_CURRENCY, "receipt": f"session-{session.id}"}
    assert options["timeout"] == settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS


def test_unreachable_gateway_surfaces_as_timeout(
    db_session, student, mentor, gateway_keys, monkeypatch
):
    def create(data, **options):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(
        gateway, "get_client", lambda: SimpleNamespace(order=SimpleNamespace(create=create))
    )
    session = _unpaid_session(db_session, student, mentor)

    with pytest.raises(DependencyTimeoutError) as exc_info:
        payment_service.prepare_checkout(db_session, session.id, student.id)
    assert exc_info.value.status_code == 504


def test_checkout_is_for_the_student_of_an_unpaid_session(db_session, student, mentor):
    session = _unpaid_session(db_session, student, mentor)

    with pytest.raises(PermissionDeniedError):
        payment_service.prepare_checkout(db_session, session.id, mentor.id)

    lifecycle.record_payment(db_session, session.id, "txn_1")
    with pytest.raises(InvalidOperationError):
        payment_service.prepare_checkout(db_session, session.id, student.id)


def test_checkout_rejects_zero_price(db_session, student, mentor):
    session = _unpaid_session(db_session, student, mentor)
    session.price = 0.0
    db_session.commit()

    with pytest.raises(InvalidOperationError):
        payment_service.prepare_checkout(db_session, session.id, student.id)


def test_unsigned_callback_accepted_without_secret(db_session, student, mentor):
    session = _unpaid_session(db_session, student, mentor)

    session = payment_service.on_payment_succeeded(db_session, _callback_body(session.id, "txn_open"))
    assert session.status == "confirmed"


def test_signed_callback(db_session, student, mentor, monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", WEBHOOK_SECRET)
    session = _unpaid_session(db_session, student, mentor)
    body = _callback_body(session.id, "txn_1")

    with pytest.raises(PermissionDeniedError):
        payment_service.on_payment_succeeded(db_session, body, "forged")
    with pytest.raises(PermissionDeniedError):
        payment_service.on_payment_succeeded(db_session, body)
    # A valid signature does not carry over to a different body
    with pytest.raises(PermissionDeniedError):
        payment_service.on_payment_succeeded(
            db_session,
            _callback_body(session.id, "txn_other"),
            _gateway_signature(body, WEBHOOK_SECRET),
        )
    assert session.payment_id == "pending"

    session = payment_service.on_payment_succeeded(
        db_session, body, _gateway_signature(body, WEBHOOK_SECRET)
    )
    assert session.payment_id == "txn_1"


def test_malformed_callback_body_names_the_field(db_session):
    with pytest.raises(ValidationError) as exc_info:
        payment_service.on_payment_succeeded(db_session, '{"session_id": "x"}')
    assert exc_info.value.details == {"field": "body"}


def test_client_reported_payment_is_student_only(db_session, student, mentor):
    session = _unpaid_session(db_session, student, mentor)

    with pytest.raises(PermissionDeniedError):
        payment_service.record_client_payment(db_session, session.id, "txn_c", mentor.id)

    session = payment_service.record_client_payment(db_session, session.id, "txn_c", student.id)
    assert session.status == "confirmed"


def test_client_reported_payment_refused_when_only_the_gateway_may_confirm(
    db_session, student, mentor, monkeypatch
):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", WEBHOOK_SECRET)
    session = _unpaid_session(db_session, student, mentor)

    with pytest.raises(PermissionDeniedError):
        payment_service.record_client_payment(db_session, session.id, "forged", student.id)

    db_session.refresh(session)
    assert (session.status, session.payment_id) == ("pending", "pending")


def test_client_reported_payment_needs_a_valid_checkout_signature(
    db_session, student, mentor, gateway_keys
):
    session = _unpaid_session(db_session, student, mentor)

    with pytest.raises(PermissionDeniedError):
        payment_service.record_client_payment(db_session, session.id, "pay_1", student.id)
    with pytest.raises(PermissionDeniedError):
        payment_service.record_client_payment(
            db_session, session.id, "pay_1", student.id, order_id="order_1", signature="forged"
        )
    db_session.refresh(session)
    assert session.status == "pending"

    session = payment_service.record_client_payment(
        db_session,
        session.id,
        "pay_1",
        student.id,
        order_id="order_1",
        signature=_gateway_signature("order_1|pay_1", KEY_SECRET),
    )
    assert (session.status, session.payment_id) == ("confirmed", "pay_1")


def test_direct_booking_with_unverified_payment_is_refused(
    db_session, student, mentor, gateway_keys
):
    booking = dict(
        student_id=student.id,
        mentor_id=mentor.id,
        session_date=date(2024, 5, 2),
        session_time=time(9, 0),
    )

    with pytest.raises(PermissionDeniedError):
        lifecycle.create_direct_session(db_session, payment_id="made_up", **booking)
    with pytest.raises(PermissionDeniedError):
        lifecycle.create_direct_session(
            db_session,
            payment_id="made_up",
            payment_order_id="order_2",
            payment_signature="forged",
            **booking,
        )
    assert db_session.query(SessionModel).count() == 0

    session = lifecycle.create_direct_session(
        db_session,
        payment_id="pay_2",
        payment_order_id="order_2",
        payment_signature=_gateway_signature("order_2|pay_2", KEY_SECRET),
        **booking,
    )
    assert (session.status, session.payment_id) == ("confirmed", "pay_2")


def test_direct_booking_refused_when_only_the_gateway_may_confirm(
    db_session, student, mentor, monkeypatch
):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", WEBHOOK_SECRET)

    with pytest.raises(PermissionDeniedError):
        lifecycle.create_direct_session(
            db_session,
            student_id=student.id,
            mentor_id=mentor.id,
            session_date=date(2024, 5, 2),
            session_time=time(9, 0),
            payment_id="made_up",
        )
    assert db_session.query(SessionModel).count() == 0
