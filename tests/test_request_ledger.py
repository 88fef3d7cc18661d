from __future__ import annotations

from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from guidant.crud import session_request as request_crud
from guidant.crud import user as user_crud
from guidant.database import Base
from guidant.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guidant.models.notification import Notification
from guidant.models.session import Session as SessionModel
from guidant.models.session_request import SessionRequest
from guidant.services import request_service


def _request(db, student, mentor, **overrides):
    fields = dict(
        student_id=student.id,
        mentor_id=mentor.id,
        session_date=date(2024, 1, 10),
        session_time=time(10, 0),
        session_type="video",
        notes="Career advice",
    )
    fields.update(overrides)
    return request_service.create_request(db, **fields)


def test_create_request_starts_pending_with_name_snapshot(db_session, student, mentor):
    request = _request(db_session, student, mentor)

    assert request.status == "pending"
    assert request.payment_status == "pending"
    assert request.student_name == "Sam Student"

    notes = db_session.query(Notification).filter(Notification.recipient_id == mentor.id).all()
    assert [n.event_type for n in notes] == ["request_created"]


def test_self_booking_is_rejected_without_a_record(db_session, mentor):
    with pytest.raises(InvalidOperationError):
        _request(db_session, mentor, mentor)
    assert db_session.query(SessionRequest).count() == 0


def test_unknown_or_non_mentor_target_is_not_found(db_session, student, make_user):
    other_student = make_user("student")
    with pytest.raises(NotFoundError):
        request_service.create_request(
            db_session,
            student_id=student.id,
            mentor_id=9999,
            session_date=date(2024, 1, 10),
            session_time=time(10, 0),
        )
    with pytest.raises(NotFoundError):
        _request(db_session, student, other_student)
    assert db_session.query(SessionRequest).count() == 0


def test_bad_session_type_names_the_field(db_session, student, mentor):
    with pytest.raises(ValidationError) as exc_info:
        _request(db_session, student, mentor, session_type="audio")
    assert exc_info.value.details == {"field": "session_type"}


def test_accept_spawns_exactly_one_session(db_session, student, mentor):
    request = _request(db_session, student, mentor)

    updated = request_service.update_request_status(db_session, request.id, "accepted", mentor.id)

    assert updated.status == "accepted"
    sessions = db_session.query(SessionModel).all()
    assert len(sessions) == 1
    assert sessions[0].request_id == request.id
    assert updated.session.id == sessions[0].id


def test_reject_spawns_nothing(db_session, student, mentor):
    request = _request(db_session, student, mentor)

    updated = request_service.update_request_status(db_session, request.id, "rejected", mentor.id)

    assert updated.status == "rejected"
    assert db_session.query(SessionModel).count() == 0


def test_only_the_requested_mentor_may_decide(db_session, student, mentor, make_user):
    other_mentor = make_user("mentor", price=100.0)
    request = _request(db_session, student, mentor)

    with pytest.raises(PermissionDeniedError):
        request_service.update_request_status(db_session, request.id, "accepted", other_mentor.id)
    with pytest.raises(PermissionDeniedError):
        request_service.update_request_status(db_session, request.id, "accepted", student.id)

    assert request_crud.get_request(db_session, request.id).status == "pending"


def test_update_status_validation_and_not_found(db_session, student, mentor):
    request = _request(db_session, student, mentor)

    with pytest.raises(ValidationError) as exc_info:
        request_service.update_request_status(db_session, request.id, "completed", mentor.id)
    assert exc_info.value.details == {"field": "status"}

    with pytest.raises(NotFoundError):
        request_service.update_request_status(db_session, 4242, "accepted", mentor.id)


def test_pending_to_pending_is_a_no_op(db_session, student, mentor):
    request = _request(db_session, student, mentor)
    same = request_service.update_request_status(db_session, request.id, "pending", mentor.id)
    assert same.status == "pending"


def test_decided_requests_are_terminal(db_session, student, mentor):
    accepted = _request(db_session, student, mentor)
    rejected = _request(db_session, student, mentor, session_time=time(11, 0))
    request_service.update_request_status(db_session, accepted.id, "accepted", mentor.id)
    request_service.update_request_status(db_session, rejected.id, "rejected", mentor.id)

    with pytest.raises(ConflictError):
        request_service.update_request_status(db_session, accepted.id, "accepted", mentor.id)
    with pytest.raises(InvalidOperationError):
        request_service.update_request_status(db_session, accepted.id, "rejected", mentor.id)
    with pytest.raises(InvalidOperationError):
        request_service.update_request_status(db_session, rejected.id, "accepted", mentor.id)

    assert db_session.query(SessionModel).count() == 1


def test_zero_price_acceptance_rolls_back(db_session, student, make_user):
    free_mentor = make_user("mentor", price=0.0)
    request = _request(db_session, student, free_mentor)

    with pytest.raises(InvalidOperationError):
        request_service.update_request_status(db_session, request.id, "accepted", free_mentor.id)

    assert request_crud.get_request(db_session, request.id).status == "pending"
    assert db_session.query(SessionModel).count() == 0


def test_listings_are_newest_first_and_count_pending(db_session, student, mentor):
    first = _request(db_session, student, mentor)
    second = _request(db_session, student, mentor, session_time=time(12, 0))
    request_service.update_request_status(db_session, first.id, "rejected", mentor.id)

    mentor_view = request_service.list_for_mentor(db_session, mentor.id)
    student_view = request_service.list_for_student(db_session, student.id)

    assert [r.id for r in mentor_view] == [second.id, first.id]
    assert [r.id for r in student_view] == [second.id, first.id]
    assert [r.id for r in request_service.list_for_mentor(db_session, mentor.id, "pending")] == [second.id]
    assert request_service.count_pending(db_session, mentor.id) == 1

    with pytest.raises(ValidationError):
        request_service.list_for_student(db_session, student.id, "archived")


def test_concurrent_acceptance_has_one_winner(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    setup = SessionLocal()
    student = user_crud.create_user(
        setup, name="Racer", email="racer@test.edu", password_hash="hash", role="student"
    )
    mentor = user_crud.create_user(
        setup, name="Judge", email="judge@test.edu", password_hash="hash",
        role="mentor", price_per_session=250.0,
    )
    request = _request(setup, student, mentor)
    request_id, mentor_id = request.id, mentor.id
    setup.close()

    first = SessionLocal()
    second = SessionLocal()
    try:
        # Both callers observe the request while it is still pending
        assert request_crud.get_request(first, request_id).status == "pending"
        assert request_crud.get_request(second, request_id).status == "pending"

        request_service.update_request_status(first, request_id, "accepted", mentor_id)
        with pytest.raises(ConflictError):
            request_service.update_request_status(second, request_id, "accepted", mentor_id)

        check = SessionLocal()
        try:
            assert check.query(SessionModel).filter(SessionModel.request_id == request_id).count() == 1
            assert request_crud.get_request(check, request_id).status == "accepted"
        finally:
            check.close()
    finally:
        first.close()
        second.close()
        engine.dispose()
