# guidant/models/session.py
from sqlalchemy import (
    Column, Integer, String, Text, Float, Date, Time, ForeignKey, TIMESTAMP, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from guidant.database import Base


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    # Back-reference to the accepted request; unique so one acceptance spawns one session.
    request_id = Column(Integer, ForeignKey("session_requests.id"), unique=True, nullable=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentor_name = Column(String(100), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    session_date = Column(Date, nullable=False)
    session_time = Column(Time, nullable=False)
    session_type = Column(String(20), nullable=False, default="video")
    notes = Column(Text)
    price = Column(Float, nullable=False, default=0.0)
    payment_id = Column(String(255), nullable=True, default="pending")
    status = Column(String(20), nullable=False, default="pending", index=True)
    rescheduled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_session_price_non_negative"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="check_session_rating_range"),
    )

    # Relationships
    request = relationship("SessionRequest", back_populates="session")
    mentor = relationship("User", foreign_keys=[mentor_id], back_populates="mentor_sessions")
    student = relationship("User", foreign_keys=[student_id], back_populates="student_sessions")
