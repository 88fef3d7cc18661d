# guidant/models/session_request.py
from sqlalchemy import Column, Integer, String, Text, Date, Time, ForeignKey, TIMESTAMP, CheckConstraint, func
from sqlalchemy.orm import relationship
from guidant.database import Base


class SessionRequest(Base):
    __tablename__ = "session_requests"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Snapshot taken at creation; never re-joined for display.
    student_name = Column(String(100), nullable=False)
    session_date = Column(Date, nullable=False)
    session_time = Column(Time, nullable=False)
    session_type = Column(String(20), nullable=False, default="video")
    notes = Column(Text)
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        CheckConstraint("mentor_id <> student_id", name="check_request_not_self"),
    )

    mentor = relationship("User", foreign_keys=[mentor_id], back_populates="mentor_requests")
    student = relationship("User", foreign_keys=[student_id], back_populates="student_requests")
    session = relationship("Session", back_populates="request", uselist=False)
