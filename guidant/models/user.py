from sqlalchemy import Column, Integer, String, Boolean, Float, TIMESTAMP, CheckConstraint, func
from sqlalchemy.orm import relationship
from guidant.database import Base


# ---------------- USER (IDENTITY STORE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student")
    # Mentor-only fields
    price_per_session = Column(Float, nullable=False, default=0.0)
    sessions_completed = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price_per_session >= 0", name="check_price_non_negative"),
    )

    student_requests = relationship(
        "SessionRequest", foreign_keys="SessionRequest.student_id", back_populates="student"
    )
    mentor_requests = relationship(
        "SessionRequest", foreign_keys="SessionRequest.mentor_id", back_populates="mentor"
    )
    student_sessions = relationship("Session", foreign_keys="Session.student_id", back_populates="student")
    mentor_sessions = relationship("Session", foreign_keys="Session.mentor_id", back_populates="mentor")

    @property
    def is_mentor(self) -> bool:
        return self.role == "mentor"
