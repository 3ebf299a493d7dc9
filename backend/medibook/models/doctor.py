from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from medibook.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(200), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    specialization = Column(String(100), nullable=False, index=True)
    experience = Column(Integer, nullable=False, default=0)
    qualifications = Column(JSON, default=list)
    fee = Column(Float, nullable=False, default=0)
    addresses = Column(JSON, default=list)
    # [{"day": "Mon", "hours": ["9:00", "10:00"]}, ...]
    availability = Column(JSON, default=list)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="doctor", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version}
