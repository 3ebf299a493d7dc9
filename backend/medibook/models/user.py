from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from medibook.config import DEFAULT_PROFILE_PHOTO
from medibook.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # argon2 hash
    is_admin = Column(Boolean, nullable=False, default=False)
    # Bumped on every password change; tokens carrying an older value are rejected
    token_version = Column(Integer, nullable=False, default=0)

    # Password reset; otp and otp_expire are always set and cleared together
    otp = Column(String(4), nullable=True)
    otp_expire = Column(DateTime(timezone=True), nullable=True)
    otp_verified = Column(Boolean, nullable=False, default=False)

    profile_photo_url = Column(String(500), nullable=False, default=DEFAULT_PROFILE_PHOTO)
    profile_photo_public_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user", passive_deletes=True)

    @property
    def profile_photo(self) -> dict:
        return {"url": self.profile_photo_url, "public_id": self.profile_photo_public_id}
