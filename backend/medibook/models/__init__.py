from medibook.models.user import User
from medibook.models.doctor import Doctor
from medibook.models.booking import Booking

__all__ = ["User", "Doctor", "Booking"]
