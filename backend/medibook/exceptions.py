class MediBookError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MediBookError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(MediBookError):
    status_code = 404
    default_message = "Not found"


class Unauthenticated(MediBookError):
    status_code = 401
    default_message = "No token provided"


class Forbidden(MediBookError):
    status_code = 403
    default_message = "Access denied"


class Conflict(MediBookError):
    status_code = 400
    default_message = "Already exists"


class UpstreamFailure(MediBookError):
    status_code = 500
    default_message = "Something went wrong"


class RateLimited(MediBookError):
    status_code = 429
    default_message = "Too many requests"


# Lookups
class UserNotFound(NotFound):
    default_message = "User not found"


class DoctorNotFound(NotFound):
    default_message = "Doctor not found"


class BookingNotFound(NotFound):
    default_message = "Booking not found"


# Session tokens
class InvalidToken(Unauthenticated):
    default_message = "Invalid token"


class StaleToken(Unauthenticated):
    default_message = "Token is invalid or expired"


# Credentials and password reset
class InvalidCredentials(ValidationError):
    default_message = "Invalid email or password"


class InvalidOtp(ValidationError):
    default_message = "Invalid OTP"


class OtpExpired(ValidationError):
    default_message = "OTP has expired"


class OtpNotVerified(ValidationError):
    default_message = "OTP verification required before resetting password"


# Booking
class DayUnavailable(ValidationError):
    default_message = "No availability for the selected day"


class SlotTaken(Conflict):
    default_message = "Time slot is not available"
