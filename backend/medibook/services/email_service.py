"""Outgoing mail for MediBook accounts (password reset codes) over SMTP."""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from medibook.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

RESET_SUBJECT = "Password Reset Request"


class EmailService:
    """Delivers account mail through the configured SMTP relay."""

    def __init__(self):
        self.sender = settings.gmail_address
        self.app_password = settings.gmail_app_password
        self.host = settings.smtp_server
        self.port = settings.smtp_port

    def build_reset_message(self, to_email: str, otp: str, expire_minutes: int) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = self.sender
        message["To"] = to_email
        message["Subject"] = RESET_SUBJECT

        text = (
            f"Your OTP is {otp}. This OTP will expire in {expire_minutes} minutes.\n\n"
            "If you did not ask to reset your MediBook password, ignore this email."
        )
        html = (
            f"<p>Your OTP is <strong>{otp}</strong>.</p>"
            f"<p>This OTP will expire in {expire_minutes} minutes.</p>"
            "<p>If you did not ask to reset your MediBook password, ignore this email.</p>"
        )
        message.attach(MIMEText(text, "plain"))
        message.attach(MIMEText(html, "html"))
        return message

    def send_password_reset_otp(self, to_email: str, otp: str, expire_minutes: int) -> dict:
        """
        Mail a one-time reset code. Never raises: the caller decides what a
        failed delivery means, based on the returned ``success`` flag.
        """
        message = self.build_reset_message(to_email, otp, expire_minutes)
        try:
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.sender, self.app_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Reset code delivery to {to_email} failed: {e}")
            return {"success": False, "error": str(e), "to": to_email}

        logger.info(f"Reset code sent to {to_email}")
        return {"success": True, "message": f"Email sent to {to_email}", "to": to_email}


email_service = EmailService()


def get_email_service() -> EmailService:
    return email_service
