import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from cling.core.config import settings
from cling.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(
        self,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.smtp_server = smtp_server or settings.SMTP_SERVER
        self.smtp_port = int(smtp_port or settings.SMTP_PORT)
        self.smtp_username = smtp_username or settings.SMTP_USERNAME
        self.smtp_password = smtp_password or settings.SMTP_PASSWORD
        self.from_email = from_email or settings.FROM_EMAIL or self.smtp_username
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def send_otp_email(self, to_email: str, code: str, expiry_minutes: int) -> None:
        """
        Send a login code. Raises UpstreamError when delivery fails, except in
        development where the failure is logged and the send counts as done.
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = "Your login OTP"
        msg["From"] = self.from_email or ""
        msg["To"] = to_email

        msg.attach(MIMEText(self._create_otp_email_text(code, expiry_minutes), "plain"))
        msg.attach(MIMEText(self._create_otp_email_html(code, expiry_minutes), "html"))

        self._send_email(msg, to_email)

    def _create_otp_email_text(self, code: str, expiry_minutes: int) -> str:
        return (
            f"Your login code is {code}.\n\n"
            f"It expires in {expiry_minutes} minutes. "
            "If you did not request it, you can ignore this email.\n"
        )

    def _create_otp_email_html(self, code: str, expiry_minutes: int) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>Your login OTP</title>
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 480px; margin: 0 auto; padding: 20px;">
                <p>Your login code is:</p>
                <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px;">{code}</p>
                <p>It expires in {expiry_minutes} minutes.</p>
                <p style="color: #666; font-size: 12px;">If you did not request it, you can ignore this email.</p>
            </div>
        </body>
        </html>
        """

    def _send_email(self, msg: MIMEMultipart, to_email: str) -> None:
        if not (self.smtp_server and self.smtp_username and self.smtp_password):
            self._handle_failure(msg, to_email, "SMTP credentials not configured")
            return

        try:
            context = ssl.create_default_context()
            if self.smtp_port == 465:
                with smtplib.SMTP_SSL(
                    self.smtp_server, self.smtp_port, context=context, timeout=self.timeout
                ) as server:
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            self._handle_failure(msg, to_email, str(e))
            return

        logger.info(f"Email '{msg['Subject']}' sent to {to_email}")

    def _handle_failure(self, msg: MIMEMultipart, to_email: str, reason: str) -> None:
        if settings.is_development:
            logger.warning(f"[DEV] Email to {to_email} not delivered ({reason}); continuing")
            return
        logger.error(f"Failed to send email '{msg['Subject']}' to {to_email}: {reason}")
        raise UpstreamError("Failed to send OTP email", detail=reason)
