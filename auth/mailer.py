"""
auth/mailer.py -- Outbound email for welcome, verification and reset messages.

SMTP via the standard library smtplib: one short-lived connection per message
with STARTTLS and login when credentials are configured. The transport
timeout comes from Settings.smtp_timeout_seconds so a dead relay cannot hang
a request.

Any transport failure is raised as MailDeliveryError. The service decides
what a failure means: swallowed for the welcome mail, surfaced as
DELIVERY_FAILED for OTP mails.

An empty SMTP_HOST disables delivery; every send then raises
MailDeliveryError so OTP flows report the failure instead of pretending.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from auth.errors import MailDeliveryError
from core.config import Settings

logger = logging.getLogger("authapi.mail")

WELCOME_SUBJECT = "Welcome to the Auth App"
VERIFY_SUBJECT = "Account Verification OTP"
RESET_SUBJECT = "Password Reset OTP"

WELCOME_TEXT = "Welcome! Your account has been created with email id: {email}"

EMAIL_VERIFY_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background: #f4f4f7; padding: 24px;">
    <div style="max-width: 480px; margin: 0 auto; background: #ffffff; padding: 24px; border-radius: 8px;">
      <h2 style="margin-top: 0;">Verify your email</h2>
      <p>You are just one step away from verifying your account for this email: <b>{{email}}</b>.</p>
      <p>Use the OTP below to verify your account.</p>
      <p style="font-size: 24px; font-weight: bold; letter-spacing: 4px;">{{otp}}</p>
      <p>This OTP is valid for 24 hours.</p>
    </div>
  </body>
</html>
"""

PASSWORD_RESET_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background: #f4f4f7; padding: 24px;">
    <div style="max-width: 480px; margin: 0 auto; background: #ffffff; padding: 24px; border-radius: 8px;">
      <h2 style="margin-top: 0;">Forgot your password?</h2>
      <p>We received a password reset request for your account: <b>{{email}}</b>.</p>
      <p>Use the OTP below to reset the password.</p>
      <p style="font-size: 24px; font-weight: bold; letter-spacing: 4px;">{{otp}}</p>
      <p>The password reset OTP is only valid for the next 15 minutes.</p>
    </div>
  </body>
</html>
"""


def render_template(template: str, email: str, otp: str) -> str:
    return template.replace("{{otp}}", otp).replace("{{email}}", email)


class Mailer:
    """SMTP client bound to the sender identity in Settings."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.starttls = settings.smtp_starttls
        self.timeout = settings.smtp_timeout_seconds
        self.sender = settings.sender_email or settings.smtp_user

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def send_welcome(self, to_email: str) -> None:
        self.send(to_email, WELCOME_SUBJECT, text=WELCOME_TEXT.format(email=to_email))

    def send_verify_otp(self, to_email: str, otp: str) -> None:
        self.send(to_email, VERIFY_SUBJECT, html=render_template(EMAIL_VERIFY_TEMPLATE, to_email, otp))

    def send_reset_otp(self, to_email: str, otp: str) -> None:
        self.send(to_email, RESET_SUBJECT, html=render_template(PASSWORD_RESET_TEMPLATE, to_email, otp))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def send(self, to_email: str, subject: str, text: str | None = None, html: str | None = None) -> None:
        """Deliver one message. Raises MailDeliveryError on any transport failure."""
        if not self.enabled:
            raise MailDeliveryError("mail transport not configured")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        if html is not None:
            msg.set_content("This message requires an HTML-capable mail client.")
            msg.add_alternative(html, subtype="html")
        else:
            msg.set_content(text or "")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"{type(exc).__name__}: {exc}") from exc
        logger.info("Sent %r mail to %s", subject, to_email)
