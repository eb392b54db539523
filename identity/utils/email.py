import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from identity.core.config import settings
from identity.utils.errors import TransientError

logger = logging.getLogger(__name__)

FOOTER = """
            <hr>
            <p style="color: #666; font-size: 12px;">This is an automated email, please do not reply.</p>
"""

async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    if not settings.SMTP_HOST:
        logger.warning(f"SMTP is not configured, skipping '{subject}' for {to_email}")
        return False

    message = MIMEMultipart()
    message["From"] = settings.EMAIL_FROM
    message["To"] = to_email
    message["Subject"] = subject

    message.attach(MIMEText(html_content, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT) as server:
            server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAIL_FROM, to_email, message.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending email to {to_email}: {e}")
        raise TransientError("notification delivery failed")

    return True


def _code_block(code: str) -> str:
    return f"""
            <div style="background-color: #f4f4f4; padding: 10px; text-align: center; font-size: 24px; margin: 20px 0;">
                <strong>{code}</strong>
            </div>
    """


class EmailNotifier:
    """Send triggers used by the identity engine. Content lives here, not in the engine."""

    def __init__(self, app_name: Optional[str] = None):
        self.app_name = app_name or settings.APP_DISPLAY_NAME

    async def send_confirmation(self, user, code: str) -> bool:
        html_content = f"""
        <html>
        <body>
        <div style="font-family: Arial, sans-serif; padding: 20px;">
            <h2>Welcome {user.full_name}!</h2>
            <p>Thanks for signing up. To finish your registration, enter the following code:</p>
            {_code_block(code)}
            <p>If you did not create this account, you can ignore this email.</p>
            {FOOTER}
        </div>
        </body>
        </html>
        """
        return await send_email(user.email, f"Welcome to {self.app_name}! Confirm your email", html_content)

    async def send_password_reset(self, user, code: str) -> bool:
        html_content = f"""
        <html>
        <body>
        <div style="font-family: Arial, sans-serif; padding: 20px;">
            <h2>Hello {user.full_name}!</h2>
            <p>We received a request to reset your password.</p>
            <p>Your recovery code is:</p>
            {_code_block(code)}
            <p>If you did not request this, ignore this email.</p>
            {FOOTER}
        </div>
        </body>
        </html>
        """
        return await send_email(user.email, f"Password recovery - {self.app_name}", html_content)

    async def send_oauth_welcome(self, user) -> bool:
        html_content = f"""
        <html>
        <body>
        <div style="font-family: Arial, sans-serif; padding: 20px;">
            <h2>Welcome to {self.app_name}, {user.full_name}!</h2>
            <p>Your account was created through Google.</p>
            <p>You can sign in with your Google email: {user.email}</p>
            <div style="margin: 20px 0;">
                <p>A few next steps:</p>
                <ul>
                    <li>Complete your profile with your tax ID and phone number</li>
                    <li>Explore our services</li>
                </ul>
            </div>
            {FOOTER}
        </div>
        </body>
        </html>
        """
        return await send_email(user.email, f"Welcome to {self.app_name}!", html_content)


async def dispatch_notification(send, *args, log: Optional[logging.Logger] = None) -> bool:
    """
    Run a notifier send trigger after the state change it reports has been
    persisted. Failures are logged and reported as False; they never undo
    the write.
    """
    log = log or logger
    name = getattr(send, "__name__", send)
    try:
        return bool(await send(*args))
    except TransientError as e:
        log.error(f"Notification {name} failed: {e.message}")
        return False
    except Exception:
        log.exception(f"Notification {name} raised unexpectedly")
        return False
