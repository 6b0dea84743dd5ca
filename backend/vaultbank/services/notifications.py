"""Email notifications."""
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from vaultbank.config import get_settings
from vaultbank.models.user import User

logger = logging.getLogger(__name__)


def send_email_notification(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """Send an email using the SMTP_* settings.

    Returns False when SMTP is not configured or delivery fails.
    """
    settings = get_settings()
    if not settings.smtp_host:
        logger.info("SMTP not configured, skipping email")
        return False

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email

    # Plain text fallback
    plain_text = html_content.replace("<br>", "\n").replace("</p>", "\n\n")
    plain_text = re.sub(r"<[^>]+>", "", plain_text)

    msg.attach(MIMEText(plain_text, "plain"))
    msg.attach(MIMEText(html_content, "html"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def generate_reset_email_html(user: User, reset_url: str, ttl_minutes: int) -> str:
    return f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #1e40af;">Reset your password</h1>
        <p>Hi {user.first_name},</p>
        <p>We received a request to reset your VaultBank password.</p>
        <p style="margin: 24px 0;">
            <a href="{reset_url}" style="background: #1e40af; color: #ffffff; padding: 12px 20px; border-radius: 6px; text-decoration: none;">Reset password</a>
        </p>
        <p>This link expires in {ttl_minutes} minutes. If you did not ask for a reset, you can ignore this email.</p>
    </body>
    </html>
    """


def send_password_reset_email(user: User, token: str) -> bool:
    settings = get_settings()
    reset_url = f"{settings.frontend_url}/reset-password?token={token}"
    html = generate_reset_email_html(user, reset_url, settings.reset_token_ttl_minutes)
    return send_email_notification(user.email, "VaultBank password reset", html)
