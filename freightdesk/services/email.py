"""
Outbound email over SMTP.

Sending runs in a worker thread with a bounded socket timeout so a slow
mail server never stalls the event loop. Any transport failure surfaces
as ``DeliveryError``; callers decide whether that is fatal.
"""

from __future__ import annotations

import asyncio
import html as html_lib
import logging
import smtplib
from email.message import EmailMessage

from freightdesk.core.config import settings
from freightdesk.core.exceptions import DeliveryError

logger = logging.getLogger(__name__)

_LAYOUT = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="background: #facc15; padding: 20px; text-align: center;">{brand}</h1>
    {body}
    <p>Best regards,<br>{brand} Team</p>
  </div>
</body>
</html>
"""


def _build_message(to: str, subject: str, html: str, text: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f'"{settings.MAIL_FROM_NAME}" <{settings.SMTP_USER or settings.MAIL_FROM_ADDRESS}>'
    msg["To"] = to
    msg.set_content(text)
    brand = html_lib.escape(settings.MAIL_FROM_NAME)
    msg.add_alternative(_LAYOUT.format(brand=brand, body=html), subtype="html")
    return msg


def _send_sync(msg: EmailMessage) -> None:
    with smtplib.SMTP(
        settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
    ) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


async def send_email(to: str, subject: str, html: str, text: str) -> None:
    msg = _build_message(to, subject, html, text)
    try:
        await asyncio.to_thread(_send_sync, msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Email to %s failed: %s", to, exc)
        raise DeliveryError(f"Email delivery failed: {exc}") from exc
    logger.info("Email '%s' sent to %s", subject, to)


async def send_password_reset_otp(email: str, otp: str, name: str) -> None:
    minutes = settings.OTP_EXPIRE_MINUTES
    html = (
        f"<h2>Password Reset Request</h2><p>Hi {html_lib.escape(name)},</p>"
        "<p>Use the code below to reset your password:</p>"
        f'<p style="font-size: 32px; font-weight: bold; letter-spacing: 5px;">{otp}</p>'
        f"<p><strong>This code expires in {minutes} minutes.</strong></p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )
    text = f"Hi {name},\n\nYour password reset code is {otp}. It expires in {minutes} minutes."
    await send_email(email, f"Password Reset OTP - {settings.MAIL_FROM_NAME}", html, text)


async def send_driver_invitation(email: str, name: str, setup_token: str) -> None:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/setup-password?token={setup_token}"
    hours = settings.SETUP_TOKEN_EXPIRE_HOURS
    brand = html_lib.escape(settings.MAIL_FROM_NAME)
    html = (
        f"<h2>Welcome aboard, {html_lib.escape(name)}!</h2>"
        f"<p>Your manager has created a driver account for you on {brand}.</p>"
        f'<p><a href="{html_lib.escape(link)}">Set your password</a></p>'
        f"<p>This link expires in {hours} hours.</p>"
    )
    text = f"Hi {name},\n\nSet your password here: {link}\nThe link expires in {hours} hours."
    await send_email(email, f"You're invited to {settings.MAIL_FROM_NAME}", html, text)
