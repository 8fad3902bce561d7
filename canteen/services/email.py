import logging
import smtplib

from flask_mail import Message

from canteen import mail
from canteen.errors import UpstreamFailure

logger = logging.getLogger(__name__)


def send_email(subject, recipients, text_body, html_body=None, sender=None):
    """Send an email through Flask-Mail; transport errors become UpstreamFailure."""
    msg = Message(subject, sender=sender, recipients=recipients)
    msg.body = text_body
    if html_body:
        msg.html = html_body
    try:
        mail.send(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email to {recipients} failed: {e}")
        raise UpstreamFailure("Email service unavailable.", reason=str(e)) from e
    logger.info(f"Email sent to {recipients}: {subject}")


def send_verification_email(email, code, expiry_minutes, brand):
    text_body = (
        f"Your {brand} verification code is: {code}. "
        f"This code will expire in {expiry_minutes} minutes."
    )
    html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #333;">{brand}</h2>
          <p>Your verification code is:</p>
          <h1 style="color: #4CAF50; font-size: 32px; letter-spacing: 5px;">{code}</h1>
          <p>This code will expire in {expiry_minutes} minutes.</p>
          <p>If you didn't request this code, please ignore this email.</p>
        </div>
    """
    send_email(
        subject=f"{brand} - Email Verification",
        recipients=[email],
        text_body=text_body,
        html_body=html_body,
    )
