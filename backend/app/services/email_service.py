"""Email service for the signup welcome email."""

import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import structlog

from app.core.config import settings

logger = structlog.get_logger()

SIGNUP_EMAIL_SUBJECT = "Welcome to Chat App!"


def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: Optional[str] = None,
) -> bool:
    """
    Send an email using SMTP.

    Args:
        to_email: Recipient email address
        subject: Email subject
        html_content: HTML content of the email
        text_content: Plain text fallback content

    Returns:
        True if email sent successfully, False otherwise
    """
    if not settings.SMTP_HOST or not settings.EMAILS_FROM_EMAIL:
        logger.warning(
            "email.not_configured",
            reason="SMTP not configured, email not sent",
        )
        return False

    msg = MIMEMultipart("alternative")
    msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
    msg["To"] = to_email
    msg["Subject"] = subject

    if text_content:
        msg.attach(MIMEText(text_content, "plain"))
    msg.attach(MIMEText(html_content, "html"))

    context = ssl.create_default_context()

    try:
        # Port 465 is implicit TLS, anything else upgrades with STARTTLS
        if settings.SMTP_PORT == 465:
            with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, context=context, timeout=30) as server:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())
        else:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
                server.starttls(context=context)
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(
            "email.send_failed",
            subject=subject,
            error=str(e),
        )
        return False

    logger.info("email.sent", subject=subject)
    return True


def get_signup_email_html(full_name: str, app_url: str) -> str:
    """
    Get HTML template for the signup welcome email.

    Args:
        full_name: User's full name
        app_url: Link back to the chat frontend

    Returns:
        HTML email content
    """
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Welcome to Chat App</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f8f9fa;">
    <table width="100%" border="0" cellspacing="0" cellpadding="0" style="background-color: #f8f9fa;">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table width="600" border="0" cellspacing="0" cellpadding="0" style="background-color: #ffffff; border-radius: 12px; box-shadow: 0 4px 6px rgba(0,0,0,0.1);">
                    <tr>
                        <td style="padding: 40px 30px; text-align: center; background-color: #667eea; border-radius: 12px 12px 0 0;">
                            <h1 style="margin: 0; color: #ffffff; font-size: 28px; font-weight: 300;">
                                Welcome to Chat App
                            </h1>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 40px 30px;">
                            <p style="margin: 0 0 20px; color: #2c3e50; font-size: 18px;">
                                Hi {full_name},
                            </p>
                            <p style="margin: 0 0 15px; color: #374151; font-size: 16px; line-height: 1.6;">
                                Your account is ready. Jump back in and start chatting:
                            </p>
                            <table width="100%" border="0" cellspacing="0" cellpadding="0" style="margin: 30px 0;">
                                <tr>
                                    <td align="center">
                                        <a href="{app_url}" style="display: inline-block; padding: 15px 30px; background-color: #667eea; color: #ffffff; text-decoration: none; border-radius: 8px; font-size: 16px; font-weight: 600;">
                                            Open Chat App
                                        </a>
                                    </td>
                                </tr>
                            </table>
                            <p style="margin: 20px 0 0; color: #6b7280; font-size: 14px; line-height: 1.6;">
                                If you didn't create this account, you can ignore this email.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""


def get_signup_email_text(full_name: str, app_url: str) -> str:
    return f"""
Hi {full_name},

Your Chat App account is ready. Jump back in and start chatting:

{app_url}

If you didn't create this account, you can ignore this email.
"""


def send_signup_email(email: str, full_name: str) -> bool:
    """
    Send the welcome email after signup.

    Args:
        email: User email address
        full_name: User's full name

    Returns:
        True if email sent successfully, False otherwise
    """
    app_url = settings.FRONTEND_URL

    return send_email(
        to_email=email,
        subject=SIGNUP_EMAIL_SUBJECT,
        html_content=get_signup_email_html(full_name, app_url),
        text_content=get_signup_email_text(full_name, app_url),
    )
