"""
Email Notifications using Resend

Sends verification codes to mosque contacts and status updates to admins.
Every function returns True on success and False on failure; a failed email
never affects the lifecycle transition that triggered it.
"""

import asyncio
import logging
import os
from datetime import datetime
from html import escape

import resend

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = os.getenv("RESEND_API_KEY")

# Configurations
EMAIL_FROM = os.getenv("EMAIL_FROM", "Mosque Registry <noreply@mosque-registry.dev>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #14532d; margin-bottom: 24px; }
    .code { font-family: monospace; font-size: 24px; letter-spacing: 4px; background-color: #f3f4f6; padding: 16px; border-radius: 8px; text-align: center; }
    .info-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""

STATUS_MESSAGES = {
    "approved": "Your admin application has been approved. You can now manage the mosque.",
    "rejected": "Your admin application has been rejected.",
    "admin_removed": "You have been removed as admin of this mosque.",
    "mosque_deleted": "The mosque you were registered with has been deleted.",
    "code_regenerated": (
        "The mosque's verification code has been regenerated. Enter the new code "
        "after logging in to restore your access."
    ),
    "reapplication_allowed": "You have been allowed to submit a new application.",
}


def _render(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><style>{_STYLE}</style></head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>Mosque Registry</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_mosque_code(
    to_email: str,
    mosque_name: str,
    code: str,
    expires_at: datetime,
    reason: str,
) -> bool:
    """Send a newly issued or rotated verification code to the mosque contact."""
    safe_mosque_name = escape(mosque_name)
    safe_reason = escape(reason)

    body = f"""
        <p>A verification code has been issued for <strong>{safe_mosque_name}</strong>.</p>
        <p>Reason: {safe_reason}</p>
        <p class="code">{escape(code)}</p>
        <p><strong>This code expires on {expires_at.strftime("%Y-%m-%d %H:%M UTC")}.</strong></p>
        <div class="info-box">
            <p>Share this code only with the person who should register as the mosque's admin.
            Any previous code no longer works.</p>
        </div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Verification code for {safe_mosque_name}",
        html_content=_render("Mosque Verification Code", body),
    )


async def send_application_received(
    to_email: str,
    admin_name: str,
    mosque_name: str,
) -> bool:
    """Confirm to an applicant that their application is awaiting review."""
    safe_admin_name = escape(admin_name)
    safe_mosque_name = escape(mosque_name)

    body = f"""
        <p>Assalamu alaikum {safe_admin_name},</p>
        <p>Your application to become the admin of <strong>{safe_mosque_name}</strong>
        has been received and is waiting for review.</p>
        <p>You can check its status at any time by logging in at
        <a href="{FRONTEND_URL}/admin/login">{FRONTEND_URL}/admin/login</a>.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application received for {safe_mosque_name}",
        html_content=_render("Application Received", body),
    )


async def send_admin_status_update(
    to_email: str,
    admin_name: str,
    mosque_name: str | None,
    status: str,
    reason: str | None = None,
) -> bool:
    """Tell an admin their status changed."""
    safe_admin_name = escape(admin_name)
    safe_mosque_name = escape(mosque_name or "your mosque")
    message = STATUS_MESSAGES.get(status, f"Your status is now {status}.")
    reason_html = f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""

    body = f"""
        <p>Assalamu alaikum {safe_admin_name},</p>
        <p><strong>{safe_mosque_name}</strong>: {escape(message)}</p>
        {reason_html}
        <p>Log in at <a href="{FRONTEND_URL}/admin/login">{FRONTEND_URL}/admin/login</a>
        for details.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Update on your admin account for {safe_mosque_name}",
        html_content=_render("Account Status Update", body),
    )
