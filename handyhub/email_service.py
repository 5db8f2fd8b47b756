"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import asyncio
import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    booking_confirmation_template,
    booking_notification_template,
    booking_status_update_template,
    email_verification_template,
    password_changed_template,
    password_reset_template,
    welcome_email_template,
    worker_application_received_template,
    worker_approved_template,
    worker_rejected_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    """Raised when no delivery provider is configured"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        # The Resend SDK is blocking; keep it off the event loop so callers can time it out
        response = await asyncio.to_thread(resend.Emails.send, email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Email Templates for Common Events
# ============================================


async def send_email_verification_otp(to: str, user_name: str, otp: str) -> dict:
    """Send OTP for email verification"""
    return await send_email(
        to=to,
        subject="Verify Your Email - HandyHub",
        mjml_content=email_verification_template(user_name, otp),
    )


async def send_welcome_email(to: str, user_name: str) -> dict:
    """Send welcome email to newly verified users"""
    return await send_email(
        to=to,
        subject="Welcome to HandyHub - Your Account is Ready!",
        mjml_content=welcome_email_template(user_name),
    )


async def send_password_reset_otp(to: str, user_name: str, otp: str) -> dict:
    return await send_email(
        to=to,
        subject="Reset Your Password - HandyHub",
        mjml_content=password_reset_template(user_name, otp),
    )


async def send_password_changed_email(to: str, user_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Password Changed Successfully - HandyHub",
        mjml_content=password_changed_template(user_name),
    )


async def send_booking_confirmation(to: str, customer_name: str, booking: dict) -> dict:
    """Confirm a new booking to the customer (registered or guest)"""
    return await send_email(
        to=to,
        subject=f"Booking Confirmation - {booking.get('service_name', '')}",
        mjml_content=booking_confirmation_template(customer_name, booking),
    )


async def send_booking_notification(to: str, worker_name: str, booking: dict) -> dict:
    """Notify the assigned worker of a new booking request"""
    return await send_email(
        to=to,
        subject=f"New Booking Request - {booking.get('service_name', '')}",
        mjml_content=booking_notification_template(worker_name, booking),
    )


async def send_booking_status_update(to: str, customer_name: str, booking: dict, status: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Booking Update - {booking.get('service_name', '')}",
        mjml_content=booking_status_update_template(customer_name, booking, status),
    )


async def send_worker_application_received(to: str, applicant_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Application Received - HandyHub",
        mjml_content=worker_application_received_template(applicant_name),
    )


async def send_worker_approved(to: str, applicant_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Your Worker Application Has Been Approved - HandyHub",
        mjml_content=worker_approved_template(applicant_name),
    )


async def send_worker_rejected(to: str, applicant_name: str, reason: Optional[str] = None) -> dict:
    return await send_email(
        to=to,
        subject="Update on Your Worker Application - HandyHub",
        mjml_content=worker_rejected_template(applicant_name, reason),
    )
