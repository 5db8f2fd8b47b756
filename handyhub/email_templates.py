"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Blue/Slate color scheme
THEME = {
    "primary": "#3b82f6",
    "primary_dark": "#2563eb",
    "primary_light": "#dbeafe",
    "accent": "#8b5cf6",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#10b981",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

LOGO_URL = f"{FRONTEND_URL}/handyhub-logo.png"

STATUS_MESSAGES = {
    "confirmed": "Your booking has been confirmed by the worker!",
    "in-progress": "Your service is now in progress.",
    "completed": "Your service has been completed successfully!",
    "cancelled": "Your booking has been cancelled.",
}

STATUS_COLORS = {
    "confirmed": THEME["success"],
    "in-progress": THEME["warning"],
    "completed": THEME["primary"],
    "cancelled": THEME["danger"],
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    header_color: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{header_color or THEME['primary']}" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="HandyHub" width="120px" href="{FRONTEND_URL}" padding="0 0 12px 0" />
            <mj-text align="center" font-size="26px" font-weight="700" color="#ffffff" padding="0">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="32px 40px 40px 40px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              Best regards,<br />The HandyHub Team
            </mj-text>
            <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
              You're receiving this because you have an account or booking with HandyHub.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _code_block(label: str, code: str, color: str) -> str:
    return f"""
    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" text-transform="uppercase" letter-spacing="1px" font-weight="600" padding="16px 0 8px 0">
      {label}
    </mj-text>
    <mj-text align="center" font-size="36px" font-weight="700" color="{color}" letter-spacing="8px" font-family="'Courier New', monospace" padding="0 0 16px 0">
      {code}
    </mj-text>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"""
        <tr>
          <td style="padding: 6px 0; color: {THEME['text_muted']}; width: 40%;">{label}</td>
          <td style="padding: 6px 0; color: {THEME['text_primary']}; font-weight: 600;">{value}</td>
        </tr>"""
        for label, value in rows
        if value
    )
    return f"""
    <mj-table padding="16px 0" font-size="15px">
      {cells}
    </mj-table>
    """


def _booking_rows(booking: dict) -> list[tuple[str, str]]:
    return [
        ("Booking Code", booking.get("booking_code", "")),
        ("Service", booking.get("service_name", "")),
        ("Date", booking.get("scheduled_date", "")),
        ("Time", f"{booking.get('start_time', '')} - {booking.get('end_time', '')}"),
        ("Location", booking.get("address", "")),
        ("Total", f"${booking.get('total_amount', 0):.2f}" if booking.get("total_amount") is not None else ""),
    ]


def email_verification_template(user_name: str, otp: str) -> str:
    """Email verification OTP MJML template"""
    content = f"""
    <mj-text>Hi {user_name},</mj-text>
    <mj-text>
      Thank you for signing up with HandyHub. Please use the following verification code to
      confirm your email address. This code will expire in 10 minutes.
    </mj-text>
    {_code_block("Verification Code", otp, THEME['primary'])}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't create an account, you can safely ignore this email.
    </mj-text>
    """
    return get_base_template("Verify Your Email", f"Your verification code is {otp}", content)


def welcome_email_template(user_name: str) -> str:
    """Welcome email MJML template"""
    content = f"""
    <mj-text>Hi {user_name},</mj-text>
    <mj-text>Your email has been verified and your HandyHub account is ready.</mj-text>
    <mj-text>
      <strong>What you can do now:</strong><br />
      • Browse and book trusted household services<br />
      • Track your bookings and leave reviews<br />
      • Apply to become a HandyHub worker
    </mj-text>
    """
    return get_base_template(
        "Welcome to HandyHub!",
        "Your account is ready",
        content,
        cta_url=f"{FRONTEND_URL}/services",
        cta_label="Explore Services",
    )


def password_reset_template(user_name: str, otp: str) -> str:
    """Password reset OTP MJML template"""
    content = f"""
    <mj-text>Hi {user_name},</mj-text>
    <mj-text>
      We received a request to reset your password. Use the code below to set a new one.
      This code will expire in 10 minutes.
    </mj-text>
    {_code_block("Reset Code", otp, THEME['danger'])}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request a password reset, you can safely ignore this email.
    </mj-text>
    """
    return get_base_template(
        "Password Reset", f"Your password reset code is {otp}", content, header_color=THEME["danger"]
    )


def password_changed_template(user_name: str) -> str:
    """Password changed confirmation MJML template"""
    content = f"""
    <mj-text>Hi {user_name},</mj-text>
    <mj-text>Your HandyHub password was changed successfully.</mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you did not make this change, please reset your password immediately and contact support.
    </mj-text>
    """
    return get_base_template(
        "Password Changed", "Your password was changed", content, header_color=THEME["success"]
    )


def booking_confirmation_template(customer_name: str, booking: dict) -> str:
    """Booking confirmation sent to the customer"""
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>
      Your booking has been received. Your worker <strong>{booking.get('worker_name', '')}</strong>
      will confirm it shortly.
    </mj-text>
    {_detail_rows(_booking_rows(booking))}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Keep your booking code handy. You can use it with your email to look up this booking at any time.
    </mj-text>
    """
    return get_base_template(
        "Booking Received!",
        f"Booking {booking.get('booking_code', '')} for {booking.get('service_name', '')}",
        content,
        cta_url=f"{FRONTEND_URL}/bookings/lookup",
        cta_label="View Booking",
    )


def booking_notification_template(worker_name: str, booking: dict) -> str:
    """New booking request sent to the worker"""
    content = f"""
    <mj-text>Hi {worker_name},</mj-text>
    <mj-text>
      You have a new booking request from <strong>{booking.get('customer_name', '')}</strong>.
      Please review and confirm it from your dashboard.
    </mj-text>
    {_detail_rows(_booking_rows(booking) + [("Customer Phone", booking.get("customer_phone", "")), ("Notes", booking.get("notes", ""))])}
    """
    return get_base_template(
        "New Booking Request!",
        f"New booking for {booking.get('service_name', '')}",
        content,
        cta_url=f"{FRONTEND_URL}/worker/dashboard",
        cta_label="Open Dashboard",
        header_color=THEME["accent"],
    )


def booking_status_update_template(customer_name: str, booking: dict, status: str) -> str:
    """Booking status change sent to the customer"""
    message = STATUS_MESSAGES.get(status, f"Your booking status is now {status}.")
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>{message}</mj-text>
    {_detail_rows([("Booking Code", booking.get("booking_code", "")), ("Service", booking.get("service_name", "")), ("Date", booking.get("scheduled_date", ""))])}
    """
    cta_url = cta_label = None
    if status == "completed":
        cta_url = f"{FRONTEND_URL}/bookings/{booking.get('id', '')}/review"
        cta_label = "Rate Your Experience"
    return get_base_template(
        "Booking Update",
        message,
        content,
        cta_url=cta_url,
        cta_label=cta_label,
        header_color=STATUS_COLORS.get(status),
    )


def worker_application_received_template(applicant_name: str) -> str:
    """Application submission acknowledgement"""
    content = f"""
    <mj-text>Hi {applicant_name},</mj-text>
    <mj-text>
      Thank you for applying to join HandyHub as a service professional. Our team will review your
      application and documents, which usually takes 2-3 business days.
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      We'll email you as soon as a decision has been made.
    </mj-text>
    """
    return get_base_template("Application Received", "We're reviewing your application", content)


def worker_approved_template(applicant_name: str) -> str:
    """Worker application approval"""
    content = f"""
    <mj-text>Hi {applicant_name},</mj-text>
    <mj-text>
      Congratulations! Your HandyHub worker application has been approved. Customers can now find
      and book you for the services you offer.
    </mj-text>
    """
    return get_base_template(
        "Application Approved!",
        "You're now a HandyHub worker",
        content,
        cta_url=f"{FRONTEND_URL}/worker/dashboard",
        cta_label="Go to Dashboard",
        header_color=THEME["success"],
    )


def worker_rejected_template(applicant_name: str, reason: Optional[str] = None) -> str:
    """Worker application rejection"""
    reason_block = ""
    if reason:
        reason_block = f"""
        <mj-text><strong>Reason:</strong> {reason}</mj-text>
        """
    content = f"""
    <mj-text>Hi {applicant_name},</mj-text>
    <mj-text>
      Thank you for your interest in HandyHub. Unfortunately we are unable to approve your
      application at this time.
    </mj-text>
    {reason_block}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      You can update your application and submit it again from your account.
    </mj-text>
    """
    return get_base_template(
        "Application Update",
        "An update on your HandyHub application",
        content,
        cta_url=f"{FRONTEND_URL}/worker/apply",
        cta_label="Update Application",
        header_color=THEME["danger"],
    )
