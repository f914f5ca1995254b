"""
MJML Email Templates
Branded wrappers for verification, password reset and the templated
appointment emails stored in the email_templates table.
"""

from typing import Optional

from .config import CLINIC_NAME

# App theme colors - Clinic blue
THEME = {
    "primary": "#0066cc",
    "primary_light": "#e0f2ff",
    "background": "#f8fafc",
    "text_primary": "#1f2937",
    "text_secondary": "#4b5563",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
}


def _head(title: str, preview_text: str) -> str:
    return f"""
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="15px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
    """


def _header() -> str:
    return f"""
        <mj-section background-color="{THEME['primary']}" padding="32px 20px" border-radius="12px 12px 0 0">
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="#ffffff" padding="0">
              {CLINIC_NAME}
            </mj-text>
            <mj-text align="center" font-size="14px" color="{THEME['primary_light']}" padding="8px 0 0 0">
              Clinic Appointment System
            </mj-text>
          </mj-column>
        </mj-section>
    """


def _footer() -> str:
    return f"""
        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              You're receiving this because you have an account with {CLINIC_NAME}.
            </mj-text>
          </mj-column>
        </mj-section>
    """


def get_base_template(
    title: str,
    preview_text: str,
    content_html: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 30px 30px 30px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="16px 36px"
              font-size="15px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      {_head(title, preview_text)}
      <mj-body background-color="{THEME['background']}">
        {_header()}
        <mj-section background-color="#ffffff" padding="40px 30px 24px 30px">
          <mj-column>
            <mj-text font-size="20px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            <mj-text>
              {content_html}
            </mj-text>
          </mj-column>
        </mj-section>
        {cta_section}
        {_footer()}
      </mj-body>
    </mjml>
    """


def verification_code_template(code: str, ttl_minutes: int) -> str:
    """Verification code MJML template"""
    return f"""
    <mjml>
      {_head("Verify Your Email Address", f"Your verification code is {code}")}
      <mj-body background-color="{THEME['background']}">
        {_header()}
        <mj-section background-color="#ffffff" padding="40px 30px 20px 30px">
          <mj-column>
            <mj-text font-size="20px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              Verify Your Email Address
            </mj-text>
            <mj-text>
              Use the following code to finish creating your account. This code expires in {ttl_minutes} minutes.
            </mj-text>
          </mj-column>
        </mj-section>
        <mj-section background-color="{THEME['primary_light']}" padding="28px 20px">
          <mj-column>
            <mj-text align="center" font-size="36px" font-weight="700" color="{THEME['primary']}" letter-spacing="8px" font-family="'Courier New', monospace" padding="0">
              {code}
            </mj-text>
          </mj-column>
        </mj-section>
        <mj-section background-color="#ffffff" padding="20px 30px 40px 30px">
          <mj-column>
            <mj-text color="{THEME['text_muted']}" font-size="14px" padding="0">
              If you didn't request this code, you can safely ignore this email.
            </mj-text>
          </mj-column>
        </mj-section>
        {_footer()}
      </mj-body>
    </mjml>
    """


def password_reset_template(reset_link: str) -> str:
    content = """
      We received a request to reset the password for your account.
      The link below expires in 1 hour. If you didn't ask for a reset, ignore this email.
    """
    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your password",
        content_html=content,
        cta_url=reset_link,
        cta_label="Reset Password",
    )


# Rows seeded into the email_templates table. Placeholders use {{name}} syntax
# and are filled by the notification dispatcher.
DEFAULT_EMAIL_TEMPLATES = [
    {
        "template_name": "appointment_requested",
        "subject": "Appointment request received - {{appointment_date}}",
        "body": (
            "<p>Hi {{full_name}},</p>"
            "<p>We received your request to see Dr. {{doctor_name}} ({{specialization}}) "
            "on {{appointment_date}} at {{appointment_time}}.</p>"
            "<p>Reason: {{appointment_reason}}</p>"
            "<p>You will get another email once the clinic reviews it.</p>"
        ),
    },
    {
        "template_name": "appointment_approved",
        "subject": "Your appointment on {{appointment_date}} is confirmed",
        "body": (
            "<p>Hi {{full_name}},</p>"
            "<p>Your appointment with Dr. {{doctor_name}} ({{specialization}}) "
            "on {{appointment_date}} at {{appointment_time}} has been approved.</p>"
            "<p>Reason: {{appointment_reason}}</p>"
            "<p>{{notes}}</p>"
        ),
    },
    {
        "template_name": "appointment_cancelled",
        "subject": "Your appointment on {{appointment_date}} was cancelled",
        "body": (
            "<p>Hi {{full_name}},</p>"
            "<p>Unfortunately your appointment with Dr. {{doctor_name}} "
            "on {{appointment_date}} at {{appointment_time}} could not be confirmed.</p>"
            "<p>{{notes}}</p>"
            "<p>Please book another time slot.</p>"
        ),
    },
    {
        "template_name": "appointment_completed",
        "subject": "Thank you for visiting - {{appointment_date}}",
        "body": (
            "<p>Hi {{full_name}},</p>"
            "<p>Your visit with Dr. {{doctor_name}} on {{appointment_date}} is complete.</p>"
            "<p>{{notes}}</p>"
        ),
    },
]
