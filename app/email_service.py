"""
Email Service using Resend
Compiles MJML templates to HTML. Without RESEND_API_KEY (development) the
message is logged instead of sent.
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY, VERIFICATION_CODE_TTL_MINUTES
from .email_templates import password_reset_template, verification_code_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        if hasattr(result, "html"):
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return result.html
        # If it returns a string directly (older versions)
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
    Send an email through Resend, or log it when no provider is configured

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.warning(
            f"[DEVELOPMENT MODE] Email not sent (RESEND_API_KEY missing) - "
            f"from: {sender}, to: {recipients}, subject: {subject}"
        )
        return {"id": None, "success": True, "delivered": False}

    html_content = compile_mjml_to_html(mjml_content)

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_verification_code_email(to: str, code: str) -> dict:
    """Send the sign-up verification code"""
    if not RESEND_API_KEY:
        logger.warning(
            f"[DEVELOPMENT MODE] Verification code for {to}: {code} "
            f"(expires in {VERIFICATION_CODE_TTL_MINUTES} minutes)"
        )
    return await send_email(
        to=to,
        subject="Your Verification Code",
        mjml_content=verification_code_template(code, VERIFICATION_CODE_TTL_MINUTES),
    )


async def send_password_reset_email(to: str, reset_link: str) -> dict:
    return await send_email(
        to=to,
        subject="Reset Your Password",
        mjml_content=password_reset_template(reset_link),
    )
