"""Notification service - render stored email templates and deliver them"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from ...config import EMAIL_FROM_ADDRESS
from ...email_service import send_email
from ...email_templates import get_base_template
from ...errors import NotFoundError
from ...models import EmailTemplate
from ...utils.sanitization import sanitize_string, sanitize_variables

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@dataclass
class RenderedEmail:
    template_name: str
    sender: str
    recipient: str
    subject: str
    body_html: str


def fill_placeholders(text: str, variables: dict[str, str]) -> str:
    """Replace every {{name}} occurrence; unknown placeholders become empty"""
    return PLACEHOLDER_PATTERN.sub(lambda m: variables.get(m.group(1), ""), text)


def format_sender(template: EmailTemplate) -> str:
    if template.sender_email:
        return f"{template.sender_name or template.sender_email} <{template.sender_email}>"
    return EMAIL_FROM_ADDRESS


def render_email(
    db: Session,
    template_name: str,
    recipient_email: str,
    variables: Optional[dict[str, Any]] = None,
) -> RenderedEmail:
    """
    Look up a template by name and substitute the variables.

    The subject receives the raw values; the HTML body receives escaped values.

    Raises:
        NotFoundError: No template with this name exists
    """
    template = db.query(EmailTemplate).filter(EmailTemplate.template_name == template_name).first()
    if not template:
        raise NotFoundError("Email template not found")

    raw = {str(k): "" if v is None else str(v) for k, v in (variables or {}).items()}
    escaped = sanitize_variables(variables)

    return RenderedEmail(
        template_name=template_name,
        sender=format_sender(template),
        recipient=recipient_email,
        subject=fill_placeholders(template.subject, raw),
        body_html=fill_placeholders(template.body, escaped),
    )


async def deliver_templated_email(
    template_name: str,
    recipient_email: str,
    variables: Optional[dict[str, Any]] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> Optional[dict]:
    """
    Render and send one templated email.

    Best-effort: every failure is logged and swallowed, the caller's primary
    result never depends on it.
    """
    if session_factory is None:
        from ...database import SessionLocal

        session_factory = SessionLocal

    db = session_factory()
    try:
        rendered = render_email(db, template_name, recipient_email, variables)
        mjml_content = get_base_template(
            title=sanitize_string(rendered.subject),
            preview_text=sanitize_string(rendered.subject),
            content_html=rendered.body_html,
        )
        response = await send_email(
            to=rendered.recipient,
            subject=rendered.subject,
            mjml_content=mjml_content,
            from_address=rendered.sender,
        )
        logger.info(f"✅ {template_name} email delivered to {recipient_email}")
        return response
    except Exception as e:
        logger.error(f"❌ Failed to deliver {template_name} email to {recipient_email}: {e}")
        return None
    finally:
        db.close()


def seed_email_templates(db: Session, templates: Optional[list[dict]] = None) -> int:
    """Insert any default template that is not stored yet; existing rows are left untouched"""
    from ...email_templates import DEFAULT_EMAIL_TEMPLATES

    existing = {name for (name,) in db.query(EmailTemplate.template_name).all()}
    added = 0
    for template in templates or DEFAULT_EMAIL_TEMPLATES:
        if template["template_name"] in existing:
            continue
        db.add(EmailTemplate(**template))
        added += 1
    if added:
        db.commit()
        logger.info(f"📝 Seeded {added} email template(s)")
    return added
