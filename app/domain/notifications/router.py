"""Email router - send a stored template to a recipient"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Profile
from ...shared.validators import validate_email
from .dispatcher import NotificationDispatcher, get_notification_dispatcher
from .service import render_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])


class SendTemplatedEmailRequest(BaseModel):
    template_name: str
    recipient_email: str
    recipient_name: Optional[str] = None
    variables: Optional[dict[str, Any]] = None

    @field_validator("recipient_email")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        return validate_email(v)


@router.post("/send")
async def send_templated_email(
    data: SendTemplatedEmailRequest,
    current_user: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Render a template and queue it for delivery (admin only)"""
    variables = dict(data.variables or {})
    if data.recipient_name and "full_name" not in variables:
        variables["full_name"] = data.recipient_name

    rendered = render_email(db, data.template_name, data.recipient_email, variables)
    dispatcher.dispatch(data.template_name, data.recipient_email, variables)
    logger.info(f"📨 {current_user.email} queued {data.template_name} to {data.recipient_email}")

    return {
        "success": True,
        "message": "Email queued for sending",
        "email": {"from": rendered.sender, "to": rendered.recipient, "subject": rendered.subject},
    }
