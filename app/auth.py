import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import Profile
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    """Resolve the bearer token to the caller's profile"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )

    profile = db.query(Profile).filter(Profile.id == payload["sub"]).first()
    if not profile:
        logger.warning(f"⚠️ Token subject {payload['sub']} has no profile")
        raise HTTPException(status_code=401, detail="Account no longer exists")

    logger.debug(f"✅ User authenticated: {profile.email} ({profile.role})")
    return profile


async def get_current_admin(user: Profile = Depends(get_current_user)) -> Profile:
    """Use this dependency for routes only administrators may call"""
    if not user.is_admin:
        logger.warning(f"🚫 Non-admin {user.email} attempted an admin route")
        raise HTTPException(status_code=403, detail="Unauthorized")
    return user
