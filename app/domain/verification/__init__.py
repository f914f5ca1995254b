"""Verification domain - email codes and account access"""

from .router import router

__all__ = ["router"]
