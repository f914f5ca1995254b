"""Doctors domain - practitioner profiles managed by administrators"""

from .router import router

__all__ = ["router"]
