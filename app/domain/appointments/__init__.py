"""Appointments domain - slot availability, booking and the status lifecycle"""

from .router import router

__all__ = ["router"]
