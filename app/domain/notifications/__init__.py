"""Notifications domain - templated email rendering and best-effort dispatch"""

from .dispatcher import NotificationDispatcher, get_notification_dispatcher
from .router import router

__all__ = ["NotificationDispatcher", "get_notification_dispatcher", "router"]
