"""Notification repositories package."""
from .notification_repository import NotificationRepository

__all__ = ['NotificationRepository']
