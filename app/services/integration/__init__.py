"""
Integration Domain Services
===========================

Services untuk notification messages
"""

from .notification_service import NotificationService

__all__ = [
    'NotificationService'
]
