"""
Dreamteller Models
Domain entities exchanged with the backend.
"""

from dreamteller.models.dream import Dream, DreamEntry, DreamRequest
from dreamteller.models.notification import FCMRequest, NotificationSubscription

__all__ = [
    "Dream",
    "DreamEntry",
    "DreamRequest",
    "FCMRequest",
    "NotificationSubscription",
]
