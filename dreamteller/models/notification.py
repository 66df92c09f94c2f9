"""
Notification Models
Push-notification preferences and device registration.
"""

from pydantic import BaseModel, ConfigDict, Field


class NotificationSubscription(BaseModel):
    """Two independent toggles. Last write wins; there is no versioning."""

    model_config = ConfigDict(extra="ignore")

    daily: bool = Field(default=False, description="Daily journaling reminder")
    interpretation: bool = Field(default=False, description="Notify when an interpretation is ready")


class FCMRequest(BaseModel):
    """Push registration token. Write-only; never read back."""

    fcm: str
