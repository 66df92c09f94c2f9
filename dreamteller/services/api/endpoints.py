"""
Endpoint catalog for the Dreamteller backend.
Each entry is a path, a method and an optional JSON body; nothing else.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from dreamteller.models.dream import DreamRequest
from dreamteller.models.notification import FCMRequest, NotificationSubscription
from dreamteller.utils.dates import month_path_segment


@dataclass(frozen=True)
class Endpoint:
    """A resolved request target relative to the API base origin."""

    path: str
    method: str = "GET"
    body: Optional[BaseModel] = None

    def json_body(self) -> Optional[dict]:
        if self.body is None:
            return None
        return self.body.model_dump(by_alias=True, mode="json")


def dreams_for_day(date_key: str) -> Endpoint:
    return Endpoint(path=f"api/dream/history/{date_key}")


def monthly_entries(year: int, month: int) -> Endpoint:
    return Endpoint(path=f"api/dream/history/entryList/{month_path_segment(year, month)}")


def interpret_dream(request: DreamRequest) -> Endpoint:
    return Endpoint(path="api/dream/interpret", method="POST", body=request)


def dream_image(dream_id: str) -> Endpoint:
    return Endpoint(path=f"api/dream/image/{dream_id}")


def get_subscriptions() -> Endpoint:
    return Endpoint(path="api/notification/subscriptions")


def set_subscriptions(subscription: NotificationSubscription) -> Endpoint:
    return Endpoint(path="api/notification/subscriptions", method="POST", body=subscription)


def register_fcm_token(request: FCMRequest) -> Endpoint:
    return Endpoint(path="api/notification/fcm", method="POST", body=request)
