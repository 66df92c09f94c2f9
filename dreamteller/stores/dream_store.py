"""Dream journal state kept in sync with the backend."""

import base64
import binascii
import io
from datetime import date, datetime
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Union

from PIL import Image

from dreamteller.models.dream import Dream, DreamEntry, DreamRequest
from dreamteller.models.notification import FCMRequest, NotificationSubscription
from dreamteller.schemas.responses import DreamImageResponse, EmptyResponse
from dreamteller.services.api import endpoints
from dreamteller.services.api.client import APIClient
from dreamteller.services.session import Session
from dreamteller.stores.observable import ObservableStore
from dreamteller.utils.dates import date_key
from dreamteller.utils.exceptions import map_api_error
from dreamteller.utils.logger import get_logger
from dreamteller.utils.single_flight import SingleFlight

logger = get_logger(__name__)


def decode_image(payload: str) -> Optional[Image.Image]:
    """Decode a base64 image payload, or return None if it is not one."""
    try:
        raw = base64.b64decode(payload, validate=True)
        image = Image.open(io.BytesIO(raw))
        image.load()
        return image
    except (binascii.Error, ValueError, OSError, Image.DecompressionBombError) as e:
        logger.debug(f"Discarding undecodable image payload: {e}")
        return None


class DreamStore(ObservableStore):
    """
    Owns the day's dreams, the month's entry flags, notification
    preferences and the last fetched dream image.

    Every public operation catches its own failures and reports them
    through ``error_message``; nothing is raised to the caller. Concurrent
    calls to the same operation with the same arguments share one request.
    """

    PUBLISHED_FIELDS = (
        "dreams",
        "monthly_entries",
        "subscriptions",
        "fetched_image",
        "selected_date",
        "is_loading",
        "error_message",
    )

    def __init__(
        self,
        api: APIClient,
        session: Optional[Session] = None,
        selected_date: Optional[Union[date, datetime]] = None,
    ):
        super().__init__()
        self.api = api
        self.session = session or Session()
        self._flights = SingleFlight()
        # Latest request number per published collection; older responses are dropped
        self._generations: Dict[str, int] = {}

        self._state.update(
            dreams=[],
            monthly_entries=[],
            subscriptions=None,
            fetched_image=None,
            selected_date=selected_date or date.today(),
            error_message=None,
        )

    # ── Published state ──────────────────────────────────────────────

    @property
    def dreams(self) -> List[Dream]:
        return self._get("dreams")

    @property
    def monthly_entries(self) -> List[DreamEntry]:
        return self._get("monthly_entries")

    @property
    def subscriptions(self) -> Optional[NotificationSubscription]:
        return self._get("subscriptions")

    @property
    def fetched_image(self) -> Optional[Image.Image]:
        return self._get("fetched_image")

    @property
    def selected_date(self) -> Union[date, datetime]:
        return self._get("selected_date")

    @property
    def is_loading(self) -> bool:
        return self._get("is_loading")

    @property
    def error_message(self) -> Optional[str]:
        return self._get("error_message")

    @property
    def selected_date_key(self) -> str:
        return date_key(self.selected_date)

    @property
    def filtered_dreams(self) -> List[Dream]:
        """Dreams belonging to the selected day."""
        key = self.selected_date_key
        return [d for d in self.dreams if d.date_key == key]

    def has_entry(self, day: Union[date, datetime]) -> bool:
        """Calendar indicator for ``day`` from the loaded monthly flags."""
        key = date_key(day)
        return any(e.date_key == key and e.has_entry for e in self.monthly_entries)

    def select_date(self, day: Union[date, datetime]) -> None:
        self._set("selected_date", day)

    # ── Plumbing ─────────────────────────────────────────────────────

    async def _run(self, key: Hashable, operation: Callable[[], Awaitable[None]]) -> None:
        async def tracked() -> None:
            self._begin_loading()
            try:
                await operation()
            finally:
                self._end_loading()

        await self._flights.do(key, tracked)

    def _next_generation(self, slot: str) -> int:
        self._generations[slot] = self._generations.get(slot, 0) + 1
        return self._generations[slot]

    def _is_current(self, slot: str, generation: int) -> bool:
        return self._generations.get(slot) == generation

    def _fail(self, operation: str, exc: Exception) -> None:
        message = map_api_error(exc)
        logger.warning(
            f"{operation} failed: {message}",
            extra={"extra_data": {"operation": operation, "error_type": type(exc).__name__}},
        )
        self._set("error_message", message)

    # ── Operations ───────────────────────────────────────────────────

    async def load_dreams_for_selected_date(self) -> None:
        key = self.selected_date_key
        await self._run(("load_dreams", key), lambda: self._load_dreams(key))

    async def _load_dreams(self, key: str) -> None:
        generation = self._next_generation("dreams")
        self._set("error_message", None)
        # Cleared up front so a failure leaves an empty list, not another day's dreams
        self._set("dreams", [])
        try:
            token = self.session.require_token()
            dreams = await self.api.send(endpoints.dreams_for_day(key), token, List[Dream])
        except Exception as e:
            if self._is_current("dreams", generation) and key == self.selected_date_key:
                self._fail("load_dreams_for_selected_date", e)
            return
        if not self._is_current("dreams", generation) or key != self.selected_date_key:
            logger.debug(f"Dropping stale dreams for {key}")
            return
        self._set("dreams", dreams)
        logger.info(f"Loaded {len(dreams)} dreams for {key}")

    async def load_monthly_entries(self, year: int, month: int) -> None:
        await self._run(("monthly_entries", year, month), lambda: self._load_monthly_entries(year, month))

    async def _load_monthly_entries(self, year: int, month: int) -> None:
        generation = self._next_generation("monthly_entries")
        self._set("error_message", None)
        try:
            token = self.session.require_token()
            entries = await self.api.send(endpoints.monthly_entries(year, month), token, List[DreamEntry])
        except Exception as e:
            if self._is_current("monthly_entries", generation):
                self._fail("load_monthly_entries", e)
            return
        if not self._is_current("monthly_entries", generation):
            logger.debug(f"Dropping stale entry flags for {year}/{month:02d}")
            return
        self._set("monthly_entries", entries)

    async def submit_dream_for_interpretation(self, input: str) -> None:
        """
        Submit the selected day's dream text for interpretation.

        Blank text is ignored without touching the network or any state.
        The server answers with no body; the interpreted dream only shows
        up on the list refresh that follows a successful submit.
        """
        if not input or not input.strip():
            return
        key = self.selected_date_key
        await self._run(("submit", key, input), lambda: self._submit(key, input))

    async def _submit(self, key: str, input: str) -> None:
        self._set("error_message", None)
        try:
            token = self.session.require_token()
            request = DreamRequest(date_key=key, input=input)
            await self.api.send(endpoints.interpret_dream(request), token, EmptyResponse)
        except Exception as e:
            self._fail("submit_dream_for_interpretation", e)
            return
        logger.info(f"Dream submitted for {key}")
        await self.load_dreams_for_selected_date()

    async def fetch_dream_image(self, dream_id: str) -> None:
        await self._run(("image", dream_id), lambda: self._fetch_image(dream_id))

    async def _fetch_image(self, dream_id: str) -> None:
        generation = self._next_generation("fetched_image")
        self._set("error_message", None)
        self._set("fetched_image", None)
        try:
            token = self.session.require_token()
            response = await self.api.send(endpoints.dream_image(dream_id), token, DreamImageResponse)
        except Exception as e:
            if self._is_current("fetched_image", generation):
                self._fail("fetch_dream_image", e)
            return
        if not self._is_current("fetched_image", generation):
            logger.debug(f"Dropping stale image for {dream_id}")
            return
        # A bad payload is not an error; the image simply stays empty
        self._set("fetched_image", decode_image(response.image))

    async def load_subscriptions(self) -> None:
        await self._run(("load_subscriptions",), self._load_subscriptions)

    async def _load_subscriptions(self) -> None:
        self._set("error_message", None)
        try:
            token = self.session.require_token()
            subscription = await self.api.send(endpoints.get_subscriptions(), token, NotificationSubscription)
            self._set("subscriptions", subscription)
        except Exception as e:
            self._fail("load_subscriptions", e)

    async def update_subscriptions(self, daily: bool, interpretation: bool) -> None:
        await self._run(
            ("update_subscriptions", daily, interpretation),
            lambda: self._update_subscriptions(daily, interpretation),
        )

    async def _update_subscriptions(self, daily: bool, interpretation: bool) -> None:
        self._set("error_message", None)
        subscription = NotificationSubscription(daily=daily, interpretation=interpretation)
        try:
            token = self.session.require_token()
            await self.api.send(endpoints.set_subscriptions(subscription), token, EmptyResponse)
        except Exception as e:
            self._fail("update_subscriptions", e)
            return
        # Local copy only changes once the server has accepted it
        self._set("subscriptions", subscription)

    async def update_fcm_token(self, fcm: str) -> None:
        if not fcm:
            return
        await self._run(("fcm", fcm), lambda: self._update_fcm_token(fcm))

    async def _update_fcm_token(self, fcm: str) -> None:
        self._set("error_message", None)
        try:
            token = self.session.require_token()
            await self.api.send(endpoints.register_fcm_token(FCMRequest(fcm=fcm)), token, EmptyResponse)
            logger.info("Push token registered")
        except Exception as e:
            self._fail("update_fcm_token", e)
