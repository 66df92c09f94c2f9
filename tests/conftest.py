"""Root conftest: shared test configuration and HTTP doubles."""

import os
from datetime import date

import httpx
import pytest

# Never pick up a developer's real Firebase project
os.environ["FIREBASE_API_KEY"] = ""

from dreamteller.services.api.client import APIClient
from dreamteller.services.session import Session
from dreamteller.stores.dream_store import DreamStore

BASE_URL = "https://api.test"
JOURNAL_DAY = date(2025, 11, 18)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests = []

        def record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def json_response(data, status_code=200):
    return httpx.Response(status_code, json=data)


def dream_payload(dream_id="d1", date_key="20251118", **overrides):
    data = {
        "id": dream_id,
        "dateKey": date_key,
        "input": "I was flying over a silver lake",
        "title": "Flight",
        "interpretation": None,
        "imageName": None,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_api():
    def _make(handler, base_url=BASE_URL):
        transport = RecordingTransport(handler)
        return APIClient(base_url, transport=transport), transport

    return _make


@pytest.fixture
def make_store(make_api):
    def _make(handler, token="test-token", selected_date=JOURNAL_DAY):
        api, transport = make_api(handler)
        store = DreamStore(api, Session(token), selected_date=selected_date)
        return store, transport

    return _make
