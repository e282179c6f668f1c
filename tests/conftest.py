import os
import sys
import time
from datetime import datetime

import pytest
from jose import jwt

# Project root, so travelog and main import without an installed package
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from travelog.api.config import Settings
from travelog.api.database import Database, Trip
from travelog.api.geocoding import Geocoder
from travelog.api.llm import ModelClient
from travelog.api.pipeline import CHAT_MODEL, ITINERARY_MODEL, ItineraryPipeline
from travelog.api.services.assistant_service import AssistantService
from travelog.api.sms import TwilioVerifyClient
from travelog.app import Services, create_app

JWT_SECRET = "test-jwt-secret"
OWNER_ID = "user-owner"
OTHER_ID = "user-other"


class FakeModelClient(ModelClient):
    """Returns scripted completions in order; exceptions in the script are raised."""

    provider = "fake"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def invoke(self, messages, model=None, temperature=0.7, max_tokens=2000, json_mode=False):
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        if not self.responses:
            raise AssertionError("FakeModelClient has no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeGeocoder(Geocoder):
    """Looks queries up in a dict; an exception value is raised for that query."""

    def __init__(self, results=None):
        self.results = results or {}
        self.queries = []

    def lookup(self, query):
        self.queries.append(query)
        result = self.results.get(query)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openrouter_api_key="sk-test",
        database_url=f"sqlite:///{tmp_path / 'travelog.db'}",
        supabase_jwt_secret=JWT_SECRET,
        twilio_disabled=True,
    )


@pytest.fixture
def db(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def model():
    return FakeModelClient()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def services(settings, db, model, geocoder):
    models = {CHAT_MODEL: "chat-model", ITINERARY_MODEL: "itinerary-model"}
    return Services(
        settings=settings,
        db=db,
        pipelines={
            "openrouter": ItineraryPipeline(model, geocoder, models=models),
            "gemini": ItineraryPipeline(model, geocoder, models=models),
        },
        sms=TwilioVerifyClient(disabled=True),
        assistant=AssistantService(model, db=db, model="chat-model"),
        geocoder=geocoder,
    )


@pytest.fixture
def app(services):
    app = create_app(services=services)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(user_id, secret=JWT_SECRET, audience="authenticated", expires_in=3600):
    claims = {"sub": user_id, "aud": audience, "exp": int(time.time()) + expires_in}
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    def _headers(user_id=OWNER_ID):
        return {"Authorization": f"Bearer {make_token(user_id)}"}
    return _headers


@pytest.fixture
def make_trip(db):
    def _make_trip(user_id=OWNER_ID, **overrides):
        fields = dict(
            user_id=user_id,
            title="Summer Trip",
            destination="Paris",
            start_date="2025-06-01",
            end_date="2025-06-03",
            status="planning",
            created_at=datetime(2025, 1, 1),
        )
        fields.update(overrides)
        with db.session_scope() as session:
            trip = Trip(**fields)
            session.add(trip)
            session.flush()
            return trip.id
    return _make_trip
