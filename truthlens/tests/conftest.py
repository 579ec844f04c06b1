import os

# Keep test runs off the on-disk database and away from real credentials
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_CLOUD_API_KEY"] = ""
os.environ["ANON_KEY"] = ""
os.environ["SERVICE_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from truthlens.api.security import rate_limiter
from truthlens.api.server import create_app
from truthlens.config import settings
from truthlens.database import Base, make_engine
from truthlens.exceptions import UpstreamError
from truthlens.schemas.analyze_schemas import AnalysisResult, StoryPrompt
from truthlens.services.kv_store import KeyValueStore
from truthlens.utils.logging_config import metrics


API = settings.api_prefix

SAMPLE_ANALYSIS = {
    "credibilityScore": 35,
    "riskLevel": "high",
    "issues": [
        {
            "type": "false_claim",
            "severity": "high",
            "description": "No evidence that hot water cures viral infections",
            "confidence": 90,
        }
    ],
    "summary": "The claim contradicts established medical guidance.",
    "recommendations": ["Check WHO guidance"],
    "sources": [{"url": "https://www.who.int", "credibility": 95, "domain": "who.int"}],
    "attackerProfile": {
        "intent": "Drive engagement",
        "motivation": "Financial",
        "methodology": "WhatsApp forwards",
        "targetAudience": "Elderly relatives",
    },
}

SAMPLE_STORY = {
    "scenario": "A health rumour spreads in a family group chat",
    "characters": ["Grandmother", "Rumour creator", "Fact-checker"],
    "timeline": "Forwarded fifty times in one evening",
    "motivations": "Clicks on a supplement shop",
    "consequences": "People delay seeing a doctor",
    "prevention": "Check official health sources before forwarding",
}


class FakeGateway:
    """Scripted stand-in for GeminiClient; pass an exception to make a step fail."""

    def __init__(self, analysis=None, story=None, report="# Model report"):
        self.analysis = SAMPLE_ANALYSIS if analysis is None else analysis
        self.story = SAMPLE_STORY if story is None else story
        self.report = report
        self.calls = []

    def _answer(self, name, value):
        self.calls.append(name)
        if isinstance(value, Exception):
            raise value
        return value

    def analyze_text(self, content, context=None):
        self.last_context = context
        return AnalysisResult.model_validate(self._answer("analyze_text", self.analysis))

    def generate_story(self, analysis, original_content):
        return StoryPrompt.model_validate(self._answer("generate_story", self.story))

    def generate_report(self, analysis, story_prompt):
        return self._answer("generate_report", self.report)


class FakeResponse:
    """Minimal requests.Response double for service tests."""

    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else ("" if json_data is None else str(json_data))

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Fresh metrics and rate-limit windows, auth disabled unless a test enables it."""
    monkeypatch.setattr(settings, "anon_key", "")
    monkeypatch.setattr(settings, "service_key", "")
    rate_limiter.reset()
    metrics.reset()
    yield
    rate_limiter.reset()
    metrics.reset()


@pytest.fixture
def store():
    """Key-value store on a private in-memory database."""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return KeyValueStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    """Gateway whose every call fails as if the model were unreachable."""
    error = UpstreamError("Network error connecting to Gemini API")
    return FakeGateway(analysis=error, story=error, report=error)


@pytest.fixture
def app(gateway, store):
    return create_app(gateway=gateway, store=store)


@pytest.fixture
def client(app):
    """FastAPI test client fixture."""
    return TestClient(app)


@pytest.fixture
def offline_client(failing_gateway, store):
    """Client for an app whose model gateway always fails."""
    return TestClient(create_app(gateway=failing_gateway, store=store))


@pytest.fixture
def sample_misinformation_text():
    """Sample misinformation in shouting, emotional style."""
    return "SHOCKING: share this NOW before they delete it!!"


@pytest.fixture
def sample_neutral_text():
    """Sample neutral text long enough to avoid the brevity heuristic."""
    return "The municipal council met on Tuesday to discuss the new bus routes planned for next year."
