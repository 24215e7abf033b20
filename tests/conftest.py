"""Pytest configuration and fixtures."""

import io
import json
import threading
from typing import Optional

import pytest
from PIL import Image
from snap_card_generator.models import (
    AnalysisRecord,
    CardRecord,
    IntStatValue,
    StatEntry,
    StringStatValue,
)
from snap_card_generator.storage import DisplayIdCounter, PreferenceStore

VISION_REPLY = json.dumps(
    {
        "subject": "Birch tree",
        "visualTraits": "white bark, black markings",
        "category": "Natural 🌿",
        "strength": 40,
        "stamina": 70,
        "agility": 20,
    },
    ensure_ascii=False,
)

STATS_REPLY = json.dumps(
    {
        "stats": [
            {"category": "Type", "value": "Natural 🌿"},
            {"category": "Strength", "value": "40"},
            {"category": "Stamina", "value": "70"},
            {"category": "Agility", "value": "20"},
        ]
    },
    ensure_ascii=False,
    separators=(",", ":"),
)

IMAGE_URL = "https://example/img.png"


class FakeClient:
    """Stand-in for OpenAIClient that records calls and replays canned replies."""

    chat_model = "gpt-4o-mini"
    image_model = "dall-e-3"

    def __init__(
        self,
        vision: str = VISION_REPLY,
        title: str = "Barkchu\n",
        stats: str = STATS_REPLY,
        image_url: str = IMAGE_URL,
        errors: Optional[dict[str, Exception]] = None,
        gate: Optional[threading.Event] = None,
    ):
        self.vision = vision
        self.title = title
        self.stats = stats
        self.image_url = image_url
        self.errors = errors or {}
        self.gate = gate
        self.calls: list[tuple[str, str]] = []

    def _record(self, step: str, prompt: str) -> None:
        self.calls.append((step, prompt))
        if step in self.errors:
            raise self.errors[step]

    def analyze_image(self, image_bytes: bytes, prompt: str) -> str:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self._record("analyze", prompt)
        return self.vision

    def complete(self, prompt: str, task_type: str = "default") -> str:
        self._record(task_type, prompt)
        return self.title if task_type == "title" else self.stats

    def generate_image(self, prompt: str) -> str:
        self._record("image", prompt)
        return self.image_url

    @property
    def steps(self) -> list[str]:
        return [step for step, _ in self.calls]


@pytest.fixture
def fake_client() -> FakeClient:
    """Provide a client replaying the birch tree scenario."""
    return FakeClient()


@pytest.fixture
def make_client():
    """Provide the FakeClient class for tests needing custom replies."""
    return FakeClient


@pytest.fixture
def store(tmp_path) -> PreferenceStore:
    """Provide a preference store in a temporary directory."""
    return PreferenceStore(tmp_path / "preferences.json")


@pytest.fixture
def counter(store: PreferenceStore) -> DisplayIdCounter:
    """Provide a display-id counter backed by the temporary store."""
    return DisplayIdCounter(store)


@pytest.fixture
def photo_bytes() -> bytes:
    """Provide a small PNG photo."""
    buffer = io.BytesIO()
    Image.new("RGBA", (16, 16), (20, 160, 60, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_analysis() -> AnalysisRecord:
    """Provide the birch tree analysis."""
    return AnalysisRecord.model_validate_json(VISION_REPLY)


@pytest.fixture
def sample_card() -> CardRecord:
    """Provide an assembled card."""
    return CardRecord(
        id="0b5c8b8e-2f7e-4c1d-9a53-7c3c2a1e9f10",
        display_id=1,
        title="Barkchu",
        description="white bark, black markings",
        image_reference=IMAGE_URL,
        stats=(
            StatEntry(category="Type", value=StringStatValue(value="Natural 🌿")),
            StatEntry(category="Strength", value=IntStatValue(value=40)),
            StatEntry(category="Stamina", value=IntStatValue(value=70)),
            StatEntry(category="Agility", value=IntStatValue(value=20)),
        ),
    )


@pytest.fixture
def vision_reply() -> str:
    """Provide the raw vision reply for the birch tree photo."""
    return VISION_REPLY


@pytest.fixture
def stats_reply() -> str:
    """Provide the raw stats-JSON reply for the birch tree photo."""
    return STATS_REPLY
