"""Shared fixtures: scripted LLM clients and sample listings."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from propchat.common.llm_client import LLMClient, ProviderRegistry


class FakeLLMClient(LLMClient):
    """LLMClient that replays scripted replies and records every prompt."""

    def __init__(self, provider: str = "gemini", replies: Optional[List[str]] = None,
                 available: bool = True, error: Optional[Exception] = None):
        super().__init__(model="fake-model")
        self.provider = provider
        self._client = object() if available else None
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    @property
    def prompts(self) -> List[str]:
        return [c["prompt"] for c in self.calls]

    def _complete(self, prompt, *, temperature, max_tokens):
        self.calls.append({"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture
def gemini_client():
    return FakeLLMClient(provider="gemini")


@pytest.fixture
def groq_client():
    return FakeLLMClient(provider="groq")


@pytest.fixture
def registry(gemini_client, groq_client):
    return ProviderRegistry([gemini_client, groq_client], default="gemini")


def make_listing(idx: int, **overrides) -> dict:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    doc = {
        "_id": f"prop_{idx}",
        "title": f"Listing {idx}",
        "description": f"Description {idx}",
        "price": 1_000_000 * idx,
        "location": "Mumbai",
        "type": "apartment",
        "status": "available",
        "features": [],
        "images": [],
        "bedrooms": 2,
        "halls": 1,
        "bathrooms": 1,
        "area": 800,
        "furnished": False,
        "parking": False,
        "balcony": False,
        "createdAt": base + timedelta(days=idx),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def listings():
    return [make_listing(i) for i in range(1, 8)]


@pytest.fixture
def listing_factory():
    return make_listing
