"""Tests for ResponseSynthesizer."""

import json

import pytest

from propchat.chat import ContextStore, FALLBACK_RESPONSE, ResponseSynthesizer
from propchat.common.llm_client import ProviderRegistry
from propchat.common.schemas import PropertyRecord, SearchCriteria
from conftest import FakeLLMClient


@pytest.fixture
def context_store():
    return ContextStore()


@pytest.fixture
def synthesizer(registry, context_store):
    return ResponseSynthesizer(registry, context_store)


@pytest.fixture
def records(listings):
    return [PropertyRecord.model_validate(doc) for doc in listings]


class TestBuildPrompt:
    def test_no_results_prompt(self, synthesizer):
        criteria = SearchCriteria(location="Goa", max_price=100)
        prompt = synthesizer.build_prompt("cheap villa in Goa", [], criteria)

        assert 'Current user message: "cheap villa in Goa"' in prompt
        assert "No properties were found" in prompt
        assert '"location": "Goa"' in prompt
        assert '"maxPrice": 100' in prompt
        assert "Adjusting budget range" in prompt
        assert "Considering nearby locations" in prompt
        assert "Found" not in prompt
        assert "Previous conversation" not in prompt

    def test_results_prompt_lists_top_five_and_total(self, synthesizer, records):
        prompt = synthesizer.build_prompt("flats in Mumbai", records, SearchCriteria(location="Mumbai"))

        assert "Found 7 matching properties" in prompt
        for record in records[:5]:
            assert f'"id": "{record.id}"' in prompt
        for record in records[5:]:
            assert f'"id": "{record.id}"' not in prompt
        assert "description" not in prompt
        assert "(₹)" in prompt

    def test_results_prompt_records_are_json(self, synthesizer, records):
        prompt = synthesizer.build_prompt("flats", records[:2], SearchCriteria())
        start = prompt.index("[")
        end = prompt.index("]\n") + 1
        parsed = json.loads(prompt[start:end])
        assert [p["id"] for p in parsed] == ["prop_1", "prop_2"]

    def test_context_prefix_uses_last_three_turns(self, synthesizer, context_store):
        for i in range(5):
            context_store.append("s1", f"question {i}", f"answer {i}")

        prompt = synthesizer.build_prompt("and now?", [], SearchCriteria(), session_key="s1")

        assert prompt.startswith("Previous conversation:\nUser: question 2\nAssistant: answer 2\n")
        assert "question 1" not in prompt
        assert "User: question 4\nAssistant: answer 4\n\nCurrent user message" in prompt

    def test_no_context_without_session(self, synthesizer, context_store):
        context_store.append("s1", "earlier", "reply")
        prompt = synthesizer.build_prompt("hello", [], SearchCriteria())
        assert prompt.startswith("Current user message")


class TestSynthesize:
    def test_returns_reply_and_records_turn(self, synthesizer, context_store, gemini_client, records):
        gemini_client.replies = ["I found 7 places for you."]
        reply = synthesizer.synthesize("flats", records, SearchCriteria(), session_key="s1")

        assert reply == "I found 7 places for you."
        turns = context_store.recent("s1")
        assert len(turns) == 1
        assert turns[0].user == "flats"
        assert turns[0].assistant == reply

    def test_sampling_options(self, synthesizer, gemini_client):
        gemini_client.replies = ["ok"]
        synthesizer.synthesize("hi", [], SearchCriteria())
        assert gemini_client.calls[0]["temperature"] == 0.7
        assert gemini_client.calls[0]["max_tokens"] == 1000

    def test_no_session_records_nothing(self, synthesizer, context_store, gemini_client):
        gemini_client.replies = ["ok"]
        synthesizer.synthesize("hi", [], SearchCriteria())
        assert context_store.session_count() == 0

    def test_provider_error_returns_fallback(self, context_store):
        registry = ProviderRegistry([FakeLLMClient("gemini", error=TimeoutError("slow"))])
        synthesizer = ResponseSynthesizer(registry, context_store)

        reply = synthesizer.synthesize("hi", [], SearchCriteria(), session_key="s1")

        assert reply == FALLBACK_RESPONSE
        assert context_store.recent("s1") == []

    def test_empty_reply_returns_fallback(self, synthesizer, context_store, gemini_client):
        gemini_client.replies = [""]
        reply = synthesizer.synthesize("hi", [], SearchCriteria(), session_key="s1")
        assert reply == FALLBACK_RESPONSE
        assert "s1" not in context_store

    def test_named_provider(self, synthesizer, gemini_client, groq_client):
        groq_client.replies = ["from groq"]
        assert synthesizer.synthesize("hi", [], SearchCriteria(), provider="groq") == "from groq"
        assert gemini_client.calls == []
