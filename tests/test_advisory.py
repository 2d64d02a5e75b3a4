"""Unit tests for the advisory client (HTTP mocked with httpx.MockTransport)."""

import json
import pytest
from pathlib import Path
import sys

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import AppConfig
from src.data.models import Goal, GoalLevel, SubTask
from src.exceptions import AdvisoryError
from src.services.advisory import (
    MAX_BREAKDOWN_STEPS, AdvisoryClient, RequestTracker, clean_markdown,
)
from src.services.encouragement import (
    CHAT_EMPTY, CHAT_FALLBACK, DEFAULT_GREETING, FALLBACK_QUOTE,
)


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class Recorder:
    """Transport handler that replays queued responses and logs requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=_reply(item))


def _client(handler, api_key="test-key") -> AdvisoryClient:
    config = AppConfig(api_key=api_key, model="test-model",
                       api_base_url="https://ai.example.test/v1")
    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = AdvisoryClient(config, http_client=http)
    client.retry_backoff = 0
    return client


class TestGenerate:
    def test_request_shape(self):
        rec = Recorder("Hello there")
        client = _client(rec)
        assert client.daily_greeting("Sam") == "Hello there"

        [request] = rec.requests
        assert request.url.path == "/v1/models/test-model:generateContent"
        assert request.headers["x-goog-api-key"] == "test-key"
        body = json.loads(request.content)
        assert "Sam" in body["contents"][0]["parts"][0]["text"]
        assert "generationConfig" not in body

    def test_schema_requests_json(self):
        rec = Recorder(json.dumps({"text": "Go gently.", "author": "Someone"}))
        quote = _client(rec).daily_quote()
        assert (quote.text, quote.author) == ("Go gently.", "Someone")
        body = json.loads(rec.requests[0].content)
        assert body["generationConfig"]["responseMimeType"] == "application/json"

    def test_server_error_is_retried(self):
        rec = Recorder(httpx.Response(503), "Back again")
        assert _client(rec).goal_advice("Run") == "Back again"
        assert len(rec.requests) == 2

    def test_network_error_is_retried(self):
        rec = Recorder(httpx.ConnectError("down"), "Back again")
        assert _client(rec).goal_advice("Run") == "Back again"
        assert len(rec.requests) == 2

    def test_client_error_is_not_retried(self):
        rec = Recorder(httpx.Response(400))
        with pytest.raises(AdvisoryError, match="HTTP 400"):
            _client(rec).goal_advice("Run")
        assert len(rec.requests) == 1

    def test_gives_up_after_max_retries(self):
        rec = Recorder(httpx.Response(500))
        client = _client(rec)
        with pytest.raises(AdvisoryError):
            client.goal_advice("Run")
        assert len(rec.requests) == client.max_retries + 1

    def test_timeout_is_described(self):
        rec = Recorder(httpx.ReadTimeout("slow"))
        with pytest.raises(AdvisoryError, match="timed out"):
            _client(rec).goal_advice("Run")

    def test_missing_candidates(self):
        rec = Recorder(httpx.Response(200, json={"candidates": []}))
        with pytest.raises(AdvisoryError, match="no candidates"):
            _client(rec).goal_advice("Run")

    def test_offline_never_calls_out(self):
        rec = Recorder("unused")
        client = _client(rec, api_key=None)
        with pytest.raises(AdvisoryError, match="no API key"):
            client.friendly_nudge("Run", "Health")
        assert client.daily_greeting("Sam") == DEFAULT_GREETING
        assert rec.requests == []


class TestFallbacks:
    def test_fallback_returned_on_failure(self):
        rec = Recorder(httpx.Response(401))
        assert _client(rec).single_task_tip("Stretch", fallback="Go slow") == "Go slow"

    def test_empty_text_counts_as_failure(self):
        rec = Recorder("   ")
        client = _client(rec)
        with pytest.raises(AdvisoryError, match="empty"):
            client.suggest_description("Run")
        assert client.suggest_description("Run", fallback="") == ""

    def test_tip_quotes_are_stripped(self):
        rec = Recorder('"Start with five minutes."')
        assert _client(rec).single_task_tip("Stretch") == "Start with five minutes."

    def test_quote_falls_back(self):
        rec = Recorder("not json at all")
        assert _client(rec).daily_quote() == FALLBACK_QUOTE

    def test_suggest_description_prompt_uses_current_text(self):
        rec = Recorder("Better words.")
        _client(rec).suggest_description("Run", current_text="run more often")
        prompt = json.loads(rec.requests[0].content)["contents"][0]["parts"][0]["text"]
        assert "run more often" in prompt


class TestBreakdown:
    def test_parses_steps(self):
        items = [
            {"text": "Buy shoes", "level": "Easy", "tip": "Comfort first."},
            {"text": "Run 2k", "level": "Brutal", "tip": ""},
            {"text": "  ", "level": "Easy", "tip": "skip me"},
        ]
        steps = _client(Recorder(json.dumps(items))).breakdown_task("Run a 10k")
        assert [s.text for s in steps] == ["Buy shoes", "Run 2k"]
        assert steps[0].level == GoalLevel.EASY
        assert steps[1].level == GoalLevel.MEDIUM

    def test_caps_step_count(self):
        items = [{"text": f"Step {i}", "level": "Easy", "tip": ""} for i in range(12)]
        steps = _client(Recorder(json.dumps(items))).breakdown_task("Run")
        assert len(steps) == MAX_BREAKDOWN_STEPS

    def test_failure_is_empty_list(self):
        assert _client(Recorder(httpx.Response(500))).breakdown_task("Run") == []
        assert _client(Recorder("{}")).breakdown_task("Run") == []
        assert _client(Recorder("garbage")).breakdown_task("Run") == []


class TestChat:
    def _goals(self):
        return [Goal(title="Read", area="Growth", sub_tasks=[
            SubTask(text="a", completed=True, current_progress=1, target_progress=1),
            SubTask(text="b"),
            SubTask(text="gone", completed=True, deleted=True),
        ])]

    def test_context_and_markdown_cleanup(self):
        rec = Recorder("## Plan\n**Focus** on *one* thing")
        reply = _client(rec).chat(self._goals(), "What next?")
        assert reply == "Plan\nFocus on one thing"
        prompt = json.loads(rec.requests[0].content)["contents"][0]["parts"][0]["text"]
        assert '"progress": "50%"' in prompt
        assert "What next?" in prompt

    def test_empty_reply(self):
        assert _client(Recorder("")).chat([], "hi") == CHAT_EMPTY

    def test_failure_uses_fallback(self):
        assert _client(Recorder(httpx.Response(500))).chat([], "hi") == CHAT_FALLBACK

    def test_failure_can_raise(self):
        with pytest.raises(AdvisoryError):
            _client(Recorder(httpx.Response(403))).chat([], "hi", fallback=None)


def test_clean_markdown():
    assert clean_markdown("# Title\n**bold** and *soft*") == "Title\nbold and soft"


class TestRequestTracker:
    def test_newer_request_makes_older_stale(self):
        tracker = RequestTracker()
        first = tracker.begin("chat")
        second = tracker.begin("chat")
        assert not tracker.is_current("chat", first)
        assert tracker.is_current("chat", second)

    def test_invalidate(self):
        tracker = RequestTracker()
        token = tracker.begin("scan")
        tracker.invalidate("scan")
        assert not tracker.is_current("scan", token)

    def test_channels_are_independent(self):
        tracker = RequestTracker()
        chat = tracker.begin("chat")
        tracker.begin("quote")
        assert tracker.is_current("chat", chat)
