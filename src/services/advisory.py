"""
AI Advisory Client — greeting, nudges, step breakdowns and chat via the
Gemini REST API.

Every call can fail (offline, timeout, HTTP error, unparsable answer). Text
methods take a ``fallback``: when one is given a failure returns it, when
it is None the failure is raised as AdvisoryError so the caller can decide
(the notification scanner simply skips its nudge). Nothing here ever shows
an error to the user.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from src.config import AppConfig
from src.data.models import Goal, GoalLevel, TaskSuggestion
from src.exceptions import AdvisoryError
from src.services.encouragement import (
    CHAT_EMPTY, CHAT_FALLBACK, DEFAULT_GREETING, FALLBACK_QUOTE, Quote,
)

logger = logging.getLogger(__name__)

MAX_BREAKDOWN_STEPS = 8

_BREAKDOWN_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "text": {"type": "STRING", "description": "Simple, actionable step"},
            "level": {"type": "STRING", "enum": ["Easy", "Medium", "Hard"],
                      "description": "How it feels to do this"},
            "tip": {"type": "STRING", "description": "A friendly word of advice"},
        },
        "required": ["text", "level", "tip"],
    },
}

_QUOTE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"text": {"type": "STRING"}, "author": {"type": "STRING"}},
    "required": ["text", "author"],
}


def clean_markdown(text: str) -> str:
    """Strip **bold**, *italic* and heading markers from model output."""
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
    text = re.sub(r"\*(.*?)\*", r"\1", text)
    return re.sub(r"#{1,6}\s?", "", text)


class AdvisoryClient:
    """Thin wrapper around the generateContent endpoint."""

    def __init__(self, config: AppConfig,
                 http_client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self.max_retries = 2
        self.retry_backoff = 1.5
        self.non_retry_status = {400, 401, 403, 404, 422}
        self._http = http_client or httpx.Client(
            timeout=httpx.Timeout(config.request_timeout_s)
        )

    def close(self) -> None:
        self._http.close()

    # ── Public API ──────────────────────────────────────────────────────────

    def breakdown_task(self, title: str, description: str = "") -> List[TaskSuggestion]:
        """5-8 small steps for a goal; an empty list if anything goes wrong."""
        prompt = (
            "Let's make this simple and doable. Please break down this goal into "
            "5-8 small, realistic steps. Use everyday language that feels warm and "
            "supportive, like a friend helping a friend. Avoid any fancy or "
            "difficult words.\n\n"
            "For each step:\n"
            '1. Pick a level: "Easy", "Medium", or "Hard".\n'
            "2. Share a quick, friendly tip (max 12 words) on how to get started "
            "comfortably.\n\n"
            f"Goal: {title}\nContext: {description}"
        )
        try:
            raw = self._generate("breakdown", prompt, schema=_BREAKDOWN_SCHEMA)
            items = json.loads(raw.strip() or "[]")
        except (AdvisoryError, ValueError) as exc:
            logger.warning("Task breakdown unavailable: %s", exc)
            return []
        if not isinstance(items, list):
            logger.warning("Task breakdown was not a list; ignoring.")
            return []

        steps = []
        for item in items[:MAX_BREAKDOWN_STEPS]:
            if not isinstance(item, dict) or not str(item.get("text") or "").strip():
                continue
            try:
                level = GoalLevel(item.get("level"))
            except ValueError:
                level = GoalLevel.MEDIUM
            steps.append(TaskSuggestion(
                text=str(item["text"]).strip(),
                level=level,
                tip=str(item.get("tip") or "").strip(),
            ))
        return steps

    def suggest_description(self, title: str, current_text: Optional[str] = None,
                            fallback: Optional[str] = None) -> str:
        if current_text and current_text.strip():
            prompt = (
                f'Let\'s make this simple and doable. I have these thoughts for the goal '
                f'"{title}": "{current_text}". Please enhance the grammar and structure '
                "to make it very easy to read and follow. Do NOT change the original "
                "thoughts or ideas. Simply reorganize them into 1-2 clear, actionable "
                "sentences that make execution easy. Keep the tone warm, human, and "
                "supportive."
            )
        else:
            prompt = (
                f'Let\'s make this simple and doable. The goal is "{title}". Write a very '
                "simple, friendly description (1-2 sentences) of how to start this. "
                "Focus on small, actionable steps and keep it very human."
            )
        return self._text("suggest_description", prompt, fallback)

    def daily_greeting(self, name: str, fallback: Optional[str] = DEFAULT_GREETING) -> str:
        prompt = (
            f"Create a short, warm, and motivational one-sentence greeting for {name} "
            "about making this year their best year. It should be fresh, encouraging, "
            'and different from "ready to make this your best year?". No emojis, keep '
            "it between 5-12 words."
        )
        return self._text("daily_greeting", prompt, fallback)

    def friendly_nudge(self, goal_title: str, area: str,
                       fallback: Optional[str] = None) -> str:
        prompt = (
            f'Write a very short, warm, and friendly nudge for a user who hasn\'t updated '
            f'their "{goal_title}" goal in the "{area}" category for a while. Sound like '
            "a supportive friend who cares about their dreams. Mention that it's okay to "
            "take breaks, but you're here to help them take one tiny step when they're "
            "ready. Keep it under 20 words. No emojis, just warm text."
        )
        return self._text("friendly_nudge", prompt, fallback)

    def single_task_tip(self, task_text: str, fallback: Optional[str] = None) -> str:
        prompt = (
            f'Give me a very short, warm, and friendly tip for this task: "{task_text}". '
            "Use simple words and sound like a supportive coach. Max 10 words."
        )
        return self._text("single_task_tip", prompt, fallback).strip('"')

    def goal_advice(self, title: str, description: str = "",
                    fallback: Optional[str] = None) -> str:
        prompt = (
            "Let's make this simple and doable. Act as a supportive coach. Give 3 "
            "practical, easy-to-understand ways to help make this goal happen:\n"
            f'Title: "{title}"\nContext: "{description}"\n'
            "Use simple words, be very encouraging, and keep it human. No professional "
            "jargon."
        )
        return self._text("goal_advice", prompt, fallback)

    def daily_quote(self) -> Quote:
        prompt = (
            "Give me one simple, warm, and motivating quote about taking small steps "
            "and being kind to yourself while working toward a goal. It should feel "
            "like a gentle hug. Use everyday language."
        )
        try:
            data = json.loads(self._generate("daily_quote", prompt, schema=_QUOTE_SCHEMA))
            return Quote(text=str(data["text"]), author=str(data["author"]))
        except (AdvisoryError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Daily quote unavailable: %s", exc)
            return FALLBACK_QUOTE

    def chat(self, goals: Iterable[Goal], message: str,
             fallback: Optional[str] = CHAT_FALLBACK) -> str:
        """One strategist reply given the user's goals and their message."""
        context = []
        for g in goals:
            tasks = g.active_sub_tasks
            done = sum(1 for t in tasks if t.completed)
            pct = round(done / len(tasks) * 100) if tasks else 0
            context.append({"title": g.title, "area": g.area, "progress": f"{pct}%"})
        prompt = (
            "You are the Vision Strategist. Help the user achieve their goals. "
            f"Current Goals: {json.dumps(context, ensure_ascii=False)}. "
            f"User: {message}. "
            "Instructions: Be warm, concise, structure with bullets, plain text only."
        )
        try:
            return clean_markdown(self._generate("chat", prompt).strip() or CHAT_EMPTY)
        except AdvisoryError:
            if fallback is None:
                raise
            return fallback

    # ── internal ────────────────────────────────────────────────────────────

    def _text(self, operation: str, prompt: str, fallback: Optional[str]) -> str:
        try:
            text = self._generate(operation, prompt).strip()
            if not text:
                raise AdvisoryError(operation, "empty response")
            return text
        except AdvisoryError as exc:
            if fallback is None:
                raise
            logger.info("Using fallback text for %s (%s)", operation, exc.details)
            return fallback

    def _url(self) -> str:
        base = self.config.api_base_url.rstrip("/")
        return f"{base}/models/{self.config.model}:generateContent"

    def _generate(self, operation: str, prompt: str,
                  schema: Optional[Dict[str, Any]] = None) -> str:
        """POST a prompt and return the text of the first candidate."""
        if self.config.offline:
            raise AdvisoryError(operation, "no API key configured")

        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            }
        headers = {"x-goog-api-key": self.config.api_key or ""}

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):
            response: Optional[httpx.Response] = None
            try:
                response = self._http.post(self._url(), json=payload, headers=headers)
                response.raise_for_status()
                return self._extract_text(operation, response.json())
            except httpx.HTTPStatusError as exc:
                last_error = exc
            except httpx.RequestError as exc:
                last_error = exc
            except ValueError as exc:
                raise AdvisoryError(operation, f"unreadable response ({exc})") from exc

            final = attempt > self.max_retries or not self._should_retry(response)
            (logger.warning if final else logger.info)(
                "Advisory %s attempt %d failed: %s", operation, attempt,
                last_error.__class__.__name__,
            )
            if final:
                break
            time.sleep(self.retry_backoff * attempt)

        raise AdvisoryError(operation, self._describe(last_error))

    def _should_retry(self, response: Optional[httpx.Response]) -> bool:
        if response is None:
            return True
        return response.status_code >= 500 and response.status_code not in self.non_retry_status

    @staticmethod
    def _extract_text(operation: str, data: Any) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(p.get("text", "") for p in parts)
        except (KeyError, IndexError, TypeError, AttributeError):
            raise AdvisoryError(operation, "response had no candidates")

    @staticmethod
    def _describe(error: Optional[Exception]) -> str:
        if error is None:
            return "unknown error"
        if isinstance(error, httpx.TimeoutException):
            return "request timed out"
        if isinstance(error, httpx.HTTPStatusError):
            return f"HTTP {error.response.status_code}"
        if isinstance(error, httpx.RequestError):
            return f"network error ({error.__class__.__name__})"
        return str(error) or error.__class__.__name__


class RequestTracker:
    """
    Request-generation counter per channel.

    begin() hands out a token; any later begin() or invalidate() on the
    same channel makes earlier tokens stale, and a response carrying a
    stale token is dropped instead of applied.
    """

    def __init__(self) -> None:
        self._generation: Dict[str, int] = {}

    def begin(self, channel: str) -> int:
        self._generation[channel] = self._generation.get(channel, 0) + 1
        return self._generation[channel]

    def invalidate(self, channel: str) -> None:
        self._generation[channel] = self._generation.get(channel, 0) + 1

    def is_current(self, channel: str, token: int) -> bool:
        current = self._generation.get(channel, 0) == token
        if not current:
            logger.debug("Discarding stale %s response (token %d)", channel, token)
        return current


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Talks to the hosted language model. Each public method builds a warm,
#   plain-language prompt and returns text (or structured steps/quotes).
#
# Key design decisions:
#   - Fallbacks at the call site: the greeting and chat have sensible
#     defaults; the nudge has none, so the scanner can tell "no nudge"
#     apart from "generic nudge".
#   - Retries only where they can help: network errors and 5xx, with a
#     linear backoff. A 400/401/403 will not fix itself.
#   - RequestTracker solves "slow answer arrives after the user moved on":
#     the window takes a token before firing a request and ignores the
#     result if the token went stale in the meantime.
#   - The httpx.Client is injectable; tests use httpx.MockTransport.
