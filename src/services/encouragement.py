"""
Built-in encouragement — the text the app shows when the AI is unavailable.

Every advisory call has a fallback from here, and the completion message is
picked from here directly. No network needed.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_GREETING = "Ready to make 2026 your best year?"
NUDGE_FALLBACK = (
    "It's okay to take a breather. When you're ready, one tiny step is all it takes."
)
CHAT_FALLBACK = "I disconnected for a second. Try again?"
CHAT_EMPTY = "I'm having a little trouble thinking right now."
DESCRIPTION_FALLBACK = ""
TIP_FALLBACK = "Start small: five minutes today is plenty."

CELEBRATION_TITLE = "Victory!"
CELEBRATION_PHRASES: List[str] = [
    "Goal achieved. Well done.",
    "You did it. This one's complete.",
    "Completed - take a moment to enjoy this.",
]


@dataclass
class Quote:
    text: str
    author: str


FALLBACK_QUOTE = Quote(
    text="Every small step counts, and you're doing just fine.",
    author="A friend",
)

# Shown on the chat tab before the first message
CHAT_STARTERS: List[str] = [
    "How is my balance across categories?",
    "Which goal should I focus on this week?",
    "Help me get unstuck on my hardest goal.",
]


def pick_celebration(rng: Optional[random.Random] = None) -> str:
    """A random completion phrase."""
    return (rng or random).choice(CELEBRATION_PHRASES)


def greeting_line(name: str, greeting: str) -> str:
    """'Hi <name>, <greeting>' with the greeting's first letter lowered."""
    if not greeting:
        greeting = DEFAULT_GREETING
    if not name:
        return greeting
    return f"Hi {name}, {greeting[0].lower()}{greeting[1:]}"
