"""
Seed Data Generator — fills the store with a believable year of goals.

Run: python scripts/seed_data.py [--reset]
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import load_config
from src.context import AppContext
from src.data.models import DEFAULT_AREAS, GoalLevel, GoalPriority, SubTask


# area → [(title, description, [(step, target check-ins)])]
GOALS_BY_AREA = {
    "Health & Wellness": [
        ("Run a half marathon", "Build up from 5k to 21k by autumn.",
         [("Run 3x a week", 12), ("Sign up for the race", 1), ("Buy proper shoes", 1)]),
        ("Sleep 7 hours a night", "",
         [("No screens after 22:30", 30), ("Keep a sleep log", 1)]),
    ],
    "Relationships": [
        ("Call my parents every week", "Sunday evenings work best.",
         [("Weekly call", 52)]),
        ("Host a dinner for old friends", "",
         [("Pick a date", 1), ("Send invitations", 1), ("Plan the menu", 1)]),
    ],
    "Career & Finances": [
        ("Build a 6-month emergency fund", "Automate the transfer on payday.",
         [("Open a savings account", 1), ("Monthly transfer", 12)]),
        ("Ship a side project", "A small web app people actually use.",
         [("Write the landing page", 1), ("Get 10 beta users", 10), ("Launch", 1)]),
    ],
    "Personal Growth": [
        ("Read 24 books", "Two a month, mixed fiction and non-fiction.",
         [("Finish a book", 24)]),
        ("Learn conversational Spanish", "",
         [("Daily practice session", 60), ("Book a tutor", 1)]),
    ],
    "Fun & Travels": [
        ("Visit Japan", "Cherry blossom season if possible.",
         [("Renew passport", 1), ("Book flights", 1), ("Plan the itinerary", 1)]),
        ("Try 5 new hobbies", "",
         [("New hobby tried", 5)]),
    ],
}


def seed(reset: bool = False) -> None:
    ctx = AppContext.create(load_config())
    repo = ctx.repo
    rng = random.Random(2026)
    now = datetime.now()

    if reset:
        ctx.reset()
    if not repo.is_onboarded:
        repo.complete_onboarding("Alex", list(DEFAULT_AREAS))

    created = []
    for area, goals in GOALS_BY_AREA.items():
        if area not in repo.profile.categories:
            continue
        for title, description, steps in goals:
            sub_tasks = []
            for text, target in steps:
                # Some steps are already under way
                progress = rng.randint(0, target) if rng.random() < 0.6 else 0
                sub_tasks.append(SubTask(
                    text=text,
                    target_progress=target,
                    current_progress=progress,
                    level=rng.choice(list(GoalLevel)),
                ))
            deadline = None
            if rng.random() < 0.7:
                # A couple of these land inside the 3-day reminder window
                deadline = (now + timedelta(days=rng.randint(1, 200))).replace(
                    hour=23, minute=59, second=59, microsecond=0)
            goal = repo.add_goal(
                title=title,
                area=area,
                description=description,
                level=rng.choice(list(GoalLevel)),
                priority=rng.choice(list(GoalPriority)),
                deadline=deadline,
                estimated_cost=float(rng.choice([0, 0, 50, 250, 1200])),
                pinned=rng.random() < 0.15,
                sub_tasks=sub_tasks,
            )
            created.append(goal)

    # A few finished goals for the archive and the dashboard
    for goal in rng.sample(created, k=min(3, len(created))):
        repo.toggle_complete(goal.id)
    # And one shelved without finishing
    remaining = [g for g in created if not repo.get_goal(g.id).archived]
    if remaining:
        repo.toggle_archived(rng.choice(remaining).id)

    ctx.close()
    print(f"Seeded {len(created)} goals across {len(GOALS_BY_AREA)} life areas.")


if __name__ == "__main__":
    seed(reset="--reset" in sys.argv[1:])


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this script does:
#   Generates a realistic goal collection so you can demo the app without
#   typing in a year of plans first. Creates a profile, goals in every life
#   area with multi-check-in steps, a few completed goals and one shelved
#   goal.
#
# Key points:
#   - Deterministic: the Random instance is seeded, so two runs produce the
#     same goals (with fresh ids).
#   - Goes through GoalRepository like the app does, so every invariant
#     (completion archives, step completion tracks progress) holds.
#
# Interviewer-friendly talking points:
#   1. Seed data is essential for development and demos. You can't test a
#      dashboard with an empty store.
#   2. No raw SQL here; the script builds the same AppContext the window
#      gets.
