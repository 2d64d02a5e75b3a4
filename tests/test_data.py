"""Unit tests for the data layer (database, gateway, models)."""

import json
import sqlite3
import pytest
from datetime import datetime, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.data.database import Database, SCHEMA_SQL
from src.data.gateway import GOALS_KEY, PROFILE_KEY, PersistenceGateway
from src.data.models import (
    DEFAULT_AREAS, Goal, GoalLevel, GoalPriority, LifeArea, SubTask,
    TaskSuggestion, UserProfile,
)


@pytest.fixture
def gateway():
    """Gateway over an in-memory database."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return PersistenceGateway(conn)


class TestDatabase:
    def test_connect_creates_kv_table(self):
        db = Database(":memory:")
        conn = db.connect()
        tables = {r["name"] for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}
        assert "kv_store" in tables
        db.close()
        assert db.conn is None

    def test_connect_is_idempotent(self):
        db = Database(":memory:")
        assert db.connect() is db.connect()
        db.close()


class TestGateway:
    def test_missing_key_returns_none(self, gateway):
        assert gateway.get("nope") is None

    def test_set_overwrites(self, gateway):
        gateway.set("k", "one")
        gateway.set("k", "two")
        assert gateway.get("k") == "two"
        assert gateway.keys() == ["k"]

    def test_remove(self, gateway):
        gateway.set("k", "v")
        gateway.remove("k")
        assert gateway.get("k") is None

    def test_json_round_trip_keeps_unicode(self, gateway):
        gateway.set_json("k", {"name": "Zoë"})
        assert gateway.get_json("k") == {"name": "Zoë"}
        assert "Zoë" in gateway.get("k")

    def test_corrupt_json_returns_default(self, gateway):
        gateway.set(GOALS_KEY, "{not json")
        assert gateway.get_json(GOALS_KEY, []) == []

    def test_missing_json_returns_default(self, gateway):
        assert gateway.get_json(PROFILE_KEY, "fallback") == "fallback"

    def test_export_goals_json(self, gateway):
        gateway.set_json(GOALS_KEY, [{"id": "g1", "title": "Run"}])
        exported = json.loads(gateway.export_goals_json())
        assert exported == [{"id": "g1", "title": "Run"}]

    def test_export_with_garbage_is_empty_list(self, gateway):
        gateway.set_json(GOALS_KEY, {"not": "a list"})
        assert json.loads(gateway.export_goals_json()) == []

    def test_reset_all_data(self, gateway):
        gateway.set("a", "1")
        gateway.set("b", "2")
        gateway.reset_all_data()
        assert gateway.keys() == []


class TestSubTaskModel:
    def test_effective_target_is_at_least_one(self):
        assert SubTask(target_progress=0).effective_target == 1
        assert SubTask(target_progress=5).effective_target == 5

    def test_completed_flag_raises_progress(self):
        task = SubTask(target_progress=3, current_progress=1, completed=True).normalize()
        assert task.current_progress == 3
        assert task.completed

    def test_progress_at_target_marks_complete(self):
        task = SubTask(target_progress=2, current_progress=2).normalize()
        assert task.completed

    def test_from_dict_defaults(self):
        task = SubTask.from_dict({"text": "Stretch"})
        assert task.id
        assert task.level == GoalLevel.MEDIUM
        assert task.priority == GoalPriority.MEDIUM
        assert task.current_progress == 0
        assert not task.completed
        assert not task.deleted

    def test_from_dict_bad_level_falls_back(self):
        task = SubTask.from_dict({"text": "x", "level": "Impossible", "currentProgress": "abc"})
        assert task.level == GoalLevel.MEDIUM
        assert task.current_progress == 0

    def test_to_dict_uses_camel_case(self):
        data = SubTask(text="x", target_progress=4).to_dict()
        assert data["targetProgress"] == 4
        assert "currentProgress" in data


class TestGoalModel:
    def test_completion_archives(self):
        goal = Goal(title="Run", completed=True, archived=False).normalize()
        assert goal.archived
        assert goal.completed_at is not None

    def test_not_completed_clears_completed_at(self):
        goal = Goal(title="Run", completed_at=datetime(2026, 1, 1)).normalize()
        assert goal.completed_at is None

    def test_active_sub_tasks_skip_tombstones(self):
        goal = Goal(sub_tasks=[SubTask(text="a"), SubTask(text="b", deleted=True)])
        assert [t.text for t in goal.active_sub_tasks] == ["a"]

    def test_from_dict_parses_epoch_ms(self):
        created = datetime(2026, 3, 1, 12, 0, 0)
        ms = int(created.timestamp() * 1000)
        goal = Goal.from_dict({"title": "Run", "createdAt": ms, "deadline": ms})
        assert goal.created_at == created
        assert goal.deadline == created

    def test_from_dict_parses_iso(self):
        goal = Goal.from_dict({"title": "Run", "deadline": "2026-05-01T23:59:59"})
        assert goal.deadline == datetime(2026, 5, 1, 23, 59, 59)

    @pytest.mark.parametrize("raw", ["2026-06-01T10:00:00+00:00", "2026-06-01T10:00:00Z"])
    def test_from_dict_offset_iso_becomes_local_naive(self, raw):
        goal = Goal.from_dict({"title": "Run", "deadline": raw})
        expected = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert goal.deadline.tzinfo is None
        assert goal.deadline == expected

    def test_from_dict_malformed_timestamp_is_dropped(self):
        goal = Goal.from_dict({"title": "Run", "deadline": "next tuesday"})
        assert goal.deadline is None

    def test_from_dict_defaults(self):
        goal = Goal.from_dict({"title": "Run"}, index=7)
        assert goal.area == LifeArea.OTHERS.value
        assert goal.order == 7
        assert goal.estimated_cost == 0.0
        assert goal.last_interaction_at == goal.created_at
        assert goal.sub_tasks == []

    def test_from_dict_negative_cost_clamped(self):
        assert Goal.from_dict({"estimatedCost": -20}).estimated_cost == 0.0

    def test_dict_round_trip(self):
        goal = Goal(
            title="Visit Japan", area=LifeArea.TRAVEL.value,
            level=GoalLevel.HARD, priority=GoalPriority.HIGH,
            deadline=datetime(2026, 4, 1, 23, 59, 59), estimated_cost=2500.0,
            sub_tasks=[SubTask(text="Book flights", target_progress=1)],
            pinned=True, order=3,
        )
        again = Goal.from_dict(goal.to_dict())
        assert again == goal


class TestProfileModel:
    def test_defaults(self):
        profile = UserProfile()
        assert profile.categories == DEFAULT_AREAS
        assert profile.archived_categories == []

    def test_from_dict_uses_archived_cats_key(self):
        profile = UserProfile.from_dict(
            {"name": "Sam", "categories": ["Health & Wellness"], "archivedCats": ["Others"]})
        assert profile.archived_categories == ["Others"]
        assert profile.to_dict()["archivedCats"] == ["Others"]

    def test_from_dict_bad_categories_default(self):
        assert UserProfile.from_dict({"categories": "oops"}).categories == DEFAULT_AREAS


class TestTaskSuggestion:
    def test_to_subtask(self):
        step = TaskSuggestion(text="Buy shoes", level=GoalLevel.EASY, tip="").to_subtask()
        assert step.text == "Buy shoes"
        assert step.target_progress == 1
        assert step.tip is None
        assert not step.completed
