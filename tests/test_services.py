"""Unit tests for the goal repository."""

import json
import sqlite3
import pytest
from datetime import datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.data.database import SCHEMA_SQL
from src.data.gateway import AREA_ORDER_KEY, GOALS_KEY, PROFILE_KEY, PersistenceGateway
from src.data.models import GoalLevel, GoalPriority, SubTask
from src.exceptions import (
    CategoryError, GoalNotFoundError, SubTaskNotFoundError, ValidationError,
)
from src.services.goal_repository import GoalRepository


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def gateway():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return PersistenceGateway(conn)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 1, 9, 0, 0))


@pytest.fixture
def repo(gateway, clock):
    """Onboarded repository with two life areas."""
    r = GoalRepository(gateway, clock=clock)
    r.load()
    r.complete_onboarding("Sam", ["Health & Wellness", "Fun & Travels"])
    return r


def _reload(gateway) -> GoalRepository:
    fresh = GoalRepository(gateway)
    fresh.load()
    return fresh


class TestLoading:
    def test_empty_store_is_not_onboarded(self, gateway):
        r = GoalRepository(gateway)
        r.load()
        assert not r.is_onboarded
        assert r.goals == ()
        assert r.area_order == []

    def test_corrupt_goals_blob_starts_empty(self, gateway):
        gateway.set(GOALS_KEY, "[[broken")
        r = GoalRepository(gateway)
        r.load()
        assert r.goals == ()

    def test_area_order_falls_back_to_categories(self, gateway):
        gateway.set_json(PROFILE_KEY, {"name": "Sam", "categories": ["A", "B"]})
        r = GoalRepository(gateway)
        r.load()
        assert r.area_order == ["A", "B"]

    def test_state_survives_reload(self, repo, gateway):
        goal = repo.add_goal("Run a 10k", "Health & Wellness")
        fresh = _reload(gateway)
        assert fresh.is_onboarded
        assert fresh.profile.name == "Sam"
        assert [g.id for g in fresh.goals] == [goal.id]


class TestOnboarding:
    def test_requires_name(self, gateway):
        r = GoalRepository(gateway)
        with pytest.raises(ValidationError):
            r.complete_onboarding("  ", ["Health & Wellness"])

    def test_requires_a_category(self, gateway):
        r = GoalRepository(gateway)
        with pytest.raises(ValidationError):
            r.complete_onboarding("Sam", [" "])

    def test_dedupes_categories_and_sets_order(self, gateway):
        r = GoalRepository(gateway)
        profile = r.complete_onboarding("Sam", ["A", "B", "A"])
        assert profile.categories == ["A", "B"]
        assert r.area_order == ["A", "B"]
        assert gateway.get_json(AREA_ORDER_KEY) == ["A", "B"]


class TestGoalLifecycle:
    def test_add_goal_goes_first(self, repo):
        first = repo.add_goal("Run a 10k", "Health & Wellness")
        second = repo.add_goal("Visit Japan", "Fun & Travels")
        assert [g.id for g in repo.goals] == [second.id, first.id]
        assert first.created_at == first.last_interaction_at

    def test_add_goal_validation(self, repo):
        with pytest.raises(ValidationError):
            repo.add_goal("   ", "Health & Wellness")
        with pytest.raises(ValidationError):
            repo.add_goal("Run", "Health & Wellness", estimated_cost=-1)
        with pytest.raises(CategoryError):
            repo.add_goal("Run", "Career & Finances")

    def test_add_goal_normalizes_steps(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness", sub_tasks=[
            SubTask(text="Shoes", target_progress=1, completed=True),
        ])
        assert goal.sub_tasks[0].current_progress == 1

    def test_update_goal(self, repo, clock):
        goal = repo.add_goal("Run", "Health & Wellness")
        clock.advance(hours=2)
        updated = repo.update_goal(goal.id, title=" Run a 10k ",
                                   priority="High", level=GoalLevel.HARD)
        assert updated.title == "Run a 10k"
        assert updated.priority == GoalPriority.HIGH
        assert updated.last_interaction_at == clock.now

    def test_update_goal_rejects_unknown_fields(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        with pytest.raises(ValidationError):
            repo.update_goal(goal.id, completed=True)

    def test_update_goal_rejects_blank_title(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        with pytest.raises(ValidationError):
            repo.update_goal(goal.id, title="")

    def test_unknown_goal(self, repo):
        with pytest.raises(GoalNotFoundError):
            repo.toggle_pinned("missing")

    def test_toggle_pinned(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        assert repo.toggle_pinned(goal.id).pinned
        assert not repo.toggle_pinned(goal.id).pinned

    def test_toggle_complete_archives(self, repo, clock):
        goal = repo.add_goal("Run", "Health & Wellness")
        clock.advance(days=1)
        assert repo.toggle_complete(goal.id) is True
        done = repo.get_goal(goal.id)
        assert done.archived
        assert done.completed_at == clock.now

    def test_reactivate_unarchives(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        repo.toggle_complete(goal.id)
        assert repo.toggle_complete(goal.id) is False
        back = repo.get_goal(goal.id)
        assert not back.archived
        assert back.completed_at is None

    def test_toggle_archived(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        assert repo.toggle_archived(goal.id).archived
        assert not repo.toggle_archived(goal.id).archived

    def test_completed_goal_stays_archived(self, repo):
        goal = repo.add_goal("Run", "Health & Wellness")
        repo.toggle_complete(goal.id)
        assert repo.toggle_archived(goal.id).archived

    def test_delete_goal(self, repo, gateway):
        goal = repo.add_goal("Run", "Health & Wellness")
        repo.delete_goal(goal.id)
        assert repo.goals == ()
        assert gateway.get_json(GOALS_KEY) == []
        with pytest.raises(GoalNotFoundError):
            repo.delete_goal(goal.id)

    def test_listeners_are_notified(self, repo):
        calls = []
        repo.subscribe(lambda r: calls.append(len(r.goals)))
        repo.add_goal("Run", "Health & Wellness")
        assert calls == [1]


class TestImport:
    def test_import_appends_new_goals(self, repo, gateway):
        existing = repo.add_goal("Run", "Health & Wellness")
        text = json.dumps([existing.to_dict(), {"id": "new-1", "title": "Swim"}])
        assert repo.import_goals(text) == 1
        assert [g.id for g in repo.goals] == [existing.id, "new-1"]

    def test_import_rejects_bad_json(self, repo):
        with pytest.raises(ValidationError):
            repo.import_goals("{nope")

    def test_import_rejects_non_list(self, repo):
        with pytest.raises(ValidationError):
            repo.import_goals('{"title": "Run"}')


class TestSubTasks:
    @pytest.fixture
    def goal(self, repo):
        return repo.add_goal("Read 24 books", "Fun & Travels")

    def test_add_subtask(self, repo, goal):
        step = repo.add_subtask(goal.id, " Finish a book ", target_progress=24)
        assert step.text == "Finish a book"
        assert repo.get_goal(goal.id).sub_tasks == [step]

    def test_add_subtask_needs_text(self, repo, goal):
        with pytest.raises(ValidationError):
            repo.add_subtask(goal.id, "  ")

    def test_add_subtask_rejects_negative_target(self, repo, goal):
        with pytest.raises(ValidationError):
            repo.add_subtask(goal.id, "Read", target_progress=-2)

    def test_toggle_subtask(self, repo, goal):
        step = repo.add_subtask(goal.id, "Finish a book", target_progress=3)
        done = repo.toggle_subtask(goal.id, step.id)
        assert done.completed and done.current_progress == 3
        undone = repo.toggle_subtask(goal.id, step.id)
        assert not undone.completed and undone.current_progress == 0

    def test_adjust_progress_clamps(self, repo, goal):
        step = repo.add_subtask(goal.id, "Finish a book", target_progress=2)
        assert repo.adjust_subtask_progress(goal.id, step.id, -1).current_progress == 0
        repo.adjust_subtask_progress(goal.id, step.id, 1)
        full = repo.adjust_subtask_progress(goal.id, step.id, 5)
        assert full.current_progress == 2
        assert full.completed
        back = repo.adjust_subtask_progress(goal.id, step.id, -1)
        assert not back.completed

    def test_unknown_subtask(self, repo, goal):
        with pytest.raises(SubTaskNotFoundError):
            repo.toggle_subtask(goal.id, "missing")

    def test_subtask_change_stamps_goal(self, repo, goal, clock):
        step = repo.add_subtask(goal.id, "Finish a book")
        clock.advance(days=2)
        repo.toggle_subtask(goal.id, step.id)
        assert repo.get_goal(goal.id).last_interaction_at == clock.now

    def test_remove_restore_compact(self, repo, goal):
        keep = repo.add_subtask(goal.id, "Keep")
        drop = repo.add_subtask(goal.id, "Drop")
        repo.remove_subtask(goal.id, drop.id)
        assert [t.id for t in repo.get_goal(goal.id).active_sub_tasks] == [keep.id]

        repo.restore_subtask(goal.id, drop.id)
        assert len(repo.get_goal(goal.id).active_sub_tasks) == 2

        repo.remove_subtask(goal.id, drop.id)
        assert repo.compact_subtasks(goal.id) == 1
        assert [t.id for t in repo.get_goal(goal.id).sub_tasks] == [keep.id]
        assert repo.compact_subtasks() == 0


class TestCategories:
    def test_add_category(self, repo):
        repo.add_category("Career & Finances")
        assert "Career & Finances" in repo.profile.categories
        assert repo.area_order[-1] == "Career & Finances"

    def test_add_duplicate_or_blank(self, repo):
        with pytest.raises(CategoryError):
            repo.add_category("Fun & Travels")
        with pytest.raises(CategoryError):
            repo.add_category("  ")

    def test_archive_category_archives_goals(self, repo):
        g1 = repo.add_goal("Visit Japan", "Fun & Travels")
        g2 = repo.add_goal("Run", "Health & Wellness")
        assert repo.archive_category("Fun & Travels") == 1
        assert repo.get_goal(g1.id).archived
        assert not repo.get_goal(g2.id).archived
        assert repo.profile.archived_categories == ["Fun & Travels"]
        assert "Fun & Travels" not in repo.area_order

    def test_archive_unknown_category(self, repo):
        with pytest.raises(CategoryError):
            repo.archive_category("Nope")

    def test_re_adding_unarchives(self, repo):
        repo.archive_category("Fun & Travels")
        repo.add_category("Fun & Travels")
        assert repo.profile.archived_categories == []

    def test_move_area(self, repo):
        repo.add_category("Others")
        assert repo.move_area("Others", 0) == ["Others", "Health & Wellness", "Fun & Travels"]
        assert repo.move_area("Others", 99)[-1] == "Others"
        with pytest.raises(CategoryError):
            repo.move_area("Nope", 0)
