"""Unit tests for the derived views and dashboard statistics."""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.data.models import Goal, GoalLevel, GoalPriority, SubTask
from src.services import view_engine as views
from src.services.analytics import compute_stats, headline_counts
from src.services.view_engine import FilterType, GoalFilter, SortMode, ViewState

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _goal(title="Goal", **kwargs) -> Goal:
    kwargs.setdefault("created_at", NOW)
    kwargs.setdefault("last_interaction_at", kwargs["created_at"])
    return Goal(title=title, **kwargs).normalize()


class TestGrouping:
    def test_manual_grouping_example(self):
        a = _goal("A", area="Health", pinned=True, order=0)
        b = _goal("B", area="Health", order=1, created_at=NOW + timedelta(days=1))
        c = _goal("C", area="Travel", order=2)
        stray = _goal("Stray", area="Unknown")
        grouped = views.group_active_goals([b, a, c, stray], ["Health", "Travel"])
        assert list(grouped) == ["Health", "Travel"]
        assert [g.title for g in grouped["Health"]] == ["A", "B"]
        assert [g.title for g in grouped["Travel"]] == ["C"]

    def test_every_area_gets_a_bucket(self):
        grouped = views.group_active_goals([], ["Health", "Travel"])
        assert grouped == {"Health": [], "Travel": []}

    def test_archived_goals_are_left_out(self):
        shelved = _goal("Old", area="Health", archived=True)
        assert views.group_active_goals([shelved], ["Health"]) == {"Health": []}

    def test_query_matches_title_or_description(self):
        g1 = _goal("Run a marathon", area="Health")
        g2 = _goal("Swim", area="Health", description="Open water RUN-up")
        g3 = _goal("Cook", area="Health")
        grouped = views.group_active_goals([g1, g2, g3], ["Health"], query="run")
        assert {g.title for g in grouped["Health"]} == {"Run a marathon", "Swim"}

    def test_group_for_view_uses_state(self):
        g1 = _goal("Run", area="Health")
        g2 = _goal("Swim", area="Health")
        state = ViewState(query="swim")
        assert [g.title for g in views.group_for_view([g1, g2], ["Health"], state)["Health"]] == ["Swim"]


class TestSorting:
    def test_manual_puts_pinned_then_order(self):
        g1 = _goal("1", order=2)
        g2 = _goal("2", order=1)
        g3 = _goal("3", order=5, pinned=True)
        assert [g.title for g in views.sort_goals([g1, g2, g3])] == ["3", "2", "1"]

    def test_newest(self):
        old = _goal("old", created_at=NOW)
        new = _goal("new", created_at=NOW + timedelta(hours=1))
        assert views.sort_goals([old, new], SortMode.NEWEST)[0].title == "new"

    def test_priority_and_difficulty(self):
        low = _goal("low", priority=GoalPriority.LOW, level=GoalLevel.HARD)
        high = _goal("high", priority=GoalPriority.HIGH, level=GoalLevel.EASY)
        assert views.sort_goals([low, high], SortMode.PRIORITY)[0].title == "high"
        assert views.sort_goals([high, low], SortMode.DIFFICULTY)[0].title == "low"

    def test_deadline_missing_goes_last(self):
        none = _goal("none")
        late = _goal("late", deadline=NOW + timedelta(days=9))
        soon = _goal("soon", deadline=NOW + timedelta(days=1))
        ordered = views.sort_goals([none, late, soon], SortMode.DEADLINE)
        assert [g.title for g in ordered] == ["soon", "late", "none"]

    def test_filter_matches_float_to_front(self):
        a = _goal("a", priority=GoalPriority.LOW, order=0)
        b = _goal("b", priority=GoalPriority.HIGH, order=1)
        c = _goal("c", priority=GoalPriority.HIGH, order=2)
        flt = GoalFilter(FilterType.PRIORITY, "High")
        assert [g.title for g in views.sort_goals([a, b, c], SortMode.MANUAL, flt)] == ["b", "c", "a"]

    def test_filter_matches_lead_regardless_of_sort(self):
        high_old = _goal("high_old", priority=GoalPriority.HIGH, created_at=NOW)
        high_older = _goal("high_older", priority=GoalPriority.HIGH,
                           created_at=NOW - timedelta(days=1))
        low_newest = _goal("low_newest", priority=GoalPriority.LOW,
                           created_at=NOW + timedelta(days=1))
        flt = GoalFilter(FilterType.PRIORITY, "High")
        ordered = views.sort_goals([low_newest, high_older, high_old], SortMode.NEWEST, flt)
        assert [g.title for g in ordered] == ["high_old", "high_older", "low_newest"]

    def test_sort_is_stable_on_ties(self):
        goals = [_goal(str(i), priority=GoalPriority.MEDIUM) for i in range(4)]
        ordered = views.sort_goals(goals, SortMode.PRIORITY)
        assert [g.title for g in ordered] == ["0", "1", "2", "3"]


class TestFilters:
    @pytest.mark.parametrize("flt, expected", [
        (GoalFilter(FilterType.DIFFICULTY, "Hard"), True),
        (GoalFilter(FilterType.PRIORITY, "Low"), False),
        (GoalFilter(FilterType.AREA, "Health"), True),
        (GoalFilter(FilterType.STATUS, "Active"), True),
        (GoalFilter(FilterType.STATUS, "Completed"), False),
        (None, False),
    ])
    def test_matches_filter(self, flt, expected):
        goal = _goal(level=GoalLevel.HARD, priority=GoalPriority.HIGH, area="Health")
        assert views.matches_filter(goal, flt) is expected

    def test_filter_label(self):
        assert GoalFilter(FilterType.AREA, "Health").label() == "area: Health"

    def test_view_state_reset(self):
        state = ViewState("x", GoalFilter(FilterType.AREA, "Health"), SortMode.NEWEST)
        state.reset()
        assert state == ViewState()
        assert state.sort_mode == SortMode.MANUAL


class TestArchive:
    def test_most_recent_completion_first(self):
        early = _goal("early", completed=True, completed_at=NOW)
        late = _goal("late", completed=True, completed_at=NOW + timedelta(days=2))
        shelved = _goal("shelved", archived=True)
        active = _goal("active")
        ordered = views.archived_goals([early, shelved, active, late])
        assert [g.title for g in ordered] == ["late", "early", "shelved"]


class TestProgress:
    def _tracked(self, **kwargs) -> Goal:
        return _goal(
            "Read", deadline=NOW + timedelta(days=10),
            sub_tasks=[SubTask(text="chapters", target_progress=4, current_progress=2)],
            **kwargs,
        )

    def test_on_schedule(self):
        snap = views.progress_snapshot(self._tracked(), NOW + timedelta(days=5))
        assert snap.raw == 100
        assert snap.displayed == 100
        assert not snap.ahead_of_schedule

    def test_ahead_of_schedule(self):
        snap = views.progress_snapshot(self._tracked(), NOW + timedelta(days=1))
        assert snap.raw == 500
        assert snap.displayed == 100
        assert snap.ahead_of_schedule

    def test_without_deadline_is_plain_completion(self):
        goal = _goal(sub_tasks=[
            SubTask(text="a", target_progress=1, current_progress=1),
            SubTask(text="b", target_progress=3, current_progress=0),
        ])
        assert views.compute_progress(goal, NOW) == 25

    def test_completed_goal_is_full(self):
        assert views.compute_progress(_goal(completed=True), NOW) == 100

    def test_no_steps_is_zero(self):
        assert views.compute_progress(_goal(deadline=NOW + timedelta(days=3)), NOW) == 0

    def test_deleted_steps_do_not_count(self):
        goal = _goal(sub_tasks=[
            SubTask(text="a", target_progress=1, current_progress=1),
            SubTask(text="gone", target_progress=1, deleted=True),
        ])
        snap = views.progress_snapshot(goal, NOW)
        assert snap.raw == 100
        assert (snap.steps_done, snap.steps_total) == (1, 1)

    def test_past_deadline_uses_full_window(self):
        snap = views.progress_snapshot(self._tracked(), NOW + timedelta(days=30))
        assert snap.raw == 50

    def test_rounds_half_up(self):
        goal = _goal(sub_tasks=[SubTask(text="a", target_progress=8, current_progress=1)])
        # 12.5 → 13
        assert views.compute_progress(goal, NOW) == 13

    @pytest.mark.parametrize("deadline", [None, NOW + timedelta(days=10)])
    def test_more_check_ins_never_lower_progress(self, deadline):
        target = 6
        values = []
        for current in range(target + 1):
            goal = _goal(deadline=deadline, sub_tasks=[
                SubTask(text="a", target_progress=target, current_progress=current),
                SubTask(text="b", target_progress=2, current_progress=1),
            ])
            values.append(views.compute_progress(goal, NOW + timedelta(days=3)))
        assert values == sorted(values)
        assert values[0] < values[-1]

    def test_imported_goal_with_utc_offsets(self):
        goal = Goal.from_dict({
            "title": "Read",
            "createdAt": "2026-06-01T10:00:00+00:00",
            "deadline": "2026-06-03T10:00:00+00:00",
            "subTasks": [{"text": "chapters", "targetProgress": 2, "currentProgress": 1}],
        })
        halfway = goal.created_at + timedelta(days=1)
        assert views.compute_progress(goal, halfway) == 100
        assert views.days_left(goal, halfway) == 1


class TestDisplayHelpers:
    def test_days_left_rounds_up(self):
        goal = _goal(deadline=NOW + timedelta(days=2, hours=1))
        assert views.days_left(goal, NOW) == 3
        assert views.days_left(_goal(), NOW) is None

    def test_days_left_negative_when_overdue(self):
        goal = _goal(deadline=NOW - timedelta(days=2))
        assert views.days_left(goal, NOW) == -2

    def test_countdown(self):
        horizon = NOW + timedelta(days=3, hours=4, minutes=5, seconds=30)
        assert views.countdown(horizon, NOW) == views.Countdown(3, 4, 5)

    def test_countdown_after_horizon_is_zero(self):
        assert views.countdown(NOW - timedelta(days=1), NOW) == views.Countdown(0, 0, 0)

    def test_area_summary(self):
        bucket = [
            _goal("done", completed=True),
            _goal("started", sub_tasks=[SubTask(text="a", target_progress=3, current_progress=1)]),
            _goal("idle", sub_tasks=[SubTask(text="a", target_progress=3)]),
            _goal("tombstone", sub_tasks=[SubTask(text="a", completed=True, deleted=True)]),
        ]
        summary = views.area_summary(bucket)
        assert (summary.total, summary.active, summary.in_progress, summary.done) == (4, 3, 1, 1)
        assert summary.in_progress_pct == 25.0

    def test_area_summary_empty(self):
        assert views.area_summary([]).in_progress_pct == 0.0

    def test_calendar_event_url(self):
        deadline = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)
        goal = _goal("Visit Japan", description="Cherry blossoms", deadline=deadline)
        url = views.calendar_event_url(goal)
        assert url.startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
        assert "text=Visit%20Japan" in url
        assert "dates=20260601T100000Z/20260601T100000Z" in url
        assert "details=Cherry%20blossoms" in url

    def test_calendar_event_url_without_deadline(self):
        assert views.calendar_event_url(_goal()) is None


class TestAnalytics:
    def test_compute_stats(self):
        goals = [
            _goal("a", area="Travel", level=GoalLevel.EASY, priority=GoalPriority.HIGH),
            _goal("b", area="Health", level=GoalLevel.HARD, completed=True),
            _goal("c", area="Custom", level=GoalLevel.HARD),
        ]
        stats = compute_stats(goals, ["Health", "Travel"])
        assert (stats.total, stats.completed, stats.active) == (3, 1, 2)
        assert stats.completion_rate == 33
        assert stats.by_area == [("Health", 1), ("Travel", 1), ("Custom", 1)]
        assert stats.by_difficulty == [("Easy", 1), ("Medium", 0), ("Hard", 2)]
        assert stats.by_priority == [("High", 1), ("Medium", 2), ("Low", 0)]
        assert stats.by_status == [("Completed", 1), ("Active", 2)]

    def test_empty_stats(self):
        stats = compute_stats([])
        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.by_area == []

    def test_headline_counts(self):
        goals = [_goal("open"), _goal("done", completed=True), _goal("shelved", archived=True)]
        assert headline_counts(goals) == {"active": 1, "completed": 1}
