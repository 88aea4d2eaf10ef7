"""
Aggregation engine tests - pure functions over a fixed task list and clock.
"""
import copy
from datetime import datetime, timedelta, timezone

import pytest

from todo_app.services import insights
from todo_app.services.errors import InvalidInput
from todo_app.services.todo_store import TodoEntry

NOW = datetime(2026, 3, 10, 14, 30)
TODAY = "2026-03-10"
YESTERDAY = "2026-03-09"
TOMORROW = "2026-03-11"

_next_id = iter(range(1, 10_000))


def todo(task, due=None, priority="medium", completed=False, category="General", created=None, notes=""):
    todo_id = next(_next_id)
    return TodoEntry(
        id=todo_id,
        user_id="u1",
        task=task,
        category=category,
        completed=completed,
        priority=priority,
        due_date=due,
        notes=notes,
        created_at=created if created is not None else todo_id,
    )


def tasks(entries):
    return [t.task for t in entries]


# ===================== COMPLETION RATE =====================


class TestCompletionRate:

    def test_empty(self):
        assert insights.completion_rate([]) == 0

    def test_all_done(self):
        assert insights.completion_rate([todo("a", completed=True), todo("b", completed=True)]) == 100

    def test_one_of_three(self):
        assert insights.completion_rate([todo("a", completed=True), todo("b"), todo("c")]) == 33

    def test_rounds_half_up(self):
        entries = [todo("done", completed=True)] + [todo(str(i)) for i in range(7)]
        assert insights.completion_rate(entries) == 13


# ===================== BREAKDOWNS =====================


class TestBreakdowns:

    def test_category_sorted_by_count_ties_in_encounter_order(self):
        entries = [
            todo("1", category="Home"),
            todo("2", category="Work"),
            todo("3", category="Errands"),
            todo("4", category="Work"),
            todo("5", category="Errands"),
        ]
        assert insights.category_breakdown(entries) == [
            {"category": "Work", "count": 2},
            {"category": "Errands", "count": 2},
            {"category": "Home", "count": 1},
        ]

    def test_priority_buckets(self):
        entries = [todo("a", priority="high"), todo("b", priority="low"), todo("c"), todo("d", completed=True)]
        assert insights.priority_breakdown(entries) == {"high": 1, "medium": 2, "low": 1}
        assert insights.priority_breakdown(entries, active_only=True) == {"high": 1, "medium": 1, "low": 1}

    def test_unique_categories(self):
        entries = [todo("a", category="Work"), todo("b", category="Home"), todo("c", category="Work")]
        assert insights.unique_categories(entries) == ["Work", "Home"]


# ===================== DUE-DATE BUCKETS =====================


class TestDueBuckets:

    def test_classification(self):
        overdue = todo("overdue", due=YESTERDAY)
        overdue_done = todo("overdue done", due=YESTERDAY, completed=True)
        today = todo("today", due=f"{TODAY}T09:00")
        today_late = todo("today late", due=f"{TODAY}T23:59:59")
        soon = todo("soon", due="2026-03-14")
        far = todo("far", due="2026-04-30")
        undated = todo("undated")
        garbage = todo("garbage", due="next tuesday")

        buckets = insights.due_buckets(
            [overdue, overdue_done, today, today_late, soon, far, undated, garbage], NOW
        )
        assert tasks(buckets["overdue"]) == ["overdue"]
        assert tasks(buckets["today"]) == ["today", "today late"]
        assert tasks(buckets["upcoming"]) == ["soon"]
        assert tasks(buckets["no_date"]) == ["undated", "garbage"]

    def test_today_includes_completed(self):
        buckets = insights.due_buckets([todo("done", due=TODAY, completed=True)], NOW)
        assert tasks(buckets["today"]) == ["done"]

    def test_overdue_sorted_by_due(self):
        entries = [todo("later", due="2026-03-08"), todo("earlier", due="2026-03-01")]
        assert tasks(insights.due_buckets(entries, NOW)["overdue"]) == ["earlier", "later"]

    def test_aware_due_date_converted_to_now_zone(self):
        utc_now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
        plus_two = timezone(timedelta(hours=2))
        # 2026-03-10T01:00+02:00 is 2026-03-09T23:00 UTC: yesterday in UTC
        entry = todo("edge", due="2026-03-10T01:00:00+02:00")
        assert tasks(insights.due_buckets([entry], utc_now)["overdue"]) == ["edge"]
        assert tasks(insights.due_buckets([entry], utc_now.astimezone(plus_two))["today"]) == ["edge"]

    def test_backlog_and_upcoming(self):
        entries = [
            todo("undated"),
            todo("undated done", completed=True),
            todo("tomorrow", due=TOMORROW),
            todo("next month", due="2026-04-10"),
            todo("today", due=TODAY),
        ]
        assert tasks(insights.backlog(entries, NOW)) == ["undated"]
        assert tasks(insights.upcoming(entries, NOW)) == ["tomorrow", "next month"]

    def test_out_of_range_offset_counts_as_no_date(self):
        utc_now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
        # year 1 at +05:00 falls before datetime.min once converted to UTC
        entry = todo("ancient", due="0001-01-01T00:00:00+05:00")
        buckets = insights.due_buckets([entry], utc_now)
        assert tasks(buckets["no_date"]) == ["ancient"]
        assert insights.build_insights([entry], utc_now)["summary"]["overdue"] == 0
        assert tasks(insights.focus_queue([entry], utc_now)) == ["ancient"]

    def test_unparsable_due_date_lands_in_backlog(self):
        entry = todo("vague", due="next tuesday")
        assert tasks(insights.backlog([entry], NOW)) == ["vague"]
        planner = insights.build_planner([entry], NOW)
        assert [t["task"] for t in planner["backlog"]] == ["vague"]
        assert all(not day["todos"] for day in planner["days"])

    def test_last_millisecond_of_today_agrees_across_views(self):
        entry = todo("midnight-ish", due=f"{TODAY}T23:59:59.999500")
        assert tasks(insights.due_buckets([entry], NOW)["today"]) == ["midnight-ish"]
        assert insights.upcoming([entry], NOW) == []
        assert tasks(insights.weekly_plan([entry], NOW)[0]["todos"]) == ["midnight-ish"]
        assert tasks(insights.filter_todos([entry], NOW, category="today")) == ["midnight-ish"]

    def test_next_midnight_is_not_today(self):
        entry = todo("tomorrow", due=f"{TOMORROW}T00:00:00")
        assert insights.due_buckets([entry], NOW)["today"] == []
        assert tasks(insights.upcoming([entry], NOW)) == ["tomorrow"]

    def test_overdue_preview_limit(self):
        entries = [todo(str(day), due=f"2026-03-0{day}") for day in range(1, 8)]
        assert len(insights.overdue_preview(entries, NOW)) == 4


# ===================== FOCUS QUEUE =====================


class TestFocusQueue:

    def test_overdue_then_today_then_rest(self):
        a = todo("A", due=YESTERDAY, priority="low")
        b = todo("B", due=TODAY, priority="high")
        c = todo("C", priority="high")
        assert tasks(insights.focus_queue([c, b, a], NOW)) == ["A", "B", "C"]

    def test_never_contains_completed(self):
        entries = [todo("done", due=YESTERDAY, completed=True), todo("open", due=TOMORROW)]
        assert tasks(insights.focus_queue(entries, NOW)) == ["open"]

    def test_priority_breaks_due_ties(self):
        entries = [todo("low", due=TOMORROW, priority="low"), todo("high", due=TOMORROW, priority="high")]
        assert tasks(insights.focus_queue(entries, NOW)) == ["high", "low"]

    def test_undated_last(self):
        entries = [todo("undated", priority="high"), todo("far", due="2026-12-01", priority="low")]
        assert tasks(insights.focus_queue(entries, NOW)) == ["far", "undated"]

    def test_deduplicated_and_truncated(self):
        entries = [todo(f"t{i}", due=YESTERDAY) for i in range(4)] + [todo(f"u{i}") for i in range(5)]
        queue = insights.focus_queue(entries, NOW)
        assert len(queue) == 6
        assert len({t.id for t in queue}) == 6
        assert tasks(queue)[:4] == ["t0", "t1", "t2", "t3"]


# ===================== WEEK PLAN / RECENT =====================


class TestWeekPlanAndRecent:

    def test_weekly_plan(self):
        entries = [
            todo("late today", due=f"{TODAY}T18:00"),
            todo("early today", due=f"{TODAY}T08:00"),
            todo("tomorrow", due=TOMORROW),
            todo("done tomorrow", due=TOMORROW, completed=True),
            todo("day seven", due="2026-03-16"),
            todo("day eight", due="2026-03-17"),
            todo("yesterday", due=YESTERDAY),
        ]
        plan = insights.weekly_plan(entries, NOW)
        assert len(plan) == 7
        assert plan[0]["date"].isoformat() == TODAY
        assert plan[0]["label"] == "Tue, Mar 10"
        assert tasks(plan[0]["todos"]) == ["early today", "late today"]
        assert tasks(plan[1]["todos"]) == ["tomorrow"]
        assert tasks(plan[6]["todos"]) == ["day seven"]
        assert sum(len(day["todos"]) for day in plan) == 4

    def test_recent_activity(self):
        entries = [todo(str(i), created=i * 10) for i in range(8)]
        assert tasks(insights.recent_activity(entries)) == ["7", "6", "5", "4", "3", "2"]


# ===================== SUMMARY / FILTERING =====================


class TestSummaryAndFilter:

    def test_summarize(self):
        entries = [
            todo("overdue", due=YESTERDAY, priority="high"),
            todo("today", due=TODAY),
            todo("done", due=TODAY, completed=True),
        ]
        assert insights.summarize(entries, NOW) == {
            "total": 3,
            "completed": 1,
            "active": 2,
            "overdue": 1,
            "today": 1,
            "highPriority": 1,
            "completionRate": 33,
        }

    def test_filter_today_pseudo_category(self):
        entries = [todo("today", due=TODAY), todo("tomorrow", due=TOMORROW)]
        assert tasks(insights.filter_todos(entries, NOW, category="today")) == ["today"]

    def test_filter_search_matches_notes(self):
        entries = [todo("Groceries", notes="buy OAT milk"), todo("Gym")]
        assert tasks(insights.filter_todos(entries, NOW, search="oat")) == ["Groceries"]

    def test_default_sort_newest_first(self):
        entries = [todo("old", created=1), todo("new", created=2)]
        assert tasks(insights.filter_todos(entries, NOW)) == ["new", "old"]

    def test_sort_by_due_date_nulls_last(self):
        entries = [todo("none"), todo("later", due="2026-05-01"), todo("sooner", due="2026-04-01")]
        assert tasks(insights.filter_todos(entries, NOW, sort_by="dueDate")) == ["sooner", "later", "none"]

    def test_sort_recent_is_newest_first(self):
        entries = [todo("old", created=1), todo("new", created=2)]
        assert tasks(insights.filter_todos(entries, NOW, sort_by="recent")) == ["new", "old"]

    def test_sort_by_category(self):
        entries = [todo("w", category="work"), todo("h", category="Home")]
        assert tasks(insights.filter_todos(entries, NOW, sort_by="category")) == ["h", "w"]

    def test_invalid_filters(self):
        with pytest.raises(InvalidInput):
            insights.filter_todos([], NOW, status="archived")
        with pytest.raises(InvalidInput):
            insights.filter_todos([], NOW, sort_by="colour")


# ===================== PURITY =====================


def test_functions_do_not_mutate_input_and_are_repeatable():
    entries = [
        todo("A", due=YESTERDAY, priority="low"),
        todo("B", due=TODAY, priority="high", category="Work"),
        todo("C", priority="high", completed=True),
    ]
    snapshot = copy.deepcopy(entries)

    for build in (insights.build_insights, insights.build_focus, insights.build_planner, insights.build_profile):
        assert build(entries, NOW) == build(entries, NOW)

    assert entries == snapshot
