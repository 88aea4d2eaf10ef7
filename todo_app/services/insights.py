"""
Aggregation engine - derived views over a snapshot of a user's task list.

Everything here is a pure function of (todos, now): the input list is never
mutated and the same inputs always produce the same output. Used by the
dashboard API and by the client views.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Sequence, Tuple

from todo_app.services.errors import InvalidInput
from todo_app.services.todo_store import TodoEntry, DEFAULT_PRIORITY
from todo_app.utils.helpers import parse_due_date, start_of_day, next_day_start, day_range

FOCUS_QUEUE_SIZE = 6
RECENT_ACTIVITY_SIZE = 6
WEEK_PLAN_DAYS = 7
UPCOMING_LIMIT = 5
OVERDUE_PREVIEW_LIMIT = 4

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
STATUS_FILTERS = ("all", "active", "completed")
# "recent" is the home view's name for the default newest-first order
SORT_KEYS = ("created", "recent", "priority", "dueDate", "category")


def _clock(now: datetime) -> Tuple[datetime, Any]:
    """Split `now` into a naive local time plus the zone due dates are converted to"""
    return now.replace(tzinfo=None), now.tzinfo


def _priority_rank(todo: TodoEntry) -> int:
    return PRIORITY_ORDER.get(todo.priority or DEFAULT_PRIORITY, PRIORITY_ORDER[DEFAULT_PRIORITY])


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _dump(todos: Sequence[TodoEntry]) -> List[Dict[str, Any]]:
    return [t.model_dump(by_alias=True) for t in todos]


# ──────────────────────────────────────────────────────
#  Counts and breakdowns
# ──────────────────────────────────────────────────────

def completion_rate(todos: Sequence[TodoEntry]) -> int:
    """Percent completed, rounded half up; 0 for an empty list"""
    total = len(todos)
    if not total:
        return 0
    completed = sum(1 for t in todos if t.completed)
    return _round_half_up(100 * completed / total)


def category_breakdown(todos: Sequence[TodoEntry]) -> List[Dict[str, Any]]:
    """Entries per category, most used first; ties keep first-seen order"""
    counts: Dict[str, int] = {}
    for t in todos:
        counts[t.category] = counts.get(t.category, 0) + 1
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [{"category": name, "count": count} for name, count in ordered]


def priority_breakdown(todos: Sequence[TodoEntry], active_only: bool = False) -> Dict[str, int]:
    counts = {"high": 0, "medium": 0, "low": 0}
    for t in todos:
        if active_only and t.completed:
            continue
        level = t.priority if t.priority in counts else DEFAULT_PRIORITY
        counts[level] += 1
    return counts


def unique_categories(todos: Sequence[TodoEntry]) -> List[str]:
    return list(dict.fromkeys(t.category for t in todos))


# ──────────────────────────────────────────────────────
#  Due-date buckets
# ──────────────────────────────────────────────────────

def due_buckets(todos: Sequence[TodoEntry], now: datetime) -> Dict[str, List[TodoEntry]]:
    """Classify entries as overdue / today / upcoming / no_date.

    `today` holds every entry due today, completed or not. `overdue` and
    `upcoming` (the rest of the next seven days) hold incomplete entries only
    and are sorted by due time. Unparsable dates count as no date.
    """
    local_now, tz = _clock(now)
    day_start = start_of_day(local_now)
    next_day = next_day_start(local_now)
    horizon = day_range(local_now, WEEK_PLAN_DAYS)[-1][1]

    buckets: Dict[str, List[TodoEntry]] = {"overdue": [], "today": [], "upcoming": [], "no_date": []}
    due_at: Dict[int, datetime] = {}
    for t in todos:
        due = parse_due_date(t.due_date, tz)
        if due is None:
            buckets["no_date"].append(t)
            continue
        due_at[id(t)] = due
        if day_start <= due < next_day:
            buckets["today"].append(t)
        elif due < day_start:
            if not t.completed:
                buckets["overdue"].append(t)
        elif due < horizon and not t.completed:
            buckets["upcoming"].append(t)

    buckets["overdue"].sort(key=lambda t: due_at[id(t)])
    buckets["upcoming"].sort(key=lambda t: due_at[id(t)])
    return buckets


def overdue_preview(todos: Sequence[TodoEntry], now: datetime, limit: int = OVERDUE_PREVIEW_LIMIT) -> List[TodoEntry]:
    return due_buckets(todos, now)["overdue"][:limit]


def upcoming(todos: Sequence[TodoEntry], now: datetime, limit: int = UPCOMING_LIMIT) -> List[TodoEntry]:
    """Soonest incomplete entries due after today, with no horizon"""
    local_now, tz = _clock(now)
    next_day = next_day_start(local_now)
    dated = []
    for t in todos:
        due = parse_due_date(t.due_date, tz)
        if due is not None and due >= next_day and not t.completed:
            dated.append((due, t))
    dated.sort(key=lambda pair: pair[0])
    return [t for _, t in dated[:limit]]


def backlog(todos: Sequence[TodoEntry], now: datetime) -> List[TodoEntry]:
    """Incomplete entries with no usable due date, matching the `no_date` bucket"""
    _, tz = _clock(now)
    return [t for t in todos if not t.completed and parse_due_date(t.due_date, tz) is None]


# ──────────────────────────────────────────────────────
#  Focus queue, week plan, recent activity
# ──────────────────────────────────────────────────────

def rank_incomplete(todos: Sequence[TodoEntry], now: datetime) -> List[TodoEntry]:
    """Incomplete entries by due date (undated last), then priority high..low"""
    _, tz = _clock(now)

    def sort_key(t: TodoEntry):
        due = parse_due_date(t.due_date, tz)
        return (due is None, due or datetime.min, _priority_rank(t))

    return sorted((t for t in todos if not t.completed), key=sort_key)


def focus_queue(todos: Sequence[TodoEntry], now: datetime, limit: int = FOCUS_QUEUE_SIZE) -> List[TodoEntry]:
    """What to work on next: overdue, then due today, then everything else ranked"""
    local_now, tz = _clock(now)
    day_start = start_of_day(local_now)
    next_day = next_day_start(local_now)

    ranked = rank_incomplete(todos, now)
    overdue_part, today_part = [], []
    for t in ranked:
        due = parse_due_date(t.due_date, tz)
        if due is None:
            continue
        if due < day_start:
            overdue_part.append(t)
        elif due < next_day:
            today_part.append(t)

    queue: List[TodoEntry] = []
    seen = set()
    for t in overdue_part + today_part + ranked:
        if t.id in seen:
            continue
        seen.add(t.id)
        queue.append(t)
        if len(queue) == limit:
            break
    return queue


def weekly_plan(todos: Sequence[TodoEntry], now: datetime, days: int = WEEK_PLAN_DAYS) -> List[Dict[str, Any]]:
    """One bucket per calendar day from today, incomplete entries only"""
    local_now, tz = _clock(now)
    dated = []
    for t in todos:
        due = parse_due_date(t.due_date, tz)
        if due is not None and not t.completed:
            dated.append((due, t))

    plan = []
    for day_start, next_day in day_range(local_now, days):
        day_todos = sorted(
            ((due, t) for due, t in dated if day_start <= due < next_day),
            key=lambda pair: pair[0],
        )
        plan.append({
            "date": day_start.date(),
            "label": f"{day_start:%a, %b} {day_start.day}",
            "todos": [t for _, t in day_todos],
        })
    return plan


def recent_activity(todos: Sequence[TodoEntry], limit: int = RECENT_ACTIVITY_SIZE) -> List[TodoEntry]:
    """Newest first by effective creation time"""
    return sorted(todos, key=lambda t: t.created_at, reverse=True)[:limit]


# ──────────────────────────────────────────────────────
#  Summary and list filtering
# ──────────────────────────────────────────────────────

def summarize(todos: Sequence[TodoEntry], now: datetime) -> Dict[str, int]:
    buckets = due_buckets(todos, now)
    completed = sum(1 for t in todos if t.completed)
    return {
        "total": len(todos),
        "completed": completed,
        "active": len(todos) - completed,
        "overdue": len(buckets["overdue"]),
        "today": sum(1 for t in buckets["today"] if not t.completed),
        "highPriority": sum(1 for t in todos if not t.completed and t.priority == "high"),
        "completionRate": completion_rate(todos),
    }


def filter_todos(
    todos: Sequence[TodoEntry],
    now: datetime,
    status: str = "all",
    category: str = "all",
    priority: str = "all",
    search: str = "",
    sort_by: str = "created",
) -> List[TodoEntry]:
    """The main list view: filter by status/category/priority/search, then sort.

    `category="today"` selects entries due today instead of a category.
    """
    if status not in STATUS_FILTERS:
        raise InvalidInput(f"Invalid status filter. Must be one of: {', '.join(STATUS_FILTERS)}")
    if sort_by not in SORT_KEYS:
        raise InvalidInput(f"Invalid sort. Must be one of: {', '.join(SORT_KEYS)}")

    local_now, tz = _clock(now)
    day_start = start_of_day(local_now)
    next_day = next_day_start(local_now)
    needle = (search or "").lower()

    def keep(t: TodoEntry) -> bool:
        if status == "completed" and not t.completed:
            return False
        if status == "active" and t.completed:
            return False
        if category == "today":
            due = parse_due_date(t.due_date, tz)
            if due is None or not (day_start <= due < next_day):
                return False
        elif category != "all" and t.category != category:
            return False
        if priority != "all" and t.priority != priority:
            return False
        if needle and needle not in t.task.lower() and needle not in t.notes.lower():
            return False
        return True

    kept = [t for t in todos if keep(t)]

    if sort_by == "priority":
        return sorted(kept, key=_priority_rank)
    if sort_by == "dueDate":
        def due_key(t: TodoEntry):
            due = parse_due_date(t.due_date, tz)
            return (due is None, due or datetime.min)
        return sorted(kept, key=due_key)
    if sort_by == "category":
        return sorted(kept, key=lambda t: t.category.casefold())
    return sorted(kept, key=lambda t: t.created_at, reverse=True)


# ──────────────────────────────────────────────────────
#  Dashboard payloads
# ──────────────────────────────────────────────────────

def build_insights(todos: Sequence[TodoEntry], now: datetime) -> Dict[str, Any]:
    return {
        "summary": summarize(todos, now),
        "categories": category_breakdown(todos),
        "priorities": priority_breakdown(todos),
        "upcoming": _dump(upcoming(todos, now)),
        "categoryOptions": unique_categories(todos),
    }


def build_focus(todos: Sequence[TodoEntry], now: datetime, limit: int = FOCUS_QUEUE_SIZE) -> Dict[str, Any]:
    buckets = due_buckets(todos, now)
    return {
        "queue": _dump(focus_queue(todos, now, limit)),
        "overdueCount": len(buckets["overdue"]),
        "todayCount": sum(1 for t in buckets["today"] if not t.completed),
    }


def build_planner(todos: Sequence[TodoEntry], now: datetime) -> Dict[str, Any]:
    return {
        "days": [
            {"date": day["date"].isoformat(), "label": day["label"], "todos": _dump(day["todos"])}
            for day in weekly_plan(todos, now)
        ],
        "backlog": _dump(backlog(todos, now)),
        "highPriority": _dump([t for t in todos if not t.completed and t.priority == "high"]),
        "completedCount": sum(1 for t in todos if t.completed),
    }


def build_profile(todos: Sequence[TodoEntry], now: datetime) -> Dict[str, Any]:
    next_days = [
        {"date": day["date"].isoformat(), "label": f"{day['date']:%a}", "count": len(day["todos"])}
        for day in weekly_plan(todos, now)
    ]
    return {
        "summary": summarize(todos, now),
        "recent": _dump(recent_activity(todos)),
        "overdue": _dump(overdue_preview(todos, now)),
        "activePriorities": priority_breakdown(todos, active_only=True),
        "nextSevenDays": next_days,
    }
