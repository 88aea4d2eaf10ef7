"""
Dashboard API - insights, focus queue, week planner and profile views
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from todo_app.api.deps import get_todo_store, store_call
from todo_app.services import insights
from todo_app.services.todo_store import TodoStore
from todo_app.utils.validators import require_user_id

router = APIRouter()


async def _load(store: TodoStore, user_id: Optional[str]):
    owner = require_user_id(user_id)
    with store_call(f"loading dashboard todos for user {owner}"):
        return await store.list(owner)


@router.get("/insights")
async def get_insights(
    user_id: Optional[str] = Query(None, alias="userId"),
    store: TodoStore = Depends(get_todo_store),
):
    """Counts, completion rate, category and priority breakdowns"""
    todos = await _load(store, user_id)
    return insights.build_insights(todos, datetime.now())


@router.get("/focus")
async def get_focus(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(insights.FOCUS_QUEUE_SIZE, ge=1, le=50),
    store: TodoStore = Depends(get_todo_store),
):
    todos = await _load(store, user_id)
    return insights.build_focus(todos, datetime.now(), limit)


@router.get("/planner")
async def get_planner(
    user_id: Optional[str] = Query(None, alias="userId"),
    store: TodoStore = Depends(get_todo_store),
):
    """Next seven days plus the undated backlog"""
    todos = await _load(store, user_id)
    return insights.build_planner(todos, datetime.now())


@router.get("/profile")
async def get_profile(
    user_id: Optional[str] = Query(None, alias="userId"),
    store: TodoStore = Depends(get_todo_store),
):
    todos = await _load(store, user_id)
    return insights.build_profile(todos, datetime.now())
