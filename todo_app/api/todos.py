"""
Todo API endpoints - per-user task CRUD keyed by userId
"""
from datetime import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from todo_app.api.deps import get_todo_store, store_call
from todo_app.services.errors import InvalidInput
from todo_app.services.insights import filter_todos
from todo_app.services.todo_store import (
    TodoStore, TodoEntry, DEFAULT_CATEGORY, DEFAULT_PRIORITY, UPDATABLE_FIELDS, next_todo_id,
)
from todo_app.utils.logger import get_logger
from todo_app.utils.validators import require_user_id, require_todo_id, require_text, validate_priority

router = APIRouter()
logger = get_logger(__name__)

Identifier = Optional[Union[int, str]]


# --- Pydantic Schemas ---
# Every field is optional at parse time so missing ones are reported as 400, not 422

class TodoCreate(BaseModel):
    user_id: Identifier = Field(default=None, alias="userId")
    task: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class TodoRef(BaseModel):
    user_id: Identifier = Field(default=None, alias="userId")
    todo_id: Identifier = Field(default=None, alias="todoId")

    class Config:
        populate_by_name = True


class TodoStatusUpdate(TodoRef):
    completed: Optional[bool] = None


class TodoFieldsUpdate(TodoRef):
    task: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    notes: Optional[str] = None
    completed: Optional[bool] = None


# --- Helpers ---

def _requested_updates(data: TodoFieldsUpdate) -> dict:
    """Fields actually present in the body, validated; null clears optional text fields"""
    present = data.model_fields_set
    updates = {}
    for store_field in UPDATABLE_FIELDS.values():
        if store_field not in present:
            continue
        value = getattr(data, store_field)
        if store_field == "task":
            require_text(value, "Task")
        if store_field in ("completed", "priority") and value is None:
            raise InvalidInput(f"{store_field} cannot be null")
        if store_field == "priority":
            validate_priority(value)
        if store_field == "due_date" and value == "":
            value = None
        updates[store_field] = value
    if not updates:
        raise InvalidInput("No updatable fields provided")
    return updates


# --- Endpoints ---

@router.get("", response_model=List[TodoEntry])
async def list_todos(
    user_id: Optional[str] = Query(None, alias="userId"),
    status: Optional[str] = None,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    store: TodoStore = Depends(get_todo_store),
):
    """List a user's todos in stored order, or filtered/sorted when any filter is given"""
    owner = require_user_id(user_id)

    with store_call(f"fetching todos for user {owner}"):
        todos = await store.list(owner)

    if any(v is not None for v in (status, category, priority, search, sort_by)):
        todos = filter_todos(
            todos,
            datetime.now(),
            status=status or "all",
            category=category or "all",
            priority=priority or "all",
            search=search or "",
            sort_by=sort_by or "created",
        )
    return todos


@router.post("", status_code=201)
async def create_todo(data: TodoCreate, store: TodoStore = Depends(get_todo_store)):
    owner = require_user_id(data.user_id)
    task = require_text(data.task, "Task")
    validate_priority(data.priority)

    todo_id = next_todo_id()
    entry = TodoEntry(
        id=todo_id,
        user_id=owner,
        task=task,
        category=data.category or DEFAULT_CATEGORY,
        completed=bool(data.completed),
        priority=data.priority or DEFAULT_PRIORITY,
        due_date=data.due_date or None,
        notes=data.notes or "",
        created_at=todo_id,
    )

    with store_call(f"adding todo for user {owner}"):
        created = await store.create_or_append(owner, entry)

    logger.info(f"User {owner} added todo {created.id}")
    return {"message": "Todo added successfully", "result": created.model_dump(by_alias=True)}


@router.patch("")
async def update_todo_status(data: TodoStatusUpdate, store: TodoStore = Depends(get_todo_store)):
    owner = require_user_id(data.user_id)
    todo_id = require_todo_id(data.todo_id)
    if data.completed is None:
        raise InvalidInput("completed is required")

    with store_call(f"updating todo {todo_id} for user {owner}"):
        result = await store.set_completed(owner, todo_id, data.completed)

    return {"message": "Todo updated successfully", "result": result.model_dump(by_alias=True)}


@router.put("")
async def update_todo_fields(data: TodoFieldsUpdate, store: TodoStore = Depends(get_todo_store)):
    owner = require_user_id(data.user_id)
    todo_id = require_todo_id(data.todo_id)
    updates = _requested_updates(data)

    with store_call(f"editing todo {todo_id} for user {owner}"):
        result = await store.update_fields(owner, todo_id, updates)

    return {"message": "Todo updated successfully", "result": result.model_dump(by_alias=True)}


@router.delete("")
async def delete_todo(data: TodoRef, store: TodoStore = Depends(get_todo_store)):
    owner = require_user_id(data.user_id)
    todo_id = require_todo_id(data.todo_id)

    with store_call(f"deleting todo {todo_id} for user {owner}"):
        result = await store.remove(owner, todo_id)

    logger.info(f"User {owner} deleted todo {todo_id} (matched {result.deleted_count})")
    return {"message": "Todo deleted successfully", "result": result.model_dump(by_alias=True)}
