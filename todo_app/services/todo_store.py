"""
Task store - durable per-user task lists behind a swappable interface.

Every entry leaving a store passes through `normalize_entry`, so callers
always see a fully-populated TodoEntry regardless of when the row was
written. `SqlTodoStore` is the source of truth; `InMemoryTodoStore` is a
single-process development stub and loses everything on restart.
"""
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from todo_app.models.todo import TodoItem
from todo_app.services.errors import InvalidInput, StoreError
from todo_app.utils.helpers import now_ms

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
DEFAULT_PRIORITY = "medium"

# Wire name -> store field, for the partial update endpoint
UPDATABLE_FIELDS = {
    "task": "task",
    "category": "category",
    "priority": "priority",
    "dueDate": "due_date",
    "notes": "notes",
    "completed": "completed",
}


# --- Schemas ---

class TodoEntry(BaseModel):
    id: int
    user_id: str = Field(alias="userId")
    task: str
    category: str = DEFAULT_CATEGORY
    completed: bool = False
    priority: str = DEFAULT_PRIORITY
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    notes: str = ""
    created_at: int = Field(alias="createdAt")

    class Config:
        populate_by_name = True


class UpdateResult(BaseModel):
    matched_count: int = Field(alias="matchedCount")

    class Config:
        populate_by_name = True


class DeleteResult(BaseModel):
    deleted_count: int = Field(alias="deletedCount")

    class Config:
        populate_by_name = True


# --- Id generation ---

_last_issued_id = 0


def next_todo_id() -> int:
    """Timestamp-derived id, strictly increasing within this process"""
    global _last_issued_id
    candidate = now_ms()
    if candidate <= _last_issued_id:
        candidate = _last_issued_id + 1
    _last_issued_id = candidate
    return candidate


# --- Read normalization ---

def effective_created_at(created_at: Optional[int], todo_id: Optional[int]) -> int:
    """createdAt, else the (timestamp) id, else now"""
    if created_at is not None:
        return int(created_at)
    if todo_id is not None:
        return int(todo_id)
    return now_ms()


def normalize_entry(raw: Mapping[str, Any]) -> TodoEntry:
    """Fill defaults for fields that older entries may lack"""
    todo_id = raw.get("id")
    return TodoEntry(
        id=int(todo_id),
        user_id=str(raw.get("user_id")),
        task=raw.get("task") or "",
        category=raw.get("category") or DEFAULT_CATEGORY,
        completed=bool(raw.get("completed") or False),
        priority=raw.get("priority") or DEFAULT_PRIORITY,
        due_date=raw.get("due_date") or None,
        notes=raw.get("notes") or "",
        created_at=effective_created_at(raw.get("created_at"), todo_id),
    )


def _row_to_raw(row: TodoItem) -> Dict[str, Any]:
    return {
        "id": row.todo_id,
        "user_id": row.user_id,
        "task": row.task,
        "category": row.category,
        "completed": row.completed,
        "priority": row.priority,
        "due_date": row.due_date,
        "notes": row.notes,
        "created_at": row.created_at,
    }


def clean_updates(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only updatable store fields; an empty result is invalid input"""
    allowed = set(UPDATABLE_FIELDS.values())
    updates = {key: value for key, value in fields.items() if key in allowed}
    if not updates:
        raise InvalidInput("No updatable fields provided")
    return updates


# --- Store interface ---

class TodoStore(ABC):
    """Per-user task list storage, keyed by user id"""

    @abstractmethod
    async def create_or_append(self, user_id: str, entry: TodoEntry) -> TodoEntry:
        """Append `entry` to the user's list, creating the list if needed"""

    @abstractmethod
    async def list(self, user_id: str) -> List[TodoEntry]:
        """All entries for the user in insertion order, defaults applied"""

    @abstractmethod
    async def set_completed(self, user_id: str, entry_id: int, completed: bool) -> UpdateResult:
        """Set `completed` on one entry; unknown ids match nothing"""

    @abstractmethod
    async def update_fields(self, user_id: str, entry_id: int, fields: Mapping[str, Any]) -> UpdateResult:
        """Apply a partial update atomically; raises InvalidInput if no field is updatable"""

    @abstractmethod
    async def remove(self, user_id: str, entry_id: int) -> DeleteResult:
        """Delete one entry; unknown ids delete nothing"""


class SqlTodoStore(TodoStore):
    """Durable store: one `todos` row per entry, committed per operation"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _write(self, action: str, statement):
        try:
            result = await self.db.execute(statement)
            await self.db.commit()
            return result
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"{action} failed") from e

    async def create_or_append(self, user_id: str, entry: TodoEntry) -> TodoEntry:
        # A single INSERT is the append; concurrent appends cannot overwrite each other
        row = TodoItem(
            user_id=user_id,
            todo_id=entry.id,
            task=entry.task,
            category=entry.category,
            completed=entry.completed,
            priority=entry.priority,
            due_date=entry.due_date,
            notes=entry.notes,
            created_at=entry.created_at,
        )
        try:
            self.db.add(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("create todo failed") from e
        return normalize_entry(_row_to_raw(row))

    async def list(self, user_id: str) -> List[TodoEntry]:
        try:
            result = await self.db.execute(
                select(TodoItem)
                .where(TodoItem.user_id == user_id)
                .order_by(TodoItem.pk)
                .execution_options(populate_existing=True)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError("list todos failed") from e
        return [normalize_entry(_row_to_raw(row)) for row in rows]

    async def set_completed(self, user_id: str, entry_id: int, completed: bool) -> UpdateResult:
        return await self._update(user_id, entry_id, {"completed": completed})

    async def update_fields(self, user_id: str, entry_id: int, fields: Mapping[str, Any]) -> UpdateResult:
        return await self._update(user_id, entry_id, clean_updates(fields))

    async def _update(self, user_id: str, entry_id: int, values: Dict[str, Any]) -> UpdateResult:
        result = await self._write(
            "update todo",
            update(TodoItem)
            .where(TodoItem.user_id == user_id, TodoItem.todo_id == entry_id)
            .values(**values)
            .execution_options(synchronize_session=False),
        )
        return UpdateResult(matched_count=result.rowcount or 0)

    async def remove(self, user_id: str, entry_id: int) -> DeleteResult:
        result = await self._write(
            "delete todo",
            delete(TodoItem)
            .where(TodoItem.user_id == user_id, TodoItem.todo_id == entry_id)
            .execution_options(synchronize_session=False),
        )
        return DeleteResult(deleted_count=result.rowcount or 0)


class InMemoryTodoStore(TodoStore):
    """Process-local development stub. Not durable and not shared between workers."""

    def __init__(self):
        self._lists: Dict[str, List[Dict[str, Any]]] = {}
        logger.warning("Using in-memory todo store: data is lost on restart")

    def _find(self, user_id: str, entry_id: int) -> Optional[Dict[str, Any]]:
        for raw in self._lists.get(user_id, []):
            if raw["id"] == entry_id:
                return raw
        return None

    async def create_or_append(self, user_id: str, entry: TodoEntry) -> TodoEntry:
        raw = entry.model_dump()
        raw["user_id"] = user_id
        self._lists.setdefault(user_id, []).append(raw)
        return normalize_entry(raw)

    async def list(self, user_id: str) -> List[TodoEntry]:
        return [normalize_entry(copy.deepcopy(raw)) for raw in self._lists.get(user_id, [])]

    async def set_completed(self, user_id: str, entry_id: int, completed: bool) -> UpdateResult:
        raw = self._find(user_id, entry_id)
        if raw is None:
            return UpdateResult(matched_count=0)
        raw["completed"] = completed
        return UpdateResult(matched_count=1)

    async def update_fields(self, user_id: str, entry_id: int, fields: Mapping[str, Any]) -> UpdateResult:
        updates = clean_updates(fields)
        raw = self._find(user_id, entry_id)
        if raw is None:
            return UpdateResult(matched_count=0)
        raw.update(updates)
        return UpdateResult(matched_count=1)

    async def remove(self, user_id: str, entry_id: int) -> DeleteResult:
        entries = self._lists.get(user_id, [])
        kept = [raw for raw in entries if raw["id"] != entry_id]
        deleted = len(entries) - len(kept)
        if user_id in self._lists:
            self._lists[user_id] = kept
        return DeleteResult(deleted_count=deleted)
