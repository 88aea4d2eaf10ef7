"""
Input validation utilities for wire payloads
"""
from typing import Any, Optional, Union

from todo_app.services.errors import InvalidInput

PRIORITIES = ("high", "medium", "low")

# todos.todo_id is a signed 64-bit column
TODO_ID_MIN = -(2 ** 63)
TODO_ID_MAX = 2 ** 63 - 1


def require_user_id(user_id: Optional[Union[int, str]]) -> str:
    """userId may arrive as a number or a string; the store keys on the string form"""
    if user_id is None or isinstance(user_id, bool):
        raise InvalidInput("User ID is required")
    value = str(user_id).strip()
    if not value:
        raise InvalidInput("User ID is required")
    return value


def require_todo_id(todo_id: Optional[Union[int, str]]) -> int:
    """Normalize a numeric or numeric-string todoId to an int"""
    value = _parse_todo_id(todo_id)
    if not TODO_ID_MIN <= value <= TODO_ID_MAX:
        raise InvalidInput(f"Invalid todo ID: {todo_id!r}")
    return value


def _parse_todo_id(todo_id: Optional[Union[int, str]]) -> int:
    if todo_id is None or isinstance(todo_id, bool):
        raise InvalidInput("Todo ID is required")
    if isinstance(todo_id, int):
        return todo_id
    text = str(todo_id).strip()
    if not text:
        raise InvalidInput("Todo ID is required")
    try:
        return int(text)
    except ValueError:
        try:
            as_float = float(text)
        except ValueError:
            raise InvalidInput(f"Invalid todo ID: {todo_id!r}")
        if not as_float.is_integer():
            raise InvalidInput(f"Invalid todo ID: {todo_id!r}")
        return int(as_float)


def validate_priority(priority: Any) -> Optional[str]:
    if priority is None:
        return None
    if priority not in PRIORITIES:
        raise InvalidInput(f"Invalid priority. Must be one of: {', '.join(PRIORITIES)}")
    return priority


def require_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInput(f"{label} is required")
    return value
