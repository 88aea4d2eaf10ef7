from todo_app.models.user import User
from todo_app.models.todo import TodoItem

__all__ = [
    "User",
    "TodoItem",
]
