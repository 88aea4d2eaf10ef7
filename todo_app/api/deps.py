"""
Shared API dependencies - todo store selection and store-call error boundary
"""
from contextlib import contextmanager
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from todo_app.config import get_settings
from todo_app.database import get_db
from todo_app.services.errors import TodoAppError, StoreError
from todo_app.services.todo_store import TodoStore, SqlTodoStore, InMemoryTodoStore
from todo_app.utils.logger import get_logger

logger = get_logger(__name__)

_memory_store: Optional[InMemoryTodoStore] = None


def get_memory_store() -> InMemoryTodoStore:
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryTodoStore()
    return _memory_store


async def get_todo_store(db: AsyncSession = Depends(get_db)) -> TodoStore:
    """Dependency for the configured todo store"""
    if get_settings().TODO_STORE_BACKEND == "memory":
        return get_memory_store()
    return SqlTodoStore(db)


@contextmanager
def store_call(action: str):
    """Wrap store access: domain errors pass through, anything else becomes a bare 500.

    The failure detail goes to the log only.
    """
    try:
        yield
    except StoreError as e:
        logger.error(f"Error {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
    except (TodoAppError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"Error {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
