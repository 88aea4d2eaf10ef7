"""
Background refresh of a user's todo list for the client views.

Every fetch gets a sequence number and a response is applied only if it is
newer than the last one applied, so a slow reply can never overwrite a
fresher list. Overlapping fetches are not cancelled. Fetch failures are
logged and leave the previous (stale) list in place.
"""
import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional, Set, Union

import httpx

from todo_app.client.api_client import TodoApiClient, ApiError
from todo_app.config import get_settings
from todo_app.services.todo_store import TodoEntry
from todo_app.utils.logger import get_logger

logger = get_logger(__name__)


class FeedStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class TodoPoller:
    def __init__(
        self,
        client: TodoApiClient,
        user_id: Union[int, str],
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_change: Optional[Callable[[List[TodoEntry]], Any]] = None,
    ):
        settings = get_settings()
        self.client = client
        self.user_id = user_id
        self.interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS
        self.timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS
        self.on_change = on_change

        self.todos: List[TodoEntry] = []
        self.status = FeedStatus.LOADING
        self._issued = 0
        self._applied = 0
        self._stopped = asyncio.Event()
        self._inflight: Set[asyncio.Task] = set()

    async def refresh(self) -> bool:
        """Fetch once; returns True if the response was applied"""
        self._issued += 1
        seq = self._issued
        try:
            todos = await asyncio.wait_for(self.client.list_todos(self.user_id), self.timeout)
        except (ApiError, httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.warning(f"Error fetching todos for user {self.user_id}: {e!r}")
            if seq > self._applied:
                self.status = FeedStatus.FAILED
            return False

        if seq <= self._applied:
            logger.debug(f"Discarding stale todo list #{seq} (have #{self._applied})")
            return False

        self._applied = seq
        self.todos = todos
        self.status = FeedStatus.READY
        if self.on_change is not None:
            self.on_change(todos)
        return True

    async def run(self) -> None:
        """Fetch every `interval` seconds until stop() is called"""
        self._stopped.clear()
        logger.info(f"Polling todos for user {self.user_id} every {self.interval}s")
        while not self._stopped.is_set():
            task = asyncio.create_task(self.refresh())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    def stop(self) -> None:
        self._stopped.set()

    def find(self, todo_id: int) -> Optional[TodoEntry]:
        return next((t for t in self.todos if t.id == todo_id), None)

    # --- Mutations: write, then re-fetch ---

    async def add(self, task: str, **fields: Any) -> TodoEntry:
        created = await self.client.create_todo(self.user_id, task, **fields)
        await self.refresh()
        return created

    async def toggle(self, todo_id: int) -> None:
        current = self.find(todo_id)
        completed = not current.completed if current is not None else True
        await self.client.set_completed(self.user_id, todo_id, completed)
        await self.refresh()

    async def edit(self, todo_id: int, **fields: Any) -> None:
        await self.client.update_todo(self.user_id, todo_id, **fields)
        await self.refresh()

    async def delete(self, todo_id: int) -> None:
        await self.client.delete_todo(self.user_id, todo_id)
        await self.refresh()
