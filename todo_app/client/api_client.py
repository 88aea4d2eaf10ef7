"""
Async HTTP client for the todo API.

Wraps every endpoint the views use. Non-2xx responses raise ApiError carrying
the status code and the server's `detail` message; transport failures and
timeouts surface as the underlying httpx exceptions.
"""
from typing import Any, Dict, List, Optional, Union

import httpx

from todo_app.config import get_settings
from todo_app.services.todo_store import TodoEntry, UPDATABLE_FIELDS

# store field -> wire name
_WIRE_NAMES = {store: wire for wire, store in UPDATABLE_FIELDS.items()}


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TodoApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "TodoApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            try:
                message = response.json().get("detail", response.text)
            except ValueError:
                message = response.text
            raise ApiError(response.status_code, str(message))
        return response.json()

    # --- Auth ---

    async def register(self, username: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/api/auth/register", json={"username": username, "password": password})

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Returns the `{id, username}` identity"""
        body = await self._request("POST", "/api/auth/login", json={"username": username, "password": password})
        return body["user"]

    async def verify_username(self, username: str) -> Dict[str, Any]:
        body = await self._request("POST", "/api/auth/verify-email", json={"username": username})
        return body["user"]

    async def reset_password(self, username: str, new_password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/auth/reset-password", json={"username": username, "newPassword": new_password}
        )

    # --- Todos ---

    async def list_todos(self, user_id: Union[int, str], **filters: Optional[str]) -> List[TodoEntry]:
        params = {"userId": str(user_id)}
        for key, value in filters.items():
            if value is not None:
                params["sortBy" if key == "sort_by" else key] = value
        body = await self._request("GET", "/api/todos", params=params)
        return [TodoEntry.model_validate(item) for item in body]

    async def create_todo(
        self,
        user_id: Union[int, str],
        task: str,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
        notes: Optional[str] = None,
        completed: bool = False,
    ) -> TodoEntry:
        payload = {
            "userId": user_id,
            "task": task,
            "category": category,
            "completed": completed,
            "priority": priority,
            "dueDate": due_date,
            "notes": notes,
        }
        body = await self._request("POST", "/api/todos", json={k: v for k, v in payload.items() if v is not None})
        return TodoEntry.model_validate(body["result"])

    async def set_completed(self, user_id: Union[int, str], todo_id: int, completed: bool) -> Dict[str, Any]:
        body = await self._request(
            "PATCH", "/api/todos", json={"userId": user_id, "todoId": todo_id, "completed": completed}
        )
        return body["result"]

    async def update_todo(self, user_id: Union[int, str], todo_id: int, **fields: Any) -> Dict[str, Any]:
        """Partial edit; keyword names are store fields (task, due_date, ...)"""
        payload: Dict[str, Any] = {"userId": user_id, "todoId": todo_id}
        for name, value in fields.items():
            if name not in _WIRE_NAMES:
                raise ValueError(f"Unknown todo field: {name}")
            payload[_WIRE_NAMES[name]] = value
        body = await self._request("PUT", "/api/todos", json=payload)
        return body["result"]

    async def delete_todo(self, user_id: Union[int, str], todo_id: int) -> Dict[str, Any]:
        body = await self._request("DELETE", "/api/todos", json={"userId": user_id, "todoId": todo_id})
        return body["result"]

    # --- Dashboard ---

    async def dashboard(self, view: str, user_id: Union[int, str]) -> Dict[str, Any]:
        """view: insights | focus | planner | profile"""
        return await self._request("GET", f"/api/dashboard/{view}", params={"userId": str(user_id)})
