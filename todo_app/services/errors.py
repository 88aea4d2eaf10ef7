"""
Error taxonomy shared by the todo store, the API handlers and the client
"""


class TodoAppError(Exception):
    """Base class for application errors"""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidInput(TodoAppError):
    """Missing or malformed required fields"""

    status_code = 400


class InvalidCredentials(TodoAppError):
    """Login failed; never says whether the username or the password was wrong"""

    status_code = 401


class Conflict(TodoAppError):
    """Username already registered"""

    # Registration reports duplicates as a plain bad request
    status_code = 400


class NotFound(TodoAppError):
    status_code = 404


class StoreError(TodoAppError):
    """Storage or connectivity failure"""

    status_code = 500
