"""Error taxonomy shared by the stores and the API layer.

Each error carries the HTTP status it maps to at the API boundary.
"""


class TodoError(Exception):
    """Base class for failures that are reported to the client."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TodoError):
    """Bad or missing input, e.g. empty task text."""

    status_code = 400


class NotFound(TodoError):
    """No task with the requested id."""

    status_code = 404


class StorageUnavailable(TodoError):
    """The storage medium could not be read or written."""

    status_code = 500
