"""Domain errors raised by the service layer.

The API layer translates these to HTTP responses (see ``src.main``).
"""


class KanbanError(Exception):
    """Base class for board/column/card domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(KanbanError):
    """Entity does not exist, or exists but is not owned by the caller.

    Both cases share one error; a foreign id looks exactly like a missing one.
    """


class InvalidStateError(KanbanError):
    """An entity is not in the state the operation requires."""


class InvalidReorderError(InvalidStateError):
    """A reorder id list is not a permutation of the scope's current siblings."""


class AttachmentRejectedError(KanbanError):
    """An uploaded file was refused (type or size)."""

    def __init__(self, message: str, too_large: bool = False):
        super().__init__(message)
        self.too_large = too_large
