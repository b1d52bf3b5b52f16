"""Engine exceptions."""


class LogosError(Exception):
    """Base class for engine errors."""
    pass


class UnknownItemError(LogosError, KeyError):
    """Raised when a response refers to an item with no known parameters."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"No item parameters for item '{self.item_id}'"
