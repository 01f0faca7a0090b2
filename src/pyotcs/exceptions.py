"""Definition for all custom exceptions."""


class OTCSError(Exception):
    """Base exception for errors raised by pyotcs."""

    def __init__(self, message: str) -> None:
        """Initialize the OTCSError with a message.

        Args:
            message (str):
                The error message.

        """
        super().__init__(message)


class BusinessPropertiesError(OTCSError):
    """Raised if none of the category updates of a batch succeeded."""

    def __init__(self, message: str, failed: list[int]) -> None:
        """Initialize the BusinessPropertiesError.

        Args:
            message (str):
                The error message.
            failed (list[int]):
                The IDs of the categories that could not be updated.

        """
        super().__init__(message)
        self.failed = failed


class ToolCallError(OTCSError):
    """Raised if a tool is called with an unknown name, action or missing arguments."""
