"""Shared exceptions module."""

from typing import Optional


class FormwiseException(Exception):
    """Base exception for Formwise services."""

    pass


class NotFoundException(FormwiseException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class ImmutableFieldError(FormwiseException):
    """Exception raised for attempts to modify immutable fields in a database model."""

    def __init__(self, field_name: str, message: str = "Cannot modify immutable field"):
        """Create a new ImmutableFieldError instance.

        Args:
        ----
            field_name (str): The name of the immutable field.
            message (str, optional): The error message. Has default message.

        """
        self.field_name = field_name
        self.message = message
        super().__init__(f"{message}: {field_name}")


class InvalidInputError(FormwiseException):
    """Exception raised when a caller passes arguments that break the call contract."""

    def __init__(self, message: Optional[str] = "Invalid input"):
        """Create a new InvalidInputError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidStateError(FormwiseException):
    """Exception raised when an object is in an invalid state.

    Used when the requested action conflicts with the current state of the
    object, e.g. consuming quota that is already spent.
    """

    def __init__(self, message: Optional[str] = "Object is in an invalid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)
