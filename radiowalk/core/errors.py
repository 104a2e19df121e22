"""
Domain errors raised by the station core.

The HTTP layer maps each class to a status code (see radiowalk.api.errors);
the core itself never catches them.
"""


class RadioWalkError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RadioWalkError):
    """Malformed input: bad coordinates, empty names, sharing a public station."""


class NotFoundError(RadioWalkError):
    """A referenced station or user does not exist."""


class AuthorizationError(RadioWalkError):
    """Requester is not allowed to see or change the station."""

    def __init__(self, message: str, *, authenticated: bool = True) -> None:
        super().__init__(message)
        self.authenticated = authenticated


class ConflictError(ValidationError):
    """A unique value (username, email) already belongs to another user."""
