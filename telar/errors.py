"""Domain errors raised by the order core and the accounts flow."""


class TelarError(Exception):
    """Base exception for all telar errors."""

    status_code = 500


class ValidationError(TelarError):
    """Malformed, missing or out-of-range input.

    ``field`` names the first offending field, e.g. ``productos[2].cantidades``.
    """

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidTransition(ValidationError):
    """Raised when a status change is not allowed from the order's current state."""

    def __init__(self, current: str, target: str | None = None, message: str | None = None):
        self.current = current
        self.target = target
        if message is None:
            message = f"cannot change order status from '{current}' to '{target}'"
        super().__init__(message, field="estado")


class NotFound(TelarError):
    """The id does not resolve, or it resolves outside the caller's scope."""

    status_code = 404

    def __init__(self, what: str = "order"):
        self.what = what
        super().__init__(f"{what} not found")


class Forbidden(TelarError):
    status_code = 403


class Unauthorized(TelarError):
    status_code = 401


class Conflict(TelarError):
    status_code = 409
