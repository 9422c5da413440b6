"""Errors raised by the report operations and mapped to HTTP responses in main."""


class ShiftReportError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShiftReportError):
    """Missing required field or unresolvable employee reference."""
    status_code = 400


class NotFoundError(ShiftReportError):
    status_code = 404


class AuthorizationError(ShiftReportError):
    """Caller may not act on another employee's record."""
    status_code = 403
