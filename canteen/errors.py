"""Domain errors raised by the service layer.

Each class carries the HTTP status it maps to; the error handler
middleware turns any of them into the standard JSON error body.
"""


class CanteenError(Exception):
    status_code = 500
    error_type = "Internal Server Error"

    def __init__(self, message=None, **details):
        super().__init__(message or self.error_type)
        self.message = message or self.error_type
        self.details = details


class ValidationError(CanteenError):
    status_code = 400
    error_type = "Validation Error"


class InvalidState(CanteenError):
    status_code = 400
    error_type = "Invalid State"


class Unauthenticated(CanteenError):
    status_code = 401
    error_type = "Authentication Error"


class InvalidOrExpired(Unauthenticated):
    error_type = "Invalid Or Expired Code"


class Forbidden(CanteenError):
    status_code = 403
    error_type = "Forbidden"


class NotFound(CanteenError):
    status_code = 404
    error_type = "Not Found"


class Conflict(CanteenError):
    status_code = 409
    error_type = "Conflict"


class AccountLocked(CanteenError):
    status_code = 423
    error_type = "Account Locked"


class UpstreamFailure(CanteenError):
    """SMS or email provider could not deliver.

    Flows catch this and answer with a warning instead of failing.
    """
    status_code = 502
    error_type = "Upstream Failure"
