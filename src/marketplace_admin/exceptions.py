"""Exception hierarchy for the admin service.

Every error carries the HTTP status the API layer answers with and a
message that is safe to show to an operator. Infrastructure failures use a
generic message so connection strings or SQL never reach a client.
"""


class AdminError(Exception):
    """Base exception for all admin service errors."""

    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"success": False, "error": self.message}


class InvalidQueryError(AdminError):
    """Raised when request parameters are rejected before touching the database."""

    http_status = 400


class NotFoundError(AdminError):
    """Raised when a requested record does not exist."""

    http_status = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class StatusTransitionError(AdminError):
    """Raised when a status change is not allowed from the record's current status."""

    http_status = 409


class DataSourceError(AdminError):
    """Raised when the underlying database is unreachable or a query fails."""

    http_status = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
