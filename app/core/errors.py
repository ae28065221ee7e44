"""
Error hierarchy - typed domain exceptions mapped to HTTP status by the app's handlers.
Challenge: Services stay HTTP-agnostic; one response shape for every failure.
"""


class MarketplaceError(Exception):
    """Base for all domain errors. `http_status` drives the response code."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(MarketplaceError):
    """Malformed or missing required input."""

    http_status = 400


class ConflictError(MarketplaceError):
    """Duplicate unique key. Reported as 400, not a distinct status."""

    http_status = 400


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist."""

    http_status = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ForbiddenError(MarketplaceError):
    """Authenticated, but not the owner of the resource."""

    http_status = 403


class ServerError(MarketplaceError):
    """Unexpected store or index failure. Detail is logged, not returned."""

    http_status = 500
