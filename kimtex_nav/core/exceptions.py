"""
Service-wide exception hierarchy.

Services raise these types; blueprints register handlers against them
once and map them to consistent HTTP status codes.

Usage:
    from kimtex_nav.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="MenuSection", resource_id="sales")
    raise ValidationError("path must start with '/'", details={"path": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "User", "MenuSection").
        resource_id: The key that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a rule of the service layer.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(Exception):
    """Raised when credentials are missing, wrong, or belong to an inactive user.

    Maps to HTTP 401. The message never says which part was wrong.
    """

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)
