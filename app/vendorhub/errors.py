from __future__ import annotations


class ApiError(RuntimeError):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class InvalidInput(ApiError):
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Internal(ApiError):
    status_code = 500


def raise_for_errors(errors: list[str], message: str = "Invalid input") -> None:
    """Turn a validator's error list into InvalidInput."""
    if errors:
        raise InvalidInput(errors[0] if len(errors) == 1 else message, details=errors)
