from typing import Dict, Optional


class CustomerAPIError(Exception):
    """Error reported by, or while talking to, the customer API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConflictError(CustomerAPIError):
    """The email is already registered to another customer."""


class NotFoundError(CustomerAPIError):
    """The identifier no longer exists on the server."""


class TransportError(CustomerAPIError):
    """Server unreachable, timed out, or answered without a readable body."""


class FormValidationError(Exception):
    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
