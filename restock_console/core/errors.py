"""Error types shared by the gateway and the controllers."""

from __future__ import annotations

from typing import Dict, Optional


class RestockError(Exception):
    """Base class for every recoverable error raised by the client."""


class ValidationError(RestockError):
    """Local form validation failed; never reaches the network layer."""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors)) or "form"
        super().__init__(f"Invalid fields: {fields}")


class NetworkError(RestockError):
    """A REST call failed (non-2xx status, transport failure or bad payload)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.path = path


class WidgetRefreshError(RestockError):
    """One dashboard recovery strategy failed."""

    def __init__(self, strategy: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Dashboard refresh via '{strategy}' failed{detail}")
        self.strategy = strategy
        self.cause = cause
