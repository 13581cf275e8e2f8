from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class NetworkError(RuntimeError):
    """Base error of the library."""


class InvalidURLError(NetworkError):
    """The base URL and path of a target do not form an absolute URL."""


class EncodingError(NetworkError):
    """A request payload could not be serialized."""


class SSEDecodeError(NetworkError):
    """The event stream contains bytes that are not valid UTF-8."""


class RequestFailedError(NetworkError):
    """
    Transport failure reported by httpx.

    The original exception is kept in ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"request failed: {cause!r}")
        self.cause = cause


@dataclass(slots=True)
class ServerError(NetworkError):
    """
    Non-2xx response, raised only when ``HttpConfig.raise_for_status`` is on.
    """
    status_code: int
    message: str
    body: bytes | None = None

    def __str__(self) -> str:
        parts = [f"ServerError(status_code={self.status_code}"]
        parts.append(f", message={self.message!r}")
        if self.body:
            parts.append(f", body={len(self.body)} bytes")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Error as a dict for structured logging."""
        return {
            "status_code": self.status_code,
            "message": self.message,
            "body": self.body.decode("utf-8", "ignore") if self.body else None,
        }

    @property
    def is_client_error(self) -> bool:
        """True for 4xx responses."""
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """True for 5xx responses."""
        return 500 <= self.status_code < 600

    @property
    def is_auth_error(self) -> bool:
        """True for 401 and 403."""
        return self.status_code in (401, 403)
