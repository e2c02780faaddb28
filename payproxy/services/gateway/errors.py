"""Error taxonomy and provider-error normalization.

`normalize_upstream_error` is deliberately free of transport concerns so the
mapping policy can be exercised without a network or an app.
"""

from dataclasses import dataclass
from typing import Any


UNKNOWN_ERROR = "unknown error"
DEFAULT_UPSTREAM_STATUS = 500


class ProxyError(Exception):
    """Base class for failures answered locally, before any upstream call."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationFailure(ProxyError):
    """A required field is missing or malformed."""

    status_code = 400


@dataclass(frozen=True)
class UpstreamFailure:
    """A provider call that errored or returned a non-success status."""

    status_code: int | None = None
    payload: Any = None
    transport_error: str | None = None


@dataclass(frozen=True)
class NormalizedError:
    status_code: int
    body: dict[str, Any]


def _provider_error(payload: Any) -> Any:
    if isinstance(payload, dict) and "error" in payload:
        return payload["error"]
    return payload


def normalize_upstream_error(failure: UpstreamFailure) -> NormalizedError:
    """Translate a failed provider call into the caller-facing error shape.

    The detail is the first available of: the provider's `error.description`,
    the provider's error object, the transport error text, `"unknown error"`.
    A provider `error.code` is surfaced separately under `code`.
    """

    status_code = failure.status_code
    if status_code is None or status_code < 400:
        status_code = DEFAULT_UPSTREAM_STATUS

    provider_error = _provider_error(failure.payload)
    description = None
    code = None
    if isinstance(provider_error, dict):
        description = provider_error.get("description") or None
        code = provider_error.get("code") or None

    if description:
        detail = description
    elif provider_error:
        detail = provider_error
    elif failure.transport_error:
        detail = failure.transport_error
    else:
        detail = UNKNOWN_ERROR

    body: dict[str, Any] = {"error": detail}
    if code is not None:
        body["code"] = code
    return NormalizedError(status_code=status_code, body=body)
