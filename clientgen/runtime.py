"""Transport contract used by generated clients, plus an httpx implementation.

A generated client only ever calls Transport.send(url, request, params) and
returns its result unchanged. The result has two branches: Success carrying
the decoded payload, or ApiError carrying a machine code, human readable
info, a message and the field-level constraint violations.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, Required, TypedDict, TypeVar, Union

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSPORT_ERROR = "transport_error"

DEFAULT_TIMEOUT = 30.0


class RequestInfo(TypedDict, total=False):
    method: Required[str]
    body: Any
    headers: Mapping[str, Any] | None


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    status: int = 200


@dataclass(frozen=True)
class FieldViolation:
    field: str
    constraint: str
    value: Any = None


@dataclass(frozen=True)
class ApiError:
    code: str
    info: str
    message: str
    violations: list[FieldViolation] = field(default_factory=list)
    status: int | None = None


ApiResult = Union[Success[T], ApiError]


class Transport(Protocol):
    """Anything with a compatible send method can back a generated client."""

    def send(
        self,
        url: str,
        request: RequestInfo,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResult[Any]: ...


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _violations(raw: Any) -> list[FieldViolation]:
    if not isinstance(raw, list):
        return []
    return [
        FieldViolation(
            field=str(item.get("field", "")),
            constraint=str(item.get("constraint", "")),
            value=item.get("value"),
        )
        for item in raw
        if isinstance(item, dict)
    ]


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from a non-2xx response."""
    payload = _decode(response)
    if isinstance(payload, dict):
        return ApiError(
            code=str(payload.get("code", response.status_code)),
            info=str(payload.get("info", response.reason_phrase)),
            message=str(payload.get("message", "")),
            violations=_violations(payload.get("violations")),
            status=response.status_code,
        )
    return ApiError(
        code=str(response.status_code),
        info=response.reason_phrase,
        message=payload if isinstance(payload, str) else "",
        status=response.status_code,
    )


class HttpxTransport:
    """Transport backed by an httpx.Client.

    Pass either a configured client, or headers and a timeout to build one;
    headers and timeout cannot be applied to a client passed in.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        if client is not None and (headers is not None or timeout is not None):
            raise ValueError("headers and timeout apply only when no client is given")
        if client is None:
            client = httpx.Client(
                headers=headers,
                timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
            )
        self._client = client

    def send(
        self,
        url: str,
        request: RequestInfo,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResult[Any]:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = {
            k: str(v) for k, v in (request.get("headers") or {}).items() if v is not None
        }
        kwargs: dict[str, Any] = {}
        if request.get("body") is not None:
            kwargs["json"] = request["body"]

        method = request["method"].upper()
        try:
            response = self._client.request(
                method, url, params=query or None, headers=headers or None, **kwargs,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return ApiError(code=TRANSPORT_ERROR, info=type(exc).__name__, message=str(exc))

        if response.is_success:
            return Success(_decode(response), response.status_code)
        logger.debug("%s %s returned %d", method, url, response.status_code)
        return error_from_response(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
