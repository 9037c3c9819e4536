from __future__ import annotations

import time
from typing import Any, Dict, Optional

try:
    import httpx
except ImportError as e:
    raise ImportError(
        "httpx is required to use keepfresh.httpx module. "
        "Please install keepfresh with the 'httpx' extra, "
        "e.g., 'pip install keepfresh[httpx]'."
    ) from e

from keepfresh._core._headers import Headers
from keepfresh._core.models import CacheEntry, Request, Response

__all__ = (
    "entry_from_httpx",
    "request_from_httpx",
    "request_to_httpx",
    "response_from_httpx",
    "response_to_httpx",
)


def request_from_httpx(request: httpx.Request) -> Request:
    """
    Convert httpx.Request to an internal Request.
    """
    return Request(
        method=request.method,
        url=str(request.url),
        headers=Headers(request.headers.multi_items()),
    )


def entry_from_httpx(
    response: httpx.Response,
    request_date: Optional[float] = None,
    response_date: Optional[float] = None,
) -> CacheEntry:
    """
    Convert a received httpx.Response into a CacheEntry.

    The response body is read if it has not been already. A missing
    `response_date` defaults to the current time and a missing
    `request_date` to the response date.

    httpx only hands out decoded content, so for an encoded response the
    Content-Encoding and Content-Length fields are dropped to keep the
    stored headers consistent with the stored body.
    """
    response_date = time.time() if response_date is None else response_date
    request_date = response_date if request_date is None else request_date

    headers = Headers(response.headers.multi_items())
    if "content-encoding" in headers:
        headers = headers.without("Content-Encoding", "Content-Length")

    return CacheEntry(
        request_date=request_date,
        response_date=response_date,
        status_code=response.status_code,
        reason_phrase=response.reason_phrase,
        headers=headers,
        body=response.read(),
    )


def response_to_httpx(response: Response) -> httpx.Response:
    """
    Convert an internal Response to httpx.Response.
    """
    extensions: Dict[str, Any] = {}
    if response.reason_phrase:
        extensions["reason_phrase"] = response.reason_phrase.encode("ascii", errors="replace")

    return httpx.Response(
        status_code=response.status_code,
        headers=response.headers.multi_items(),
        content=response.content,
        extensions=extensions,
    )


def request_to_httpx(request: Request) -> httpx.Request:
    """
    Convert an internal Request to httpx.Request, e.g. to send a validation request upstream.
    """
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers.multi_items(),
    )


def response_from_httpx(response: httpx.Response) -> Response:
    """
    Convert httpx.Response to an internal Response, e.g. the origin's answer to a validation request.
    """
    return Response(
        status_code=response.status_code,
        reason_phrase=response.reason_phrase,
        headers=Headers(response.headers.multi_items()),
        content=response.read(),
    )
