from __future__ import annotations

from keepfresh._core._headers import Headers
from keepfresh._core._validity import MAX_AGE, get_current_age
from keepfresh._core.models import CacheEntry, Response
from keepfresh._utils import generate_http_date

__all__ = ("generate_full_response", "generate_not_modified_response")

# Fields a 304 carries forward, RFC 9110 Section 15.4.5
NOT_MODIFIED_HEADERS = ("ETag", "Content-Location", "Expires", "Cache-Control", "Vary")


def generate_full_response(entry: CacheEntry, now: float) -> Response:
    """
    Rebuilds the stored response so it can be sent to the client.

    The stored status line, header lines and body are reused as is, with
    two additions:

    - an `Age` header with the current age, when that age is positive.
      Ages that do not fit in 31 bits are sent as `2147483648`.
    - a `Content-Length` header computed from the body, when the entry has
      neither Content-Length nor Transfer-Encoding.
    """
    headers = entry.headers

    if "transfer-encoding" not in headers and "content-length" not in headers:
        headers = headers.with_header("Content-Length", str(entry.body_length))

    age = get_current_age(entry, now)
    if age > 0:
        headers = headers.replace("Age", str(MAX_AGE) if age >= MAX_AGE - 1 else str(age))

    return Response(
        status_code=entry.status_code,
        reason_phrase=entry.reason_phrase,
        headers=headers,
        content=entry.body,
    )


def generate_not_modified_response(entry: CacheEntry, now: float) -> Response:
    """
    Builds a `304 Not Modified` answer to a conditional request from `entry`.

    RFC 9110 Section 15.4.5: 304 Not Modified
    https://www.rfc-editor.org/rfc/rfc9110#section-15.4.5

    Only the fields a 304 is required to repeat are carried over: Date
    (generated from `now` when the entry lacks one), ETag,
    Content-Location, Expires, Cache-Control and Vary. Every stored line of
    those fields is kept; nothing else is, and there is no body.
    """
    date = entry.headers.get_first("date")
    lines = [("Date", date if date is not None else generate_http_date(now))]

    for name in NOT_MODIFIED_HEADERS:
        lines.extend((name, value) for value in entry.headers.get_list(name))

    return Response(
        status_code=304,
        reason_phrase="Not Modified",
        headers=Headers(lines),
    )
