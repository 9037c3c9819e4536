from __future__ import annotations

import enum
from typing import List

from keepfresh._core._headers import Headers, parse_cache_control
from keepfresh._core.models import Request, Response

__all__ = ("RequestProtocolError", "get_error_for_request", "request_protocol_errors")


class RequestProtocolError(enum.Enum):
    UNKNOWN = "unknown"
    BODY_BUT_NO_LENGTH_ERROR = "body-but-no-length"
    WEAK_ETAG_ON_PUTDELETE_METHOD_ERROR = "weak-etag-on-put-delete"
    WEAK_ETAG_AND_RANGE_ERROR = "weak-etag-and-range"
    NO_CACHE_DIRECTIVE_WITH_FIELD_NAME = "no-cache-with-field-name"


def _is_weak(value: str) -> bool:
    return value.strip().startswith("W/")


def request_has_weak_etag_and_range(request: Request) -> bool:
    """A byte range request cannot be made conditional on a weak entity tag."""
    if request.method.upper() != "GET" or "range" not in request.headers:
        return False
    if_range = request.headers.get_first("if-range")
    return if_range is not None and _is_weak(if_range)


def request_has_weak_etag_for_put_or_delete(request: Request) -> bool:
    """PUT and DELETE preconditions need strong comparison."""
    if request.method.upper() not in ("PUT", "DELETE"):
        return False

    if_match = request.headers.get_first("if-match")
    if if_match is not None:
        return _is_weak(if_match)

    if_none_match = request.headers.get_first("if-none-match")
    return if_none_match is not None and _is_weak(if_none_match)


def request_contains_no_cache_directive_with_field_name(request: Request) -> bool:
    """The qualified `no-cache="field"` form is only defined for responses."""
    cache_control = parse_cache_control(request.headers.get_list("cache-control"))
    return any(directive.name == "no-cache" and directive.value is not None for directive in cache_control.directives)


def request_protocol_errors(request: Request) -> List[RequestProtocolError]:
    """
    Lists the HTTP/1.1 rules the request breaks that a cache must not forward.

    An empty list means the request is compliant.
    """
    errors = []

    if request_has_weak_etag_and_range(request):
        errors.append(RequestProtocolError.WEAK_ETAG_AND_RANGE_ERROR)

    if request_has_weak_etag_for_put_or_delete(request):
        errors.append(RequestProtocolError.WEAK_ETAG_ON_PUTDELETE_METHOD_ERROR)

    if request_contains_no_cache_directive_with_field_name(request):
        errors.append(RequestProtocolError.NO_CACHE_DIRECTIVE_WITH_FIELD_NAME)

    return errors


def get_error_for_request(error: RequestProtocolError) -> Response:
    """Builds the response a cache sends instead of forwarding a non-compliant request."""
    if error is RequestProtocolError.BODY_BUT_NO_LENGTH_ERROR:
        return Response(status_code=411, reason_phrase="Length Required", headers=Headers({"Content-Length": "0"}))

    if error is RequestProtocolError.WEAK_ETAG_AND_RANGE_ERROR:
        reason = "Weak eTag not compatible with byte range"
    elif error is RequestProtocolError.WEAK_ETAG_ON_PUTDELETE_METHOD_ERROR:
        reason = "Weak eTag not compatible with PUT or DELETE requests"
    elif error is RequestProtocolError.NO_CACHE_DIRECTIVE_WITH_FIELD_NAME:
        reason = "No-Cache directive MUST NOT include a field name"
    else:
        return Response(
            status_code=500,
            reason_phrase="Internal Server Error",
            headers=Headers({"Content-Length": "0"}),
        )

    return Response(status_code=400, reason_phrase=reason, headers=Headers({"Content-Length": "0"}))
