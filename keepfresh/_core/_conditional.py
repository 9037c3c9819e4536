from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from keepfresh._core._validity import must_revalidate, proxy_revalidate
from keepfresh._core.models import CacheEntry, Request
from keepfresh._utils import parse_date

logger = logging.getLogger("keepfresh.core.conditional")

CONDITIONAL_HEADERS = (
    "If-Range",
    "If-Match",
    "If-None-Match",
    "If-Unmodified-Since",
    "If-Modified-Since",
)

__all__ = (
    "all_conditionals_match",
    "build_conditional_request",
    "build_unconditional_request",
    "etag_matches",
    "has_unsupported_conditional_headers",
    "is_conditional",
    "last_modified_matches",
)


def has_valid_date_field(request: Request, name: str) -> bool:
    return any(parse_date(value) is not None for value in request.headers.get_list(name))


def has_supported_etag_validator(request: Request) -> bool:
    return "if-none-match" in request.headers


def has_supported_last_modified_validator(request: Request) -> bool:
    return has_valid_date_field(request, "if-modified-since")


def is_conditional(request: Request) -> bool:
    """
    Is this request the kind of conditional request the cache can answer?

    Only If-None-Match (any value) and a parseable If-Modified-Since count.
    """
    return has_supported_etag_validator(request) or has_supported_last_modified_validator(request)


def has_unsupported_conditional_headers(request: Request) -> bool:
    """
    Whether the request carries preconditions only the origin can evaluate.

    If-Range and If-Match disqualify the request whatever their value; an
    If-Unmodified-Since does so only when it holds a valid date, since an
    unparseable date is treated as absent.
    """
    return (
        "if-range" in request.headers
        or "if-match" in request.headers
        or has_valid_date_field(request, "if-unmodified-since")
    )


def etag_matches(request: Request, entry: CacheEntry) -> bool:
    """
    Check the entry against every If-None-Match element of the request.

    Entity tags are compared as opaque strings, so `W/"x"` only matches
    `W/"x"`. A `*` element matches any entry that has an ETag. An entry
    without an ETag never matches.
    """
    etag = entry.headers.get_first("etag")
    if etag is None:
        return False
    etag = etag.strip()

    for value in request.headers.get_list("if-none-match"):
        for element in value.split(","):
            request_etag = element.strip()
            if request_etag == "*" or request_etag == etag:
                return True
    return False


def last_modified_matches(request: Request, entry: CacheEntry, now: float) -> bool:
    """
    Check the entry against every If-Modified-Since line of the request.

    The entry must carry a parseable Last-Modified. Each If-Modified-Since
    line must parse, must not lie in the future relative to `now`, and
    Last-Modified must not be later than it. One failing line fails the
    match.
    """
    last_modified_value = entry.headers.get_first("last-modified")
    last_modified: Optional[int] = parse_date(last_modified_value) if last_modified_value is not None else None

    if last_modified is None:
        return False

    for value in request.headers.get_list("if-modified-since"):
        if_modified_since = parse_date(value)
        if if_modified_since is None:
            return False
        if if_modified_since > now or last_modified > if_modified_since:
            return False
    return True


def all_conditionals_match(request: Request, entry: CacheEntry, now: float) -> bool:
    """
    Whether every validator the request presents matches the entry.

    With both If-None-Match and If-Modified-Since present, both must
    match; with only one present, that one must.
    """
    has_etag_validator = has_supported_etag_validator(request)
    has_last_modified_validator = has_supported_last_modified_validator(request)

    if has_etag_validator and not etag_matches(request, entry):
        return False

    if has_last_modified_validator and not last_modified_matches(request, entry, now):
        return False

    return True


def build_conditional_request(request: Request, entry: CacheEntry) -> Request:
    """
    Converts a request into a conditional request that revalidates `entry`.

    RFC 9111 Section 4.3.1: Sending a Validation Request
    https://www.rfc-editor.org/rfc/rfc9111.html#section-4.3.1

    Adds If-None-Match from the entry's ETag and If-Modified-Since from its
    Last-Modified, replacing any the client sent. When the entry carries
    must-revalidate or proxy-revalidate, `Cache-Control: max-age=0` is
    added as well so intermediaries revalidate too.

    Examples:
    --------
    >>> entry = make_entry(headers={"etag": '"abc123"'})
    >>> conditional = build_conditional_request(request, entry)
    >>> conditional.headers["if-none-match"]
    '"abc123"'
    """
    headers = request.headers

    etag = entry.headers.get_first("etag")
    if etag is not None:
        logger.debug(
            f"Adding the 'If-None-Match' header with the value of '{etag}' "
            f"to the request for the resource located at {request.url}."
        )
        headers = headers.replace("If-None-Match", etag)

    last_modified = entry.headers.get_first("last-modified")
    if last_modified is not None:
        logger.debug(
            f"Adding the 'If-Modified-Since' header with the value of '{last_modified}' "
            f"to the request for the resource located at {request.url}."
        )
        headers = headers.replace("If-Modified-Since", last_modified)

    if must_revalidate(entry) or proxy_revalidate(entry):
        headers = headers.with_header("Cache-Control", "max-age=0")

    return replace(request, headers=headers)


def build_unconditional_request(request: Request) -> Request:
    """
    Converts a request into an end-to-end reload that bypasses every cache.

    Strips all preconditions and asks intermediaries not to answer from
    their own caches, with both Cache-Control and the HTTP/1.0 Pragma.
    """
    headers = (
        request.headers.without(*CONDITIONAL_HEADERS)
        .with_header("Cache-Control", "no-cache")
        .with_header("Pragma", "no-cache")
    )
    return replace(request, headers=headers)
