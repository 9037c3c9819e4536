from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Set, Tuple

from keepfresh._core._headers import Headers
from keepfresh._core.models import CacheEntry, Response
from keepfresh._exceptions import ValidationError
from keepfresh._utils import parse_date, partition

logger = logging.getLogger("keepfresh.core.updater")

# A 304 has no content, so these never describe the stored body
CONTENT_METADATA_HEADERS = frozenset(["content-encoding", "content-type", "content-range", "content-length"])

__all__ = ("merge_headers", "update_cache_entry")


def _is_1xx_warning(name: str, value: str) -> bool:
    return name.lower() == "warning" and value.strip().startswith("1")


def _stored_is_newer(stored_headers: Headers, new_headers: Headers) -> bool:
    stored_date = stored_headers.get_first("date")
    new_date = new_headers.get_first("date")
    if stored_date is None or new_date is None:
        return False
    stored_timestamp = parse_date(stored_date)
    new_timestamp = parse_date(new_date)
    if stored_timestamp is None or new_timestamp is None:
        return False
    return stored_timestamp > new_timestamp


def merge_headers(stored_headers: Headers, new_headers: Headers) -> Headers:
    """
    Updates stored header lines with the ones of a 304 validation response.

    RFC 9111 Section 3.2: Updating Stored Header Fields
    https://www.rfc-editor.org/rfc/rfc9111.html#section-3.2

    Update Rules:
    ------------
    1. If both messages carry a Date and the stored one is newer, the 304
       is out of date and the stored headers are returned unchanged.
    2. Every stored field the 304 also carries is replaced, in place, by all
       of the 304's lines for it.
    3. Content metadata (Content-Type, Content-Encoding, Content-Range,
       Content-Length) is never taken from the 304.
    4. Stored Warning lines with a 1xx warn-code are dropped.
    5. Fields only the 304 carries are appended.
    """
    if _stored_is_newer(stored_headers, new_headers):
        return stored_headers

    _, incoming = partition(new_headers.multi_items(), lambda item: item[0].lower() in CONTENT_METADATA_HEADERS)

    updated_headers: List[Tuple[str, str]] = []
    checked: Set[str] = set()

    for key, value in stored_headers.multi_items():
        lowered = key.lower()
        if lowered in checked:
            continue
        checked.add(lowered)

        values = [(new_key, new_value) for new_key, new_value in incoming if new_key.lower() == lowered]
        if values:
            updated_headers.extend(values)
        else:
            updated_headers.extend(
                (stored_key, stored_value)
                for stored_key, stored_value in stored_headers.multi_items()
                if stored_key.lower() == lowered and not _is_1xx_warning(stored_key, stored_value)
            )

    for key, value in incoming:
        if key.lower() not in checked:
            updated_headers.append((key, value))

    return Headers(updated_headers)


def update_cache_entry(
    entry: CacheEntry,
    request_date: float,
    response_date: float,
    response: Response,
) -> CacheEntry:
    """
    Builds the entry that replaces `entry` after a successful revalidation.

    The stored status and body are kept, the headers are merged with those
    of the 304 (see `merge_headers`) and the request/response dates are
    those of the validation exchange, so the age starts over.

    Raises:
    ------
    ValidationError
        If `response` is not a 304, or the dates are inverted.
    """
    if response.status_code != 304:
        raise ValidationError(
            f"A cache entry can only be updated with a 304 response, got {response.status_code}."
        )

    logger.debug("Updating the stored response headers with the headers of the validation response.")

    return replace(
        entry,
        request_date=request_date,
        response_date=response_date,
        headers=merge_headers(entry.headers, response.headers),
    )
