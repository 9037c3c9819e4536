from __future__ import annotations

from typing import Optional

from keepfresh._core._headers import CacheControl, parse_cache_control, parse_int_value
from keepfresh._core.models import CacheEntry
from keepfresh._utils import parse_date

__all__ = (
    "MAX_AGE",
    "content_length_matches_actual_length",
    "get_current_age",
    "get_freshness_lifetime",
    "get_heuristic_freshness_lifetime",
    "get_staleness",
    "has_cache_control_directive",
    "is_response_fresh",
    "is_response_heuristically_fresh",
    "is_revalidatable",
    "must_revalidate",
    "proxy_revalidate",
)

# The value a cache sends when an age would not fit in 31 bits, RFC 9111 Section 1.2.2.
MAX_AGE = 2147483648


def _header_date(entry: CacheEntry, name: str) -> Optional[int]:
    value = entry.headers.get_first(name)
    if value is None:
        return None
    return parse_date(value)


def _cache_control(entry: CacheEntry) -> CacheControl:
    return parse_cache_control(entry.headers.get_list("cache-control"))


def get_apparent_age(entry: CacheEntry) -> int:
    """
    Seconds between the origin's Date and the moment the response arrived.

    A missing or unparseable Date header, or a Date after the response
    arrived (clock skew), gives an apparent age of 0.
    """
    date = _header_date(entry, "date")
    if date is None:
        return 0
    return max(0, int(entry.response_date - date))


def get_age_value(entry: CacheEntry) -> int:
    """
    The largest value of the stored Age header lines.

    A missing header counts as 0. A malformed or negative value fails closed
    to `MAX_AGE`, so the entry can never look fresh because of it.
    """
    age_value = 0
    for value in entry.headers.get_list("age"):
        for element in value.split(","):
            parsed = parse_int_value(element.strip())
            if parsed is None or parsed < 0:
                return MAX_AGE
            age_value = max(age_value, parsed)
    return age_value


def get_current_age(entry: CacheEntry, now: float) -> int:
    """
    Calculates the current age of a cached response in seconds.

    RFC 9111 Section 4.2.3: Calculating Age
    https://www.rfc-editor.org/rfc/rfc9111.html#section-4.2.3

    Parameters:
    ----------
    entry : CacheEntry
        The stored response
    now : float
        The reference time, as a unix timestamp

    Returns:
    -------
    int
        Age of the response in seconds (always >= 0)

    The calculation:

        apparent_age = max(0, response_date - Date)
        response_delay = response_date - request_date
        corrected_age_value = Age + response_delay
        corrected_initial_age = max(apparent_age, corrected_age_value)
        resident_time = max(0, now - response_date)
        current_age = corrected_initial_age + resident_time

    Every term is truncated to whole seconds on its own, so for a fixed
    entry the age computed at `now + k` is exactly `k` more than the age
    computed at `now`.

    Examples:
    --------
    >>> # Received at T with `Date: T`, evaluated 10 seconds later
    >>> get_current_age(entry, now=entry.response_date + 10)
    10

    >>> # An upstream cache already held it for 30 seconds
    >>> get_current_age(entry_with_age_30, now=entry.response_date)
    30
    """
    response_delay = max(0, int(entry.response_date - entry.request_date))
    corrected_age_value = get_age_value(entry) + response_delay
    corrected_initial_age = max(get_apparent_age(entry), corrected_age_value)
    resident_time = max(0, int(now - entry.response_date))
    return corrected_initial_age + resident_time


def get_freshness_lifetime(entry: CacheEntry, shared: bool) -> int:
    """
    Calculates the freshness lifetime of a cached response in seconds.

    RFC 9111 Section 4.2.1: Calculating Freshness Lifetime
    https://www.rfc-editor.org/rfc/rfc9111.html#section-4.2.1

    Priority Order:
    --------------
    1. s-maxage (shared caches only)
    2. max-age
    3. Expires - Date, when both parse
    4. 0, no explicit lifetime (see `get_heuristic_freshness_lifetime`)

    A malformed s-maxage or max-age argument yields 0 rather than falling
    through to a lower priority source, so a broken directive can only make
    the response stale. Negative results are clamped to 0.

    Examples:
    --------
    >>> # s-maxage overrides max-age for shared caches
    >>> entry = make_entry(headers={"cache-control": "max-age=3600, s-maxage=7200"})
    >>> get_freshness_lifetime(entry, shared=True)
    7200
    >>> get_freshness_lifetime(entry, shared=False)
    3600
    """
    cache_control = _cache_control(entry)

    if shared and cache_control.has_directive("s-maxage"):
        if "s-maxage" in cache_control.malformed or cache_control.s_maxage is None:
            return 0
        return max(0, cache_control.s_maxage)

    if cache_control.has_directive("max-age"):
        if "max-age" in cache_control.malformed or cache_control.max_age is None:
            return 0
        return max(0, cache_control.max_age)

    expires = _header_date(entry, "expires")
    date = _header_date(entry, "date")
    if expires is not None and date is not None:
        return max(0, expires - date)

    return 0


def is_response_fresh(entry: CacheEntry, now: float, shared: bool) -> bool:
    return get_current_age(entry, now) < get_freshness_lifetime(entry, shared)


def get_heuristic_freshness_lifetime(entry: CacheEntry, coefficient: float, default_lifetime: int) -> int:
    """
    Calculates a heuristic freshness lifetime when no explicit expiration is provided.

    RFC 9111 Section 4.2.2: Calculating Heuristic Freshness
    https://www.rfc-editor.org/rfc/rfc9111.html#section-4.2.2

    "If the response has a Last-Modified header field, caches are encouraged
    to use a heuristic expiration value that is no more than some fraction of
    the interval since that time."

    With both Date and Last-Modified parseable the lifetime is
    `coefficient * (Date - Last-Modified)`, floored at 0. Otherwise it is
    `default_lifetime`.

    Examples:
    --------
    >>> # Last modified 10 days before Date, coefficient 0.1: one day
    >>> get_heuristic_freshness_lifetime(entry, 0.1, 0)
    86400
    """
    date = _header_date(entry, "date")
    last_modified = _header_date(entry, "last-modified")

    if date is not None and last_modified is not None:
        since_modification = date - last_modified
        if since_modification < 0:
            return 0
        return int(coefficient * since_modification)

    return default_lifetime


def is_response_heuristically_fresh(
    entry: CacheEntry, now: float, coefficient: float, default_lifetime: int
) -> bool:
    return get_current_age(entry, now) < get_heuristic_freshness_lifetime(entry, coefficient, default_lifetime)


def get_staleness(entry: CacheEntry, now: float, shared: bool) -> int:
    """Seconds by which the current age exceeds the freshness lifetime, or 0."""
    return max(0, get_current_age(entry, now) - get_freshness_lifetime(entry, shared))


def has_cache_control_directive(entry: CacheEntry, name: str) -> bool:
    return _cache_control(entry).has_directive(name)


def must_revalidate(entry: CacheEntry) -> bool:
    return has_cache_control_directive(entry, "must-revalidate")


def proxy_revalidate(entry: CacheEntry) -> bool:
    return has_cache_control_directive(entry, "proxy-revalidate")


def content_length_matches_actual_length(entry: CacheEntry) -> bool:
    """
    Whether the stored Content-Length agrees with the stored body.

    No Content-Length header is not a mismatch. A value that is not a
    non-negative integer is treated as one.
    """
    content_length = entry.headers.get_first("content-length")
    if content_length is None:
        return True
    parsed = parse_int_value(content_length.strip())
    return parsed is not None and parsed == entry.body_length


def is_revalidatable(entry: CacheEntry) -> bool:
    """Whether the entry carries a validator usable in a conditional request."""
    return "etag" in entry.headers or "last-modified" in entry.headers
