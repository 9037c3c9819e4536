from __future__ import annotations

import calendar
import datetime
import typing as tp
from email.utils import formatdate, parsedate_tz

T = tp.TypeVar("T")


def parse_date(date: str) -> tp.Optional[int]:
    """
    Parse an HTTP-date into a unix timestamp.

    Accepts the RFC 1123 form as well as the obsolete RFC 850 and asctime
    forms. Returns None for anything that cannot be parsed, including
    dates whose fields are out of range such as a 32nd day or a 25th hour.
    """
    parsed = parsedate_tz(date)
    if parsed is None:
        return None
    try:
        datetime.datetime(*parsed[:6])
        timestamp = calendar.timegm(parsed[:6])
    except (ValueError, OverflowError):
        return None
    return timestamp - (parsed[9] or 0)


def partition(iterable: tp.Iterable[T], predicate: tp.Callable[[T], bool]) -> tp.Tuple[tp.List[T], tp.List[T]]:
    """
    Splits `iterable` in two lists, the items `predicate` accepts and the rest.

    Both lists keep the input order.

    Example:
        ```
        headers = [("Date", "..."), ("Content-Type", "text/plain")]
        dates, rest = partition(headers, lambda item: item[0].lower() == "date")
        ```
    """
    accepted: tp.List[T] = []
    rejected: tp.List[T] = []
    for item in iterable:
        (accepted if predicate(item) else rejected).append(item)
    return accepted, rejected


def generate_http_date(timeval: tp.Optional[float] = None) -> str:
    """
    Formats `timeval` (default: now) as an IMF-fixdate, e.g. "Mon, 01 Jan 2024 00:00:00 GMT".
    """
    return formatdate(timeval=timeval, localtime=False, usegmt=True)
