from __future__ import annotations

from dataclasses import dataclass, field

from keepfresh._core._headers import Headers
from keepfresh._exceptions import ValidationError


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=Headers)


@dataclass(frozen=True)
class Response:
    status_code: int
    reason_phrase: str = ""
    headers: Headers = field(default_factory=Headers)
    content: bytes = b""


@dataclass(frozen=True)
class CacheEntry:
    """
    An immutable snapshot of a response received from the origin.

    Entries are keyed externally, by method, normalized URI and variant
    selector (see `keepfresh.generate_key`). Revalidation never edits an
    entry in place; `update_cache_entry` builds a new one.

    Attributes:
    ----------
    request_date : float
        Unix timestamp taken just before the request was sent upstream.
    response_date : float
        Unix timestamp taken just after the response was received.
    status_code : int
        Stored status code.
    reason_phrase : str
        Stored reason phrase.
    headers : Headers
        Stored response header lines, in arrival order.
    body : bytes
        Stored response body.
    """

    request_date: float
    response_date: float
    status_code: int
    reason_phrase: str = ""
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    def __post_init__(self) -> None:
        if self.response_date < self.request_date:
            raise ValidationError(
                f"The response date ({self.response_date}) cannot be earlier than the request date ({self.request_date})."
            )

    @property
    def body_length(self) -> int:
        return len(self.body)
