from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from typing_extensions import assert_never

from keepfresh._core._compliance import RequestProtocolError, get_error_for_request, request_protocol_errors
from keepfresh._core._conditional import all_conditionals_match, build_conditional_request, is_conditional
from keepfresh._core._config import CacheConfig
from keepfresh._core._generator import generate_full_response, generate_not_modified_response
from keepfresh._core._suitability import (
    CachedResponseSuitabilityChecker,
    MissReason,
    MustFetch,
    ServeFull,
    ServeNotModified,
)
from keepfresh._core._updater import update_cache_entry
from keepfresh._core._validity import is_revalidatable
from keepfresh._core.models import CacheEntry, Request, Response

logger = logging.getLogger("keepfresh.core.engine")

# Misses a successful revalidation of the stored entry can turn into a hit
REVALIDATABLE_REASONS = frozenset(
    [
        MissReason.NOT_FRESH_ENOUGH,
        MissReason.REQUEST_NO_CACHE,
        MissReason.MAX_AGE_EXCEEDED,
        MissReason.MAX_STALE_EXCEEDED,
        MissReason.MIN_FRESH_UNSATISFIED,
    ]
)

__all__ = (
    "AnyState",
    "CacheEngine",
    "CacheMiss",
    "FromCache",
    "NeedRevalidation",
    "RequestRejected",
    "Revalidated",
)


@dataclass(frozen=True)
class FromCache:
    """The stored entry answers the request; send `response` to the client."""

    response: Response
    outcome: Union[ServeFull, ServeNotModified]


@dataclass(frozen=True)
class NeedRevalidation:
    """
    The stored entry may still be usable once the origin confirms it.

    Send `request` (a conditional request built from the entry's validators)
    upstream and pass the answer to `CacheEngine.handle_validation_response`.
    """

    request: Request
    original_request: Request
    entry: CacheEntry
    reason: MissReason


@dataclass(frozen=True)
class CacheMiss:
    """
    The request must be forwarded to the origin unchanged.

    When `evict` is True the stored entry is corrupt and should be removed
    from the store.
    """

    request: Request
    reason: MissReason
    evict: bool = False


@dataclass(frozen=True)
class RequestRejected:
    """The request breaks a protocol rule; send `response` without contacting the origin."""

    response: Response
    errors: List[RequestProtocolError] = field(default_factory=list)


@dataclass(frozen=True)
class Revalidated:
    """
    Outcome of a validation exchange.

    `entry` is the updated entry to store, or None when the origin sent a
    new response instead of a 304 (which the caller stores through its own
    policy). `response` is what the client receives.
    """

    entry: Optional[CacheEntry]
    response: Response


AnyState = Union[FromCache, NeedRevalidation, CacheMiss, RequestRejected]


class CacheEngine:
    """
    Answers requests from stored entries, in the order a caching layer asks.

    The engine is stateless: the caller looks the candidate entry up in its
    store, passes it to `next` together with the current time, and acts on
    the returned state.

    Examples:
    --------
    >>> engine = CacheEngine(CacheConfig(shared=False))
    >>> state = engine.next(request, storage.get(key), now=time.time())
    >>> if isinstance(state, FromCache):
    ...     send(state.response)
    ... elif isinstance(state, NeedRevalidation):
    ...     revalidated = engine.handle_validation_response(state, fetch(state.request), ...)
    """

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        self.config = config if config is not None else CacheConfig()
        self._checker = CachedResponseSuitabilityChecker(self.config)

    def next(self, request: Request, entry: Optional[CacheEntry], now: float) -> AnyState:
        errors = request_protocol_errors(request)
        if errors:
            logger.debug(
                f"Rejecting the request for the resource located at {request.url} "
                f"since it is not protocol compliant ({errors[0].value})."
            )
            return RequestRejected(response=get_error_for_request(errors[0]), errors=errors)

        if request.method.upper() not in self.config.supported_methods:
            logger.debug(
                f"Considering the resource located at {request.url} "
                f"as not servable from cache since the request method ({request.method}) is not supported."
            )
            return CacheMiss(request=request, reason=MissReason.METHOD_NOT_SUPPORTED)

        if entry is None:
            return CacheMiss(request=request, reason=MissReason.NO_ENTRY)

        outcome = self._checker.can_serve(request, entry, now)

        if isinstance(outcome, ServeFull):
            return FromCache(response=generate_full_response(entry, now), outcome=outcome)

        if isinstance(outcome, ServeNotModified):
            return FromCache(response=generate_not_modified_response(entry, now), outcome=outcome)

        if isinstance(outcome, MustFetch):
            return self._after_miss(request, entry, outcome)

        assert_never(outcome)

    def handle_validation_response(
        self,
        state: NeedRevalidation,
        response: Response,
        request_date: float,
        response_date: float,
        now: float,
    ) -> Revalidated:
        """
        Handles the origin's answer to the request of a `NeedRevalidation` state.

        A 304 freshens the stored entry (see `update_cache_entry`) and the
        client receives either a 304 of its own, when its request was
        conditional and still matches, or the full stored response. Any
        other status replaces the stored response and is passed through.
        """
        if response.status_code != 304:
            logger.debug(
                f"The origin sent a new response ({response.status_code}) for the resource "
                f"located at {state.original_request.url}, discarding the stored one."
            )
            return Revalidated(entry=None, response=response)

        updated_entry = update_cache_entry(state.entry, request_date, response_date, response)
        original_request = state.original_request

        if is_conditional(original_request) and all_conditionals_match(original_request, updated_entry, now):
            return Revalidated(entry=updated_entry, response=generate_not_modified_response(updated_entry, now))

        return Revalidated(entry=updated_entry, response=generate_full_response(updated_entry, now))

    def _after_miss(self, request: Request, entry: CacheEntry, outcome: MustFetch) -> AnyState:
        if outcome.reason in REVALIDATABLE_REASONS and is_revalidatable(entry):
            logger.debug(
                f"Considering the resource located at {request.url} "
                "as needing revalidation since the stored response carries a validator."
            )
            return NeedRevalidation(
                request=build_conditional_request(request, entry),
                original_request=request,
                entry=entry,
                reason=outcome.reason,
            )

        return CacheMiss(
            request=request,
            reason=outcome.reason,
            evict=outcome.reason is MissReason.CONTENT_LENGTH_MISMATCH,
        )
