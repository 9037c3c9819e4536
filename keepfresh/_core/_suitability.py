from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from keepfresh._core import _conditional, _validity
from keepfresh._core._config import CacheConfig
from keepfresh._core._headers import UNBOUNDED, CacheControl, parse_cache_control
from keepfresh._core.models import CacheEntry, Request

logger = logging.getLogger("keepfresh.core.suitability")

REQUEST_NUMERIC_DIRECTIVES = ("max-age", "max-stale", "min-fresh")

__all__ = (
    "CachedResponseSuitabilityChecker",
    "MissReason",
    "MustFetch",
    "ServeFull",
    "ServeNotModified",
    "Suitability",
)


class MissReason(enum.Enum):
    UNSUPPORTED_CONDITIONAL = "unsupported-conditional"
    NOT_FRESH_ENOUGH = "not-fresh-enough"
    CONTENT_LENGTH_MISMATCH = "content-length-mismatch"
    CONDITIONAL_MISMATCH = "conditional-mismatch"
    REQUEST_NO_CACHE = "request-no-cache"
    REQUEST_NO_STORE = "request-no-store"
    MALFORMED_DIRECTIVE = "malformed-directive"
    MAX_AGE_EXCEEDED = "max-age-exceeded"
    MAX_STALE_EXCEEDED = "max-stale-exceeded"
    MIN_FRESH_UNSATISFIED = "min-fresh-unsatisfied"
    METHOD_NOT_SUPPORTED = "method-not-supported"
    NO_ENTRY = "no-entry"


@dataclass(frozen=True)
class ServeFull:
    """The stored response can be sent as is."""


@dataclass(frozen=True)
class ServeNotModified:
    """The request is conditional and the stored response satisfies its validators."""


@dataclass(frozen=True)
class MustFetch:
    """The stored response cannot be used; `reason` names the first failing check."""

    reason: MissReason
    detail: Optional[str] = field(default=None, compare=False)


Suitability = Union[ServeFull, ServeNotModified, MustFetch]


class CachedResponseSuitabilityChecker:
    """
    Determines whether a stored entry may answer a request without the origin.

    The checker holds no state besides its configuration. Every call to
    `can_serve` runs the same ordered sequence of checks and stops at the
    first one that fails:

    1. The request carries preconditions the cache cannot evaluate
       (If-Range, If-Match, If-Unmodified-Since).
    2. The entry is neither fresh, nor heuristically fresh (when enabled),
       nor within the staleness the request accepts via max-stale.
    3. The stored Content-Length disagrees with the stored body.
    4. The request is conditional and its validators do not match.
    5. The request's own Cache-Control directives rule the entry out.

    Examples:
    --------
    >>> checker = CachedResponseSuitabilityChecker(CacheConfig())
    >>> checker.can_serve(request, entry, now=time.time())
    ServeFull()
    """

    def __init__(self, config: CacheConfig) -> None:
        self._config = config

    def can_serve(self, request: Request, entry: CacheEntry, now: float) -> Suitability:
        if _conditional.has_unsupported_conditional_headers(request):
            return self._miss(request, MissReason.UNSUPPORTED_CONDITIONAL, "it contains conditional headers we don't handle")

        request_cache_control = parse_cache_control(request.headers.get_list("cache-control"))

        if not self._is_fresh_enough(entry, request_cache_control, now):
            return self._miss(request, MissReason.NOT_FRESH_ENOUGH, "the stored response is not fresh enough")

        if not _validity.content_length_matches_actual_length(entry):
            return self._miss(
                request,
                MissReason.CONTENT_LENGTH_MISMATCH,
                "the stored Content-Length does not match the stored body",
            )

        conditional = _conditional.is_conditional(request)
        if conditional and not _conditional.all_conditionals_match(request, entry, now):
            return self._miss(request, MissReason.CONDITIONAL_MISMATCH, "the request validators do not match")

        miss = self._check_request_directives(request, entry, request_cache_control, now)
        if miss is not None:
            return miss

        if conditional:
            logger.debug(
                f"Considering the resource located at {request.url} "
                "as valid for a 304 response since the request validators match."
            )
            return ServeNotModified()

        logger.debug(f"Considering the resource located at {request.url} as valid for cache use.")
        return ServeFull()

    def is_conditional(self, request: Request) -> bool:
        return _conditional.is_conditional(request)

    def all_conditionals_match(self, request: Request, entry: CacheEntry, now: float) -> bool:
        return _conditional.all_conditionals_match(request, entry, now)

    def _is_fresh_enough(self, entry: CacheEntry, request_cache_control: CacheControl, now: float) -> bool:
        if _validity.is_response_fresh(entry, now, self._config.shared):
            return True

        if self._config.heuristic_caching_enabled and _validity.is_response_heuristically_fresh(
            entry,
            now,
            self._config.heuristic_coefficient,
            self._config.heuristic_default_lifetime,
        ):
            return True

        if self._origin_insists_on_freshness(entry):
            return False

        max_stale = request_cache_control.max_stale
        if max_stale is None:
            return False

        if max_stale == UNBOUNDED:
            return True

        return max_stale > _validity.get_staleness(entry, now, self._config.shared)

    def _origin_insists_on_freshness(self, entry: CacheEntry) -> bool:
        if _validity.must_revalidate(entry):
            return True
        if not self._config.shared:
            return False
        return _validity.proxy_revalidate(entry) or _validity.has_cache_control_directive(entry, "s-maxage")

    def _check_request_directives(
        self,
        request: Request,
        entry: CacheEntry,
        request_cache_control: CacheControl,
        now: float,
    ) -> Optional[MustFetch]:
        """
        Applies the request's no-cache, no-store, max-age, max-stale and min-fresh directives.

        A bare `max-stale` sets no bound on the freshness lifetime here, just as it
        sets none on staleness, so it never fails this check on its own.
        """
        if request_cache_control.no_cache:
            return self._miss(request, MissReason.REQUEST_NO_CACHE, "the request contains the no-cache directive")

        if request_cache_control.no_store:
            return self._miss(request, MissReason.REQUEST_NO_STORE, "the request contains the no-store directive")

        malformed = request_cache_control.malformed.intersection(REQUEST_NUMERIC_DIRECTIVES)
        if malformed:
            names = ", ".join(sorted(malformed))
            return self._miss(
                request,
                MissReason.MALFORMED_DIRECTIVE,
                f"the request contains malformed directives ({names})",
            )

        age = _validity.get_current_age(entry, now)
        freshness_lifetime = _validity.get_freshness_lifetime(entry, self._config.shared)

        if request_cache_control.max_age is not None and age > request_cache_control.max_age:
            return self._miss(
                request,
                MissReason.MAX_AGE_EXCEEDED,
                "the age of the response exceeds the max-age directive",
            )

        # Checked separately from the staleness allowance in `_is_fresh_enough`
        max_stale = request_cache_control.max_stale
        if max_stale is not None and max_stale != UNBOUNDED and freshness_lifetime > max_stale:
            return self._miss(
                request,
                MissReason.MAX_STALE_EXCEEDED,
                "the freshness lifetime exceeds the max-stale directive",
            )

        if request_cache_control.min_fresh is not None and freshness_lifetime - age < request_cache_control.min_fresh:
            return self._miss(
                request,
                MissReason.MIN_FRESH_UNSATISFIED,
                "the time left for freshness is less than the min-fresh directive",
            )

        return None

    def _miss(self, request: Request, reason: MissReason, detail: str) -> MustFetch:
        logger.debug(f"Considering the resource located at {request.url} as invalid for cache use since {detail}.")
        return MustFetch(reason=reason, detail=detail)
