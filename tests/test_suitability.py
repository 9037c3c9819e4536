"""
Tests for deciding whether a stored response may answer a request
(RFC 9111 Section 4 and Section 5.2.1 request directives).
"""

from __future__ import annotations

from typing import Any, Optional

import pytest
from inline_snapshot import snapshot

from keepfresh import (
    CacheConfig,
    CachedResponseSuitabilityChecker,
    CacheEntry,
    Headers,
    MissReason,
    MustFetch,
    Request,
    ServeFull,
    ServeNotModified,
)

T = 1704067200  # Mon, 01 Jan 2024 00:00:00 GMT
DATE_T = "Mon, 01 Jan 2024 00:00:00 GMT"


def create_entry(headers: Optional[Any] = None, body: bytes = b"hello") -> CacheEntry:
    default_headers = {"Date": DATE_T, "Cache-Control": "max-age=3600", "ETag": '"abc"'}
    return CacheEntry(
        request_date=T,
        response_date=T,
        status_code=200,
        reason_phrase="OK",
        headers=Headers(default_headers if headers is None else {"Date": DATE_T, **headers}),
        body=body,
    )


def create_request(headers: Optional[Any] = None) -> Request:
    return Request(method="GET", url="https://example.com/", headers=Headers(headers))


@pytest.fixture
def checker() -> CachedResponseSuitabilityChecker:
    return CachedResponseSuitabilityChecker(CacheConfig(shared=False))


class TestServing:
    def test_fresh_entry(self, checker: CachedResponseSuitabilityChecker) -> None:
        assert checker.can_serve(create_request(), create_entry(), now=T + 10) == ServeFull()

    def test_same_inputs_give_same_answer(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"If-None-Match": '"abc"'})
        entry = create_entry()

        first = checker.can_serve(request, entry, now=T + 10)
        second = checker.can_serve(request, entry, now=T + 10)

        assert first == second == ServeNotModified()

    def test_matching_etag(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"If-None-Match": '"abc"'})

        assert checker.can_serve(request, create_entry(), now=T + 10) == ServeNotModified()

    def test_matching_if_modified_since(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=3600", "Last-Modified": "Sun, 31 Dec 2023 00:00:00 GMT"})
        request = create_request({"If-Modified-Since": DATE_T})

        assert checker.can_serve(request, entry, now=T + 10) == ServeNotModified()

    def test_different_etag(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"If-None-Match": '"xyz"'})

        assert checker.can_serve(request, create_entry(), now=T + 10) == MustFetch(MissReason.CONDITIONAL_MISMATCH)

    def test_invalid_if_unmodified_since_is_ignored(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"If-Unmodified-Since": "not a date"})

        assert checker.can_serve(request, create_entry(), now=T + 10) == ServeFull()

    def test_checker_helpers(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"If-None-Match": '"abc"'})

        assert checker.is_conditional(request)
        assert checker.all_conditionals_match(request, create_entry(), now=T)
        assert not checker.is_conditional(create_request())


class TestMisses:
    @pytest.mark.parametrize(
        "header",
        [
            {"If-Range": '"abc"'},
            {"If-Match": '"abc"'},
            {"If-Unmodified-Since": DATE_T},
        ],
    )
    def test_unsupported_conditional(self, checker: CachedResponseSuitabilityChecker, header: dict) -> None:
        outcome = checker.can_serve(create_request(header), create_entry(), now=T + 10)

        assert outcome == MustFetch(MissReason.UNSUPPORTED_CONDITIONAL)

    def test_stale_entry(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100"})

        assert checker.can_serve(create_request(), entry, now=T + 150) == MustFetch(MissReason.NOT_FRESH_ENOUGH)

    def test_content_length_mismatch(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=3600", "Content-Length": "500"}, body=b"x" * 400)

        outcome = checker.can_serve(create_request(), entry, now=T + 10)

        assert outcome == MustFetch(MissReason.CONTENT_LENGTH_MISMATCH)

    def test_content_length_mismatch_on_stale_entry(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=10", "Content-Length": "500"}, body=b"x" * 400)

        assert isinstance(checker.can_serve(create_request(), entry, now=T + 100), MustFetch)

    def test_request_no_cache(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"Cache-Control": "no-cache"})

        assert checker.can_serve(request, create_entry(), now=T) == MustFetch(MissReason.REQUEST_NO_CACHE)

    @pytest.mark.parametrize("value", ['no-cache=""', "no-cache=,", "max-age=60, no-cache="])
    def test_request_no_cache_with_empty_argument(self, checker: CachedResponseSuitabilityChecker, value: str) -> None:
        request = create_request({"Cache-Control": value})

        assert checker.can_serve(request, create_entry(), now=T + 10) == MustFetch(MissReason.REQUEST_NO_CACHE)

    def test_request_no_cache_wins_over_matching_validator(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"Cache-Control": "no-cache", "If-None-Match": '"abc"'})

        assert checker.can_serve(request, create_entry(), now=T) == MustFetch(MissReason.REQUEST_NO_CACHE)

    def test_request_no_store(self, checker: CachedResponseSuitabilityChecker) -> None:
        request = create_request({"Cache-Control": "no-store"})

        assert checker.can_serve(request, create_entry(), now=T) == MustFetch(MissReason.REQUEST_NO_STORE)

    @pytest.mark.parametrize("directive", ["max-age=soon", "max-stale=soon", "min-fresh=-1"])
    def test_malformed_request_directive(self, checker: CachedResponseSuitabilityChecker, directive: str) -> None:
        request = create_request({"Cache-Control": directive})

        outcome = checker.can_serve(request, create_entry(), now=T + 10)

        assert outcome == MustFetch(MissReason.MALFORMED_DIRECTIVE)

    def test_request_max_age(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry()

        assert checker.can_serve(create_request({"Cache-Control": "max-age=5"}), entry, now=T + 10) == MustFetch(
            MissReason.MAX_AGE_EXCEEDED
        )
        assert checker.can_serve(create_request({"Cache-Control": "max-age=60"}), entry, now=T + 10) == ServeFull()

    def test_request_min_fresh(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry()

        assert checker.can_serve(
            create_request({"Cache-Control": "min-fresh=3595"}), entry, now=T + 10
        ) == MustFetch(MissReason.MIN_FRESH_UNSATISFIED)
        assert checker.can_serve(create_request({"Cache-Control": "min-fresh=100"}), entry, now=T + 10) == ServeFull()


class TestMaxStale:
    """
    A stale entry may be served when the request accepts enough staleness,
    unless the origin insists on freshness.
    """

    def test_within_allowed_staleness(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100"})
        request = create_request({"Cache-Control": "max-stale=200"})

        assert checker.can_serve(request, entry, now=T + 150) == ServeFull()

    def test_beyond_allowed_staleness(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100"})
        request = create_request({"Cache-Control": "max-stale=10"})

        assert checker.can_serve(request, entry, now=T + 150) == MustFetch(MissReason.NOT_FRESH_ENOUGH)

    def test_lifetime_larger_than_max_stale(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100"})
        request = create_request({"Cache-Control": "max-stale=60"})

        assert checker.can_serve(request, entry, now=T + 150) == MustFetch(MissReason.MAX_STALE_EXCEEDED)

    def test_bare_max_stale(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100"})
        request = create_request({"Cache-Control": "max-stale"})

        assert checker.can_serve(request, entry, now=T + 86400) == ServeFull()

    def test_must_revalidate(self, checker: CachedResponseSuitabilityChecker) -> None:
        entry = create_entry({"Cache-Control": "max-age=100, must-revalidate"})
        request = create_request({"Cache-Control": "max-stale"})

        assert checker.can_serve(request, entry, now=T + 150) == MustFetch(MissReason.NOT_FRESH_ENOUGH)

    @pytest.mark.parametrize("directive", ["proxy-revalidate", "s-maxage=100"])
    def test_shared_cache_directives(self, directive: str) -> None:
        entry = create_entry({"Cache-Control": f"max-age=100, {directive}"})
        request = create_request({"Cache-Control": "max-stale"})

        shared = CachedResponseSuitabilityChecker(CacheConfig(shared=True))
        private = CachedResponseSuitabilityChecker(CacheConfig(shared=False))

        assert shared.can_serve(request, entry, now=T + 150) == MustFetch(MissReason.NOT_FRESH_ENOUGH)
        assert private.can_serve(request, entry, now=T + 150) == ServeFull()


class TestHeuristicFreshness:
    def test_heuristic_caching(self) -> None:
        # Last modified ten days before Date, fresh for one day
        entry = create_entry({"Last-Modified": "Fri, 22 Dec 2023 00:00:00 GMT"})

        enabled = CachedResponseSuitabilityChecker(CacheConfig(heuristic_caching_enabled=True))
        disabled = CachedResponseSuitabilityChecker(CacheConfig())

        assert enabled.can_serve(create_request(), entry, now=T + 3600) == ServeFull()
        assert enabled.can_serve(create_request(), entry, now=T + 86400) == MustFetch(MissReason.NOT_FRESH_ENOUGH)
        assert disabled.can_serve(create_request(), entry, now=T + 3600) == MustFetch(MissReason.NOT_FRESH_ENOUGH)

    def test_default_lifetime(self) -> None:
        entry = create_entry({})
        checker = CachedResponseSuitabilityChecker(
            CacheConfig(heuristic_caching_enabled=True, heuristic_default_lifetime=60)
        )

        assert checker.can_serve(create_request(), entry, now=T + 30) == ServeFull()
        assert checker.can_serve(create_request(), entry, now=T + 60) == MustFetch(MissReason.NOT_FRESH_ENOUGH)


class TestLogging:
    def test_miss_is_logged(self, checker: CachedResponseSuitabilityChecker, caplog: Any) -> None:
        with caplog.at_level("DEBUG"):
            outcome = checker.can_serve(create_request({"Cache-Control": "no-cache"}), create_entry(), now=T)

        assert isinstance(outcome, MustFetch)
        assert outcome.detail == "the request contains the no-cache directive"
        assert caplog.record_tuples == snapshot(
            [
                (
                    "keepfresh.core.suitability",
                    10,
                    "Considering the resource located at https://example.com/ as invalid for cache use "
                    "since the request contains the no-cache directive.",
                )
            ]
        )

    def test_hit_is_logged(self, checker: CachedResponseSuitabilityChecker, caplog: Any) -> None:
        with caplog.at_level("DEBUG"):
            checker.can_serve(create_request(), create_entry(), now=T)

        assert caplog.record_tuples == snapshot(
            [
                (
                    "keepfresh.core.suitability",
                    10,
                    "Considering the resource located at https://example.com/ as valid for cache use.",
                )
            ]
        )
