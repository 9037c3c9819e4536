"""
Freshening stored responses with 304 validation responses
(RFC 9111 Section 3.2 and Section 4.3.4).
"""

from __future__ import annotations

import pytest
from inline_snapshot import snapshot

from keepfresh import CacheEntry, Headers, Response, ValidationError, update_cache_entry
from keepfresh._core._updater import merge_headers

T = 1704067200  # Mon, 01 Jan 2024 00:00:00 GMT
DATE_T = "Mon, 01 Jan 2024 00:00:00 GMT"
ONE_HOUR_LATER = "Mon, 01 Jan 2024 01:00:00 GMT"


def create_entry() -> CacheEntry:
    return CacheEntry(
        request_date=T,
        response_date=T,
        status_code=200,
        reason_phrase="OK",
        headers=Headers(
            [
                ("Date", DATE_T),
                ("ETag", '"v1"'),
                ("Cache-Control", "max-age=60"),
                ("Content-Type", "text/plain"),
                ("Warning", '110 - "Response is Stale"'),
                ("X-Foo", "a"),
            ]
        ),
        body=b"hello",
    )


def test_merge_headers():
    merged = merge_headers(
        create_entry().headers,
        Headers(
            [
                ("Date", ONE_HOUR_LATER),
                ("Cache-Control", "max-age=120"),
                ("Content-Type", "text/html"),
                ("Content-Length", "0"),
                ("X-Bar", "b"),
            ]
        ),
    )

    assert merged.multi_items() == snapshot(
        [
            ("Date", "Mon, 01 Jan 2024 01:00:00 GMT"),
            ("ETag", '"v1"'),
            ("Cache-Control", "max-age=120"),
            ("Content-Type", "text/plain"),
            ("X-Foo", "a"),
            ("X-Bar", "b"),
        ]
    )


def test_merge_keeps_other_warnings():
    stored = Headers([("Date", DATE_T), ("Warning", '299 - "Deprecated"')])

    merged = merge_headers(stored, Headers({"Date": ONE_HOUR_LATER}))

    assert merged.multi_items() == [("Date", ONE_HOUR_LATER), ("Warning", '299 - "Deprecated"')]


def test_merge_replaces_all_lines_of_a_field():
    stored = Headers([("Cache-Control", "max-age=60"), ("Cache-Control", "public")])

    merged = merge_headers(stored, Headers([("cache-control", "max-age=10"), ("cache-control", "private")]))

    assert merged.multi_items() == [("cache-control", "max-age=10"), ("cache-control", "private")]


def test_merge_ignores_outdated_response():
    stored = Headers([("Date", ONE_HOUR_LATER), ("Cache-Control", "max-age=60")])

    merged = merge_headers(stored, Headers({"Date": DATE_T, "Cache-Control": "no-store"}))

    assert merged == stored


def test_update_cache_entry():
    entry = create_entry()
    response = Response(status_code=304, headers=Headers({"Date": ONE_HOUR_LATER, "ETag": '"v1"'}))

    updated = update_cache_entry(entry, T + 3600, T + 3601, response)

    assert updated.request_date == T + 3600
    assert updated.response_date == T + 3601
    assert updated.status_code == 200
    assert updated.reason_phrase == "OK"
    assert updated.body == b"hello"
    assert updated.headers.get_first("date") == ONE_HOUR_LATER
    assert entry.headers.get_first("date") == DATE_T


def test_update_with_non_304_response():
    response = Response(status_code=200, headers=Headers({"Date": ONE_HOUR_LATER}))

    with pytest.raises(ValidationError, match="only be updated with a 304 response, got 200"):
        update_cache_entry(create_entry(), T + 3600, T + 3600, response)


def test_update_with_inverted_dates():
    response = Response(status_code=304)

    with pytest.raises(ValidationError, match="cannot be earlier than the request date"):
        update_cache_entry(create_entry(), T + 10, T + 5, response)
