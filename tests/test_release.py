from __future__ import annotations

import asyncio

import httpx

from metabase_explorer.release import (
    LATEST_RELEASE_URL,
    fetch_latest_release_tag,
    is_update_available,
)


def test_is_update_available_compares_without_v_prefix() -> None:
    assert is_update_available("1.2.0", "v1.3.0") is True
    assert is_update_available("v1.2.0", "1.2.0") is False
    assert is_update_available("1.2.0", None) is False
    assert is_update_available("dev", "v9.0.0") is False


def test_fetch_latest_release_tag_reads_tag_name() -> None:
    seen: list[str] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"tag_name": "v0.4.0"})

    tag = asyncio.run(
        fetch_latest_release_tag(transport=httpx.MockTransport(_handler))
    )

    assert tag == "v0.4.0"
    assert seen == [LATEST_RELEASE_URL]


def test_fetch_latest_release_tag_tolerates_failures() -> None:
    def _not_found(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    def _offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    assert (
        asyncio.run(fetch_latest_release_tag(transport=httpx.MockTransport(_not_found)))
        is None
    )
    assert (
        asyncio.run(fetch_latest_release_tag(transport=httpx.MockTransport(_offline)))
        is None
    )
