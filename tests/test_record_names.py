"""Tests for the cached record-name resolver."""

import asyncio

import pytest

from recordview.services.record_names import RecordNameResolver


@pytest.mark.asyncio
async def test_resolves_and_caches(api, backend):
    backend.record_names[("job", "42")] = "Backend Engineer"
    resolver = RecordNameResolver(api)

    first = await resolver.resolve("Job", 42)
    second = await resolver.resolve("job", "42")

    assert first.name == "Backend Engineer"
    assert second is first
    assert backend.resolve_calls == 1


@pytest.mark.asyncio
async def test_concurrent_lookups_share_one_request(api, backend):
    backend.record_names[("hiring-manager", "12")] = "Grace Hopper"
    resolver = RecordNameResolver(api)

    results = await asyncio.gather(*(resolver.resolve("Hiring Manager", 12) for _ in range(5)))

    assert {r.name for r in results} == {"Grace Hopper"}
    assert backend.resolve_calls == 1


@pytest.mark.asyncio
async def test_failures_are_cached(api, backend):
    resolver = RecordNameResolver(api)

    first = await resolver.resolve("task", 404)
    second = await resolver.resolve("task", 404)

    assert first.error is True
    assert first.name is None
    assert second is first
    assert backend.resolve_calls == 1
    assert await resolver.display_name("task", 404, fallback="-") == "-"


@pytest.mark.asyncio
async def test_missing_id_is_an_error_without_request(api, backend):
    resolver = RecordNameResolver(api)

    assert (await resolver.resolve("job", "")).error is True
    assert (await resolver.resolve("job", None)).error is True
    assert backend.resolve_calls == 0


@pytest.mark.asyncio
async def test_view_url(api):
    resolver = RecordNameResolver(api)

    assert resolver.view_url("job-seekers", 5) == "/dashboard/job-seekers/view?id=5"
    assert resolver.view_url("hiringManager", 12) == "/dashboard/hiring-managers/view?id=12"
    assert resolver.view_url("widgets", 1) is None
