from __future__ import annotations

import asyncio

import pytest

from sitemapper.crawler.parser import PageRecord
from sitemapper.storage.registry import VisitedRegistry

from helpers import SEED


@pytest.mark.asyncio
async def test_record_then_contains():
    registry = VisitedRegistry()
    record = PageRecord(source_url=SEED, links=(f"{SEED}/about",))

    assert not await registry.contains(SEED)
    await registry.record(SEED, record)

    assert await registry.contains(SEED)
    assert SEED in registry
    assert len(registry) == 1
    assert registry.get(SEED) is record


@pytest.mark.asyncio
async def test_second_record_overwrites_first():
    registry = VisitedRegistry()
    await registry.record(SEED, PageRecord(source_url=SEED, links=("a",)))
    await registry.record(SEED, PageRecord(source_url=SEED, links=("b",)))

    assert registry.get(SEED).links == ("b",)
    assert len(registry) == 1
    assert registry.get_stats() == {
        "records_written": 2,
        "records_overwritten": 1,
        "claims_rejected": 0,
        "pages": 1,
    }


@pytest.mark.asyncio
async def test_claim_is_granted_once():
    registry = VisitedRegistry()

    results = await asyncio.gather(*(registry.claim(SEED) for _ in range(10)))

    assert results.count(True) == 1
    assert registry.get_stats()["claims_rejected"] == 9
    # A claim is a reservation, not a page record
    assert SEED not in registry


@pytest.mark.asyncio
async def test_claim_rejects_recorded_url():
    registry = VisitedRegistry()
    await registry.record(SEED, PageRecord(source_url=SEED))

    assert await registry.claim(SEED) is False


@pytest.mark.asyncio
async def test_snapshot_is_a_copy():
    registry = VisitedRegistry()
    await registry.record(SEED, PageRecord(source_url=SEED))

    snapshot = registry.snapshot()
    await registry.record(f"{SEED}/about", PageRecord(source_url=f"{SEED}/about"))

    assert list(snapshot) == [SEED]
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_to_dict_uses_page_map_shape():
    registry = VisitedRegistry()
    await registry.record(SEED, PageRecord(source_url=SEED, assets=("img",), links=("link",)))

    assert registry.to_dict() == {SEED: {"assets": ["img"], "links": ["link"]}}
