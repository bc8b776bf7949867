import asyncio

import httpx
import pytest

from boxbox.client.api import ApiError, BoxBoxClient, box_query, boxes_query, items_search_query
from boxbox.client.cache import QueryCache, keys
from boxbox.main import app
from conftest import TEST_EMAIL, TEST_PASSWORD


def make_client() -> BoxBoxClient:
    transport = httpx.ASGITransport(app=app)
    return BoxBoxClient(httpx.AsyncClient(transport=transport, base_url="http://testserver"))


async def signed_in_client() -> BoxBoxClient:
    client = make_client()
    await client.register(TEST_EMAIL, TEST_PASSWORD, name="Owner")
    await client.login(TEST_EMAIL, TEST_PASSWORD)
    return client


def test_crud_round_trip():
    async def scenario():
        async with await signed_in_client() as client:
            box = await client.create_box("Garage", description="Tools")
            assert box.item_count == 0

            item = await client.create_item(box.id, "Drill", quantity=2)
            detail = await client.get_box(box.id)
            assert detail.item_count == 1
            assert [i.id for i in detail.items] == [item.id]

            moved_box = await client.create_box("Attic")
            moved = await client.update_item(item.id, box_id=moved_box.id)
            assert moved.box_id == moved_box.id

            counts = {b.name: b.item_count for b in await client.list_boxes()}
            assert counts == {"Garage": 0, "Attic": 1}

            await client.delete_item(item.id)
            with pytest.raises(ApiError) as excinfo:
                await client.get_item(item.id)
            assert excinfo.value.not_found

            await client.delete_box(box.id)
            assert [b.name for b in await client.list_boxes()] == ["Attic"]

    asyncio.run(scenario())


def test_iter_items_follows_cursors():
    async def scenario():
        async with await signed_in_client() as client:
            box = await client.create_box("Garage")
            created = [await client.create_item(box.id, f"item {n}") for n in range(7)]
            seen = [item.id async for item in client.iter_items(limit=3)]
            return created, seen

    created, seen = asyncio.run(scenario())
    assert sorted(seen) == sorted(item.id for item in created)
    assert len(seen) == len(set(seen))


def test_errors_carry_status_and_detail():
    async def scenario():
        client = make_client()
        try:
            with pytest.raises(ApiError) as unauthorized:
                await client.list_boxes()
            await client.register(TEST_EMAIL, TEST_PASSWORD)
            await client.login(TEST_EMAIL, TEST_PASSWORD)
            with pytest.raises(ApiError) as missing:
                await client.get_box("nope")
            return unauthorized.value, missing.value
        finally:
            await client.aclose()

    unauthorized, missing = asyncio.run(scenario())
    assert unauthorized.status_code == 401
    assert missing.status_code == 404
    assert missing.detail == "Box not found"


def test_query_descriptors_fill_the_cache():
    async def scenario():
        async with await signed_in_client() as client:
            cache = QueryCache()
            box = await client.create_box("Garage")
            await client.create_item(box.id, "Drill", description="cordless")

            boxes = await cache.fetch(boxes_query(client))
            detail = await cache.fetch(box_query(client, box.id))
            found = await cache.fetch(items_search_query(client, "CORDLESS"))
            blank = await cache.fetch(items_search_query(client, "  "))
            return cache, box, boxes, detail, found, blank

    cache, box, boxes, detail, found, blank = asyncio.run(scenario())
    assert [b.id for b in boxes] == [box.id]
    assert cache.get(keys.box(box.id)) is detail
    assert [i.name for i in found] == ["Drill"]
    assert blank is None


def test_qr_code_through_client():
    async def scenario():
        async with await signed_in_client() as client:
            box = await client.create_box("Garage")
            return box, await client.get_qr_code(box.id)

    box, qr = asyncio.run(scenario())
    assert qr.url.endswith(f"/box/{box.id}")
    assert qr.qr_code.startswith("data:image/png;base64,")
