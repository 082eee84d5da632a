import asyncio

import fakeredis.aioredis
import pytest

from tableside.cart import Cart
from tableside.services.carts import InMemoryCartStore, RedisCartStore, cart_slot


def test_adding_twice_increments_quantity():
    cart = Cart()
    cart.add("a", "Burger", 50.0)
    cart.add("b", "Cola", 20.0)
    cart.add("a", "Burger", 50.0)

    assert [(line.id, line.quantity) for line in cart.lines] == [("a", 2), ("b", 1)]
    assert cart.total == 120
    assert cart.count == 3


def test_adjust_never_goes_negative_and_removes_at_zero():
    cart = Cart()
    cart.add("a", "Burger", 50.0)
    cart.adjust("a", 2)
    assert cart.find("a").quantity == 3

    assert cart.adjust("a", -10) is None
    assert cart.is_empty()
    assert cart.adjust("missing", 1) is None


def test_from_list_skips_malformed_lines():
    cart = Cart.from_list([
        {"id": "a", "name": "Burger", "price": "50", "quantity": 2},
        {"name": "no id"},
        {"id": "b", "price": "free"},
        {"id": "c", "name": "Zero", "price": 1, "quantity": 0},
    ])
    assert [line.id for line in cart.lines] == ["a"]
    assert cart.lines[0].price == 50.0


def test_slot_is_per_table_and_session():
    assert cart_slot("t1", "s1") == "cart-t1-s1"
    assert cart_slot("t1", "s1") != cart_slot("t2", "s1")


@pytest.mark.parametrize("make_store", [
    InMemoryCartStore,
    lambda: RedisCartStore("redis://unused", ttl_seconds=60, client=fakeredis.aioredis.FakeRedis()),
])
def test_store_round_trip(make_store):
    store = make_store()

    async def scenario():
        cart = await store.load("cart-t1-s1")
        assert cart.is_empty()

        cart.add("a", "Burger", 50.0)
        cart.add("a", "Burger", 50.0)
        await store.save("cart-t1-s1", cart)

        loaded = await store.load("cart-t1-s1")
        other = await store.load("cart-t1-s2")

        await store.clear("cart-t1-s1")
        cleared = await store.load("cart-t1-s1")
        return loaded, other, cleared

    loaded, other, cleared = asyncio.run(scenario())

    assert loaded.to_list() == [{"id": "a", "name": "Burger", "price": 50.0, "quantity": 2}]
    assert other.is_empty()
    assert cleared.is_empty()


def test_redis_store_sets_expiry():
    client = fakeredis.aioredis.FakeRedis()
    store = RedisCartStore("redis://unused", ttl_seconds=120, client=client)

    async def scenario():
        cart = Cart()
        cart.add("a", "Burger", 50.0)
        await store.save("cart-t1-s1", cart)
        return await client.ttl("cart-t1-s1")

    ttl = asyncio.run(scenario())
    assert 0 < ttl <= 120
