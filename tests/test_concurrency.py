# tests/test_concurrency.py
import asyncio

import httpx

from ssrstore.database import MemoryStore
from ssrstore.services import CartService

N = 40


def _async_client(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


async def _signup(ac, email):
    r = await ac.post("/signup", json={"name": "Racer", "email": email, "password": "pw"})
    return r


def test_concurrent_add_to_cart_loses_no_updates(app):
    async def scenario():
        async with _async_client(app) as ac:
            token = (await _signup(ac, "racer@example.com")).json()["token"]
            headers = {"auth-token": token}
            results = await asyncio.gather(*[
                ac.post("/addtocart", json={"itemId": 42}, headers=headers) for _ in range(N)
            ])
            cart = (await ac.post("/getcart", headers=headers)).json()["cartData"]
            return results, cart

    results, cart = asyncio.run(scenario())
    assert all(r.status_code == 200 for r in results)
    assert sorted(r.json()["count"] for r in results) == list(range(1, N + 1))
    assert cart["42"] == N


def test_concurrent_remove_never_goes_negative(app):
    async def scenario():
        async with _async_client(app) as ac:
            token = (await _signup(ac, "drain@example.com")).json()["token"]
            headers = {"auth-token": token}
            for _ in range(5):
                await ac.post("/addtocart", json={"itemId": 9}, headers=headers)
            results = await asyncio.gather(*[
                ac.post("/removefromcart", json={"itemId": 9}, headers=headers) for _ in range(12)
            ])
            cart = (await ac.post("/getcart", headers=headers)).json()["cartData"]
            return results, cart

    results, cart = asyncio.run(scenario())
    statuses = [r.status_code for r in results]
    assert statuses.count(200) == 5
    assert statuses.count(400) == 7
    assert cart["9"] == 0


def test_concurrent_duplicate_signups_create_one_account(app, store):
    async def scenario():
        async with _async_client(app) as ac:
            return await asyncio.gather(*[_signup(ac, "twin@example.com") for _ in range(4)])

    results = asyncio.run(scenario())
    statuses = sorted(r.status_code for r in results)
    assert statuses == [201, 409, 409, 409]
    assert len(store.accounts) == 1


def test_cart_service_concurrent_increments():
    store = MemoryStore()
    carts = CartService(store)

    async def scenario():
        account_id = await store.insert_account({
            "name": "svc", "email": "svc@example.com", "password": "x", "cartData": {}, "date": None,
        })
        results = await asyncio.gather(*[carts.increment(account_id, " abc ") for _ in range(N)])
        return results, await carts.read(account_id)

    results, cart = asyncio.run(scenario())
    assert {item for item, _ in results} == {"abc"}
    assert cart == {"abc": N}



def test_concurrent_product_inserts_get_distinct_ids(app):
    async def scenario():
        async with _async_client(app) as ac:
            return await asyncio.gather(*[
                ac.post("/addproduct", json={
                    "name": f"Rush {i}",
                    "image": "http://localhost:5000/images/product_1.png",
                    "category": "women",
                    "new_price": 10,
                    "old_price": 12,
                })
                for i in range(20)
            ])

    results = asyncio.run(scenario())
    assert all(r.status_code == 200 for r in results)
    assert sorted(r.json()["product"]["id"] for r in results) == list(range(1, 21))
