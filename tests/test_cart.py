from datetime import datetime, timedelta, timezone

from conftest import signup


def auth(token):
    return {"auth-token": token}


def test_cart_routes_require_token(client):
    for path in ("/addtocart", "/removefromcart", "/getcart"):
        r = client.post(path, json={"itemId": 1})
        assert r.status_code == 401
        body = r.json()
        assert body["success"] is False
        assert body["errors"] == "Please authenticate using a valid token"


def test_invalid_token_rejected(client):
    r = client.post("/getcart", headers=auth("garbage"))
    assert r.status_code == 401
    assert r.json()["errors"] == "Please authenticate using a valid token"


def test_expired_token_rejected_like_invalid(client, app, store):
    signup(client)
    (account_id,) = store.accounts.keys()
    stale = app.state.tokens.issue(account_id, now=datetime.now(timezone.utc) - timedelta(hours=2))
    r = client.post("/getcart", headers=auth(stale))
    assert r.status_code == 401
    assert r.json()["errors"] == "Please authenticate using a valid token"


def test_add_to_cart_increments(client):
    token = signup(client)
    for expected in (1, 2, 3):
        r = client.post("/addtocart", json={"itemId": 7}, headers=auth(token))
        assert r.status_code == 200
        body = r.json()
        assert body["itemId"] == "7"
        assert body["count"] == expected
    cart = client.post("/getcart", headers=auth(token)).json()["cartData"]
    assert cart["7"] == 3


def test_add_item_outside_seeded_range_creates_key(client):
    token = signup(client)
    r = client.post("/addtocart", json={"itemId": 150}, headers=auth(token))
    assert r.json()["count"] == 1
    cart = client.post("/getcart", headers=auth(token)).json()["cartData"]
    assert cart["150"] == 1
    assert len(cart) == 101


def test_string_and_int_item_ids_share_a_key(client):
    token = signup(client)
    client.post("/addtocart", json={"itemId": 12}, headers=auth(token))
    r = client.post("/addtocart", json={"itemId": "12"}, headers=auth(token))
    assert r.json()["count"] == 2


def test_remove_from_cart_decrements(client):
    token = signup(client)
    client.post("/addtocart", json={"itemId": 3}, headers=auth(token))
    client.post("/addtocart", json={"itemId": 3}, headers=auth(token))
    r = client.post("/removefromcart", json={"itemId": 3}, headers=auth(token))
    assert r.status_code == 200
    assert r.json()["count"] == 1


def test_remove_item_at_zero_fails_and_leaves_cart_unchanged(client):
    token = signup(client)
    before = client.post("/getcart", headers=auth(token)).json()["cartData"]
    r = client.post("/removefromcart", json={"itemId": 5}, headers=auth(token))
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Item not found in cart"}
    after = client.post("/getcart", headers=auth(token)).json()["cartData"]
    assert after == before


def test_remove_unknown_item_fails(client):
    token = signup(client)
    r = client.post("/removefromcart", json={"itemId": "never-added"}, headers=auth(token))
    assert r.status_code == 400


def test_getcart_returns_seeded_zero_entries(client):
    token = signup(client)
    cart = client.post("/getcart", headers=auth(token)).json()["cartData"]
    assert len(cart) == 100
    assert cart["0"] == 0 and cart["99"] == 0


def test_field_path_item_ids_rejected(client):
    token = signup(client)
    for bad in ("a.b", "$set", "", "x\u0000y"):
        r = client.post("/addtocart", json={"itemId": bad}, headers=auth(token))
        assert r.status_code == 400, bad
        assert r.json()["error"] == "Invalid itemId"


def test_carts_are_per_account(client):
    alice = signup(client, email="alice@example.com")
    bob = signup(client, email="bob@example.com")
    client.post("/addtocart", json={"itemId": 1}, headers=auth(alice))
    bob_cart = client.post("/getcart", headers=auth(bob)).json()["cartData"]
    assert bob_cart["1"] == 0


def test_token_for_missing_account_is_not_found(client, app):
    token = app.state.tokens.issue("no-such-account")
    r = client.post("/addtocart", json={"itemId": 1}, headers=auth(token))
    assert r.status_code == 404
    assert r.json()["error"] == "User not found"
