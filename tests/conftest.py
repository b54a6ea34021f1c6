import pytest
from fastapi.testclient import TestClient

from ssrstore.database import MemoryStore
from ssrstore.main import create_app
from ssrstore.settings import Settings


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        _env_file=None,
        jwt_secret="test-secret-0123456789abcdefghijkl",
        mongo_uri=None,
        upload_dir=str(tmp_path / "images"),
        public_base_url="http://testserver",
    )


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def app(settings, store):
    return create_app(settings, store)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, email="alice@example.com", password="s3cret!", name="Alice"):
    r = client.post("/signup", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["token"]


def add_product(client, name="Dress", category="women", new_price=50.0, old_price=80.5):
    r = client.post("/addproduct", json={
        "name": name,
        "image": "http://localhost:5000/images/product_1.png",
        "category": category,
        "new_price": new_price,
        "old_price": old_price,
    })
    assert r.status_code == 200, r.text
    return r.json()["product"]
