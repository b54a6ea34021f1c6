# sdk/ssrclient.py
import os
from typing import Any, Dict, Optional, Union

import httpx
import requests
from rich import print

ItemId = Union[int, str]


class StoreAPIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _decode(r) -> Dict[str, Any]:
    try:
        body = r.json()
    except ValueError:
        body = {"error": r.text}
    if r.status_code >= 400:
        message = body.get("error") or body.get("errors") or r.text
        raise StoreAPIError(r.status_code, message)
    return body


class StoreClient:
    """Thin client for the store API.

    `session` defaults to a requests.Session; anything with the same
    get/post surface (e.g. fastapi's TestClient) can be passed instead.
    """

    def __init__(self, base_url: str = "http://localhost:5000", timeout: int = 10,
                 token: Optional[str] = None, session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.token = token

    def _auth(self) -> Dict[str, str]:
        return {"auth-token": self.token} if self.token else {}

    def _get(self, path: str, **kwargs):
        return _decode(self.session.get(f"{self.base_url}{path}", timeout=self.timeout, **kwargs))

    def _post(self, path: str, **kwargs):
        return _decode(self.session.post(f"{self.base_url}{path}", timeout=self.timeout, **kwargs))

    def health(self):
        return self._get("/health")

    # Catalog
    def list_products(self):
        return self._get("/products")["products"]

    def new_collection(self):
        return self._get("/newcollection")["products"]

    def popular(self, category: str = "women"):
        if category == "women":
            return self._get("/popularinwomen")["products"]
        return self._get(f"/popular/{category}")["products"]

    def add_product(self, name: str, image: str, category: str, new_price: float,
                    old_price: float, available: bool = True):
        return self._post("/addproduct", json={
            "name": name, "image": image, "category": category,
            "new_price": new_price, "old_price": old_price, "available": available,
        })["product"]

    def remove_product(self, product_id: int):
        return self._post("/removeproduct", json={"id": product_id})

    def upload_image(self, path: str) -> str:
        with open(path, "rb") as fh:
            return self._post("/upload", files={"product": (os.path.basename(path), fh)})["img_url"]

    # Accounts
    def signup(self, name: str, email: str, password: str):
        body = self._post("/signup", json={"name": name, "email": email, "password": password})
        self.token = body["token"]
        return body["cartData"]

    def login(self, email: str, password: str):
        body = self._post("/login", json={"email": email, "password": password})
        self.token = body["token"]
        return body["cartData"]

    # Cart
    def get_cart(self) -> Dict[str, int]:
        return self._post("/getcart", headers=self._auth())["cartData"]

    def add_to_cart(self, item_id: ItemId) -> int:
        return self._post("/addtocart", json={"itemId": item_id}, headers=self._auth())["count"]

    def remove_from_cart(self, item_id: ItemId) -> int:
        return self._post("/removefromcart", json={"itemId": item_id}, headers=self._auth())["count"]

    async def add_to_cart_async(self, item_id: ItemId, transport: Optional[httpx.AsyncBaseTransport] = None) -> int:
        async with httpx.AsyncClient(timeout=self.timeout, transport=transport) as client:
            r = await client.post(f"{self.base_url}/addtocart", json={"itemId": item_id}, headers=self._auth())
            return _decode(r)["count"]


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="SSR Store client")
    parser.add_argument("--base-url", default=os.environ.get("SSRSTORE_URL", "http://127.0.0.1:5000"))
    parser.add_argument("--token", default=os.environ.get("SSRSTORE_TOKEN"), help="auth-token for cart commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---------------------------
    # Catalog commands
    # ---------------------------
    subparsers.add_parser("list-products", help="List all products")
    subparsers.add_parser("new-collection", help="Latest 8 products")

    pp = subparsers.add_parser("popular", help="First 4 products of a category")
    pp.add_argument("--category", default="women")

    ap = subparsers.add_parser("add-product", help="Add a product")
    ap.add_argument("--name", required=True)
    ap.add_argument("--image", required=True, help="Image URL (see upload)")
    ap.add_argument("--category", required=True)
    ap.add_argument("--new-price", type=float, required=True)
    ap.add_argument("--old-price", type=float, required=True)

    rp = subparsers.add_parser("remove-product", help="Remove a product by id")
    rp.add_argument("--id", type=int, required=True)

    up = subparsers.add_parser("upload", help="Upload a product image")
    up.add_argument("--file", required=True)

    # ---------------------------
    # Account commands
    # ---------------------------
    for name in ("signup", "login"):
        sp = subparsers.add_parser(name)
        if name == "signup":
            sp.add_argument("--name", required=True)
        sp.add_argument("--email", required=True)
        sp.add_argument("--password", required=True)

    # ---------------------------
    # Cart commands
    # ---------------------------
    subparsers.add_parser("cart", help="Show non-zero cart entries")
    for name in ("add-to-cart", "remove-from-cart"):
        cp = subparsers.add_parser(name)
        cp.add_argument("--item-id", required=True)

    args = parser.parse_args()
    c = StoreClient(base_url=args.base_url, token=args.token)

    try:
        if args.command == "list-products":
            print(c.list_products())
        elif args.command == "new-collection":
            print(c.new_collection())
        elif args.command == "popular":
            print(c.popular(args.category))
        elif args.command == "add-product":
            print(c.add_product(args.name, args.image, args.category, args.new_price, args.old_price))
        elif args.command == "remove-product":
            print(c.remove_product(args.id))
        elif args.command == "upload":
            print(c.upload_image(args.file))
        elif args.command == "signup":
            c.signup(args.name, args.email, args.password)
            print({"token": c.token})
        elif args.command == "login":
            c.login(args.email, args.password)
            print({"token": c.token})
        elif args.command == "cart":
            print({k: v for k, v in c.get_cart().items() if v})
        elif args.command == "add-to-cart":
            print({"itemId": args.item_id, "count": c.add_to_cart(args.item_id)})
        elif args.command == "remove-from-cart":
            print({"itemId": args.item_id, "count": c.remove_from_cart(args.item_id)})
    except StoreAPIError as e:
        print(f"[red]{e}[/red]")
        raise SystemExit(1)
