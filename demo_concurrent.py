import asyncio
import os
import sys
import uuid

from sdk.ssrclient import StoreAPIError, StoreClient

N = int(os.environ.get("DEMO_REQUESTS", "50"))
ITEM_ID = 7


async def main():
    c = StoreClient(base_url=os.environ.get("SSRSTORE_URL", "http://127.0.0.1:5000"))

    email = f"racer-{uuid.uuid4().hex[:8]}@example.com"
    try:
        c.signup("Racer", email, "racer-password")
    except StoreAPIError as e:
        print(f"❌ signup failed: {e}")
        sys.exit(1)
    print(f"\n👤 Signed up {email}")

    print(f"\n⚡ Firing {N} concurrent add-to-cart requests for item {ITEM_ID}...")
    results = await asyncio.gather(
        *[c.add_to_cart_async(ITEM_ID) for _ in range(N)],
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, Exception)]
    for f in failures:
        print(f"❌ request failed: {f}")

    count = c.get_cart()[str(ITEM_ID)]
    expected = N - len(failures)
    mark = "✅" if count == expected else "⚠️ "
    print(f"\n{mark} cart[{ITEM_ID}] = {count} (expected {expected})")


if __name__ == "__main__":
    asyncio.run(main())
