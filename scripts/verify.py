import httpx
import asyncio
import os
import sys

BASE_URL = os.environ.get("BASE_URL", "http://localhost:3000")

async def run_verification() -> bool:
    print(f"🚀  Starting Verification against {BASE_URL}...\n")

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10.0) as client:
        # 1. Health Check
        print("1. [Health] Checking /healthz...")
        try:
            resp = await client.get("/healthz")
            if resp.status_code == 200 and resp.json().get("ok") is True:
                print(f"   ✅  Health Check Passed (uptime {resp.json()['uptime']:.0f}s)")
            else:
                print(f"   ❌  Health Check Failed: {resp.text}")
                return False
        except httpx.HTTPError as e:
            print(f"   ❌  Connection Error: {e}")
            return False

        # 2. Create Link
        print("\n2. [API] Creating Short Link...")
        url = "https://www.example.com"
        code = "Verify01"

        # Cleanup first if exists
        await client.delete(f"/api/links/{code}")

        resp = await client.post("/api/links", json={"url": url, "code": code})
        if resp.status_code == 201:
            print(f"   ✅  Created: {resp.json()['shortUrl']}")
        else:
            print(f"   ❌  Create Failed: {resp.status_code} {resp.text}")
            return False

        resp = await client.post("/api/links", json={"url": url, "code": code})
        if resp.status_code == 409:
            print("   ✅  Duplicate code rejected with 409")
        else:
            print(f"   ❌  Duplicate code not rejected: {resp.status_code}")

        # 3. Verify Redirect
        print("\n3. [API] Verifying Redirect...")
        resp = await client.get(f"/{code}", follow_redirects=False)
        if resp.status_code == 302 and resp.headers.get("location") == url:
            print(f"   ✅  Redirect Location matches: {resp.headers['location']}")
        else:
            print(f"   ❌  Redirect Failed: {resp.status_code} {resp.headers.get('location')}")

        # 4. Verify Stats
        print("\n4. [API] Verifying Click Count...")
        resp = await client.get(f"/api/links/{code}")
        if resp.status_code == 200 and resp.json()["clicks"] == 1:
            print(f"   ✅  Click Count updated, last clicked {resp.json()['last_clicked']}")
        else:
            print(f"   ❌  Stats Failed: {resp.status_code} {resp.text}")

        # 5. Delete
        print("\n5. [API] Deleting Link...")
        resp = await client.delete(f"/api/links/{code}")
        if resp.status_code == 200 and resp.json() == {"ok": True, "deleted": code}:
            print("   ✅  Deleted")
        else:
            print(f"   ❌  Delete Failed: {resp.status_code} {resp.text}")

        # 6. Metrics
        print("\n6. [Observability] Verifying Metrics...")
        resp = await client.get("/metrics")
        if resp.status_code == 200 and "http_requests_total" in resp.text:
            print("   ✅  Metrics Endpoint Exposed")
        else:
            print(f"   ❌  Metrics Failed: {resp.status_code}")

    print("\n✨ Verification Complete!")
    return True

if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_verification()) else 1)
