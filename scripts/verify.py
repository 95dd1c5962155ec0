import httpx
import asyncio
import os
import sys

BASE_URL = os.environ.get("SHORTLINK_URL", "http://localhost:3000")

async def run_verification() -> bool:
    print(f"🚀  Starting Verification against {BASE_URL}...\n")

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10.0) as client:
        # 1. Health Check
        print("1. [Health] Checking /healthz...")
        try:
            resp = await client.get("/healthz")
            if resp.status_code == 200 and resp.json().get("ok") is True:
                print(f"   ✅  Health Check Passed (version {resp.json()['version']})")
            else:
                print(f"   ❌  Health Check Failed: {resp.text}")
                return False
        except httpx.HTTPError as e:
            print(f"   ❌  Connection Error: {e}")
            return False

        # 2. Validation
        print("\n2. [API] Checking validation...")
        resp = await client.post("/api/links", json={"url": "ftp://bad"})
        if resp.status_code == 400 and resp.json() == {"error": "Invalid URL"}:
            print("   ✅  Bad scheme rejected")
        else:
            print(f"   ❌  Bad scheme not rejected: {resp.status_code} {resp.text}")
            return False

        resp = await client.post("/api/links", json={"url": "https://x.com", "code": "ab"})
        if resp.status_code == 400:
            print("   ✅  Short code rejected")
        else:
            print(f"   ❌  Short code not rejected: {resp.status_code} {resp.text}")
            return False

        # 3. Create Link
        print("\n3. [API] Creating Short Link...")
        long_url = "https://www.example.com"
        resp = await client.post("/api/links", json={"url": long_url})
        if resp.status_code != 201:
            print(f"   ❌  Create Failed: {resp.status_code} {resp.text}")
            return False
        code = resp.json()["code"]
        print(f"   ✅  Created: {BASE_URL}/{code}")

        resp = await client.post("/api/links", json={"url": long_url, "code": code})
        if resp.status_code == 409:
            print("   ✅  Duplicate code rejected")
        else:
            print(f"   ❌  Duplicate code not rejected: {resp.status_code}")
            return False

        # 4. Verify Redirect
        print("\n4. [API] Verifying Redirect...")
        resp = await client.get(f"/{code}", follow_redirects=False)
        if resp.status_code == 302 and resp.headers.get("location") == long_url:
            print(f"   ✅  Redirect Location matches: {resp.headers['location']}")
        else:
            print(f"   ❌  Redirect Failed: {resp.status_code} {resp.headers.get('location')}")
            return False

        # 5. Verify Click Count
        print("\n5. [API] Verifying Click Count...")
        resp = await client.get(f"/api/links/{code}")
        if resp.status_code == 200 and resp.json()["total_clicks"] == 1:
            print("   ✅  Click Count updated: 1")
        else:
            print(f"   ❌  Click Count wrong: {resp.status_code} {resp.text}")
            return False

        # 6. Soft Delete
        print("\n6. [API] Deleting...")
        resp = await client.delete(f"/api/links/{code}")
        if resp.status_code != 204:
            print(f"   ❌  Delete Failed: {resp.status_code}")
            return False
        resp = await client.get(f"/{code}", follow_redirects=False)
        if resp.status_code == 404:
            print("   ✅  Deleted link no longer redirects")
        else:
            print(f"   ❌  Deleted link still answers: {resp.status_code}")
            return False

        # 7. Metrics
        print("\n7. [Observability] Verifying Metrics...")
        resp = await client.get("/metrics")
        if resp.status_code == 200 and "redirect_total" in resp.text:
            print("   ✅  Metrics Endpoint Exposed")
        else:
            print(f"   ❌  Metrics Failed: {resp.status_code}")
            return False

    print("\n✨ Verification Complete!")
    return True

if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_verification()) else 1)
