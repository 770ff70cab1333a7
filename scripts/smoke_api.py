#!/usr/bin/env python3
"""
Smoke test script for the Virtual Try-On API.
Exercises the main endpoints against a running server.

Usage: python scripts/smoke_api.py [base_url]
"""

import sys
import time
from io import BytesIO
from typing import Optional

import requests
from PIL import Image

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
API_BASE = f"{BASE_URL}/api"
POLL_SECONDS = 180


class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    END = '\033[0m'


def print_test(name: str):
    print(f"\n{Colors.BLUE}=== {name} ==={Colors.END}")


def print_success(msg: str):
    print(f"{Colors.GREEN}✓ {msg}{Colors.END}")


def print_error(msg: str):
    print(f"{Colors.RED}✗ {msg}{Colors.END}")


def print_info(msg: str):
    print(f"{Colors.YELLOW}ℹ {msg}{Colors.END}")


def make_image(color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (64, 64), color).save(buf, format="PNG")
    return buf.getvalue()


def check_health() -> bool:
    print_test("Health Checks")
    try:
        r = requests.get(f"{BASE_URL}/")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"
        print_success("GET / - Root health check")

        r = requests.get(f"{BASE_URL}/health")
        assert r.status_code == 200
        print_success("GET /health - Detailed health check")
        print_info(f"Generator: {r.json().get('generator', 'unknown')}")
    except (requests.RequestException, AssertionError, KeyError) as e:
        print_error(f"Health check - {e}")
        return False
    return True


def check_products() -> Optional[str]:
    """Returns a product id to try on."""
    print_test("Products")
    try:
        r = requests.get(f"{API_BASE}/products")
        assert r.status_code == 200
        data = r.json()
        print_success(f"GET /products - {data['count']} products")

        r = requests.get(f"{API_BASE}/products/stats")
        assert r.status_code == 200
        print_success(f"GET /products/stats - {r.json()}")

        r = requests.post(
            f"{API_BASE}/products",
            data={"name": "Smoke Test Tee", "category": "shirts", "sizes": "S,M,L"},
            files={"image": ("tee.png", make_image((20, 20, 200)), "image/png")},
        )
        assert r.status_code == 201, r.text
        product = r.json()
        print_success(f"POST /products - created {product['id']}")

        r = requests.get(product["image_url"])
        assert r.status_code == 200
        print_success("GET product image")
        return product["id"]
    except (requests.RequestException, AssertionError, KeyError) as e:
        print_error(f"Products - {e}")
        return None


def check_tryon(product_id: str) -> bool:
    print_test("Try-On Job")
    try:
        r = requests.post(
            f"{API_BASE}/tryon",
            data={"product_id": product_id},
            files={"user_image": ("me.png", make_image(), "image/png")},
        )
        assert r.status_code == 202, r.text
        job_id = r.json()["job_id"]
        print_success(f"POST /tryon - queued {job_id}")

        r = requests.post(
            f"{API_BASE}/tryon",
            files={"user_image": ("me.png", make_image(), "image/png")},
        )
        assert r.status_code == 400
        print_success("POST /tryon without product - rejected")

        deadline = time.time() + POLL_SECONDS
        job = {}
        while time.time() < deadline:
            job = requests.get(f"{API_BASE}/tryon/{job_id}").json()
            if job["status"] in ("succeeded", "failed"):
                break
            time.sleep(2)

        if job.get("status") == "succeeded":
            print_success(f"Job succeeded: {job['result_image_url']}")
        else:
            print_info(f"Job ended as {job.get('status')}: {job.get('error_message')}")

        r = requests.get(f"{API_BASE}/tryon/jobs")
        assert r.status_code == 200
        print_success(f"GET /tryon/jobs - {r.json()['count']} jobs")
    except (requests.RequestException, AssertionError, KeyError) as e:
        print_error(f"Try-on - {e}")
        return False
    return True


def main():
    print(f"\n{Colors.BLUE}{'='*60}")
    print("Virtual Try-On API - Smoke Test")
    print(f"{'='*60}{Colors.END}\n")

    print_info(f"Testing against: {BASE_URL}")
    print_info("Make sure the API is running before starting\n")

    if not check_health():
        print_error("\nHealth checks failed. Is the API running?")
        sys.exit(1)

    product_id = check_products()
    if not product_id:
        print_error("\nProducts flow failed. Cannot continue.")
        sys.exit(1)

    if not check_tryon(product_id):
        print_error("\nTry-on flow had errors.")
        sys.exit(1)

    print(f"\n{Colors.GREEN}{'='*60}")
    print("All checks completed!")
    print(f"{'='*60}{Colors.END}\n")


if __name__ == "__main__":
    main()
