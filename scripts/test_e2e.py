#!/usr/bin/env python3
"""End-to-end test for sleep-pattern-server.

Posts a sample week to every analysis endpoint of a running server.

Usage:
    # Point at a running server:
    export BASE_URL="http://localhost:8000"
    export TIME_ZONE="Europe/London"

    # Run tests:
    uv run python scripts/test_e2e.py
"""

import asyncio
import os
import sys

import httpx

# Configuration from environment
BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000")
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
API_BASE = f"{BASE_URL}/api/v1"

SAMPLE_WEEK = "\n\n".join(
    f"Day {day}:\n"
    f"Last activity: {last}\n"
    f"First activity: {first}\n"
    f"Night checks: {checks}\n"
    "Total screen time: 5h 10m"
    for day, (last, first, checks) in enumerate(
        [
            ("00:42", "07:18", "2 (02:14, 04:33)"),
            ("01:15", "08:02", "0"),
            ("23:55", "07:45", "1 (03:20)"),
            ("00:30", "07:00", "0"),
            ("01:00", "08:15", "3 (02:00, 03:30, 05:00)"),
            ("23:45", "06:50", "0"),
            ("00:20", "07:30", "1 (04:00)"),
        ],
        start=1,
    )
)


def request_body(raw_text: str = SAMPLE_WEEK) -> dict[str, str]:
    return {"rawText": raw_text, "timeZone": TIME_ZONE}


async def test_health() -> bool:
    """Test health endpoint."""
    async with httpx.AsyncClient() as client:
        r = await client.get(f"{BASE_URL}/health")
        if r.status_code != 200:
            print(f"  FAIL: Health check returned {r.status_code}")
            return False
        data = r.json()
        if data.get("status") != "ok":
            print(f"  FAIL: Health status is {data.get('status')}")
            return False
        print(f"  OK: Server v{data.get('version')}, templates {data.get('templates_version')}")
        return True


async def test_analyze() -> bool:
    """Test the analysis report."""
    async with httpx.AsyncClient() as client:
        r = await client.post(f"{API_BASE}/sleep-analysis/analyze", json=request_body())
        if r.status_code != 200:
            print(f"  FAIL: analyze returned {r.status_code}: {r.text}")
            return False
        data = r.json()
        print(
            f"  OK: onset {data['averageSleepOnset']}, wake {data['averageWakeTime']}, "
            f"score {data['sleepConsistencyScore']}, {data['circadianStability']}"
        )
        print(f"  OK: {len(data['optimizationSuggestions'])} suggestions")
    return True


async def test_validation() -> bool:
    """Test that bad input is rejected with every error listed."""
    async with httpx.AsyncClient() as client:
        r = await client.post(
            f"{API_BASE}/sleep-analysis/analyze",
            json=request_body("Day 1:\nLast activity: 25:00\nFirst activity: 07:00"),
        )
        if r.status_code != 400:
            print(f"  FAIL: Expected 400, got {r.status_code}")
            return False
        errors = r.json().get("extra", [])
        if not errors:
            print("  FAIL: No validation messages returned")
            return False
        print(f"  OK: Invalid input rejected with {len(errors)} messages")
        return True


async def test_export() -> bool:
    """Test the ML export download."""
    async with httpx.AsyncClient() as client:
        r = await client.post(f"{API_BASE}/sleep-analysis/export", json=request_body())
        if r.status_code != 200:
            print(f"  FAIL: export returned {r.status_code}")
            return False
        disposition = r.headers.get("content-disposition", "")
        if not disposition.startswith("attachment"):
            print(f"  FAIL: Unexpected Content-Disposition {disposition!r}")
            return False
        data = r.json()
        print(f"  OK: {disposition.split('=')[-1]} - {len(data['derivedFeatures'])} feature rows")
    return True


async def test_stored_run() -> bool:
    """Test building a run record and reading it back."""
    async with httpx.AsyncClient() as client:
        r = await client.post(f"{API_BASE}/sleep-analysis/runs", json=request_body())
        if r.status_code != 200:
            print(f"  FAIL: runs returned {r.status_code}")
            return False
        record = r.json()
        print(f"  OK: run record with {len(record['normalizedDailyInputs'])} nights")

        r = await client.post(f"{API_BASE}/sleep-analysis/runs/report", json=record)
        if r.status_code != 200:
            print(f"  FAIL: runs/report returned {r.status_code}")
            return False
        output = r.json()["output"]
        print(f"  OK: rebuilt report, debt {output['sleepDebtHours']}h")
    return True


async def test_openapi() -> bool:
    """Test OpenAPI schema endpoint."""
    async with httpx.AsyncClient() as client:
        r = await client.get(f"{BASE_URL}/schema/openapi.json")
        if r.status_code != 200:
            print(f"  FAIL: OpenAPI schema returned {r.status_code}")
            return False
        schema = r.json()
        paths = len(schema.get("paths", {}))
        print(f"  OK: OpenAPI schema - {paths} paths documented")
    return True


async def main() -> int:
    """Run all E2E tests."""
    print("=" * 60)
    print("Sleep Pattern Server - End-to-End Tests")
    print("=" * 60)
    print(f"Base URL: {BASE_URL}")
    print(f"Time zone: {TIME_ZONE}")
    print("=" * 60)

    tests = [
        ("Health Check", test_health),
        ("Analyze", test_analyze),
        ("Validation", test_validation),
        ("ML Export", test_export),
        ("Stored Runs", test_stored_run),
        ("OpenAPI Schema", test_openapi),
    ]

    passed = 0
    failed = 0

    for name, test_func in tests:
        print(f"\n[{name}]")
        try:
            if await test_func():
                passed += 1
            else:
                failed += 1
        except httpx.HTTPError as e:
            print(f"  ERROR: {e}")
            failed += 1

    print("\n" + "=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
