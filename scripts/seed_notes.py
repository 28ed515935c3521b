"""Seed a running notes API with a handful of sample notes.

Usage:
    python scripts/seed_notes.py [--base-url http://localhost:8000]
"""

from __future__ import annotations

import argparse
import sys

import requests

DEFAULT_BASE_URL = "http://localhost:8000"
TIMEOUT = 10

# Each entry: (title, body, tags)
NOTES: list[tuple[str, str, list[str]]] = [
    (
        "Design",
        "Outline the storage layer: in-memory for tests, JSON file for local use.",
        ["arch", "draft"],
    ),
    (
        "Meeting Notes",
        "Agreed to keep findAll ordered oldest first and to match tags by substring.",
        ["meetings"],
    ),
    (
        "Reading List",
        "Domain-Driven Design; Patterns of Enterprise Application Architecture.",
        ["reading", "books"],
    ),
    (
        "Grocery list",
        "Eggs, milk, bread, coffee.",
        ["personal"],
    ),
    (
        "Release checklist",
        "Bump version, update changelog, tag the release, publish the image.",
        ["ops", "draft"],
    ),
]


def check_health(base_url: str) -> bool:
    """Verify the API is reachable and healthy."""
    try:
        resp = requests.get(f"{base_url}/health", timeout=TIMEOUT)
        return resp.json().get("status") == "healthy"
    except (requests.RequestException, ValueError) as e:
        print(f"  Health check failed: {e}")
        return False


def create_note(base_url: str, title: str, body: str, tags: list[str]) -> dict:
    """POST a single note and return the created document."""
    resp = requests.post(
        f"{base_url}/notes",
        json={"title": title, "body": body, "tags": tags},
        timeout=TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def main() -> None:
    """Create every sample note sequentially."""
    parser = argparse.ArgumentParser(description="Seed the notes API with sample notes")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Notes API base URL (default: {DEFAULT_BASE_URL})",
    )
    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    print(f"\n  Seeding notes via {base_url}")
    if not check_health(base_url):
        print("  FAIL: API is not healthy. Is the server running?")
        sys.exit(1)

    failures = 0
    for i, (title, body, tags) in enumerate(NOTES, 1):
        try:
            note = create_note(base_url, title, body, tags)
            print(f"  [{i}/{len(NOTES)}] {note['id']}  {title}  {tags}")
        except requests.RequestException as e:
            failures += 1
            print(f"  [{i}/{len(NOTES)}] ERROR {title}: {e}")

    print(f"\n  Done: {len(NOTES) - failures} created, {failures} failed.\n")
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
