#!/usr/bin/env python3

"""Simple CLI to hit the local /v1/presence endpoint."""

import argparse
import os
import sys
from time import perf_counter

import requests

DEFAULT_URL = os.getenv("HA_PRESENCE_URL", "http://localhost:8080/v1/presence")


def main() -> int:
    """Entry point to this tool."""
    parser = argparse.ArgumentParser(
        description="Print person presence reported by a local HA Presence service."
    )
    parser.add_argument(
        "--url",
        default=DEFAULT_URL,
        help=f"Endpoint URL. Defaults to env HA_PRESENCE_URL or {DEFAULT_URL!r}.",
    )
    parser.add_argument(
        "--token",
        default=os.getenv("HA_PRESENCE_TOKEN"),
        help="Bearer token sent to the service (env HA_PRESENCE_TOKEN).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30,
        help="Request timeout in seconds (default: 30).",
    )
    args = parser.parse_args()

    headers = {}
    if args.token:
        headers["Authorization"] = f"Bearer {args.token}"

    t0 = perf_counter()
    try:
        resp = requests.get(url=args.url, headers=headers, timeout=args.timeout)
        elapsed = perf_counter() - t0
    except requests.exceptions.RequestException as e:
        elapsed = perf_counter() - t0
        print(f"Request failed after {elapsed:.2f}s: {e}", file=sys.stderr)
        return 1

    try:
        obj = resp.json()
    except ValueError:
        print("Server response is not valid JSON.", file=sys.stderr)
        print(resp.text[:1000], file=sys.stderr)
        return 2

    if resp.status_code != 200:
        detail = obj.get("detail", obj) if isinstance(obj, dict) else obj
        print(f"HTTP {resp.status_code}: {detail}", file=sys.stderr)
        return 3

    for person in obj:
        print(f"{person['name']:<30} {person['state']:<15} {person.get('last_changed')}")
    print(f"Response time {elapsed:.2f} seconds")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
