"""Lightweight REST client for the dkgen API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def build_request(args: argparse.Namespace) -> dict[str, object]:
    request: dict[str, object] = {
        "lineups": args.lineups,
        "scoring_strategy": args.scoring,
    }
    if args.max_attempts is not None:
        request["max_attempts"] = args.max_attempts
    if args.timeout_ms is not None:
        request["timeout_ms"] = args.timeout_ms
    return request


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the dkgen REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("projections", type=Path, nargs="?", help="Projections CSV")
    parser.add_argument("--lineups", type=int, default=1, help="Number of lineups to request")
    parser.add_argument("--max-attempts", type=int, default=None, help="Leaf evaluation budget")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Server-side time budget")
    parser.add_argument("--scoring", default="total_projection", help="Primary ranking score")
    parser.add_argument("--health", action="store_true", help="Check server health and exit")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url, timeout=None) as client:
        if args.health:
            resp = client.get("/health")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.projections is None:
            raise SystemExit("projections file is required unless using --health")

        files = {"projections": (args.projections.name, args.projections.read_bytes(), "text/csv")}
        data = {"lineup_request": json.dumps(build_request(args))}
        resp = client.post("/lineups/upload", files=files, data=data)
        if resp.status_code >= 400:
            raise SystemExit(f"request failed ({resp.status_code}): {resp.json().get('detail')}")
        payload = resp.json()

    if payload.get("report"):
        print("Parse report:", json.dumps(payload["report"], indent=2))
    print("Stats:", json.dumps(payload["stats"], indent=2))
    if payload.get("message"):
        print(payload["message"])
    print(f"Received {len(payload['lineups'])} lineups")
    if payload["lineups"]:
        print(json.dumps(payload["lineups"][0], indent=2))


if __name__ == "__main__":
    main()
