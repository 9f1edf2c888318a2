"""Probe a running relay: health, public config, and optionally a user id token."""

import argparse
import json

import httpx


def main() -> None:
    """CLI entrypoint for a quick post-deploy check."""

    parser = argparse.ArgumentParser(description="Check a running vault relay.")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--customer-id", default=None, help="Also mint an id token for this customer")
    parser.add_argument("--id-token", action="store_true", help="Also mint a user id token")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url, timeout=10.0) as client:
        health = client.get("/health")
        health.raise_for_status()
        print(json.dumps(health.json(), indent=2))

        config = client.get("/api/config")
        print(f"/api/config status={config.status_code}")
        print(json.dumps(config.json(), indent=2))

        if args.id_token or args.customer_id:
            params = {"customer_id": args.customer_id} if args.customer_id else {}
            resp = client.get("/api/generate-client-token", params=params)
            body = resp.json()
            if resp.status_code == 200:
                print(f"id_token issued length={len(body.get('id_token', ''))}")
            else:
                print(f"id_token failed status={resp.status_code}")
                print(json.dumps(body, indent=2))


if __name__ == "__main__":
    main()
