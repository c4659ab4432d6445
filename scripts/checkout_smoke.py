#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json

import requests


def main() -> None:
    parser = argparse.ArgumentParser(description="Place and cancel one order against a running portal")
    parser.add_argument("product_id")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--token", required=True, help="bearer token, see `python -m portal.cli token issue`")
    parser.add_argument("--quantity", type=int, default=1)
    parser.add_argument("--keep", action="store_true", help="leave the order pending")
    args = parser.parse_args()

    headers = {"Authorization": f"Bearer {args.token}"}

    resp = requests.get(f"{args.base_url}/products/{args.product_id}", timeout=30)
    resp.raise_for_status()
    product = resp.json()["product"]

    resp = requests.post(
        f"{args.base_url}/orders",
        headers=headers,
        json={
            "items": [
                {
                    "product_id": product["id"],
                    "name": product["name"],
                    "price": product["price"],
                    "quantity": args.quantity,
                }
            ],
            "total": round(product["price"] * args.quantity, 2),
            "shipping_address": {
                "address": "1 Smoke Test Way",
                "city": "Testville",
                "postal_code": "00000",
                "country": "Nowhere",
            },
            "notes": "checkout smoke test",
        },
        timeout=30,
    )
    print(json.dumps(resp.json(), indent=2, ensure_ascii=False))
    resp.raise_for_status()
    order_id = resp.json()["order"]["id"]

    if not args.keep:
        resp = requests.post(f"{args.base_url}/orders/{order_id}/cancel", headers=headers, timeout=30)
        print(json.dumps(resp.json(), indent=2, ensure_ascii=False))
        resp.raise_for_status()


if __name__ == "__main__":
    main()
