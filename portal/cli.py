from __future__ import annotations

import argparse
import json
from decimal import Decimal

from portal.context import PortalContext, now_utc
from portal.core.security import Principal, issue_token
from portal.domain.errors import OrderError
from portal.domain.money import decimal_to_cents
from portal.domain.orders.queries import OrderQueryService
from portal.persistence.models import ProductModel
from portal.persistence.pg import init_db, session_scope


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Order Portal CLI")
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create database tables")

    products = top.add_parser("products", help="Catalog seeding")
    products_sub = products.add_subparsers(dest="products_command", required=True)

    add = products_sub.add_parser("add", help="Insert a product")
    add.add_argument("name")
    add.add_argument("--price", required=True, type=Decimal)
    add.add_argument("--stock", type=int, default=0)
    add.add_argument("--category", default="")
    add.add_argument("--description", default="")
    add.add_argument("--image", default="")

    set_stock = products_sub.add_parser("set-stock", help="Set absolute stock for a product")
    set_stock.add_argument("product_id")
    set_stock.add_argument("stock", type=int)

    orders = top.add_parser("orders", help="Order reporting")
    orders_sub = orders.add_subparsers(dest="orders_command", required=True)
    orders_sub.add_parser("stats", help="Order counts and completed revenue")

    token = top.add_parser("token", help="Development bearer tokens")
    token_sub = token.add_subparsers(dest="token_command", required=True)
    issue = token_sub.add_parser("issue", help="Issue a signed bearer token")
    issue.add_argument("subject")
    issue.add_argument("--role", choices=["user", "admin"], default="user")
    issue.add_argument("--ttl", type=int, default=None)

    return parser


def _print(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _add_product(args: argparse.Namespace) -> int:
    if args.price < 0 or args.stock < 0:
        raise SystemExit("price and stock must be non-negative")
    init_db()
    with session_scope() as session:
        row = ProductModel(
            name=args.name,
            description=args.description,
            category=args.category,
            price_cents=decimal_to_cents(args.price),
            stock=args.stock,
            image=args.image,
            created_at=now_utc(),
        )
        session.add(row)
        session.flush()
        _print({"product_id": row.product_id, "name": row.name, "price": args.price, "stock": row.stock})
    return 0


def _set_stock(args: argparse.Namespace) -> int:
    if args.stock < 0:
        raise SystemExit("stock must be non-negative")
    try:
        with session_scope() as session:
            ctx = PortalContext.for_session(session)
            stock = ctx.ledger.set_stock(args.product_id, args.stock)
    except OrderError as exc:
        raise SystemExit(exc.message) from exc
    _print({"product_id": args.product_id, "stock": stock})
    return 0


def _order_stats() -> int:
    with session_scope() as session:
        ctx = PortalContext.for_session(session)
        admin = Principal(id=ctx.settings.dev_principal_id, role="admin")
        _print(OrderQueryService(ctx).get_stats(admin))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "init-db":
        init_db()
        _print({"status": "ok"})
        return 0
    if args.command == "products" and args.products_command == "add":
        return _add_product(args)
    if args.command == "products" and args.products_command == "set-stock":
        return _set_stock(args)
    if args.command == "orders" and args.orders_command == "stats":
        return _order_stats()
    if args.command == "token" and args.token_command == "issue":
        _print({"token": issue_token(args.subject, args.role, ttl_seconds=args.ttl)})
        return 0

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
