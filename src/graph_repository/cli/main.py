from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any

from graph_repository.settings import settings


def _configure_logging() -> None:
    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def node_type(label: str) -> type:
    """Dataclass for an arbitrary label: `id` plus a catch-all `properties` dict."""
    from graph_repository.query import check_identifier

    return dataclasses.make_dataclass(
        check_identifier(label, "label"),
        [
            ("id", "int | None", dataclasses.field(default=None)),
            ("properties", "dict[str, Any]", dataclasses.field(default_factory=dict)),
        ],
    )


def _store():
    from graph_repository.neo4j_store import Neo4jConfig, Neo4jGraphStore

    if not settings.neo4j_password:
        raise RuntimeError("Neo4j not configured. Set GRAPH_REPOSITORY_NEO4J_URI/USER/PASSWORD.")
    cfg = Neo4jConfig(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
        fetch_size=settings.fetch_size,
    )
    return Neo4jGraphStore(cfg)


def _repository(store, label: str):
    from graph_repository.repository import GraphRepository

    return GraphRepository(store, node_type(label))


def _dump(entity: Any) -> str:
    if entity is None:
        return "null"
    return json.dumps(dataclasses.asdict(entity), default=str)


def parse_sort(specs: list[str] | None):
    """`name` or `name:desc` -> Sort."""
    from graph_repository.models import Direction, Order, Sort

    orders = []
    for spec in specs or []:
        prop, _, direction = spec.partition(":")
        orders.append(Order(prop, Direction(direction.upper()) if direction else Direction.ASC))
    return Sort(tuple(orders))


def parse_params(pairs: list[str] | None) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {pair!r}")
        try:
            params[key] = json.loads(raw)
        except json.JSONDecodeError:
            params[key] = raw
    return params


def cmd_version() -> int:
    from graph_repository import __version__

    print(__version__)
    return 0


def cmd_count(args: argparse.Namespace) -> int:
    _configure_logging()
    store = _store()
    try:
        print(_repository(store, args.label).count())
    finally:
        store.close()
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    _configure_logging()
    store = _store()
    try:
        entity = _repository(store, args.label).find_one(args.id)
    finally:
        store.close()
    print(_dump(entity))
    return 0 if entity is not None else 1


def cmd_page(args: argparse.Namespace) -> int:
    _configure_logging()
    from graph_repository.models import PageRequest

    store = _store()
    try:
        size = args.size or settings.default_page_size
        page = _repository(store, args.label).find_page(PageRequest.of(args.page, size, parse_sort(args.sort)))
    finally:
        store.close()
    for entity in page:
        print(_dump(entity))
    print(f"# page {page.number} size {page.size} total>={page.total_count} has_next={page.has_next}", file=sys.stderr)
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    _configure_logging()
    store = _store()
    try:
        with _repository(store, args.label).query(args.cypher, parse_params(args.param)) as results:
            for entity in results:
                print(_dump(entity))
    finally:
        store.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="graph-repo")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    count = sub.add_parser("count", help="Count nodes with a label")
    count.add_argument("label")
    count.set_defaults(func=cmd_count)

    get = sub.add_parser("get", help="Fetch one node by internal id")
    get.add_argument("label")
    get.add_argument("id", type=int)
    get.set_defaults(func=cmd_get)

    page = sub.add_parser("page", help="Print one page of nodes with a label")
    page.add_argument("label")
    page.add_argument("--page", type=int, default=0)
    page.add_argument("--size", type=int, default=None)
    page.add_argument("--sort", action="append", help="prop or prop:desc, repeatable")
    page.set_defaults(func=cmd_page)

    query = sub.add_parser("query", help="Run a Cypher query returning nodes")
    query.add_argument("label", help="Entity label the returned nodes are mapped to")
    query.add_argument("cypher")
    query.add_argument("--param", action="append", help="key=value (JSON values allowed), repeatable")
    query.set_defaults(func=cmd_query)

    return p


def app() -> None:
    parser = build_parser()
    args = parser.parse_args()
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    app()
