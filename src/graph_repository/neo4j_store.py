from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, TypeVar

from neo4j import READ_ACCESS, GraphDatabase
from neo4j.exceptions import ClientError, Neo4jError

from .errors import IndexNotFound, InvalidQueryParameter, NotFound, UnsupportedOperation
from .lazy import LazySequence
from .query import check_identifier, label_for

logger = logging.getLogger(__name__)

E = TypeVar("E")

_BBOX = re.compile(r"^\s*\[([^,\]]+),([^,\]]+),([^,\]]+),([^,\]]+)\]\s*$")
_GEO_KEYS = ("bbox", "withinDistance", "withinWKTGeometry")


@dataclass(slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str
    database: str = "neo4j"
    # records pulled per round trip while a lazy result is being walked
    fetch_size: int = 1000


def parse_bbox(param: str) -> tuple[float, float, float, float]:
    """Decode "[minLon, maxLon, minLat, maxLat]"."""
    m = _BBOX.match(param) if isinstance(param, str) else None
    if not m:
        raise InvalidQueryParameter(f"Malformed bounding box: {param!r}")
    try:
        min_lon, max_lon, min_lat, max_lat = (float(g) for g in m.groups())
    except ValueError as e:
        raise InvalidQueryParameter(f"Malformed bounding box: {param!r}") from e
    return min_lon, max_lon, min_lat, max_lat


class Neo4jGraphStore:
    """Neo4j-backed storage, index and query engine.

    Entity types are dataclasses with an `id: int | None` field. The node
    label is `__label__` or the class name. Node properties map onto fields
    of the same name; leftovers land in a `properties` dict field if the
    type declares one.

    Reads are streamed: each returned `LazySequence` owns its session and
    closes it when released. Writes run in managed write transactions.
    Statements passed to `query` may write, so they stream from a
    write-mode session; lookups built here use read-mode sessions.

    Geo lookups go through the Neo4j Spatial plugin; the index name is the
    spatial layer name.
    """

    def __init__(self, cfg: Neo4jConfig, driver: Any = None):
        self.cfg = cfg
        # Driver is thread-safe; sessions are lightweight.
        self._driver = driver or GraphDatabase.driver(cfg.uri, auth=(cfg.user, cfg.password))
        self._types: dict[str, type] = {}

    def close(self) -> None:
        self._driver.close()

    def register(self, entity_type: type) -> None:
        self._types[label_for(entity_type)] = entity_type

    # --- sessions ---

    def _session(self, read: bool = True):
        if read:
            return self._driver.session(
                database=self.cfg.database, fetch_size=self.cfg.fetch_size, default_access_mode=READ_ACCESS
            )
        return self._driver.session(database=self.cfg.database, fetch_size=self.cfg.fetch_size)

    def _stream(self, statement: str, params: dict[str, Any] | None = None, read: bool = True) -> LazySequence[Any]:
        session = self._session(read)
        try:
            result = session.run(statement, params or {})
        except Neo4jError as e:
            session.close()
            logger.error(f"Neo4j query failed: {e}")
            logger.error(f"Query: {statement}, Parameters: {params}")
            raise
        return LazySequence(result, release=session.close)

    @staticmethod
    def _run_tx(tx, statement: str, params: dict[str, Any]) -> list[Any]:
        return list(tx.run(statement, params))

    def _read(self, statement: str, params: dict[str, Any]) -> list[Any]:
        with self._session() as s:
            return s.execute_read(self._run_tx, statement, params)

    def _write(self, statement: str, params: dict[str, Any]) -> list[Any]:
        with self._session(read=False) as s:
            return s.execute_write(self._run_tx, statement, params)

    # --- storage engine ---

    def get_by_id(self, id: int, entity_type: type) -> Any:
        label = label_for(entity_type)
        rows = self._read(f"MATCH (n:`{label}`) WHERE id(n) = $id RETURN n", {"id": int(id)})
        if not rows:
            raise NotFound(label, id)
        return rows[0]

    def create_entity(self, record: Any, entity_type: type[E]) -> E:
        if isinstance(record, entity_type):
            return record
        # Records are tuples of values; the node is the first one.
        node = record[0] if isinstance(record, (tuple, list)) else record
        self.register(entity_type)
        names = {f.name for f in dataclasses.fields(entity_type)}
        kwargs: dict[str, Any] = {"id": node.id}
        extra: dict[str, Any] = {}
        for key, value in dict(node).items():
            if key in names and key not in ("id", "properties"):
                kwargs[key] = value
            else:
                extra[key] = value
        if "properties" in names:
            kwargs["properties"] = extra
        return entity_type(**kwargs)

    @staticmethod
    def _props(entity: Any) -> dict[str, Any]:
        props: dict[str, Any] = {}
        for f in dataclasses.fields(entity):
            if f.name in ("id", "properties"):
                continue
            props[f.name] = getattr(entity, f.name)
        props.update(getattr(entity, "properties", None) or {})
        return props

    def save(self, entity: E) -> E:
        entity_type = type(entity)
        label = label_for(entity_type)
        self.register(entity_type)
        props = self._props(entity)
        if entity.id is None:  # type: ignore[attr-defined]
            rows = self._write(f"CREATE (n:`{label}`) SET n = $props RETURN id(n) AS id", {"props": props})
        else:
            rows = self._write(
                f"MATCH (n:`{label}`) WHERE id(n) = $id SET n = $props RETURN id(n) AS id",
                {"id": entity.id, "props": props},  # type: ignore[attr-defined]
            )
            if not rows:
                raise NotFound(label, entity.id)  # type: ignore[attr-defined]
        return dataclasses.replace(entity, id=rows[0]["id"])  # type: ignore[type-var]

    def delete(self, entity: Any) -> None:
        if getattr(entity, "id", None) is None:
            raise UnsupportedOperation(f"Cannot delete an unsaved entity: {entity!r}")
        self._write("MATCH (n) WHERE id(n) = $id DETACH DELETE n", {"id": entity.id})

    def count(self, entity_type: type) -> int:
        rows = self._read(f"MATCH (n:`{label_for(entity_type)}`) RETURN count(n) AS c", {})
        return int(rows[0]["c"]) if rows else 0

    def find_all(self, entity_type: type[E]) -> LazySequence[E]:
        seq = self._stream(f"MATCH (n:`{label_for(entity_type)}`) RETURN n")
        return seq.map(lambda record: self.create_entity(record, entity_type))

    def stored_type(self, entity: Any) -> type | None:
        if getattr(entity, "id", None) is None:
            return None
        rows = self._read("MATCH (n) WHERE id(n) = $id RETURN labels(n) AS labels", {"id": entity.id})
        if not rows:
            return None
        for label in rows[0]["labels"]:
            if label in self._types:
                return self._types[label]
        return None

    # --- query engine ---

    def query(self, statement: str, params: dict[str, Any] | None = None) -> LazySequence[Any]:
        # arbitrary statements may write, so they go to a write-mode session
        return self._stream(statement, params, read=False)

    # --- index engine ---

    def _indexes(self) -> list[dict[str, Any]]:
        rows = self._read("SHOW INDEXES YIELD name, type, labelsOrTypes, properties", {})
        return [dict(r) for r in rows]

    def _index_label(self, index_name: str) -> str:
        """Resolve an index name, or a label carrying an index, to a node label."""
        for ix in self._indexes():
            labels = ix.get("labelsOrTypes") or []
            if ix.get("name") == index_name and labels:
                return check_identifier(labels[0], "label")
            if index_name in labels:
                return check_identifier(index_name, "label")
        raise IndexNotFound(index_name)

    def _fulltext_index(self, index_name: str) -> str:
        for ix in self._indexes():
            if ix.get("type") != "FULLTEXT":
                continue
            if ix.get("name") == index_name or index_name in (ix.get("labelsOrTypes") or []):
                return ix["name"]
        raise IndexNotFound(index_name)

    def get(self, index_name: str, key: str, value: Any) -> LazySequence[Any]:
        label = self._index_label(index_name)
        key = check_identifier(key, "property")
        return self._stream(f"MATCH (n:`{label}`) WHERE n.`{key}` = $value RETURN n", {"value": value})

    def range(self, index_name: str, key: str, start: Any, end: Any) -> LazySequence[Any]:
        label = self._index_label(index_name)
        key = check_identifier(key, "property")
        return self._stream(
            f"MATCH (n:`{label}`) WHERE $start <= n.`{key}` <= $end RETURN n", {"start": start, "end": end}
        )

    def query_index(self, index_name: str, key: str, query: Any) -> LazySequence[Any]:
        if key in _GEO_KEYS:
            return self._geo(index_name, key, query)
        name = self._fulltext_index(index_name)
        text = f"{key}:{query}" if key else str(query)
        return self._stream(
            "CALL db.index.fulltext.queryNodes($index, $query) YIELD node RETURN node",
            {"index": name, "query": text},
        )

    def _geo(self, layer: str, key: str, param: Any) -> LazySequence[Any]:
        if key == "bbox":
            min_lon, max_lon, min_lat, max_lat = parse_bbox(param)
            statement = "CALL spatial.bbox($layer, $min, $max) YIELD node RETURN node"
            params = {
                "layer": layer,
                "min": {"longitude": min_lon, "latitude": min_lat},
                "max": {"longitude": max_lon, "latitude": max_lat},
            }
        elif key == "withinDistance":
            try:
                lon, lat = param["point"]
                km = float(param["distanceInKm"])
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidQueryParameter(f"Malformed distance query: {param!r}") from e
            statement = "CALL spatial.withinDistance($layer, $point, $km) YIELD node RETURN node"
            params = {"layer": layer, "point": {"longitude": lon, "latitude": lat}, "km": km}
        else:
            statement = "CALL spatial.intersects($layer, $wkt) YIELD node RETURN node"
            params = {"layer": layer, "wkt": param}

        self._check_layer(layer)
        return self._stream(statement, params)

    def _check_layer(self, layer: str) -> None:
        try:
            rows = self._read("CALL spatial.layers() YIELD name RETURN name", {})
        except ClientError as e:
            if e.code == "Neo.ClientError.Procedure.ProcedureNotFound":
                raise UnsupportedOperation("Geo queries need the Neo4j Spatial plugin") from e
            raise
        if layer not in {r["name"] for r in rows}:
            raise IndexNotFound(layer)
