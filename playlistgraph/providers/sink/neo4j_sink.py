"""Batched Neo4j writer for the co-occurrence graph.

Nodes are merged as ``(:Track {uri})`` or ``(:Artist {uri})`` depending on
the node type; edges as ``CO_OCCURS_WITH`` relationships stored in
canonical direction (smaller uri -> larger uri) with a ``weight``
property.  Every write is an idempotent ``MERGE``: a node or relationship
is created if absent and never duplicated, and relationship weights are
incremented by the batched amount.

Updates arrive per playlist (this is a streaming sink) and are buffered;
a buffer is sent as one ``UNWIND`` transaction once it holds
``batch_size`` rows, which bounds transaction size on large corpora.
Increments for the same pair inside one buffer are coalesced.

``rebuild=True`` deletes every node and relationship in the database in
``open()``, once, before the first write.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any

import structlog
from neo4j import Driver, GraphDatabase, ManagedTransaction
from neo4j.exceptions import DriverError, Neo4jError

from playlistgraph.interfaces.graph_sink import IGraphSink
from playlistgraph.models.playlist import NodeType
from playlistgraph.utils.errors import SinkWriteError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BATCH_SIZE = 1000
RELATIONSHIP_TYPE = "CO_OCCURS_WITH"

NODE_LABELS: dict[NodeType, str] = {
    NodeType.TRACK: "Track",
    NodeType.ARTIST: "Artist",
}

_LABEL_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

_CLEAR_DATABASE_QUERY = "MATCH (n) DETACH DELETE n"


def _run_write(tx: ManagedTransaction, query: str, parameters: dict[str, Any] | None = None) -> Any:
    # Consume so the write executes inside the managed transaction.
    return tx.run(query, parameters).consume()


class Neo4jSink(IGraphSink):
    """Streams node and relationship merges into Neo4j in fixed-size batches.

    Parameters
    ----------
    uri, user, password, database:
        Connection details; ignored when *driver* is supplied.
    node_label:
        Label given to every node (``Track`` / ``Artist``).
    batch_size:
        Rows per write transaction.
    rebuild:
        Clear the whole database before writing.
    driver:
        Pre-built driver.  The sink closes only drivers it created itself.
    """

    name = "neo4j"
    streaming = True
    tolerates_failures = True

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "neo4j",
        password: str = "",
        database: str | None = None,
        node_label: str = "Track",
        batch_size: int = DEFAULT_BATCH_SIZE,
        rebuild: bool = False,
        driver: Driver | None = None,
    ) -> None:
        if not _LABEL_RE.match(node_label):
            raise ValueError(f"invalid node label: {node_label!r}")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self._uri = uri
        self._auth = (user, password)
        self._database = database
        self._label = node_label
        self._batch_size = batch_size
        self._rebuild = rebuild
        self._driver = driver
        self._owns_driver = driver is None
        self._cleared = False

        self._pending_nodes: dict[str, None] = {}
        self._pending_edges: Counter[tuple[str, str]] = Counter()
        self._nodes_written = 0
        self._edges_written = 0

        self._merge_nodes_query = f"UNWIND $nodes AS uri MERGE (:{self._label} {{uri: uri}})"
        self._merge_edges_query = (
            "UNWIND $rels AS rel "
            f"MATCH (a:{self._label} {{uri: rel.source}}) "
            f"MATCH (b:{self._label} {{uri: rel.target}}) "
            f"MERGE (a)-[r:{RELATIONSHIP_TYPE}]->(b) "
            "ON CREATE SET r.weight = rel.weight "
            "ON MATCH SET r.weight = r.weight + rel.weight"
        )
        self._constraint_query = (
            f"CREATE CONSTRAINT {self._label.lower()}_uri_unique IF NOT EXISTS "
            f"FOR (n:{self._label}) REQUIRE n.uri IS UNIQUE"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        if self._driver is None:
            try:
                self._driver = GraphDatabase.driver(self._uri, auth=self._auth)
            except (DriverError, Neo4jError, ValueError) as exc:
                raise SinkWriteError(f"cannot create driver: {exc}", source_name=self.name) from exc

        try:
            if self._rebuild and not self._cleared:
                self._execute(_CLEAR_DATABASE_QUERY, None, action="clear database")
                self._cleared = True
                logger.warning("neo4j_database_cleared", uri=self._uri, database=self._database)

            self._execute(self._constraint_query, None, action="create uri constraint")
        except SinkWriteError:
            self._release_driver()
            raise
        logger.info(
            "neo4j_sink_open",
            uri=self._uri,
            label=self._label,
            batch_size=self._batch_size,
            rebuild=self._rebuild,
        )

    def close(self) -> None:
        try:
            self.flush()
        finally:
            self._release_driver()
        logger.info(
            "neo4j_sink_closed",
            nodes_written=self._nodes_written,
            relationships_written=self._edges_written,
        )

    def _release_driver(self) -> None:
        if self._owns_driver and self._driver is not None:
            self._driver.close()
            self._driver = None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_node(self, node_id: str) -> None:
        self._pending_nodes[node_id] = None
        if len(self._pending_nodes) >= self._batch_size:
            self._flush_nodes()

    def add_edge(self, source: str, target: str, weight: int = 1) -> None:
        self._pending_edges[(source, target)] += weight
        if len(self._pending_edges) >= self._batch_size:
            # Relationships MATCH their endpoints, so nodes go first.
            self._flush_nodes()
            self._flush_edges()

    def flush(self) -> None:
        self._flush_nodes()
        self._flush_edges()

    def discard_pending(self) -> int:
        dropped = len(self._pending_nodes) + len(self._pending_edges)
        self._pending_nodes.clear()
        self._pending_edges.clear()
        return dropped

    def _flush_nodes(self) -> None:
        if not self._pending_nodes:
            return
        batch = list(self._pending_nodes)
        self._pending_nodes.clear()
        self._execute(self._merge_nodes_query, {"nodes": batch}, action="merge nodes")
        self._nodes_written += len(batch)

    def _flush_edges(self) -> None:
        if not self._pending_edges:
            return
        batch = [
            {"source": source, "target": target, "weight": weight}
            for (source, target), weight in self._pending_edges.items()
        ]
        self._pending_edges.clear()
        self._execute(self._merge_edges_query, {"rels": batch}, action="merge relationships")
        self._edges_written += len(batch)

    def _execute(self, query: str, parameters: dict[str, Any] | None, action: str) -> None:
        if self._driver is None:
            raise SinkWriteError("sink is not open", source_name=self.name)
        rows = len(next(iter(parameters.values()))) if parameters else 0
        try:
            with self._driver.session(database=self._database) as session:
                session.execute_write(_run_write, query, parameters)
        except (DriverError, Neo4jError) as exc:
            logger.error("neo4j_batch_failed", action=action, rows=rows, error=str(exc))
            raise SinkWriteError(f"{action} failed ({rows} rows): {exc}", source_name=self.name) from exc
        logger.debug("neo4j_batch_written", action=action, rows=rows)
