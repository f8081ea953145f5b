# -*- coding: utf-8 -*-
"""
Neo4j Importer for Formation entities.

Graph mutation layer: turns one Entity into idempotent MERGE writes for its own
node, its tags and its related entities. Knows nothing about pagination or
ordering between entities; the entity sequencer drives it one entity at a time.

Every value is passed as a Cypher parameter. Labels and relationship types
cannot be parameters, so they are backtick-quoted with quote_identifier().

Graph shape:
    (:<ModelName> {id, title, _uri, _brand, _market, ...string fields})
    (:<ModelName>)-[:TAGGED_WITH]->(:Tag {title, _brand, _market})
    (:<ModelName>)-[:<REL_FIELD>]->(:<RelatedModelName> {id, title, _brand, _market})

Example:
    importer = Neo4jImporter(uri, user, password, client=FormationClient())
    with importer.session() as session:
        importer.upsert_node(session, entity, "vogue", "de")
        importer.attach_tags(session, entity, "vogue", "de")
        importer.attach_relationships(session, entity, "vogue", "de")
    importer.close()

Author: Formation Graph maintainers
Created: 2025-12-21
Modified: 2026-10-19

References:
    - See README.md for the graph model (labels, _brand/_market keys, TAGGED_WITH)
    - See entity_sequencer.py for the per-entity session lifecycle
"""

# Standard library
import re
from typing import Any, Dict, List, Optional, Tuple

# Third-party
from neo4j import GraphDatabase, Session

# Local
from formation_graph.ingestion.formation_client import FormationClient
from formation_graph.utils.dataclasses import Entity, RelatedEntity
from formation_graph.utils.errors import EntityShapeError
from formation_graph.utils.logger import get_logger
from formation_graph.utils.retry import RetryPolicy

logger = get_logger(__name__)

EXCLUDED_PROPERTIES = {"body"}

_INTERNAL_UPPERCASE = re.compile(r"(?<!^)(?=[A-Z])")


# =========================================================================
# NAMING HELPERS
# =========================================================================

def get_relationship_name(field_name: str) -> str:
    """
    Relationship type for a relationships-resource field name.

    `_` goes before every internal capital, the first `-` becomes `_`, and the
    result is uppercased. Later hyphens are kept as they are.

        hasColor    -> HAS_COLOR
        part-of     -> PART_OF
        part-of-set -> PART_OF-SET
    """
    name = _INTERNAL_UPPERCASE.sub("_", field_name)
    name = name.replace("-", "_", 1)
    return name.upper()


def quote_identifier(name: str) -> str:
    """Backtick-quote a label or relationship type for embedding in Cypher."""
    if not name:
        raise ValueError("Identifier must not be empty")
    return "`" + name.replace("`", "``") + "`"


def build_node_properties(entity: Entity, brand: str, market: str) -> Dict[str, Any]:
    """
    Full property map for an entity node.

    Top-level string fields are copied except internal ones (leading `_`) and
    `body`; empty strings are dropped. id, title and the _uri/_brand/_market
    metadata are always set and win over same-named source fields.
    """
    props = {
        name: value
        for name, value in entity.source.items()
        if isinstance(value, str)
        and not name.startswith("_")
        and name not in EXCLUDED_PROPERTIES
        and value != ""
    }
    props["id"] = entity.id
    props["title"] = entity.title
    props["_uri"] = entity.self_uri
    props["_brand"] = brand
    props["_market"] = market
    return props


# =========================================================================
# TRANSACTION FUNCTIONS (run via session.execute_write)
# =========================================================================

def merge_entity_node(tx, entity: Entity, brand: str, market: str) -> None:
    """
    Upsert the entity's node and replace all of its properties.

    Keyed by (label, id, _brand, _market); `SET n = $props` drops any property
    the new import no longer carries.
    """
    query = (
        f"MERGE (n:{quote_identifier(entity.label)} "
        "{id: $id, _brand: $brand, _market: $market}) "
        "SET n = $props"
    )
    tx.run(query, id=entity.id, brand=brand, market=market,
           props=build_node_properties(entity, brand, market))


def merge_entity_tags(tx, entity: Entity, tags: List[str], brand: str, market: str) -> None:
    """Merge one :Tag per title and a TAGGED_WITH edge to each."""
    if not tags:
        return

    query = (
        f"MATCH (n:{quote_identifier(entity.label)} "
        "{id: $id, _brand: $brand, _market: $market}) "
        "UNWIND $tags AS tag_title "
        "MERGE (t:Tag {title: tag_title, _brand: $brand, _market: $market}) "
        "MERGE (n)-[:TAGGED_WITH]->(t)"
    )
    tx.run(query, id=entity.id, tags=tags, brand=brand, market=market)


def merge_entity_relationships(tx, entity: Entity, edges: List[Tuple[str, RelatedEntity]],
                               brand: str, market: str) -> int:
    """
    Merge a stub node and a typed edge for every (relationship type, related) pair.

    Stubs only get a title when they are created, so an entity that was
    already imported in full keeps its own properties.

    Returns:
        Number of edges merged
    """
    source_label = quote_identifier(entity.label)
    for rel_type, related in edges:
        query = (
            f"MATCH (a:{source_label} {{id: $id, _brand: $brand, _market: $market}}) "
            f"MERGE (b:{quote_identifier(related.label)} "
            "{id: $related_id, _brand: $brand, _market: $market}) "
            "ON CREATE SET b.title = $title "
            f"MERGE (a)-[:{quote_identifier(rel_type)}]->(b)"
        )
        tx.run(query, id=entity.id, related_id=related.id, title=related.title,
               brand=brand, market=market)
    return len(edges)


def parse_relationships(entity: Entity, relationships: Dict[str, List[Dict]]) -> List[Tuple[str, RelatedEntity]]:
    """
    Flatten a relationships resource into (relationship type, related) pairs.

    Keeps field order and within-field order. Related records without id or
    meta.modelName cannot become nodes and are skipped with a warning.
    """
    edges = []
    for field_name, related_records in relationships.items():
        rel_type = get_relationship_name(field_name)
        for record in related_records or []:
            try:
                related = RelatedEntity.from_json(record)
            except EntityShapeError as e:
                logger.warning(f"Skipping {field_name} of {entity.label} {entity.id}: {e}: {e.source!r}")
                continue
            edges.append((rel_type, related))
    return edges


# =========================================================================
# IMPORTER
# =========================================================================

class Neo4jImporter:
    """
    Owns the Neo4j driver and applies the per-entity upserts.

    One driver for the whole run; callers open a short-lived session per
    entity with session() and pass it to the upsert methods.
    """

    def __init__(self, uri: str, user: str, password: str,
                 client: Optional[FormationClient] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 database: Optional[str] = None):
        """
        Initialize Neo4j connection.

        Args:
            uri: Neo4j connection URI (e.g., bolt://localhost)
            user: Username (typically 'neo4j')
            password: Database password
            client: Formation client for the relationships resource
            retry_policy: Policy for the relationship fetch-and-attach step
            database: Target database name (driver default if None)
        """
        self.driver = GraphDatabase.driver(uri, auth=(user, password))
        self.client = client or FormationClient()
        self.retry_policy = retry_policy or RetryPolicy()
        self.database = database
        logger.info(f"Connected to Neo4j at {uri}")

    def close(self):
        """Close Neo4j driver connection."""
        self.driver.close()
        logger.info("Neo4j connection closed")

    def session(self) -> Session:
        """New session; use as a context manager so it is always released."""
        if self.database:
            return self.driver.session(database=self.database)
        return self.driver.session()

    def create_indexes(self, session: Session):
        """
        Create lookup indexes for tag merges.

        Entity labels are only known at import time, so only :Tag gets an index.
        """
        indexes = [
            "CREATE INDEX tag_key IF NOT EXISTS FOR (t:Tag) ON (t.title, t._brand, t._market)",
        ]
        for index in indexes:
            session.run(index)
            logger.debug(f"Created: {index[:50]}...")
        logger.info(f"Created {len(indexes)} indexes")

    def upsert_node(self, session: Session, entity: Entity, brand: str, market: str) -> None:
        session.execute_write(merge_entity_node, entity, brand, market)

    def attach_tags(self, session: Session, entity: Entity, brand: str, market: str) -> int:
        """
        Merge the entity's tags. No-op (no query at all) when it has none.

        Returns:
            Number of tags written
        """
        tags = entity.tags
        if not tags:
            return 0
        session.execute_write(merge_entity_tags, entity, tags, brand, market)
        return len(tags)

    def fetch_relationships(self, entity: Entity) -> Dict[str, List[Dict]]:
        """GET the entity's relationships resource (`_links.rels.uri`)."""
        if not entity.rels_uri:
            raise KeyError(f"{entity.label} {entity.id} has no _links.rels.uri")
        relationships = self.client.get_json(entity.rels_uri)
        if not isinstance(relationships, dict):
            raise TypeError(f"Relationships for {entity.label} {entity.id} are not an object")
        return relationships

    def attach_relationships(self, session: Session, entity: Entity, brand: str, market: str) -> int:
        """
        Fetch the relationships resource and merge every related entity.

        Fetch and write are retried together, after a delay, on any failure.

        Returns:
            Number of relationship edges merged
        """
        def fetch_and_attach() -> int:
            relationships = self.fetch_relationships(entity)
            edges = parse_relationships(entity, relationships)
            if not edges:
                return 0
            return session.execute_write(merge_entity_relationships, entity, edges, brand, market)

        return self.retry_policy.call(
            fetch_and_attach,
            description=f"Adding rels of {entity.label} {entity.id} to graph",
        )
