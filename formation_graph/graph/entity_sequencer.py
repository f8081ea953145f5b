# -*- coding: utf-8 -*-
"""
Entity sequencer: merges one page of entities into Neo4j, strictly in order.

Entities are never processed in parallel. Concurrent sessions touching the
same node deadlock in Neo4j, so each entity (node, tags, relationships) is
fully committed before the next one starts. A failed entity is retried on its
own after the policy delay; the rest of the batch is not re-run.

Per-entity state machine:
    PENDING -> NODE_UPSERTED -> TAGS_ATTACHED -> RELS_FETCHING -> RELS_ATTACHED

Author: Formation Graph maintainers
Created: 2025-12-22
Modified: 2026-10-19

References:
    - See neo4j_importer.py for the three merge steps
    - See utils/retry.py for the per-entity retry policy
"""

# Standard library
import time
from typing import Any, Callable, Dict, Iterable, Optional

# Local
from formation_graph.graph.neo4j_importer import Neo4jImporter
from formation_graph.utils.dataclasses import Entity
from formation_graph.utils.errors import EntityShapeError
from formation_graph.utils.logger import get_logger
from formation_graph.utils.progress import ImportProgress
from formation_graph.utils.retry import RetryPolicy

logger = get_logger(__name__)


class EntitySequencer:
    """
    Drives Neo4jImporter over an ordered batch of search hits.

    Example:
        sequencer = EntitySequencer(importer, RetryPolicy(delay=5.0), pacing_delay=0.01)
        sequencer.add_entities_to_graph(page.sources, "vogue", "de", progress)
    """

    def __init__(
        self,
        importer: Neo4jImporter,
        retry_policy: Optional[RetryPolicy] = None,
        pacing_delay: float = 0.01,
        skip_malformed: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            importer: Graph mutation layer
            retry_policy: Per-entity retry policy (default: forever, 5s)
            pacing_delay: Seconds to wait after each merged entity
            skip_malformed: Log and skip hits without id/meta.modelName
                instead of retrying them
            sleep: Sleep function, swappable in tests
        """
        self.importer = importer
        self.retry_policy = retry_policy or RetryPolicy()
        if skip_malformed:
            self.retry_policy = self.retry_policy.with_non_retryable(EntityShapeError)
        self.pacing_delay = pacing_delay
        self.skip_malformed = skip_malformed
        self.sleep = sleep

    def add_entities_to_graph(
        self,
        sources: Iterable[Dict[str, Any]],
        brand: str,
        market: str,
        progress: Optional[ImportProgress] = None,
    ) -> int:
        """
        Merge every hit into the graph, one at a time, in the given order.

        Returns:
            Number of entities merged (skipped hits excluded)
        """
        if progress is None:
            progress = ImportProgress()

        merged = 0
        for index, source in enumerate(sources):
            try:
                self.retry_policy.call(
                    lambda: self.process_entity(source, brand, market),
                    description=f"Adding entity {index} to graph",
                )
            except EntityShapeError as e:
                # Only reachable with skip_malformed
                logger.error(f"Skipping malformed entity {index}: {e}: {e.source!r}")
                progress.skip()
                continue
            merged += 1
            progress.advance()
        return merged

    def process_entity(self, source: Dict[str, Any], brand: str, market: str) -> Entity:
        """
        Merge one hit: node, tags, relationships, then the pacing delay.

        The session is closed on every exit path before the caller retries or
        moves on.
        """
        entity = Entity.from_source(source)
        logger.debug(f"Merging {entity.label} {entity.id}")

        with self.importer.session() as session:
            self.importer.upsert_node(session, entity, brand, market)
            self.importer.attach_tags(session, entity, brand, market)
            self.importer.attach_relationships(session, entity, brand, market)

        if self.pacing_delay:
            self.sleep(self.pacing_delay)
        return entity
