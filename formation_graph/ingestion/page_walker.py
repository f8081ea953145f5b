# -*- coding: utf-8 -*-
"""
Page walker for the Formation search API.

Fetches a search page, hands its hits to the entity sequencer, then follows
`_links.next.uri` until a page has no next link. A page that fails to load or
parse is retried against the same URL; pages already processed are never
revisited. There is no checkpointing, so every run starts at page one and
relies on the idempotent graph writes.

Example:
    walker = PageWalker(client, sequencer, RetryPolicy(delay=5.0))
    progress = walker.walk(config.search_url, "vogue", "de")

Author: Formation Graph maintainers
Created: 2025-12-22
Modified: 2026-10-19

References:
    - See graph/entity_sequencer.py for how each page is merged
"""

# Standard library
from typing import Optional

# Local
from formation_graph.graph.entity_sequencer import EntitySequencer
from formation_graph.ingestion.formation_client import FormationClient
from formation_graph.utils.dataclasses import SearchPage
from formation_graph.utils.logger import get_logger
from formation_graph.utils.progress import ImportProgress
from formation_graph.utils.retry import RetryPolicy

logger = get_logger(__name__)


class PageWalker:
    """Top-level pagination loop."""

    def __init__(
        self,
        client: FormationClient,
        sequencer: EntitySequencer,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = client
        self.sequencer = sequencer
        self.retry_policy = retry_policy or RetryPolicy()

    def fetch_page(self, url: str) -> SearchPage:
        """GET and parse one search page. Raises on any failure."""
        return SearchPage.from_response(url, self.client.get_json(url))

    def walk(
        self,
        start_url: str,
        brand: str,
        market: str,
        progress: Optional[ImportProgress] = None,
    ) -> ImportProgress:
        """
        Import every page reachable from start_url.

        Args:
            start_url: First search page (`<endpoint>/search?size=200`)
            brand: Brand written to every node
            market: Market written to every node
            progress: Counters for this run (a fresh one if None)

        Returns:
            The progress counters after the last page
        """
        if progress is None:
            progress = ImportProgress()

        url = start_url
        while True:
            page = self.retry_policy.call(
                lambda: self.fetch_page(url),
                description=f"Loading page {url}",
            )
            progress.set_total(page.total)
            logger.info(f"Page {progress.pages + 1}: {len(page)} entities from {url}")

            self.sequencer.add_entities_to_graph(page.sources, brand, market, progress)
            progress.page_done()

            if not page.has_next:
                break
            url = page.next_url

        logger.info(f"Walk finished: {progress.summary()}")
        return progress
