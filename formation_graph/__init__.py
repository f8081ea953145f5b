# -*- coding: utf-8 -*-
"""
Formation Content API to Neo4j importer package.

Walks the paginated Formation search API and merges every returned entity,
its tags and its related entities into a Neo4j graph. Contains ingestion
(HTTP client and page walker), graph (mutation layer, entity sequencer and
import processor) and utils (config, logging, retry, progress, dataclasses).
"""

__version__ = "0.1.0"
