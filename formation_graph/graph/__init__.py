# -*- coding: utf-8 -*-
"""
Graph package for Neo4j writes.

Contains neo4j_importer (idempotent node/tag/relationship upserts),
entity_sequencer (strictly sequential per-entity merge with retry) and
neo4j_import_processor (run orchestrator and CLI entry point).
"""
