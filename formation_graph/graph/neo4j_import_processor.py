# -*- coding: utf-8 -*-
"""
Formation to Neo4j import orchestrator and CLI entry point.

Resolves configuration (environment, .env, CLI flags), opens one Neo4j driver
for the whole run, optionally creates the tag index, then walks every page of
the Formation search API. The driver and HTTP session are closed on every exit
path. Missing required configuration aborts before any network activity.

Examples:
    # Run complete import from command line
    # NEO4J_PASSWORD=secret FORMATION_API_ENDPOINT=https://formation.example.com \\
    #     formation-import --brand vogue --market de

    # Python API usage
    from formation_graph.graph.neo4j_import_processor import FormationImportProcessor
    from formation_graph.utils.config import load_config

    processor = FormationImportProcessor(load_config())
    progress = processor.run_import()

Author: Formation Graph maintainers
Created: 2025-12-22
Modified: 2026-10-19

References:
    - See README.md for environment variables and CLI usage
    - See ingestion/page_walker.py for the pagination loop
"""
# Standard library
import argparse
import logging
import sys
from typing import List, Optional

# Local
from formation_graph.graph.entity_sequencer import EntitySequencer
from formation_graph.graph.neo4j_importer import Neo4jImporter
from formation_graph.ingestion.formation_client import FormationClient
from formation_graph.ingestion.page_walker import PageWalker
from formation_graph.utils.config import (
    DEFAULT_BRAND,
    DEFAULT_MARKET,
    DEFAULT_PACING_DELAY_MS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRY_DELAY_MS,
    ImportConfig,
    load_config,
)
from formation_graph.utils.errors import ConfigurationError, RetryExhaustedError
from formation_graph.utils.logger import get_logger, setup_logging
from formation_graph.utils.progress import ImportProgress
from formation_graph.utils.retry import RetryPolicy

logger = get_logger(__name__)


class FormationImportProcessor:
    """
    Wires the client, importer, sequencer and walker for one run.

    Handles:
    - Retry policies built from the config (one per retrying unit)
    - Optional index creation
    - Closing the driver and HTTP session when the walk ends or fails
    """

    def __init__(self, config: ImportConfig):
        self.config = config

    def build_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            delay=self.config.retry_delay,
            max_attempts=self.config.max_attempts,
        )

    def run_import(self) -> ImportProgress:
        """
        Execute the complete import.

        Returns:
            Progress counters for the run
        """
        config = self.config
        rels_policy = self.build_retry_policy()
        page_policy = self.build_retry_policy()

        client = FormationClient(timeout=config.http_timeout)
        importer = Neo4jImporter(
            config.neo4j_url,
            config.neo4j_user,
            config.neo4j_password,
            client=client,
            retry_policy=rels_policy,
            database=config.neo4j_database,
        )
        progress = ImportProgress(show_bar=config.show_progress_bar)

        try:
            if config.create_indexes:
                with importer.session() as session:
                    importer.create_indexes(session)

            sequencer = EntitySequencer(
                importer,
                retry_policy=self.build_retry_policy(),
                pacing_delay=config.pacing_delay,
                skip_malformed=config.skip_malformed,
            )
            walker = PageWalker(client, sequencer, retry_policy=page_policy)

            logger.info(f"Importing {config.search_url} as brand={config.brand} market={config.market}")
            walker.walk(config.search_url, config.brand, config.market, progress)
            logger.info(
                f"Done. Failed attempts retried: {page_policy.total_failures} page, "
                f"{sequencer.retry_policy.total_failures} entity, {rels_policy.total_failures} relationship"
            )
            return progress

        finally:
            progress.close()
            importer.close()
            client.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Import every Formation search result into Neo4j'
    )
    parser.add_argument(
        '--brand',
        default=DEFAULT_BRAND,
        help=f'Brand stored on every node (default: {DEFAULT_BRAND})'
    )
    parser.add_argument(
        '--market',
        default=DEFAULT_MARKET,
        help=f'Market stored on every node (default: {DEFAULT_MARKET})'
    )
    parser.add_argument(
        '--page-size',
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f'Search page size (default: {DEFAULT_PAGE_SIZE})'
    )
    parser.add_argument(
        '--retry-delay',
        type=int,
        default=DEFAULT_RETRY_DELAY_MS,
        help=f'Milliseconds to wait before retrying a failed unit (default: {DEFAULT_RETRY_DELAY_MS})'
    )
    parser.add_argument(
        '--pacing-delay',
        type=int,
        default=DEFAULT_PACING_DELAY_MS,
        help=f'Milliseconds to wait after each entity (default: {DEFAULT_PACING_DELAY_MS})'
    )
    parser.add_argument(
        '--max-attempts',
        type=int,
        default=None,
        help='Give up on a unit after this many attempts (default: retry forever)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='HTTP timeout in seconds (default: 30)'
    )
    parser.add_argument(
        '--skip-malformed',
        action='store_true',
        help='Skip search hits without id or meta.modelName instead of retrying them'
    )
    parser.add_argument(
        '--create-indexes',
        action='store_true',
        help='Create the :Tag lookup index before importing'
    )
    parser.add_argument(
        '--progress-bar',
        action='store_true',
        help='Show a tqdm progress bar'
    )
    parser.add_argument(
        '--log-file',
        default=None,
        help='Also write logs to this file'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )
    return parser


def config_from_args(args: argparse.Namespace, config: ImportConfig) -> ImportConfig:
    """Apply CLI overrides to an environment-derived config."""
    config.brand = args.brand
    config.market = args.market
    config.page_size = args.page_size
    config.retry_delay_ms = args.retry_delay
    config.pacing_delay_ms = args.pacing_delay
    config.max_attempts = args.max_attempts
    if args.timeout is not None:
        config.http_timeout = args.timeout
    config.skip_malformed = args.skip_malformed
    config.create_indexes = args.create_indexes
    config.show_progress_bar = args.progress_bar
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Formation import."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.max_attempts is not None and args.max_attempts < 1:
        parser.error("--max-attempts must be at least 1")
    if args.page_size < 1:
        parser.error("--page-size must be at least 1")

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )

    # Fail before touching the network
    try:
        config = config_from_args(args, load_config())
    except ConfigurationError as e:
        parser.error(str(e))

    processor = FormationImportProcessor(config)
    try:
        processor.run_import()
    except RetryExhaustedError as e:
        logger.error(f"Import aborted: {e} ({e.__cause__!r})")
        return 1
    except KeyboardInterrupt:
        logger.warning("Import interrupted")
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
