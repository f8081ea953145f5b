# -*- coding: utf-8 -*-
"""
Configuration for the Formation importer.

Loads credentials and endpoints from the environment (and a .env file, if
present) and keeps the run parameters in one ImportConfig dataclass. CLI flags
in neo4j_import_processor override anything resolved here.

Example:
    config = load_config()
    print(config.search_url)

Author: Formation Graph maintainers
Created: 2025-12-21
Modified: 2026-10-19

References:
    - See .env.example for the supported variables
"""
# Standard library
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Third-party
from dotenv import load_dotenv

# Local
from formation_graph.utils.errors import ConfigurationError

# ============================================================================
# DEFAULTS (run parameters - NOT secrets)
# ============================================================================
DEFAULT_NEO4J_USER = "neo4j"
DEFAULT_NEO4J_URL = "bolt://localhost"
DEFAULT_PAGE_SIZE = 200
DEFAULT_BRAND = "vogue"
DEFAULT_MARKET = "de"
DEFAULT_RETRY_DELAY_MS = 5000
DEFAULT_PACING_DELAY_MS = 10
DEFAULT_HTTP_TIMEOUT = 30.0  # seconds


@dataclass
class ImportConfig:
    """Resolved settings for one import run."""
    neo4j_password: str
    api_endpoint: str
    neo4j_user: str = DEFAULT_NEO4J_USER
    neo4j_url: str = DEFAULT_NEO4J_URL
    neo4j_database: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    brand: str = DEFAULT_BRAND
    market: str = DEFAULT_MARKET
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    pacing_delay_ms: int = DEFAULT_PACING_DELAY_MS
    max_attempts: Optional[int] = None     # None = retry forever
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    skip_malformed: bool = False
    create_indexes: bool = False
    show_progress_bar: bool = False

    @property
    def search_url(self) -> str:
        """First search page URL."""
        return f"{self.api_endpoint.rstrip('/')}/search?size={self.page_size}"

    @property
    def retry_delay(self) -> float:
        return self.retry_delay_ms / 1000.0

    @property
    def pacing_delay(self) -> float:
        return self.pacing_delay_ms / 1000.0


def load_config(environ: Optional[Mapping[str, str]] = None, use_dotenv: bool = True) -> ImportConfig:
    """
    Build an ImportConfig from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)
        use_dotenv: Load a .env file into os.environ first

    Returns:
        ImportConfig with required values set and defaults for the rest

    Raises:
        ConfigurationError: NEO4J_PASSWORD or FORMATION_API_ENDPOINT is not set
    """
    if use_dotenv:
        load_dotenv()
    if environ is None:
        environ = os.environ

    password = environ.get("NEO4J_PASSWORD")
    if not password:
        raise ConfigurationError("NEO4J_PASSWORD environment variable is not set")

    endpoint = environ.get("FORMATION_API_ENDPOINT")
    if not endpoint:
        raise ConfigurationError("FORMATION_API_ENDPOINT environment variable is not set")

    return ImportConfig(
        neo4j_password=password,
        api_endpoint=endpoint,
        neo4j_user=environ.get("NEO4J_USER") or DEFAULT_NEO4J_USER,
        neo4j_url=environ.get("NEO4J_URL") or DEFAULT_NEO4J_URL,
        neo4j_database=environ.get("NEO4J_DATABASE") or None,
    )
