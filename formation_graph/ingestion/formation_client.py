# -*- coding: utf-8 -*-
"""
HTTP JSON helper for the Formation Content API.

Thin wrapper over a requests.Session: one method, one URL, optional JSON body,
parsed JSON back. Non-2xx responses and bodies that are not JSON raise, and the
caller decides whether to retry. No retries happen here.

Example:
    client = FormationClient(timeout=30)
    page = client.get_json("https://formation.example.com/search?size=200")
    client.close()

Author: Formation Graph maintainers
Created: 2025-12-21
Modified: 2026-10-19
"""

# Standard library
import json
from typing import Any, Optional

# Third-party
import requests

# Local
from formation_graph.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class FormationClient:
    """Requests-based JSON client shared by the page walker and the importer."""

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        """
        Args:
            timeout: Per-request timeout in seconds
            session: Pre-built session (tests, custom adapters)
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def request_json(self, method: str, url: str, data: Any = None) -> Any:
        """
        Issue a request and return the parsed JSON body.

        Args:
            method: HTTP method ("GET", "POST", ...)
            url: Absolute URL
            data: Optional body; strings are sent as-is, anything else is JSON-encoded

        Raises:
            ValueError: url is empty or not a string, or the body is not JSON
            requests.RequestException: network failure or non-2xx status
        """
        if not isinstance(url, str) or not url:
            raise ValueError("url must be a non-empty string")

        body = None
        if data is not None:
            body = data if isinstance(data, str) else json.dumps(data)

        logger.debug(f"{method} {url}")
        response = self.session.request(method, url, data=body, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_json(self, url: str) -> Any:
        return self.request_json("GET", url)

    def close(self) -> None:
        self.session.close()
