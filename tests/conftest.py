# -*- coding: utf-8 -*-
"""
Shared fixtures: in-memory stand-ins for the Neo4j driver and the Formation API.

FakeSession / FakeTx record every query into one event log so tests can assert
on ordering across entities and sessions. FakeFormationClient serves canned
JSON per URL and can be told to fail a URL a number of times first.
"""
from collections import defaultdict
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest
import requests

from formation_graph.graph.neo4j_importer import Neo4jImporter
from formation_graph.utils.retry import RetryPolicy


# =============================================================================
# NEO4J FAKES
# =============================================================================

class FakeTx:
    """Records tx.run() calls."""

    def __init__(self, log: List):
        self.log = log

    def run(self, query: str, **params):
        self.log.append(("run", query, params))
        return MagicMock()


class FakeSession:
    """Context-manager session whose execute_write calls the tx function directly."""

    def __init__(self, log: List, fail_on=None):
        self.log = log
        self.fail_on = fail_on
        self.closed = False

    def __enter__(self):
        self.log.append(("open",))
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def close(self):
        self.closed = True
        self.log.append(("close",))

    def execute_write(self, fn, *args, **kwargs):
        if self.fail_on is not None:
            self.fail_on(fn, *args)
        return fn(FakeTx(self.log), *args, **kwargs)

    def run(self, query: str, **params):
        self.log.append(("run", query, params))
        return MagicMock()


class FakeFormationClient:
    """
    Serves canned JSON by URL.

    failures[url] = n makes the first n GETs of that url raise ConnectionError.
    """

    def __init__(self, responses: Dict[str, Any] = None):
        self.responses = dict(responses or {})
        self.failures = defaultdict(int)
        self.calls: List[str] = []

    def get_json(self, url: str) -> Any:
        self.calls.append(url)
        if self.failures[url] > 0:
            self.failures[url] -= 1
            raise requests.ConnectionError(f"boom: {url}")
        if url not in self.responses:
            raise requests.HTTPError(f"404: {url}")
        return self.responses[url]

    def close(self):
        pass


# =============================================================================
# HELPERS
# =============================================================================

def make_source(entity_id, model_name="product", hed=None, tags=None, rels_uri=None, **fields) -> Dict:
    """Search hit `_source` as returned by the Formation API."""
    source = {
        "id": entity_id,
        "meta": {"modelName": model_name},
        "_links": {
            "self": {"uri": f"https://api.test/{model_name}/{entity_id}"},
            "rels": {"uri": rels_uri or f"https://api.test/{model_name}/{entity_id}/rels"},
        },
    }
    if hed is not None:
        source["hed"] = hed
    if tags is not None:
        source["tags"] = tags
    source.update(fields)
    return source


def make_page(sources: List[Dict], total: int, next_uri: str = None) -> Dict:
    """Search response body."""
    page = {
        "hits": {"total": total, "hits": [{"_source": s} for s in sources]},
        "_links": {},
    }
    if next_uri:
        page["_links"]["next"] = {"uri": next_uri}
    return page


def queries(log: List) -> List[str]:
    return [event[1] for event in log if event[0] == "run"]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def sleeps():
    """Collects every delay instead of sleeping."""
    return []


@pytest.fixture
def no_wait_policy(sleeps):
    """Forever-retrying policy that records delays instead of sleeping."""
    return RetryPolicy(delay=5.0, sleep=sleeps.append)


@pytest.fixture
def graph_log():
    return []


@pytest.fixture
def formation_client():
    return FakeFormationClient()


@pytest.fixture
def importer(graph_log, formation_client, no_wait_policy):
    """Neo4jImporter whose driver hands out FakeSessions sharing graph_log."""
    with patch("formation_graph.graph.neo4j_importer.GraphDatabase") as graph_database:
        driver = MagicMock()
        driver.session.side_effect = lambda **kwargs: FakeSession(graph_log)
        graph_database.driver.return_value = driver
        imp = Neo4jImporter(
            "bolt://localhost", "neo4j", "secret",
            client=formation_client,
            retry_policy=no_wait_policy,
        )
        yield imp
