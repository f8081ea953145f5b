# -*- coding: utf-8 -*-
"""
Tests for strictly sequential, per-entity-retrying graph merges.

Tests cover:
    - Entities merged in API order, one session at a time
    - A failed entity is retried alone, earlier entities are not re-merged
    - Pacing delay after each entity
    - Malformed hits: retried by default, skipped with skip_malformed
"""
import pytest

from conftest import make_source, queries
from formation_graph.graph.entity_sequencer import EntitySequencer
from formation_graph.utils.errors import RetryExhaustedError
from formation_graph.utils.progress import ImportProgress
from formation_graph.utils.retry import RetryPolicy

BRAND = "vogue"
MARKET = "de"


@pytest.fixture
def pacing():
    return []


@pytest.fixture
def sequencer(importer, no_wait_policy, pacing):
    return EntitySequencer(importer, retry_policy=no_wait_policy, pacing_delay=0.01, sleep=pacing.append)


def serve_empty_rels(client, sources):
    for source in sources:
        client.responses[source["_links"]["rels"]["uri"]] = {}


def node_ids(log):
    """Ids passed to node upserts, in order."""
    return [e[2]["id"] for e in log if e[0] == "run" and e[1].startswith("MERGE (n:")]


class TestOrdering:

    def test_entities_merged_in_order(self, sequencer, formation_client, graph_log):
        sources = [make_source(str(i)) for i in range(1, 5)]
        serve_empty_rels(formation_client, sources)

        merged = sequencer.add_entities_to_graph(sources, BRAND, MARKET)

        assert merged == 4
        assert node_ids(graph_log) == ["1", "2", "3", "4"]

    def test_no_overlap_between_entities(self, sequencer, formation_client, graph_log):
        sources = [
            make_source("1", tags=["a"]),
            make_source("2", tags=["b"]),
        ]
        for source in sources:
            formation_client.responses[source["_links"]["rels"]["uri"]] = {
                "hasColor": [{"id": f"c{source['id']}", "meta": {"modelName": "color"}}],
            }

        sequencer.add_entities_to_graph(sources, BRAND, MARKET)

        kinds = []
        for event in graph_log:
            if event[0] in ("open", "close"):
                kinds.append(event[0])
            elif event[1].startswith("MERGE (n:"):
                kinds.append("node")
            elif "TAGGED_WITH" in event[1]:
                kinds.append("tags")
            else:
                kinds.append("rels")
        assert kinds == [
            "open", "node", "tags", "rels", "close",
            "open", "node", "tags", "rels", "close",
        ]

    def test_session_closed_before_next_entity(self, sequencer, formation_client, graph_log):
        sources = [make_source("1"), make_source("2")]
        serve_empty_rels(formation_client, sources)

        sequencer.add_entities_to_graph(sources, BRAND, MARKET)

        opens_and_closes = [e[0] for e in graph_log if e[0] in ("open", "close")]
        assert opens_and_closes == ["open", "close", "open", "close"]


class TestRetryIsolation:

    def test_failed_entity_retried_alone(self, sequencer, importer, formation_client, graph_log, sleeps):
        sources = [make_source(str(i)) for i in range(1, 4)]
        serve_empty_rels(formation_client, sources)

        real_upsert = importer.upsert_node
        attempts = {"2": 0}

        def flaky_upsert(session, entity, brand, market):
            if entity.id == "2" and attempts["2"] == 0:
                attempts["2"] += 1
                raise RuntimeError("deadlock")
            return real_upsert(session, entity, brand, market)

        importer.upsert_node = flaky_upsert

        sequencer.add_entities_to_graph(sources, BRAND, MARKET)

        assert node_ids(graph_log) == ["1", "2", "3"]
        rels_calls = [c for c in formation_client.calls if c.endswith("/rels")]
        assert rels_calls == [s["_links"]["rels"]["uri"] for s in sources]
        assert sleeps == [5.0]

    def test_session_released_on_failure(self, sequencer, importer, formation_client, graph_log):
        source = make_source("1")
        serve_empty_rels(formation_client, [source])
        calls = {"n": 0}
        real_upsert = importer.upsert_node

        def flaky_upsert(session, entity, brand, market):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("boom")
            return real_upsert(session, entity, brand, market)

        importer.upsert_node = flaky_upsert

        sequencer.add_entities_to_graph([source], BRAND, MARKET)

        opens_and_closes = [e[0] for e in graph_log if e[0] in ("open", "close")]
        assert opens_and_closes == ["open", "close", "open", "close"]

    def test_bounded_policy_gives_up(self, importer, formation_client, sleeps):
        source = make_source("1")
        serve_empty_rels(formation_client, [source])

        def always_fails(*args):
            raise RuntimeError("down")

        importer.upsert_node = always_fails
        sequencer = EntitySequencer(
            importer,
            retry_policy=RetryPolicy(delay=1.0, max_attempts=3, sleep=sleeps.append),
            pacing_delay=0,
        )

        with pytest.raises(RetryExhaustedError):
            sequencer.add_entities_to_graph([source], BRAND, MARKET)
        assert sleeps == [1.0, 1.0]

    def test_exhausted_relationship_step_not_retried_again(self, importer, formation_client, graph_log, sleeps):
        source = make_source("1")
        rels_uri = source["_links"]["rels"]["uri"]
        formation_client.failures[rels_uri] = 100
        importer.retry_policy = RetryPolicy(delay=1.0, max_attempts=3, sleep=sleeps.append)
        sequencer = EntitySequencer(
            importer,
            retry_policy=RetryPolicy(delay=1.0, max_attempts=3, sleep=sleeps.append),
            pacing_delay=0,
        )

        with pytest.raises(RetryExhaustedError) as exc_info:
            sequencer.add_entities_to_graph([source], BRAND, MARKET)

        assert formation_client.calls.count(rels_uri) == 3
        assert node_ids(graph_log) == ["1"]
        assert "Adding rels of Product 1" in str(exc_info.value)


class TestPacingAndProgress:

    def test_pacing_after_each_entity(self, sequencer, formation_client, pacing):
        sources = [make_source("1"), make_source("2")]
        serve_empty_rels(formation_client, sources)

        sequencer.add_entities_to_graph(sources, BRAND, MARKET)

        assert pacing == [0.01, 0.01]

    def test_progress_advanced_once_per_entity(self, sequencer, importer, formation_client):
        sources = [make_source("1"), make_source("2")]
        serve_empty_rels(formation_client, sources)
        formation_client.failures[sources[0]["_links"]["rels"]["uri"]] = 1
        progress = ImportProgress()
        progress.set_total(2)

        sequencer.add_entities_to_graph(sources, BRAND, MARKET, progress)

        assert progress.processed == 2
        assert progress.percent == 100

    def test_empty_batch(self, sequencer, graph_log):
        assert sequencer.add_entities_to_graph([], BRAND, MARKET) == 0
        assert graph_log == []


class TestMalformedEntities:

    def test_skipped_when_enabled(self, importer, formation_client, graph_log, sleeps, caplog):
        good = make_source("1")
        serve_empty_rels(formation_client, [good])
        sequencer = EntitySequencer(
            importer,
            retry_policy=RetryPolicy(delay=5.0, sleep=sleeps.append),
            pacing_delay=0,
            skip_malformed=True,
        )
        progress = ImportProgress()

        merged = sequencer.add_entities_to_graph([{"hed": "no id"}, good], BRAND, MARKET, progress)

        assert merged == 1
        assert progress.skipped == 1
        assert node_ids(graph_log) == ["1"]
        assert sleeps == []
        assert "'hed': 'no id'" in caplog.text

    def test_retried_by_default(self, importer, sleeps):
        sequencer = EntitySequencer(
            importer,
            retry_policy=RetryPolicy(delay=5.0, max_attempts=2, sleep=sleeps.append),
            pacing_delay=0,
        )
        with pytest.raises(RetryExhaustedError):
            sequencer.add_entities_to_graph([{"hed": "no id"}], BRAND, MARKET)
        assert sleeps == [5.0]

    def test_malformed_hit_opens_no_session(self, importer, graph_log):
        sequencer = EntitySequencer(importer, pacing_delay=0, skip_malformed=True)
        sequencer.add_entities_to_graph([{"meta": {}}], BRAND, MARKET)
        assert queries(graph_log) == []
        assert graph_log == []
