# -*- coding: utf-8 -*-
"""
Core data structures for the Formation importer

Single source of truth for the records the importer passes between layers:
search pages, entities and related-entity stubs. All of them wrap the raw
API JSON and are never mutated after parsing.

Examples:
    page = SearchPage.from_response(url, response_json)
    for source in page.sources:
        entity = Entity.from_source(source)
        print(entity.label, entity.id, entity.title)

Author: Formation Graph maintainers
Created: 2025-12-21
Modified: 2026-10-19
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from formation_graph.utils.errors import EntityShapeError


def capitalize_model_name(model_name: str) -> str:
    """Capitalise the first letter only (`productVariant` -> `ProductVariant`)."""
    return model_name[:1].upper() + model_name[1:]


def _model_name_of(record: Dict[str, Any]) -> Optional[str]:
    meta = record.get("meta")
    if not isinstance(meta, dict):
        return None
    return meta.get("modelName") or None


def _link_uri(record: Dict[str, Any], rel: str) -> Optional[str]:
    links = record.get("_links") or {}
    link = links.get(rel) or {}
    return link.get("uri")


# ============================================================================
# RELATED ENTITIES (relationships resource)
# ============================================================================

@dataclass(frozen=True)
class RelatedEntity:
    """Entry of a relationships resource group. Becomes a stub node."""
    id: Any
    model_name: str
    hed: Optional[str] = None

    @classmethod
    def from_json(cls, record: Dict[str, Any]) -> "RelatedEntity":
        if not isinstance(record, dict):
            raise EntityShapeError("Related entity is not an object", record)
        model_name = _model_name_of(record)
        if record.get("id") is None or not model_name:
            raise EntityShapeError("Related entity is missing id or meta.modelName", record)
        return cls(id=record["id"], model_name=model_name, hed=record.get("hed"))

    @property
    def label(self) -> str:
        return capitalize_model_name(self.model_name)

    @property
    def title(self) -> str:
        return self.hed or f"{self.model_name} {self.id}"


# ============================================================================
# ENTITIES (search hits)
# ============================================================================

@dataclass(frozen=True)
class Entity:
    """
    One search hit (`hits.hits[*]._source`).

    `source` keeps the complete record; node properties are derived from it
    by neo4j_importer.build_node_properties.
    """
    id: Any
    model_name: str
    source: Dict[str, Any] = field(repr=False, compare=False)

    @classmethod
    def from_source(cls, source: Dict[str, Any]) -> "Entity":
        """
        Wrap a raw `_source` record.

        Raises:
            EntityShapeError: record has no id or no meta.modelName
        """
        if not isinstance(source, dict):
            raise EntityShapeError("Search hit is not an object", source)
        model_name = _model_name_of(source)
        if source.get("id") is None or not model_name:
            raise EntityShapeError("Search hit is missing id or meta.modelName", source)
        return cls(id=source["id"], model_name=model_name, source=source)

    @property
    def label(self) -> str:
        """Node label: model name with the first letter capitalised."""
        return capitalize_model_name(self.model_name)

    @property
    def title(self) -> str:
        """`hed`, falling back to `<modelName> <id>`."""
        return self.source.get("hed") or f"{self.model_name} {self.id}"

    @property
    def tags(self) -> List[str]:
        return list(self.source.get("tags") or [])

    @property
    def self_uri(self) -> Optional[str]:
        return _link_uri(self.source, "self")

    @property
    def rels_uri(self) -> Optional[str]:
        return _link_uri(self.source, "rels")


# ============================================================================
# SEARCH PAGES
# ============================================================================

@dataclass
class SearchPage:
    """
    One page of search results.

    `sources` holds the raw `_source` records in API order; they are turned
    into Entity objects one at a time by the sequencer so that a single
    malformed record does not fail the whole page.
    """
    url: str
    total: Optional[int]
    sources: List[Dict[str, Any]]
    next_url: Optional[str] = None

    @classmethod
    def from_response(cls, url: str, response: Dict[str, Any]) -> "SearchPage":
        """
        Parse a search response.

        Missing `hits` raises KeyError/TypeError, which the walker retries like
        any other page failure.
        """
        hits = response["hits"]
        sources = [hit["_source"] for hit in hits["hits"]]
        total = hits.get("total")
        if isinstance(total, dict):  # Elasticsearch 7+ style {"value": n}
            total = total.get("value")
        return cls(
            url=url,
            total=total,
            sources=sources,
            next_url=_link_uri(response, "next"),
        )

    @property
    def has_next(self) -> bool:
        return bool(self.next_url)

    def __len__(self) -> int:
        return len(self.sources)
