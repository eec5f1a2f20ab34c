"""Read-time union of a workspace's public and private concept indices."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterator, List, Optional, Tuple

from ..models.concept import Concept, ConceptSummary
from ..models.graph import GraphData, GraphLink, GraphNode
from ..models.index import TagCount
from ..models.workspace import Scope, Workspace
from .codec import InvalidName, concept_name_from_uri, concept_uri, tag_name_from_uri
from .index_store import ConceptIndexStore


class CombinedGraphView:
    """
    Backlink and link queries over both scopes of a workspace.

    There is no reverse adjacency structure: every backlink query is a full
    scan over the concepts of both indices. An index that has not been loaded
    yet contributes nothing.
    """

    def __init__(self, public: ConceptIndexStore, private: ConceptIndexStore) -> None:
        if public.workspace != private.workspace:
            raise ValueError("Both indices must belong to the same workspace")
        self.workspace: Workspace = public.workspace
        self._stores: Dict[Scope, ConceptIndexStore] = {Scope.PUBLIC: public, Scope.PRIVATE: private}

    def iter_concepts(self) -> Iterator[Tuple[Scope, Concept]]:
        for scope, store in self._stores.items():
            snapshot = store.snapshot
            if snapshot is None:
                continue
            for concept in snapshot.all():
                yield scope, concept

    def backlinks_of(self, uri: str) -> List[Concept]:
        """Concepts whose ``refs`` contain ``uri``, across both scopes."""
        return [concept for _, concept in self.iter_concepts() if uri in concept.refs]

    def locate(self, name: str) -> Optional[Tuple[Scope, Concept]]:
        """
        Find the record of ``name``.

        When a concept is indexed in both scopes (an interrupted migration),
        the most recently modified record wins.
        """
        target = concept_uri(self.workspace, name)
        matches = [(scope, concept) for scope, concept in self.iter_concepts() if concept.uri == target]
        if not matches:
            return None
        return max(matches, key=lambda match: match[1].modified)

    def links_of(self, name: str) -> List[ConceptSummary]:
        """Concepts referenced by ``name`` (its forward links)."""
        located = self.locate(name)
        if located is None:
            return []
        _, concept = located
        return [self._summary(uri) for uri in sorted(concept.refs)]

    def referencing(self, uri: str) -> List[ConceptSummary]:
        """Same scan as :meth:`backlinks_of`, labelled with each record's scope."""
        return [
            ConceptSummary(name=concept.name, uri=concept.uri, scope=scope.value)
            for scope, concept in self.iter_concepts()
            if uri in concept.refs
        ]

    def backlink_summaries(self, name: str) -> List[ConceptSummary]:
        return self.referencing(concept_uri(self.workspace, name))

    def duplicated(self) -> List[str]:
        """Concept URIs present in both indices."""
        counts = Counter(concept.uri for _, concept in self.iter_concepts())
        return sorted(uri for uri, count in counts.items() if count > 1)

    def tag_counts(self) -> List[TagCount]:
        counts: Counter = Counter()
        for _, concept in self.iter_concepts():
            counts.update(concept.tags)
        results: List[TagCount] = []
        for uri, count in counts.items():
            try:
                name = tag_name_from_uri(self.workspace, uri)
            except InvalidName:
                name = uri
            results.append(TagCount(tag_uri=uri, name=name, count=count))
        return sorted(results, key=lambda item: (-item.count, item.name))

    def graph_data(self) -> GraphData:
        """Nodes for every indexed concept, directed links for every reference."""
        nodes: Dict[str, GraphNode] = {}
        links: List[GraphLink] = []
        seen = set()
        for scope, concept in self.iter_concepts():
            nodes[concept.uri] = GraphNode(id=concept.uri, label=concept.name, group=scope.value)
            for ref in sorted(concept.refs):
                if (concept.uri, ref) not in seen:
                    seen.add((concept.uri, ref))
                    links.append(GraphLink(source=concept.uri, target=ref))

        # Referenced concepts without a note of their own still appear as nodes.
        for link in links:
            if link.target not in nodes:
                nodes[link.target] = GraphNode(
                    id=link.target, label=self._name_or_uri(link.target), group="unsaved"
                )
        inbound = Counter(link.target for link in links)
        for uri, node in nodes.items():
            node.val = 1 + inbound.get(uri, 0)
        return GraphData(nodes=list(nodes.values()), links=links)

    def _name_or_uri(self, uri: str) -> str:
        try:
            return concept_name_from_uri(self.workspace, uri)
        except InvalidName:
            return uri

    def _summary(self, uri: str) -> ConceptSummary:
        scope = next(
            (scope.value for scope, concept in self.iter_concepts() if concept.uri == uri),
            "unsaved",
        )
        return ConceptSummary(name=self._name_or_uri(uri), uri=uri, scope=scope)


__all__ = ["CombinedGraphView"]
