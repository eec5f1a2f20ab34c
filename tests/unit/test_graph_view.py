from datetime import datetime, timedelta, timezone

import pytest

from conceptnotes.models.workspace import Scope
from conceptnotes.services.codec import concept_uri, tag_uri
from conceptnotes.services.concepts import build_concept
from conceptnotes.services.graph_view import CombinedGraphView

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


async def index(stores, workspace, scope, name, refs=(), tags=(), now=NOW):
    store = stores[scope]
    await store.ensure_loaded()
    concept = build_concept(name, workspace, scope, ref_names=refs, tag_names=tags, now=now)
    await store.upsert(concept)
    return concept


@pytest.fixture
def graph(stores) -> CombinedGraphView:
    return CombinedGraphView(stores[Scope.PUBLIC], stores[Scope.PRIVATE])


@pytest.mark.asyncio
async def test_backlinks_span_both_scopes(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PUBLIC, "A", refs=["Target"])
    await index(stores, workspace, Scope.PRIVATE, "B", refs=["Target", "Other"])
    await index(stores, workspace, Scope.PRIVATE, "C", refs=["Other"])

    backlinks = graph.backlinks_of(concept_uri(workspace, "Target"))

    assert sorted(concept.name for concept in backlinks) == ["A", "B"]
    summaries = graph.backlink_summaries("Target")
    assert {(item.name, item.scope) for item in summaries} == {("A", "public"), ("B", "private")}


@pytest.mark.asyncio
async def test_unloaded_index_contributes_nothing(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PRIVATE, "B", refs=["Target"])

    assert [concept.name for concept in graph.backlinks_of(concept_uri(workspace, "Target"))] == ["B"]
    assert not stores[Scope.PUBLIC].loaded


@pytest.mark.asyncio
async def test_locate_prefers_most_recent_duplicate(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PRIVATE, "Idea", now=NOW)
    await index(stores, workspace, Scope.PUBLIC, "Idea", now=NOW + timedelta(seconds=1))

    scope, concept = graph.locate("Idea")

    assert scope is Scope.PUBLIC
    assert concept.stored_at.startswith(workspace.public_storage_root)
    assert graph.duplicated() == [concept_uri(workspace, "Idea")]
    assert graph.locate("Missing") is None


@pytest.mark.asyncio
async def test_links_of_marks_unsaved_targets(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PRIVATE, "Idea", refs=["Saved", "Unsaved"])
    await index(stores, workspace, Scope.PUBLIC, "Saved")

    links = {item.name: item.scope for item in graph.links_of("Idea")}

    assert links == {"Saved": "public", "Unsaved": "unsaved"}
    assert graph.links_of("Missing") == []


@pytest.mark.asyncio
async def test_graph_data_counts_inbound_links(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PUBLIC, "A", refs=["Hub"])
    await index(stores, workspace, Scope.PRIVATE, "B", refs=["Hub"])
    await index(stores, workspace, Scope.PRIVATE, "Hub")

    data = graph.graph_data()

    nodes = {node.label: node for node in data.nodes}
    assert nodes["Hub"].val == 3
    assert nodes["A"].val == 1
    assert nodes["A"].group == "public"
    assert len(data.links) == 2


@pytest.mark.asyncio
async def test_tag_counts(graph, stores, workspace) -> None:
    await index(stores, workspace, Scope.PUBLIC, "A", tags=["draft", "idea"])
    await index(stores, workspace, Scope.PRIVATE, "B", tags=["draft"])

    counts = graph.tag_counts()

    assert [(item.name, item.count) for item in counts] == [("draft", 2), ("idea", 1)]
    assert counts[0].tag_uri == tag_uri(workspace, "draft")
