from conceptnotes.services.extractor import (
    NodeKind,
    classify_node,
    extract_references,
    iter_reference_nodes,
)


def concept(name: str) -> dict:
    return {"type": "concept", "name": name, "children": [{"text": ""}]}


def tag(name: str) -> dict:
    return {"type": "tag", "name": name, "children": [{"text": ""}]}


def paragraph(*children) -> dict:
    return {"type": "paragraph", "children": list(children)}


def test_extract_references_walks_nested_nodes() -> None:
    document = [
        paragraph({"text": "see "}, concept("Other Idea")),
        {
            "type": "bulleted-list",
            "children": [
                {"type": "list-item", "children": [paragraph(tag("draft"), concept("Third"))]},
            ],
        },
    ]

    refs = extract_references(document)

    assert refs.concepts == ("Other Idea", "Third")
    assert refs.tags == ("draft",)


def test_extract_references_deduplicates_in_first_seen_order() -> None:
    document = [
        paragraph(concept("B"), concept("A")),
        paragraph(concept("B"), tag("x"), tag("x")),
    ]

    refs = extract_references(document)

    assert refs.concepts == ("B", "A")
    assert refs.tags == ("x",)


def test_extract_references_ignores_other_node_types() -> None:
    document = [
        paragraph({"type": "link", "url": "https://example.org", "children": [{"text": "x"}]}),
        {"type": "image", "url": "https://example.org/a.png"},
        "not a node",
        42,
    ]

    refs = extract_references(document)

    assert refs.concepts == ()
    assert refs.tags == ()


def test_extract_references_handles_empty_documents() -> None:
    assert extract_references([]) == extract_references(None)
    assert extract_references([]).concepts == ()


def test_reference_names_are_trimmed_and_blank_names_skipped() -> None:
    document = [paragraph(concept("  Spaced  "), concept("   "), {"type": "concept"})]

    assert list(iter_reference_nodes(document)) == [(NodeKind.CONCEPT_REFERENCE, "Spaced")]


def test_names_differing_only_by_surrounding_whitespace_collapse() -> None:
    refs = extract_references([paragraph(concept(" A"), concept("A"), tag("t "), tag("t"))])

    assert refs.concepts == ("A",)
    assert refs.tags == ("t",)


def test_reference_node_children_are_not_searched() -> None:
    nested = {"type": "concept", "name": "Outer", "children": [concept("Inner")]}

    refs = extract_references([paragraph(nested)])

    assert refs.concepts == ("Outer",)


def test_classify_node() -> None:
    assert classify_node(concept("A")) is NodeKind.CONCEPT_REFERENCE
    assert classify_node(tag("a")) is NodeKind.TAG_REFERENCE
    assert classify_node({"text": "plain"}) is NodeKind.OTHER
    assert classify_node(None) is NodeKind.OTHER
