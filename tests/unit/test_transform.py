"""Tests for whole-subtree transforms."""

from hotel_cms.core.tree.navigation import find_node, iter_nodes
from hotel_cms.core.tree.transform import (
    filter_tree,
    node_matches,
    regenerate_ids,
    strip_values,
    tree_from_template,
)
from hotel_cms.models.node import ContentNode
from hotel_cms.models.serialization import node_to_dict


def _without_ids(node: ContentNode) -> dict:
    data = node_to_dict(node)

    def strip(d: dict) -> dict:
        d.pop("id", None)
        for child in d.get("children", []):
            strip(child)
        return d

    return strip(data)


def test_regenerate_ids_shares_no_id_with_source(hotel: ContentNode) -> None:
    clone = regenerate_ids(hotel)
    old_ids = {n.id for n in iter_nodes(hotel)}
    new_ids = [n.id for n in iter_nodes(clone)]
    assert not old_ids & set(new_ids)
    assert len(new_ids) == len(set(new_ids))


def test_regenerate_ids_keeps_shape_and_content(hotel: ContentNode) -> None:
    clone = regenerate_ids(hotel)
    assert _without_ids(clone) == _without_ids(hotel)


def test_regenerate_ids_prefix_follows_kind(hotel: ContentNode) -> None:
    clone = regenerate_ids(hotel)
    assert clone.children[0].id.startswith("cat-")


def test_strip_values_clears_values_keeps_structure(hotel: ContentNode) -> None:
    stripped = strip_values(hotel)
    g3 = find_node(stripped, "g3")
    assert g3 is not None
    assert g3.value is None
    assert g3.name == "Parking"
    assert g3.attributes is not None
    assert g3.attributes[0].key == "Spaces"
    assert g3.attributes[0].value == ""
    assert g3.extra["tags"] == ("outdoor", "free")

    m1 = find_node(stripped, "m1")
    assert m1 is not None
    assert "price" not in m1.extra
    assert "calories" not in m1.extra
    assert m1.extra["isPaid"] is True

    q1 = find_node(stripped, "q1")
    assert q1 is not None
    assert "answer" not in q1.extra
    assert q1.extra["question"] == "Are pets allowed?"

    assert [n.id for n in iter_nodes(stripped)] == [n.id for n in iter_nodes(hotel)]


def test_filter_tree_keeps_ancestors_of_matches(hotel: ContentNode) -> None:
    result = filter_tree(hotel, "omelette")
    assert result is not None
    assert [n.id for n in iter_nodes(result)] == ["root", "dining", "menu", "m1"]


def test_filter_tree_is_case_insensitive_over_values_attributes_and_tags(
    hotel: ContentNode,
) -> None:
    by_value = filter_tree(hotel, "FREE")
    assert by_value is not None and find_node(by_value, "g3") is not None
    by_attr = filter_tree(hotel, "spaces")
    assert by_attr is not None and find_node(by_attr, "g3") is not None
    by_tag = filter_tree(hotel, "outdoor")
    assert by_tag is not None and find_node(by_tag, "g3") is not None


def test_filter_tree_matching_container_keeps_only_matching_children(hotel: ContentNode) -> None:
    result = filter_tree(hotel, "dining")
    assert result is not None
    dining = find_node(result, "dining")
    assert dining is not None
    assert dining.children == ()


def test_filter_tree_empty_query_returns_root(hotel: ContentNode) -> None:
    assert filter_tree(hotel, "") is hotel
    assert filter_tree(hotel, "   ") is hotel


def test_filter_tree_no_match_returns_none(hotel: ContentNode) -> None:
    assert filter_tree(hotel, "zeppelin") is None


def test_node_matches_ignores_non_string_tags() -> None:
    node = ContentNode(id="a", extra={"tags": [1, "Spa"]})
    assert node_matches(node, "spa")
    assert not node_matches(node, "1")


def test_tree_from_template_renames_and_regenerates(hotel: ContentNode) -> None:
    tree = tree_from_template(hotel, "Beach Resort")
    assert tree.name == "Beach Resort"
    assert tree.id != hotel.id
    assert find_node(tree, "g1") is None
    assert any(n.value == "Grand Hotel" for n in iter_nodes(tree))


def test_tree_from_template_structure_only(hotel: ContentNode) -> None:
    tree = tree_from_template(hotel, "Beach Resort", keep_values=False)
    assert all(not n.value for n in iter_nodes(tree))
    assert tree.name == "Beach Resort"


def test_transforms_leave_input_untouched(hotel: ContentNode) -> None:
    before = node_to_dict(hotel)
    regenerate_ids(hotel)
    strip_values(hotel)
    filter_tree(hotel, "wifi")
    assert node_to_dict(hotel) == before
