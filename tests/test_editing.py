import pytest
from conftest import bookmark, tree_with, ts

from bucketmarks.entities import Tree
from bucketmarks.services import editing
from bucketmarks.services.editing import EntityNotFoundError


def _ids(tree: Tree):
    return [bm.id for bm in tree.buckets[0].categories[0].bookmarks]


def test_add_bucket_category_and_bookmark():
    tree, bucket = editing.add_bucket(Tree(), "Work")
    tree, category = editing.add_category(tree, bucket.id, "Dev")
    tree, item = editing.add_bookmark(
        tree,
        bucket.id,
        category.id,
        now=ts(3),
        title="Python",
        url="https://python.org",
        tags="docs, lang, docs",
    )

    assert tree.buckets[0].name == "Work"
    assert tree.buckets[0].categories[0].name == "Dev"
    assert tree.buckets[0].categories[0].bookmarks == [item]
    assert item.tags == ["docs", "lang"]
    assert item.created_at == item.updated_at == ts(3)
    assert item.deleted is False


def test_generated_ids_are_unique():
    ids = {editing.new_bucket("x").id for _ in range(50)}

    assert len(ids) == 50


def test_update_bookmark_bumps_updated_at_and_keeps_created_at():
    tree = tree_with(bookmark("a", day=2))

    tree = editing.update_bookmark(
        tree, "b1", "c1", "a", now=ts(9), title="Renamed", tags=["new"]
    )

    [item] = tree.buckets[0].categories[0].bookmarks
    assert item.title == "Renamed"
    assert item.tags == ["new"]
    assert item.created_at == ts(1)
    assert item.updated_at == ts(9)


def test_update_bookmark_rejects_unknown_fields():
    tree = tree_with(bookmark("a"))

    with pytest.raises(TypeError):
        editing.update_bookmark(tree, "b1", "c1", "a", id="other")


def test_soft_deletes_set_tombstones():
    tree = tree_with(bookmark("a"), bookmark("b"))

    tree = editing.delete_bookmark(tree, "b1", "c1", "a", now=ts(5))
    tree = editing.delete_category(tree, "b1", "c1", now=ts(6))
    tree = editing.delete_bucket(tree, "b1", now=ts(7))

    bucket = tree.buckets[0]
    first, second = bucket.categories[0].bookmarks
    assert first.deleted_at == ts(5)
    assert first.updated_at == ts(5)
    assert second.deleted is False
    assert bucket.categories[0].deleted_at == ts(6)
    assert bucket.deleted_at == ts(7)


def test_renames_do_not_change_identity():
    tree = tree_with(bookmark("a"))

    tree = editing.rename_bucket(tree, "b1", "Home")
    tree = editing.rename_category(tree, "b1", "c1", "Reading")

    assert tree.buckets[0].id == "b1"
    assert tree.buckets[0].name == "Home"
    assert tree.buckets[0].categories[0].name == "Reading"


def test_edits_do_not_mutate_the_input_tree():
    tree = tree_with(bookmark("a"))
    before = tree.as_dict()

    editing.delete_bookmark(tree, "b1", "c1", "a")
    editing.rename_bucket(tree, "b1", "Other")

    assert tree.as_dict() == before


def test_move_bookmark_onto_target():
    tree = tree_with(bookmark("a"), bookmark("b"), bookmark("c"), bookmark("d"))

    assert _ids(editing.move_bookmark(tree, "b1", "c1", "a", "c")) == [
        "b",
        "c",
        "a",
        "d",
    ]
    assert _ids(editing.move_bookmark(tree, "b1", "c1", "d", "b")) == [
        "a",
        "d",
        "b",
        "c",
    ]
    assert editing.move_bookmark(tree, "b1", "c1", "a", "a") is tree


def test_move_bookmark_to_position_adjusts_for_removed_item():
    tree = tree_with(bookmark("a"), bookmark("b"), bookmark("c"))

    assert _ids(editing.move_bookmark_to_position(tree, "b1", "c1", "a", 2)) == [
        "b",
        "a",
        "c",
    ]
    assert _ids(editing.move_bookmark_to_position(tree, "b1", "c1", "a", 3)) == [
        "b",
        "c",
        "a",
    ]
    assert _ids(editing.move_bookmark_to_position(tree, "b1", "c1", "c", 0)) == [
        "c",
        "a",
        "b",
    ]


def test_unknown_ids_raise_not_found():
    tree = tree_with(bookmark("a"))

    with pytest.raises(EntityNotFoundError):
        editing.rename_bucket(tree, "missing", "x")
    with pytest.raises(EntityNotFoundError):
        editing.add_category(tree, "missing", "x")
    with pytest.raises(EntityNotFoundError):
        editing.delete_bookmark(tree, "b1", "c1", "missing")
