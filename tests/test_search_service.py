from dataclasses import replace

from conftest import bookmark, tree_with, ts

from bucketmarks.entities import Bucket, Category
from bucketmarks.services.search import collect_tags, search_tree


def _titles(results):
    return [row["bookmark"].title for row in results]


def test_search_filters_irrelevant_items():
    tree = tree_with(
        bookmark("a", title="Python docs"),
        bookmark("b", title="Gardening tips"),
        bookmark("c", title="Travel planning"),
    )

    results = search_tree(tree, "python")

    assert _titles(results) == ["Python docs"]


def test_search_keeps_high_confidence_fuzzy_matches():
    tree = tree_with(
        bookmark("a", title="Python documentation"),
        bookmark("b", title="Rust cookbook"),
    )

    results = search_tree(tree, "pythn")

    assert results
    assert results[0]["bookmark"].title == "Python documentation"


def test_search_matches_notes_and_description_text():
    tree = tree_with(
        bookmark("a", title="Weekly roundup", notes="Release notes for flask 3.1"),
        bookmark("b", title="Digest", description="All about sqlalchemy sessions"),
        bookmark("c", title="Other"),
    )

    assert _titles(search_tree(tree, "flask 3.1")) == ["Weekly roundup"]
    assert _titles(search_tree(tree, "sqlalchemy")) == ["Digest"]


def test_search_skips_deleted_entities():
    tree = tree_with(
        bookmark("a", title="Python live"),
        bookmark("b", title="Python gone", deleted_at=ts(2)),
    )
    tree.buckets.append(
        Bucket(
            id="b2",
            name="Deleted",
            categories=[
                Category(id="c2", name="x", bookmarks=[bookmark("c", title="Python")])
            ],
            deleted_at=ts(3),
        )
    )

    assert _titles(search_tree(tree, "python")) == ["Python live"]


def test_empty_query_lists_filtered_bookmarks_in_tree_order():
    tree = tree_with(
        bookmark("a", title="Zeta", tags=["read"]),
        bookmark("b", title="Alpha", tags=["watch"]),
        bookmark("c", title="Mid", tags=["read"]),
    )
    other = Category(id="c2", name="Other", bookmarks=[bookmark("d", tags=["read"])])
    tree.buckets[0] = replace(
        tree.buckets[0], categories=[*tree.buckets[0].categories, other]
    )

    assert _titles(search_tree(tree, "", tag="read", category_id="c1")) == [
        "Zeta",
        "Mid",
    ]
    assert len(search_tree(tree, "  ", bucket_id="b1")) == 4
    assert search_tree(tree, "", bucket_id="missing") == []


def test_collect_tags_ignores_deleted_bookmarks():
    tree = tree_with(
        bookmark("a", tags=["python", "docs"]),
        bookmark("b", tags=["secret"], deleted_at=ts(2)),
        bookmark("c", tags=["docs"]),
    )

    assert collect_tags(tree) == ["docs", "python"]
