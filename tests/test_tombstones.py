from dataclasses import replace
from datetime import datetime, timedelta, timezone

from conftest import bookmark, tree_with

from bucketmarks.entities import Bucket, Category, Tree
from bucketmarks.services.tombstones import count_tombstones, sweep


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
RETENTION = timedelta(days=30)


def test_sweep_drops_tombstone_older_than_retention():
    tree = tree_with(
        bookmark("old", deleted_at=NOW - timedelta(days=31)),
        bookmark("live"),
    )

    swept = sweep(tree, RETENTION, NOW)

    assert [bm.id for bm in swept.buckets[0].categories[0].bookmarks] == ["live"]


def test_sweep_keeps_recent_tombstone_unchanged():
    recent = bookmark("recent", deleted_at=NOW - timedelta(days=29))
    tree = tree_with(recent)

    swept = sweep(tree, RETENTION, NOW)

    assert swept.buckets[0].categories[0].bookmarks == [recent]


def test_sweep_judges_each_level_by_its_own_tombstone():
    expired_child = bookmark("gone", deleted_at=NOW - timedelta(days=40))
    kept_child = bookmark("kept")
    tree = tree_with(
        expired_child, kept_child, deleted_at=NOW - timedelta(days=2)
    )
    tree.buckets.append(
        Bucket(
            id="b-old",
            name="Old",
            categories=[Category(id="c-live", name="Live")],
            deleted_at=NOW - timedelta(days=60),
        )
    )
    tree.buckets[0].categories.append(
        Category(id="c-old", name="Old", deleted_at=NOW - timedelta(days=45))
    )

    swept = sweep(tree, RETENTION, NOW)

    assert [b.id for b in swept.buckets] == ["b1"]
    assert swept.buckets[0].deleted
    assert [c.id for c in swept.buckets[0].categories] == ["c1"]
    assert swept.buckets[0].categories[0].bookmarks == [kept_child]


def test_sweep_without_tombstones_is_identity():
    tree = tree_with(bookmark("a"), bookmark("b"))

    assert sweep(tree, RETENTION, NOW) == tree


def test_sweep_respects_custom_retention():
    tree = tree_with(bookmark("a", deleted_at=NOW - timedelta(days=3)))

    assert sweep(tree, timedelta(days=7), NOW) == tree
    assert sweep(tree, timedelta(days=1), NOW).buckets[0].categories[0].bookmarks == []


def test_count_tombstones_counts_every_level():
    tree = tree_with(bookmark("a", deleted_at=NOW), bookmark("b"), deleted_at=NOW)
    tree.buckets[0].categories[0] = replace(
        tree.buckets[0].categories[0], deleted_at=NOW
    )

    assert count_tombstones(tree) == 3
    assert count_tombstones(Tree()) == 0


def test_sweep_accepts_naive_now_as_utc():
    tree = tree_with(
        bookmark("old", deleted_at=NOW - timedelta(days=31)), bookmark("live")
    )

    swept = sweep(tree, RETENTION, NOW.replace(tzinfo=None))

    assert [bm.id for bm in swept.buckets[0].categories[0].bookmarks] == ["live"]
