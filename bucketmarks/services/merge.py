"""Union-merge of two tree replicas.

A tombstone on either side always survives, so a stale replica cannot
resurrect an item deleted elsewhere. Names of buckets and categories come
from the remote copy.
"""

from __future__ import annotations

from dataclasses import replace

from bucketmarks.entities import Bookmark, Bucket, Category, Tree


def merge_trees(local: Tree, remote: Tree) -> Tree:
    buckets = _merge_by_id(local.buckets, remote.buckets, merge_bucket)
    return Tree(buckets=buckets)


def merge_bucket(local: Bucket, remote: Bucket) -> Bucket:
    return Bucket(
        id=local.id,
        name=remote.name,
        categories=_merge_by_id(local.categories, remote.categories, merge_category),
        deleted_at=local.deleted_at or remote.deleted_at,
    )


def merge_category(local: Category, remote: Category) -> Category:
    return Category(
        id=local.id,
        name=remote.name,
        bookmarks=_merge_by_id(local.bookmarks, remote.bookmarks, merge_bookmark),
        deleted_at=local.deleted_at or remote.deleted_at,
    )


def merge_bookmark(local: Bookmark, remote: Bookmark) -> Bookmark:
    if local.deleted or remote.deleted:
        return replace(remote, deleted_at=local.deleted_at or remote.deleted_at)
    if remote.updated_at > local.updated_at:
        return remote
    return local


def _merge_by_id(local_items, remote_items, merge_pair):
    merged = {}
    for item in local_items:
        merged[item.id] = item
    for remote_item in remote_items:
        local_item = merged.get(remote_item.id)
        if local_item is None:
            merged[remote_item.id] = remote_item
        else:
            merged[remote_item.id] = merge_pair(local_item, remote_item)
    return list(merged.values())
