from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

from bucketmarks.entities import Tree
from bucketmarks.services.common import as_utc, utcnow


DEFAULT_RETENTION = timedelta(days=30)


def is_expired(entity, retention: timedelta, now: datetime) -> bool:
    if not entity.deleted:
        return False
    return now - entity.deleted_at > retention


def sweep(
    tree: Tree,
    retention: timedelta = DEFAULT_RETENTION,
    now: datetime | None = None,
) -> Tree:
    # each level is judged by its own tombstone only
    now = as_utc(now) if now is not None else utcnow()
    buckets = []
    for bucket in tree.buckets:
        if is_expired(bucket, retention, now):
            continue
        categories = []
        for category in bucket.categories:
            if is_expired(category, retention, now):
                continue
            bookmarks = [
                bookmark
                for bookmark in category.bookmarks
                if not is_expired(bookmark, retention, now)
            ]
            categories.append(replace(category, bookmarks=bookmarks))
        buckets.append(replace(bucket, categories=categories))
    return Tree(buckets=buckets)


def count_tombstones(tree: Tree) -> int:
    total = 0
    for bucket in tree.buckets:
        total += int(bucket.deleted)
        for category in bucket.categories:
            total += int(category.deleted)
            total += sum(1 for bookmark in category.bookmarks if bookmark.deleted)
    return total
