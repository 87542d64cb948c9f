from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from bucketmarks.entities import Bookmark, Bucket, Category, Tree
from bucketmarks.services.common import generate_id, normalize_tags, utcnow


BOOKMARK_FIELDS = {"title", "url", "description", "notes", "tags"}


class EntityNotFoundError(LookupError):
    pass


def new_bucket(name: str) -> Bucket:
    return Bucket(id=generate_id(), name=name)


def new_category(name: str) -> Category:
    return Category(id=generate_id(), name=name)


def new_bookmark(
    title: str = "",
    url: str = "",
    description: str = "",
    notes: str = "",
    tags=None,
    now: datetime | None = None,
) -> Bookmark:
    now = now or utcnow()
    return Bookmark(
        id=generate_id(),
        title=title,
        url=url,
        description=description,
        notes=notes,
        tags=normalize_tags(tags),
        created_at=now,
        updated_at=now,
    )


def _find_index(items, entity_id: str, kind: str) -> int:
    for index, item in enumerate(items):
        if item.id == entity_id:
            return index
    raise EntityNotFoundError(f"{kind} {entity_id} not found")


def _replace_at(items: list, index: int, item) -> list:
    updated = list(items)
    updated[index] = item
    return updated


def _update_bucket(tree: Tree, bucket_id: str, change) -> Tree:
    index = _find_index(tree.buckets, bucket_id, "bucket")
    bucket = change(tree.buckets[index])
    return Tree(buckets=_replace_at(tree.buckets, index, bucket))


def _update_category(tree: Tree, bucket_id: str, category_id: str, change) -> Tree:
    def change_bucket(bucket: Bucket) -> Bucket:
        index = _find_index(bucket.categories, category_id, "category")
        category = change(bucket.categories[index])
        return replace(
            bucket, categories=_replace_at(bucket.categories, index, category)
        )

    return _update_bucket(tree, bucket_id, change_bucket)


def _update_bookmark(
    tree: Tree, bucket_id: str, category_id: str, bookmark_id: str, change
) -> Tree:
    def change_category(category: Category) -> Category:
        index = _find_index(category.bookmarks, bookmark_id, "bookmark")
        bookmark = change(category.bookmarks[index])
        return replace(
            category, bookmarks=_replace_at(category.bookmarks, index, bookmark)
        )

    return _update_category(tree, bucket_id, category_id, change_category)


def add_bucket(tree: Tree, name: str) -> tuple[Tree, Bucket]:
    bucket = new_bucket(name)
    return Tree(buckets=[*tree.buckets, bucket]), bucket


def add_category(tree: Tree, bucket_id: str, name: str) -> tuple[Tree, Category]:
    category = new_category(name)
    tree = _update_bucket(
        tree,
        bucket_id,
        lambda bucket: replace(bucket, categories=[*bucket.categories, category]),
    )
    return tree, category


def add_bookmark(
    tree: Tree,
    bucket_id: str,
    category_id: str,
    now: datetime | None = None,
    **fields,
) -> tuple[Tree, Bookmark]:
    unknown = set(fields) - BOOKMARK_FIELDS
    if unknown:
        raise TypeError(f"unknown bookmark fields: {', '.join(sorted(unknown))}")
    bookmark = new_bookmark(now=now, **fields)
    tree = _update_category(
        tree,
        bucket_id,
        category_id,
        lambda category: replace(
            category, bookmarks=[*category.bookmarks, bookmark]
        ),
    )
    return tree, bookmark


def update_bookmark(
    tree: Tree,
    bucket_id: str,
    category_id: str,
    bookmark_id: str,
    now: datetime | None = None,
    **fields,
) -> Tree:
    unknown = set(fields) - BOOKMARK_FIELDS
    if unknown:
        raise TypeError(f"unknown bookmark fields: {', '.join(sorted(unknown))}")
    now = now or utcnow()

    def change(bookmark: Bookmark) -> Bookmark:
        values = dict(fields)
        if "tags" in values:
            values["tags"] = normalize_tags(values["tags"])
        return replace(bookmark, updated_at=max(now, bookmark.created_at), **values)

    return _update_bookmark(tree, bucket_id, category_id, bookmark_id, change)


def rename_bucket(tree: Tree, bucket_id: str, name: str) -> Tree:
    return _update_bucket(tree, bucket_id, lambda bucket: replace(bucket, name=name))


def rename_category(tree: Tree, bucket_id: str, category_id: str, name: str) -> Tree:
    return _update_category(
        tree, bucket_id, category_id, lambda category: replace(category, name=name)
    )


def delete_bucket(tree: Tree, bucket_id: str, now: datetime | None = None) -> Tree:
    now = now or utcnow()
    return _update_bucket(
        tree, bucket_id, lambda bucket: replace(bucket, deleted_at=now)
    )


def delete_category(
    tree: Tree, bucket_id: str, category_id: str, now: datetime | None = None
) -> Tree:
    now = now or utcnow()
    return _update_category(
        tree, bucket_id, category_id, lambda category: replace(category, deleted_at=now)
    )


def delete_bookmark(
    tree: Tree,
    bucket_id: str,
    category_id: str,
    bookmark_id: str,
    now: datetime | None = None,
) -> Tree:
    now = now or utcnow()
    return _update_bookmark(
        tree,
        bucket_id,
        category_id,
        bookmark_id,
        lambda bookmark: replace(
            bookmark, deleted_at=now, updated_at=max(now, bookmark.created_at)
        ),
    )


def move_bookmark(
    tree: Tree,
    bucket_id: str,
    category_id: str,
    bookmark_id: str,
    target_bookmark_id: str,
) -> Tree:
    """Move a bookmark onto the slot currently held by another one."""
    if bookmark_id == target_bookmark_id:
        return tree

    def change(category: Category) -> Category:
        bookmarks = list(category.bookmarks)
        source = _find_index(bookmarks, bookmark_id, "bookmark")
        target = _find_index(bookmarks, target_bookmark_id, "bookmark")
        moved = bookmarks.pop(source)
        bookmarks.insert(target, moved)
        return replace(category, bookmarks=bookmarks)

    return _update_category(tree, bucket_id, category_id, change)


def move_bookmark_to_position(
    tree: Tree,
    bucket_id: str,
    category_id: str,
    bookmark_id: str,
    position: int,
) -> Tree:
    """Drop a bookmark in front of ``position`` as counted before the move."""

    def change(category: Category) -> Category:
        bookmarks = list(category.bookmarks)
        source = _find_index(bookmarks, bookmark_id, "bookmark")
        moved = bookmarks.pop(source)
        target = position - 1 if source < position else position
        bookmarks.insert(max(0, min(target, len(bookmarks))), moved)
        return replace(category, bookmarks=bookmarks)

    return _update_category(tree, bucket_id, category_id, change)
