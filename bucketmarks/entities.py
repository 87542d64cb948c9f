from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from bucketmarks.services.common import (
    EPOCH,
    format_timestamp,
    normalize_tags,
    parse_timestamp,
)


def _text(value) -> str:
    if value is None:
        return ""
    return str(value)


def _entity_id(data) -> str | None:
    if not isinstance(data, dict):
        return None
    value = data.get("id")
    if value is None or value == "":
        return None
    return str(value)


def _tombstone(data: dict, fallback: datetime) -> datetime | None:
    if not data.get("deleted"):
        return None
    return parse_timestamp(data.get("deletedAt")) or fallback


def _tombstone_fields(deleted_at: datetime | None) -> dict:
    if deleted_at is None:
        return {"deleted": False}
    return {"deleted": True, "deletedAt": format_timestamp(deleted_at)}


@dataclass
class Bookmark:
    id: str
    title: str = ""
    url: str = ""
    description: str = ""
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime = EPOCH
    updated_at: datetime = EPOCH
    deleted_at: datetime | None = None

    def __post_init__(self):
        self.tags = normalize_tags(self.tags)
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_dict(cls, data) -> Bookmark | None:
        entity_id = _entity_id(data)
        if entity_id is None:
            return None
        created_at = parse_timestamp(data.get("createdAt")) or EPOCH
        updated_at = parse_timestamp(data.get("updatedAt")) or created_at
        tags = data.get("tags")
        return cls(
            id=entity_id,
            title=_text(data.get("title")),
            url=_text(data.get("url")),
            description=_text(data.get("description")),
            notes=_text(data.get("notes")),
            tags=tags if isinstance(tags, (list, tuple, str)) else [],
            created_at=created_at,
            updated_at=updated_at,
            deleted_at=_tombstone(data, max(updated_at, created_at)),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "notes": self.notes,
            "tags": list(self.tags),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            **_tombstone_fields(self.deleted_at),
        }


@dataclass
class Category:
    id: str
    name: str = ""
    bookmarks: list[Bookmark] = field(default_factory=list)
    deleted_at: datetime | None = None

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_dict(cls, data) -> Category | None:
        entity_id = _entity_id(data)
        if entity_id is None:
            return None
        rows = data.get("bookmarks")
        bookmarks = [
            bookmark
            for bookmark in (Bookmark.from_dict(row) for row in _rows(rows))
            if bookmark is not None
        ]
        return cls(
            id=entity_id,
            name=_text(data.get("name")),
            bookmarks=bookmarks,
            deleted_at=_tombstone(data, EPOCH),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "bookmarks": [bookmark.as_dict() for bookmark in self.bookmarks],
            **_tombstone_fields(self.deleted_at),
        }


@dataclass
class Bucket:
    id: str
    name: str = ""
    categories: list[Category] = field(default_factory=list)
    deleted_at: datetime | None = None

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_dict(cls, data) -> Bucket | None:
        entity_id = _entity_id(data)
        if entity_id is None:
            return None
        categories = [
            category
            for category in (
                Category.from_dict(row) for row in _rows(data.get("categories"))
            )
            if category is not None
        ]
        return cls(
            id=entity_id,
            name=_text(data.get("name")),
            categories=categories,
            deleted_at=_tombstone(data, EPOCH),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "categories": [category.as_dict() for category in self.categories],
            **_tombstone_fields(self.deleted_at),
        }


@dataclass
class Tree:
    buckets: list[Bucket] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data) -> Tree:
        """Decode a stored or received document; malformed parts are dropped."""
        if not isinstance(data, dict):
            return cls()
        buckets = [
            bucket
            for bucket in (Bucket.from_dict(row) for row in _rows(data.get("buckets")))
            if bucket is not None
        ]
        return cls(buckets=buckets)

    def as_dict(self) -> dict:
        return {"buckets": [bucket.as_dict() for bucket in self.buckets]}

    def is_empty(self) -> bool:
        return not self.buckets


def _rows(value) -> list:
    if isinstance(value, list):
        return value
    return []
