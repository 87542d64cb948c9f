from __future__ import annotations

from datetime import timedelta

from bucketmarks.entities import Tree
from bucketmarks.extensions import db
from bucketmarks.models import UserDocument
from bucketmarks.services.common import format_timestamp, parse_timestamp, utcnow


def next_version(previous: str | None) -> str:
    now = utcnow()
    last = parse_timestamp(previous)
    if last is not None and now <= last:
        # stamps must change on every save, even within one clock tick
        now = last + timedelta(microseconds=1)
    return format_timestamp(now, timespec="microseconds")


def load_document(user_id: int) -> tuple[dict, str | None]:
    document = UserDocument.query.filter_by(user_id=user_id).first()
    if not document:
        return Tree().as_dict(), None
    return Tree.from_dict(document.payload).as_dict(), document.last_modified


def check_document(user_id: int) -> str | None:
    row = (
        db.session.query(UserDocument.last_modified)
        .filter(UserDocument.user_id == user_id)
        .first()
    )
    return row[0] if row else None


def save_document(user_id: int, tree: Tree) -> str:
    document = UserDocument.query.filter_by(user_id=user_id).first()
    if not document:
        document = UserDocument(user_id=user_id)
        db.session.add(document)
    document.payload = tree.as_dict()
    document.last_modified = next_version(document.last_modified)
    db.session.commit()
    return document.last_modified
