from __future__ import annotations

import logging
import threading

from bucketmarks.entities import Bookmark, Bucket, Category, Tree
from bucketmarks.services import editing


logger = logging.getLogger(__name__)


class BookmarkReplica:
    def __init__(self, store):
        self.store = store
        self.lock = threading.RLock()
        self._tree = store.load()
        self._listeners = []

    @property
    def tree(self) -> Tree:
        return self._tree

    def subscribe(self, listener) -> None:
        self._listeners.append(listener)

    def commit(self, tree: Tree, notify: bool = True) -> bool:
        with self.lock:
            if tree == self._tree:
                return False
            self._tree = tree
            self._persist(tree)
        if notify:
            self._notify(tree)
        return True

    def apply(self, change, notify: bool = True) -> Tree:
        with self.lock:
            tree = change(self._tree)
            changed = self.commit(tree, notify=False)
        if changed and notify:
            self._notify(tree)
        return tree

    def _notify(self, tree: Tree) -> None:
        for listener in list(self._listeners):
            listener(tree)

    def _persist(self, tree: Tree) -> None:
        try:
            self.store.save(tree)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Local save failed, keeping changes in memory: %s", exc)

    def _edit(self, change):
        created = None

        def change_tree(tree: Tree) -> Tree:
            nonlocal created
            tree, created = change(tree)
            return tree

        self.apply(change_tree)
        return created

    def add_bucket(self, name: str) -> Bucket:
        return self._edit(lambda tree: editing.add_bucket(tree, name))

    def add_category(self, bucket_id: str, name: str) -> Category:
        return self._edit(lambda tree: editing.add_category(tree, bucket_id, name))

    def add_bookmark(self, bucket_id: str, category_id: str, **fields) -> Bookmark:
        return self._edit(
            lambda tree: editing.add_bookmark(tree, bucket_id, category_id, **fields)
        )

    def update_bookmark(
        self, bucket_id: str, category_id: str, bookmark_id: str, **fields
    ) -> Tree:
        return self.apply(
            lambda tree: editing.update_bookmark(
                tree, bucket_id, category_id, bookmark_id, **fields
            )
        )

    def rename_bucket(self, bucket_id: str, name: str) -> Tree:
        return self.apply(lambda tree: editing.rename_bucket(tree, bucket_id, name))

    def rename_category(self, bucket_id: str, category_id: str, name: str) -> Tree:
        return self.apply(
            lambda tree: editing.rename_category(tree, bucket_id, category_id, name)
        )

    def delete_bucket(self, bucket_id: str) -> Tree:
        return self.apply(lambda tree: editing.delete_bucket(tree, bucket_id))

    def delete_category(self, bucket_id: str, category_id: str) -> Tree:
        return self.apply(
            lambda tree: editing.delete_category(tree, bucket_id, category_id)
        )

    def delete_bookmark(
        self, bucket_id: str, category_id: str, bookmark_id: str
    ) -> Tree:
        return self.apply(
            lambda tree: editing.delete_bookmark(
                tree, bucket_id, category_id, bookmark_id
            )
        )

    def move_bookmark(
        self,
        bucket_id: str,
        category_id: str,
        bookmark_id: str,
        target_bookmark_id: str,
    ) -> Tree:
        return self.apply(
            lambda tree: editing.move_bookmark(
                tree, bucket_id, category_id, bookmark_id, target_bookmark_id
            )
        )

    def move_bookmark_to_position(
        self, bucket_id: str, category_id: str, bookmark_id: str, position: int
    ) -> Tree:
        return self.apply(
            lambda tree: editing.move_bookmark_to_position(
                tree, bucket_id, category_id, bookmark_id, position
            )
        )
