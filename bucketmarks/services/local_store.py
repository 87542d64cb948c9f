from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from bucketmarks.entities import Tree


logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Tree:
        if not self.path.exists():
            return Tree()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable replica file %s: %s", self.path, exc)
            return Tree()
        return Tree.from_dict(payload)

    def save(self, tree: Tree) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(tree.as_dict(), handle, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
