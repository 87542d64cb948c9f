from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from apscheduler.jobstores.base import ConflictingIdError, JobLookupError

from bucketmarks import create_app
from bucketmarks.config import TestConfig
from bucketmarks.entities import Bookmark, Bucket, Category, Tree
from bucketmarks.extensions import db
from bucketmarks.services.remote import RemoteResult


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


def bookmark(bookmark_id="bm1", day=1, **fields) -> Bookmark:
    values = {
        "title": f"Bookmark {bookmark_id}",
        "url": f"https://example.com/{bookmark_id}",
        "created_at": ts(1),
        "updated_at": ts(day),
    }
    values.update(fields)
    return Bookmark(id=bookmark_id, **values)


def tree_with(*bookmarks, bucket_id="b1", category_id="c1", **bucket_fields) -> Tree:
    category = Category(id=category_id, name="Dev", bookmarks=list(bookmarks))
    values = {"name": "Work"}
    values.update(bucket_fields)
    return Tree(buckets=[Bucket(id=bucket_id, categories=[category], **values)])


class ManualScheduler:
    def __init__(self):
        self.jobs = {}
        self.running = False

    def add_job(
        self,
        func,
        trigger=None,
        args=None,
        kwargs=None,
        id=None,
        replace_existing=False,
        **trigger_args,
    ):
        job_id = id or f"job-{len(self.jobs) + 1}"
        if job_id in self.jobs and not replace_existing:
            raise ConflictingIdError(job_id)
        job = SimpleNamespace(
            id=job_id,
            func=func,
            trigger=trigger,
            args=list(args or []),
            kwargs=dict(kwargs or {}),
            trigger_args=trigger_args,
        )
        self.jobs[job_id] = job
        return job

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def run_job(self, job_id):
        job = self.jobs[job_id]
        if job.trigger == "date":
            del self.jobs[job_id]
        return job.func(*job.args, **job.kwargs)

    def start(self):
        self.running = True

    def shutdown(self, wait=True):
        self.running = False


class MemoryStore:
    def __init__(self, tree=None):
        self.tree = tree or Tree()
        self.saves = []
        self.fail = False

    def load(self):
        return self.tree

    def save(self, tree):
        if self.fail:
            raise OSError("disk full")
        self.tree = tree
        self.saves.append(tree)


class FakeRemote:
    def __init__(self, tree=None, last_modified=None):
        self.tree = tree or Tree()
        self.last_modified = last_modified
        self.calls = []
        self.saved = []
        self.fail = False
        self._version = 0

    def check(self, identity):
        self.calls.append("check")
        if self.fail:
            return RemoteResult(error="Network error")
        return RemoteResult(last_modified=self.last_modified)

    def load(self, identity):
        self.calls.append("load")
        if self.fail:
            return RemoteResult(error="Network error")
        return RemoteResult(data=self.tree, last_modified=self.last_modified)

    def save(self, identity, tree):
        self.calls.append("save")
        if self.fail:
            return RemoteResult(error="Network error")
        self._version += 1
        self.tree = tree
        self.saved.append(tree)
        self.last_modified = f"v{self._version}"
        return RemoteResult(last_modified=self.last_modified)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def remote():
    return FakeRemote()
