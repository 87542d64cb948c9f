"""Polling sync of one replica against the remote store.

At most one cycle runs at a time; a trigger that finds one running is dropped,
not queued. Local edits reach the remote through one debounced push job.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from bucketmarks.entities import Tree
from bucketmarks.services.common import format_timestamp, utcnow
from bucketmarks.services.connectivity import ActivityState
from bucketmarks.services.merge import merge_trees
from bucketmarks.services.tombstones import DEFAULT_RETENTION, count_tombstones, sweep


logger = logging.getLogger(__name__)

PUSH_JOB_ID = "debounced_push"
POLL_JOB_ID = "sync_poll"
SYNC_NOW_JOB_ID = "sync_now"
SWEEP_JOB_ID = "tombstone_sweep"


class SyncPhase(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    FETCHING = "fetching"
    MERGING = "merging"
    PERSISTING = "persisting"
    ERROR = "error"


@dataclass
class SyncState:
    identity: str | None = None
    last_known_remote_version: str | None = None
    synced_once: bool = False
    sync_in_flight: bool = False
    online: bool = True
    activity: ActivityState = ActivityState.ACTIVE
    remote_reachable: bool = True
    phase: SyncPhase = SyncPhase.IDLE
    last_error: str | None = None
    last_synced_at: datetime | None = None
    push_generation: int = 0
    push_pending: bool = False

    @property
    def has_focus(self) -> bool:
        return self.activity is ActivityState.ACTIVE

    @property
    def sync_stalled(self) -> bool:
        return self.identity is not None and not self.remote_reachable


class SyncCoordinator:
    def __init__(
        self,
        replica,
        remote,
        scheduler=None,
        monitor=None,
        state: SyncState | None = None,
        debounce_seconds: float = 0.5,
        poll_interval_seconds: float = 60,
        sweep_interval_hours: float = 24,
        tombstone_retention: timedelta = DEFAULT_RETENTION,
    ):
        self.replica = replica
        self.remote = remote
        self.state = state or SyncState()
        self.scheduler = scheduler or BackgroundScheduler()
        self._owns_scheduler = scheduler is None
        self.debounce_seconds = debounce_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.sweep_interval_hours = sweep_interval_hours
        self.tombstone_retention = tombstone_retention
        self._lock = threading.Lock()

        replica.subscribe(self.schedule_debounced_push)
        if monitor is not None:
            self.state.online = monitor.online
            self.state.activity = monitor.activity
            monitor.subscribe(
                on_online_change=self.handle_connectivity_change,
                on_activity_change=self.handle_activity_change,
            )

    # lifecycle

    def start(self) -> None:
        self.sweep_tombstones()
        self.scheduler.add_job(
            self.sweep_tombstones,
            "interval",
            hours=self.sweep_interval_hours,
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        if self._owns_scheduler:
            self.scheduler.start()
        if self.state.identity and self.state.has_focus:
            self.request_sync()
            self._start_polling()

    def shutdown(self) -> None:
        self._stop_polling()
        self._cancel_push()
        self._remove_job(SWEEP_JOB_ID)
        self._remove_job(SYNC_NOW_JOB_ID)
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        with self._lock:
            self.state.phase = SyncPhase.IDLE

    def sign_in(self, identity: str) -> dict:
        with self._lock:
            self.state.identity = identity
            self.state.last_known_remote_version = None
            self.state.synced_once = False
            self.state.remote_reachable = True
            self.state.last_error = None
        result = self.check_and_sync()
        if self.state.has_focus:
            self._start_polling()
        return result

    def sign_out(self) -> None:
        self._stop_polling()
        self._cancel_push()
        with self._lock:
            self.state.identity = None
            self.state.last_known_remote_version = None
            self.state.synced_once = False

    def status(self) -> dict:
        with self._lock:
            payload = asdict(self.state)
            payload["activity"] = self.state.activity.value
            payload["phase"] = self.state.phase.value
            payload["last_synced_at"] = (
                format_timestamp(self.state.last_synced_at)
                if self.state.last_synced_at
                else None
            )
            payload["signed_in"] = payload.pop("identity") is not None
            payload["sync_stalled"] = self.state.sync_stalled
        payload["tombstones"] = count_tombstones(self.replica.tree)
        return payload

    # sync cycle

    def check_and_sync(self) -> dict:
        with self._lock:
            if self.state.sync_in_flight:
                return {"status": "skipped", "reason": "sync_in_flight"}
            if not self.state.online:
                return {"status": "skipped", "reason": "offline"}
            if not self.state.identity:
                return {"status": "skipped", "reason": "signed_out"}
            self.state.sync_in_flight = True
            self.state.phase = SyncPhase.CHECKING
            identity = self.state.identity
            known_version = self.state.last_known_remote_version
            synced_once = self.state.synced_once

        try:
            return self._run_cycle(identity, known_version, synced_once)
        finally:
            with self._lock:
                self.state.sync_in_flight = False
                if self.state.phase is not SyncPhase.ERROR:
                    self.state.phase = SyncPhase.IDLE

    def refresh(self) -> dict:
        return self.check_and_sync()

    def request_sync(self) -> None:
        self.scheduler.add_job(
            self.check_and_sync, "date", id=SYNC_NOW_JOB_ID, replace_existing=True
        )

    def _run_cycle(
        self, identity: str, known_version: str | None, synced_once: bool
    ) -> dict:
        check = self.remote.check(identity)
        if not check.ok:
            return self._mark_unreachable("check", check.error)
        if synced_once and check.last_modified == known_version:
            self._mark_reachable()
            with self._lock:
                retry_push = self.state.push_pending
            # a push skipped while offline or mid-cycle goes out now
            if retry_push:
                self.schedule_debounced_push()
            return {
                "status": "unchanged",
                "last_modified": known_version,
                "push_scheduled": retry_push,
            }

        self._set_phase(SyncPhase.FETCHING)
        loaded = self.remote.load(identity)
        if not loaded.ok:
            return self._mark_unreachable("load", loaded.error)

        remote_tree = loaded.data if loaded.data is not None else Tree()
        with self.replica.lock:
            self._set_phase(SyncPhase.MERGING)
            merged = merge_trees(self.replica.tree, remote_tree)
            self._set_phase(SyncPhase.PERSISTING)
            changed = self.replica.commit(merged, notify=False)

        with self._lock:
            if self.state.identity == identity:
                self.state.last_known_remote_version = loaded.last_modified
                self.state.synced_once = True
            self.state.remote_reachable = True
            self.state.last_error = None
            self.state.last_synced_at = utcnow()

        needs_push = merged != remote_tree
        if needs_push:
            self.schedule_debounced_push(merged)
        else:
            with self._lock:
                if self.replica.tree == remote_tree:
                    self.state.push_pending = False
        logger.info(
            "Merged remote version %s (local changed: %s, push scheduled: %s)",
            loaded.last_modified,
            changed,
            needs_push,
        )
        return {
            "status": "merged",
            "last_modified": loaded.last_modified,
            "local_changed": changed,
            "push_scheduled": needs_push,
        }

    def _set_phase(self, phase: SyncPhase) -> None:
        with self._lock:
            self.state.phase = phase

    def _mark_reachable(self) -> None:
        with self._lock:
            self.state.remote_reachable = True
            self.state.last_error = None
            self.state.last_synced_at = utcnow()

    def _mark_unreachable(self, operation: str, error: str | None) -> dict:
        with self._lock:
            self.state.phase = SyncPhase.ERROR
            self.state.remote_reachable = False
            self.state.last_error = error
        logger.warning("Remote %s failed, keeping local data: %s", operation, error)
        return {"status": "error", "operation": operation, "error": error}

    # debounced push

    def schedule_debounced_push(self, tree: Tree | None = None) -> None:
        with self._lock:
            self.state.push_generation += 1
            self.state.push_pending = True
            generation = self.state.push_generation
        self.scheduler.add_job(
            self._fire_debounced_push,
            "date",
            run_date=utcnow() + timedelta(seconds=self.debounce_seconds),
            args=[generation],
            id=PUSH_JOB_ID,
            replace_existing=True,
        )

    def _fire_debounced_push(self, generation: int) -> dict:
        with self._lock:
            if generation != self.state.push_generation:
                return {"status": "skipped", "reason": "superseded"}
            if not self.state.push_pending:
                return {"status": "skipped", "reason": "nothing_pending"}
            if self.state.sync_in_flight:
                return {"status": "skipped", "reason": "sync_in_flight"}
            if not self.state.online:
                return {"status": "skipped", "reason": "offline"}
            if not self.state.identity:
                return {"status": "skipped", "reason": "signed_out"}
            identity = self.state.identity

        tree = self.replica.tree
        result = self.remote.save(identity, tree)
        if not result.ok:
            with self._lock:
                self.state.remote_reachable = False
                self.state.last_error = result.error
            logger.warning("Remote push failed, changes kept locally: %s", result.error)
            return {"status": "error", "operation": "save", "error": result.error}

        with self._lock:
            if self.state.identity == identity:
                self.state.last_known_remote_version = result.last_modified
            if generation == self.state.push_generation:
                self.state.push_pending = False
            self.state.remote_reachable = True
            self.state.last_error = None
        return {"status": "pushed", "last_modified": result.last_modified}

    def flush_push(self) -> dict:
        """Run the pending push now instead of waiting for its timer."""
        with self._lock:
            generation = self.state.push_generation
        self._remove_job(PUSH_JOB_ID)
        return self._fire_debounced_push(generation)

    def _cancel_push(self) -> None:
        with self._lock:
            self.state.push_generation += 1
            self.state.push_pending = False
        self._remove_job(PUSH_JOB_ID)

    # triggers

    def handle_activity_change(self, activity: ActivityState) -> None:
        with self._lock:
            self.state.activity = activity
            signed_in = self.state.identity is not None
        if activity is ActivityState.ACTIVE:
            if signed_in:
                self.request_sync()
                self._start_polling()
        else:
            self._stop_polling()

    def handle_connectivity_change(self, online: bool) -> None:
        with self._lock:
            self.state.online = online
            self.state.remote_reachable = online
            signed_in = self.state.identity is not None
        if online and signed_in:
            self.request_sync()

    def _start_polling(self) -> None:
        if not self.state.identity:
            return
        self.scheduler.add_job(
            self.check_and_sync,
            "interval",
            seconds=self.poll_interval_seconds,
            id=POLL_JOB_ID,
            replace_existing=True,
        )

    def _stop_polling(self) -> None:
        self._remove_job(POLL_JOB_ID)

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass

    # maintenance

    def sweep_tombstones(self) -> Tree:
        before = self.replica.tree
        tree = self.replica.apply(
            lambda current: sweep(current, self.tombstone_retention, utcnow())
        )
        if tree != before:
            logger.info("Removed expired tombstones from the local replica")
        return tree
