from datetime import timedelta

from bucketmarks.config import Config
from bucketmarks.services.connectivity import LifecycleMonitor
from bucketmarks.services.coordinator import SyncCoordinator
from bucketmarks.services.local_store import LocalStore
from bucketmarks.services.remote import RemoteSyncClient
from bucketmarks.services.replica import BookmarkReplica


def build_coordinator(
    config=Config, scheduler=None, monitor=None, transport=None
) -> SyncCoordinator:
    """Wire a replica, its stores and a coordinator from a config object."""
    replica = BookmarkReplica(LocalStore(config.LOCAL_STORE_PATH))
    remote = RemoteSyncClient(
        config.SYNC_SERVER_URL,
        timeout=config.SYNC_REQUEST_TIMEOUT,
        transport=transport,
    )
    return SyncCoordinator(
        replica,
        remote,
        scheduler=scheduler,
        monitor=monitor or LifecycleMonitor(),
        debounce_seconds=config.SYNC_PUSH_DEBOUNCE_MS / 1000,
        poll_interval_seconds=config.SYNC_POLL_INTERVAL_SECONDS,
        sweep_interval_hours=config.TOMBSTONE_SWEEP_INTERVAL_HOURS,
        tombstone_retention=timedelta(days=config.TOMBSTONE_RETENTION_DAYS),
    )
