from __future__ import annotations

import logging
import threading
from enum import Enum


logger = logging.getLogger(__name__)


class ActivityState(str, Enum):
    ACTIVE = "active"
    BACKGROUND = "background"


class LifecycleMonitor:
    def __init__(
        self, online: bool = True, activity: ActivityState = ActivityState.ACTIVE
    ):
        self._lock = threading.Lock()
        self._online = online
        self._activity = ActivityState(activity)
        self._online_listeners = []
        self._activity_listeners = []

    @property
    def online(self) -> bool:
        return self._online

    @property
    def activity(self) -> ActivityState:
        return self._activity

    @property
    def has_focus(self) -> bool:
        return self._activity is ActivityState.ACTIVE

    def subscribe(self, on_online_change=None, on_activity_change=None) -> None:
        with self._lock:
            if on_online_change is not None:
                self._online_listeners.append(on_online_change)
            if on_activity_change is not None:
                self._activity_listeners.append(on_activity_change)

    def set_online(self, online: bool) -> bool:
        online = bool(online)
        with self._lock:
            if online == self._online:
                return False
            self._online = online
            listeners = list(self._online_listeners)
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in listeners:
            listener(online)
        return True

    def set_activity(self, activity: ActivityState) -> bool:
        activity = ActivityState(activity)
        with self._lock:
            if activity is self._activity:
                return False
            self._activity = activity
            listeners = list(self._activity_listeners)
        logger.debug("Activity changed: %s", activity.value)
        for listener in listeners:
            listener(activity)
        return True

    def went_online(self) -> bool:
        return self.set_online(True)

    def went_offline(self) -> bool:
        return self.set_online(False)

    def focused(self) -> bool:
        return self.set_activity(ActivityState.ACTIVE)

    def blurred(self) -> bool:
        return self.set_activity(ActivityState.BACKGROUND)
