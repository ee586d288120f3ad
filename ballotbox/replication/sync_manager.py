# ballotbox/replication/sync_manager.py

# Best-effort replication of store snapshots to other consumers (other
# processes, a remote echo endpoint). Nothing here is a source of truth and
# no store operation depends on a sink succeeding.

import logging
import socket
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class ReplicationSink:
    """Receives events after the store has committed them."""

    def publish(self, event: str, payload: Dict) -> None:
        raise NotImplementedError


class BroadcastSink(ReplicationSink):
    """In-process fan-out to subscribed callbacks."""

    def __init__(self):
        self._subscribers: List[Callable[[str, Dict], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event, payload):
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event, payload)
            except Exception as e:
                logger.warning(f"Broadcast subscriber failed on {event}: {e}")


class HttpEchoSink(ReplicationSink):
    """Posts events to a stateless echo endpoint and returns its acknowledgement."""

    def __init__(self, url: str, timeout: float = 5.0, device_id: Optional[str] = None):
        self.url = url
        self.timeout = timeout
        self.device_id = device_id or f"{socket.gethostname()}-{uuid.uuid4().hex[:8]}"

    def publish(self, event, payload):
        body = {
            'event': event,
            'deviceId': self.device_id,
            'timestamp': _now_iso(),
            'payload': payload,
        }
        response = requests.post(self.url, json=body, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


def notify_sinks(sinks, event, payload):
    """Deliver an event to every sink; failures are logged and dropped."""
    delivered = 0
    for sink in sinks or []:
        try:
            sink.publish(event, payload)
            delivered += 1
        except Exception as e:
            logger.warning(f"Replication to {type(sink).__name__} failed for {event}: {e}")
    return delivered


def build_sinks(config) -> List[ReplicationSink]:
    sinks: List[ReplicationSink] = [BroadcastSink()]
    url = config.get('SYNC_ENDPOINT_URL')
    if url:
        sinks.append(HttpEchoSink(url, timeout=config.get('SYNC_TIMEOUT_SECONDS', 5.0)))
    return sinks


class SyncManager:
    """
    Periodically pushes a full snapshot to the configured sinks.

    Args:
        snapshot_provider: callable returning the export dict
        sinks: replication sinks to publish to
        interval: seconds between syncs
    """

    def __init__(self, snapshot_provider, sinks, interval=10.0):
        self.snapshot_provider = snapshot_provider
        self.sinks = list(sinks)
        self.interval = interval
        self.last_sync: Optional[str] = None
        self.is_syncing = False
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sync_now(self) -> bool:
        """Run one sync; returns False if skipped or if the snapshot failed."""
        with self._lock:
            if self.is_syncing:
                return False
            self.is_syncing = True
        try:
            snapshot = self.snapshot_provider()
            notify_sinks(self.sinks, 'snapshot', snapshot)
            self.last_sync = _now_iso()
            logger.debug(f"Sync completed at {self.last_sync}")
            return True
        except Exception as e:
            logger.warning(f"Sync failed: {e}")
            return False
        finally:
            with self._lock:
                self.is_syncing = False

    def _run(self):
        while not self._stop.wait(self.interval):
            self.sync_now()

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='ballotbox-sync', daemon=True)
        self._thread.start()
        logger.info(f"Polling sync started ({self.interval}s)")

    def stop(self):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.interval + 1)
            self._thread = None
