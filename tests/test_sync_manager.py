import threading
from unittest.mock import patch

import pytest
import requests

from ballotbox.replication.sync_manager import (
    BroadcastSink, HttpEchoSink, SyncManager, build_sinks, notify_sinks,
)


class RecordingSink:
    def __init__(self):
        self.events = []

    def publish(self, event, payload):
        self.events.append((event, payload))


class FailingSink:
    def publish(self, event, payload):
        raise RuntimeError("offline")


def test_notify_sinks_skips_failures():
    good = RecordingSink()

    delivered = notify_sinks([FailingSink(), good], 'vote_cast', {'voter': 'A'})

    assert delivered == 1
    assert good.events == [('vote_cast', {'voter': 'A'})]


def test_broadcast_subscribers():
    sink = BroadcastSink()
    seen = []

    def callback(event, payload):
        seen.append(event)

    def broken(event, payload):
        raise ValueError("bad subscriber")

    sink.subscribe(broken)
    sink.subscribe(callback)
    sink.publish('votes_reset', {})
    sink.unsubscribe(callback)
    sink.publish('votes_reset', {})

    assert seen == ['votes_reset']


def test_http_echo_sink_posts_event():
    sink = HttpEchoSink('http://echo.local/api/sync-vote', timeout=2, device_id='kiosk-1')
    with patch("ballotbox.replication.sync_manager.requests.post") as mock_post:
        mock_post.return_value.json.return_value = {'success': True}

        assert sink.publish('vote_cast', {'vote_id': 1}) == {'success': True}

        _, kwargs = mock_post.call_args
        assert kwargs['json']['event'] == 'vote_cast'
        assert kwargs['json']['deviceId'] == 'kiosk-1'
        assert kwargs['json']['payload'] == {'vote_id': 1}
        assert kwargs['timeout'] == 2


def test_http_echo_sink_raises_on_http_error():
    sink = HttpEchoSink('http://echo.local/api/sync-vote')
    with patch("ballotbox.replication.sync_manager.requests.post") as mock_post:
        mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        with pytest.raises(requests.HTTPError):
            sink.publish('snapshot', {})


def test_build_sinks():
    assert [type(s) for s in build_sinks({})] == [BroadcastSink]
    sinks = build_sinks({'SYNC_ENDPOINT_URL': 'http://echo.local', 'SYNC_TIMEOUT_SECONDS': 1})
    assert isinstance(sinks[1], HttpEchoSink)
    assert sinks[1].timeout == 1


def test_sync_now_publishes_snapshot():
    sink = RecordingSink()
    manager = SyncManager(lambda: {'voters': []}, [sink], interval=60)

    assert manager.sync_now() is True
    assert sink.events == [('snapshot', {'voters': []})]
    assert manager.last_sync is not None


def test_sync_now_reports_snapshot_failure():
    def provider():
        raise RuntimeError("store closed")

    manager = SyncManager(provider, [RecordingSink()], interval=60)

    assert manager.sync_now() is False
    assert manager.is_syncing is False


def test_sync_now_skips_while_running():
    manager = SyncManager(lambda: {}, [], interval=60)
    manager.is_syncing = True

    assert manager.sync_now() is False


def test_background_loop_runs_and_stops():
    synced = threading.Event()
    manager = SyncManager(lambda: {}, [], interval=0.01)
    manager.sync_now = synced.set

    manager.start()
    assert synced.wait(2)
    manager.stop()
    assert manager._thread is None
