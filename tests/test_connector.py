import json
import threading

import pytest

from mediarec.connector import Bus, LSConnector


def _echo(payload):
    return json.dumps({"returnValue": True, "echo": json.loads(payload)})


def test_call_sync_returns_reply():
    bus = Bus()
    bus.register("luna://svc/echo", _echo)
    reply = json.loads(bus.call_sync("luna://svc/echo", '{"a": 1}', 2000))
    assert reply == {"returnValue": True, "echo": {"a": 1}}


def test_call_sync_unknown_uri():
    with pytest.raises(LookupError):
        Bus().call_sync("luna://nobody/here", "{}", 100)


def test_call_sync_unregistered_uri():
    bus = Bus()
    bus.register("luna://svc/echo", _echo)
    bus.unregister("luna://svc/echo")
    with pytest.raises(LookupError):
        bus.call_sync("luna://svc/echo", "{}", 100)


def test_call_sync_times_out():
    bus = Bus()
    release = threading.Event()
    bus.register("luna://svc/slow", lambda payload: release.wait(5) and "{}")
    try:
        with pytest.raises(TimeoutError):
            bus.call_sync("luna://svc/slow", "{}", 50)
    finally:
        release.set()


def test_call_sync_propagates_method_error():
    bus = Bus()

    def broken(payload):
        raise RuntimeError("boom")

    bus.register("luna://svc/broken", broken)
    with pytest.raises(RuntimeError, match="boom"):
        bus.call_sync("luna://svc/broken", "{}", 1000)


def test_subscribe_publish_cancel():
    bus = Bus()
    seen = []
    key = bus.subscribe("luna://svc/events", "{}", lambda m: seen.append(m) or True)
    assert bus.publish("luna://svc/events", "first") == 1
    assert bus.publish("luna://svc/other", "ignored") == 0
    assert bus.cancel(key) is True
    assert bus.publish("luna://svc/events", "second") == 0
    assert seen == ["first"]


def test_cancel_unknown_key():
    assert Bus().cancel(99) is False


def test_subscription_keys_are_distinct():
    bus = Bus()
    keys = {bus.subscribe("u", "{}", lambda m: True) for _ in range(5)}
    assert len(keys) == 5


def test_connector_delegates_calls():
    bus = Bus()
    bus.register("luna://svc/echo", _echo)
    conn = LSConnector("svc-1234", "record", bus)
    reply = json.loads(conn.call_sync("luna://svc/echo", '{"x": "y"}'))
    assert reply["echo"] == {"x": "y"}
    assert conn.service_name == "svc-1234"


def test_connector_unsubscribe_without_subscription():
    conn = LSConnector("svc", "record", Bus())
    assert conn.unsubscribe() is True


def test_connector_subscribe_and_unsubscribe():
    bus = Bus()
    conn = LSConnector("svc", "snapshot", bus)
    seen = []
    assert conn.subscribe("luna://svc/sub", "{}", lambda m: seen.append(m) or True) is True
    bus.publish("luna://svc/sub", "event")
    assert conn.unsubscribe() is True
    bus.publish("luna://svc/sub", "late")
    assert seen == ["event"]
    assert conn.subscribe_key is None


def test_handler_may_unsubscribe_during_delivery():
    bus = Bus()
    conn = LSConnector("svc", "snapshot", bus)
    seen = []

    def handler(message):
        seen.append(message)
        return conn.unsubscribe()

    conn.subscribe("luna://svc/sub", "{}", handler)
    assert bus.publish("luna://svc/sub", '{"endOfStream": true}') == 1
    assert bus.publish("luna://svc/sub", "after") == 0
    assert seen == ['{"endOfStream": true}']