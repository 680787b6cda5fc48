"""A small in-process message bus and the per-recorder connection to it."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable

log = logging.getLogger(__name__)

Handler = Callable[[str], bool]
Method = Callable[[str], str]

DEFAULT_TIMEOUT_MS = 2000


class Bus:
    """Routes synchronous calls to registered methods and events to subscribers."""

    def __init__(self) -> None:
        self._methods: dict[str, Method] = {}
        self._subscriptions: dict[int, tuple[str, str, Handler]] = {}
        self._keys = itertools.count(1)
        self._lock = threading.RLock()

    def register(self, uri: str, method: Method) -> None:
        """Make ``method`` answer calls made to ``uri``."""
        with self._lock:
            self._methods[uri] = method

    def unregister(self, uri: str) -> None:
        with self._lock:
            self._methods.pop(uri, None)

    def call_sync(self, uri: str, payload: str, timeout: int = DEFAULT_TIMEOUT_MS) -> str:
        """Call ``uri`` and wait up to ``timeout`` milliseconds for its reply.

        Raises LookupError when no method answers ``uri`` and TimeoutError
        when the reply does not arrive in time.
        """
        with self._lock:
            method = self._methods.get(uri)
        if method is None:
            raise LookupError(f"no service answers {uri}")

        outcome: dict[str, object] = {}

        def run() -> None:
            try:
                outcome["reply"] = method(payload)
            except BaseException as exc:  # handed back to the caller
                outcome["error"] = exc

        worker = threading.Thread(target=run, name=f"call {uri}", daemon=True)
        worker.start()
        worker.join(timeout / 1000)
        if worker.is_alive():
            raise TimeoutError(f"{uri} did not reply within {timeout} ms")
        if "error" in outcome:
            raise outcome["error"]  # type: ignore[misc]
        return str(outcome["reply"])

    def subscribe(self, uri: str, payload: str, handler: Handler) -> int:
        """Subscribe ``handler`` to events on ``uri``; return the subscription key."""
        with self._lock:
            key = next(self._keys)
            self._subscriptions[key] = (uri, payload, handler)
        return key

    def cancel(self, key: int) -> bool:
        """End a subscription. Return False if the key is unknown."""
        with self._lock:
            return self._subscriptions.pop(key, None) is not None

    def publish(self, uri: str, message: str) -> int:
        """Deliver ``message`` to every subscriber of ``uri``; return how many."""
        with self._lock:
            handlers = [h for u, _, h in self._subscriptions.values() if u == uri]
        for handler in handlers:
            handler(message)
        return len(handlers)


DEFAULT_BUS = Bus()


class LSConnector:
    """A named client on the bus that holds at most one subscription."""

    def __init__(self, service_name: str, thread_name: str, bus: Bus | None = None) -> None:
        self.service_name = service_name
        self.thread_name = thread_name
        self.bus = bus if bus is not None else DEFAULT_BUS
        self.subscribe_key: int | None = None

    def call_sync(self, uri: str, payload: str, timeout: int = DEFAULT_TIMEOUT_MS) -> str:
        return self.bus.call_sync(uri, payload, timeout)

    def subscribe(self, uri: str, payload: str, handler: Handler) -> bool:
        self.subscribe_key = self.bus.subscribe(uri, payload, handler)
        log.info("subscribeKey %d", self.subscribe_key)
        return True

    def unsubscribe(self) -> bool:
        """Cancel the current subscription; True if there was none."""
        if self.subscribe_key is None:
            return True
        key, self.subscribe_key = self.subscribe_key, None
        log.info("subscribeKey %d", key)
        return self.bus.cancel(key)