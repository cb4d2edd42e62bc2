import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from .contract import parse_locator

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]

class Subscription:
    """
    Handle returned when registering interest in a locator.

    ``changed`` is set every time a matching change is delivered. The owner
    re-queries on its own schedule and calls ``clear()`` afterwards.
    """

    def __init__(self, notifier: "ChangeNotifier", locator: str, callback: ChangeCallback | None, notify_for_descendants: bool):
        self.locator = locator
        self.callback = callback
        self.notify_for_descendants = notify_for_descendants
        self.active = True
        self._notifier = notifier
        self._key = parse_locator(locator)
        self._changed = threading.Event()

    @property
    def changed(self) -> bool:
        return self._changed.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a change is delivered. Returns False on timeout."""
        return self._changed.wait(timeout)

    def clear(self):
        self._changed.clear()

    def unsubscribe(self):
        if self.active:
            self._notifier.unregister_observer(self)

    def matches(self, changed_key: tuple[str, tuple[str, ...]]) -> bool:
        authority, segments = self._key
        changed_authority, changed_segments = changed_key
        if authority != changed_authority:
            return False

        # Observer sits at or below the changed locator
        if segments[:len(changed_segments)] == changed_segments:
            return True

        # Changed locator sits below the observer
        if self.notify_for_descendants and changed_segments[:len(segments)] == segments:
            return True

        return False

    def _deliver(self, changed_locator: str):
        try:
            if self.callback is not None:
                self.callback(changed_locator)
        finally:
            self._changed.set()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()

    def __repr__(self):
        return f"Subscription(locator={self.locator!r}, active={self.active}, changed={self.changed})"


class ChangeNotifier:
    """
    Publish/subscribe channel between writers and readers of the store.

    Delivery runs on a small thread pool so that a writer never waits for its
    observers. Errors raised by observer callbacks are logged and dropped.
    """

    def __init__(self, max_workers: int = 2):
        if max_workers < 1:
            raise ValueError(f"max_workers should be greater than 0. Got {max_workers}")

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="forecast-notify")
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()
        self._closed = False

    def register_observer(self, locator: str, callback: ChangeCallback | None = None, notify_for_descendants: bool = True) -> Subscription:
        subscription = Subscription(self, locator, callback, notify_for_descendants)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug(f"Registered observer for {locator}")
        return subscription

    def unregister_observer(self, subscription: Subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.active = False
        logger.debug(f"Unregistered observer for {subscription.locator}")

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def notify_change(self, locator: str) -> int:
        """
        Schedule delivery of a change at ``locator`` to every matching observer.

        Returns the number of observers scheduled.
        """
        changed_key = parse_locator(locator)
        with self._lock:
            # close() flips the flag under this lock, so the pool is still running here
            if self._closed:
                logger.warning(f"Notifier is closed. Dropping change notification for {locator}")
                return 0

            targets = [s for s in self._subscriptions if s.matches(changed_key)]
            for subscription in targets:
                self._executor.submit(self._dispatch, subscription, locator)

        logger.debug(f"Change at {locator} scheduled for {len(targets)} observer(s)")
        return len(targets)

    def _dispatch(self, subscription: Subscription, locator: str):
        if not subscription.active:
            return
        try:
            subscription._deliver(locator)
        except Exception:
            logger.exception(f"Observer for {subscription.locator} failed handling change at {locator}")

    def close(self, wait: bool = True):
        """Stop accepting notifications and shut down the delivery pool."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
        logger.debug("Change notifier closed")
