"""Change notifier: polls the store's version and broadcasts changes.

Writes from any connection are seen, including other processes. Notifications
are coalesced: consumers get at least one signal after a change, not one per
change.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from assistant_core.utils.logging import get_logger

logger = get_logger("runtime.notifier")

# Default poll interval in seconds
DEFAULT_POLL_INTERVAL = 1.0

CONFIG_CHANGED = "config_changed"

ChangeCallback = Callable[[str], None]


class ChangeNotifier:
    """Background loop that detects version changes and notifies watchers."""

    def __init__(
        self,
        version_source: Callable[[], int],
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_workers: int = 4,
    ) -> None:
        """Initialize the notifier.

        Args:
            version_source: Returns a scalar that changes whenever the store changes.
            poll_interval: Seconds between checks.
            max_workers: Threads used to run watcher callbacks.
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._version_source = version_source
        self._poll_interval = poll_interval
        self._watchers: list[ChangeCallback] = []
        self._watchers_lock = threading.Lock()
        self._reload_signal: queue.Queue[str] = queue.Queue(maxsize=1)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notifier-watcher"
        )
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stopped = False
        self._last_version: int | None = None
        self._check_lock = threading.Lock()

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def reload_signal(self) -> queue.Queue[str]:
        """Single-slot queue holding a pending reload notification."""
        return self._reload_signal

    @property
    def last_version(self) -> int | None:
        return self._last_version

    def on_change(self, callback: ChangeCallback) -> None:
        """Register ``callback(event)`` to run after each detected change."""
        with self._watchers_lock:
            self._watchers.append(callback)

    def wait_for_reload(self, timeout: float | None = None) -> bool:
        """Consume one pending reload signal, waiting up to ``timeout``."""
        try:
            self._reload_signal.get(timeout=timeout)
        except queue.Empty:
            return False
        return True

    def check_now(self) -> bool:
        """Run one version check; returns True when a change was broadcast."""
        try:
            version = self._version_source()
        except Exception as e:
            logger.debug("Version read failed, retrying next tick: %s", e)
            return False

        with self._check_lock:
            if self._last_version is not None and version == self._last_version:
                return False
            # No baseline yet counts as a change
            self._last_version = version
        self._notify(CONFIG_CHANGED)
        return True

    def _notify(self, event: str) -> None:
        with self._watchers_lock:
            watchers = list(self._watchers)

        logger.debug("Broadcasting %s to %d watcher(s)", event, len(watchers))
        for callback in watchers:
            try:
                future = self._executor.submit(callback, event)
            except RuntimeError:
                # Executor already shut down
                return
            future.add_done_callback(_log_watcher_failure)

        try:
            self._reload_signal.put_nowait(event)
        except queue.Full:
            pass

    def start(self) -> None:
        """Take a baseline reading and start the polling thread."""
        with self._state_lock:
            if self._stopped:
                raise RuntimeError("ChangeNotifier cannot be restarted after stop()")
            if self._thread is not None:
                return
            try:
                self._last_version = self._version_source()
            except Exception as e:
                logger.debug("Initial version read failed: %s", e)
            self._thread = threading.Thread(
                target=self._poll_loop, name="change-notifier", daemon=True
            )
            self._thread.start()
        logger.debug("Change notifier started (interval=%.2fs)", self._poll_interval)

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            self.check_now()

    def stop(self) -> None:
        """Stop polling. Only the first call has an effect."""
        with self._state_lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._executor.shutdown(wait=False)
        logger.debug("Change notifier stopped")

    def __enter__(self) -> ChangeNotifier:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def _log_watcher_failure(future: Future[None]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("Change watcher failed: %s", exc)
