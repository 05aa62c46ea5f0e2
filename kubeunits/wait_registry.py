"""
Exit-handle registry.

Each started unit gets a one-shot ExitSignal registered under its workload
name. Wait blocks on the signal; Stop closes it and drops the entry. The
registry lock is only held while touching the dict, never while waiting.
"""

import threading
from typing import Optional


class ExitSignal:
    """
    One-shot broadcast signal.

    ``send`` and ``close`` fire the signal once; every current and future
    waiter is released. Firing again is a no-op, and the first sent value
    is kept.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    def send(self, value: str) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._value = value
            self._event.set()

    def close(self) -> None:
        with self._lock:
            self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until fired. Returns False only if ``timeout`` elapsed."""
        return self._event.wait(timeout)

    @property
    def fired(self) -> bool:
        return self._event.is_set()

    @property
    def value(self) -> Optional[str]:
        """Value passed to ``send``; None if closed without one."""
        return self._value


class WaitRegistry:
    """
    Thread-safe mapping from workload name to its ExitSignal.

    Usage:
        registry = WaitRegistry()
        registry.register("cc-peer0-mycc-1.0", ExitSignal())

        signal = registry.lookup("cc-peer0-mycc-1.0")
        registry.release("cc-peer0-mycc-1.0")  # close + remove
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signals: dict[str, ExitSignal] = {}

    def register(self, name: str, signal: ExitSignal) -> None:
        """Register ``signal`` under ``name``, replacing any existing entry."""
        with self._lock:
            self._signals[name] = signal

    def lookup(self, name: str) -> Optional[ExitSignal]:
        with self._lock:
            return self._signals.get(name)

    def remove(self, name: str) -> None:
        """Drop the entry for ``name``; missing names are ignored."""
        with self._lock:
            self._signals.pop(name, None)

    def release(self, name: str) -> bool:
        """
        Close and remove the signal for ``name`` in one step.

        Returns:
            True if a signal was registered
        """
        with self._lock:
            signal = self._signals.pop(name, None)
        if signal is None:
            return False
        signal.close()
        return True

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._signals)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._signals

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)
