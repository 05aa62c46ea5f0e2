"""Tests for ExitSignal and WaitRegistry."""

import threading

from kubeunits.wait_registry import ExitSignal, WaitRegistry


class TestExitSignal:
    """Tests for ExitSignal."""

    def test_not_fired_initially(self):
        signal = ExitSignal()
        assert not signal.fired
        assert signal.wait(timeout=0.01) is False

    def test_close_releases_waiters(self):
        signal = ExitSignal()
        signal.close()
        assert signal.fired
        assert signal.wait(timeout=0.01) is True
        assert signal.value is None

    def test_send_keeps_first_value(self):
        signal = ExitSignal()
        signal.send("exited")
        signal.send("again")
        signal.close()
        assert signal.value == "exited"

    def test_double_close_is_noop(self):
        signal = ExitSignal()
        signal.close()
        signal.close()
        assert signal.fired

    def test_broadcast_to_all_waiters(self):
        signal = ExitSignal()
        released = []
        lock = threading.Lock()

        def waiter():
            signal.wait()
            with lock:
                released.append(True)

        threads = [threading.Thread(target=waiter) for _ in range(5)]
        for t in threads:
            t.start()
        signal.close()
        for t in threads:
            t.join(timeout=5)

        assert len(released) == 5


class TestWaitRegistry:
    """Tests for WaitRegistry."""

    def test_register_and_lookup(self):
        registry = WaitRegistry()
        signal = ExitSignal()

        registry.register("a", signal)

        assert registry.lookup("a") is signal
        assert "a" in registry
        assert len(registry) == 1

    def test_lookup_missing(self):
        assert WaitRegistry().lookup("missing") is None

    def test_register_overwrites(self):
        registry = WaitRegistry()
        first, second = ExitSignal(), ExitSignal()

        registry.register("a", first)
        registry.register("a", second)

        assert registry.lookup("a") is second
        assert not first.fired

    def test_remove_missing_is_safe(self):
        registry = WaitRegistry()
        registry.remove("missing")
        assert len(registry) == 0

    def test_release_closes_and_removes(self):
        registry = WaitRegistry()
        signal = ExitSignal()
        registry.register("a", signal)

        assert registry.release("a") is True
        assert signal.fired
        assert registry.lookup("a") is None
        assert registry.release("a") is False

    def test_names_snapshot(self):
        registry = WaitRegistry()
        registry.register("b", ExitSignal())
        registry.register("a", ExitSignal())
        assert registry.names() == ["a", "b"]

    def test_concurrent_register_and_remove(self):
        registry = WaitRegistry()

        def churn(prefix):
            for i in range(200):
                name = f"{prefix}-{i}"
                registry.register(name, ExitSignal())
                registry.release(name)

        threads = [threading.Thread(target=churn, args=(str(n),)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(registry) == 0
