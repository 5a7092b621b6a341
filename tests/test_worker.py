import threading

from autoaccept.core.worker import PeriodicWorker


def test_callback_returning_false_ends_loop():
    calls = []

    def cb():
        calls.append(1)
        return len(calls) < 3

    worker = PeriodicWorker(cb, 0.005, name="test-worker")
    worker.start()
    worker.join(2.0)
    assert not worker.is_alive()
    assert len(calls) == 3
    assert worker.ticks == 3
    assert worker.stopping


def test_exceptions_do_not_kill_the_loop():
    done = threading.Event()
    calls = []

    def cb():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("transient")
        done.set()
        return False

    worker = PeriodicWorker(cb, 0.005)
    worker.start()
    assert done.wait(2.0)
    worker.join(2.0)
    assert len(calls) == 2


def test_stop_wait_joins_thread():
    worker = PeriodicWorker(lambda: None, 10.0)
    worker.start()
    assert worker.is_alive()
    worker.stop(wait=True, timeout=2.0)
    assert not worker.is_alive()
    assert worker.ticks == 0


def test_join_from_own_thread_is_a_noop():
    holder = {}

    def cb():
        holder["worker"].join()
        return False

    worker = PeriodicWorker(cb, 0.005)
    holder["worker"] = worker
    worker.start()
    worker.join(2.0)
    assert not worker.is_alive()
