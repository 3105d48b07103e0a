import threading

from tools.scheduler import ThreadingScheduler, TimerHandle, get_scheduler


def test_callback_runs_after_delay():
    fired = threading.Event()
    handle = ThreadingScheduler().call_later(10, fired.set)
    handle.join(timeout=2)
    assert fired.is_set()
    assert handle.done


def test_cancelled_callback_never_runs():
    fired = threading.Event()
    handle = ThreadingScheduler().call_later(200, fired.set)
    handle.cancel()
    handle.cancel()
    handle.join(timeout=2)
    assert handle.cancelled
    assert not fired.is_set()


def test_cancel_after_timer_fired_still_blocks_callback():
    calls = []
    handle = TimerHandle(lambda: calls.append(1))
    handle.cancel()
    handle._run()
    assert calls == []


def test_failing_callback_is_logged(caplog):
    def boom():
        raise RuntimeError("bad callback")

    handle = ThreadingScheduler().call_later(0, boom)
    handle.join(timeout=2)
    assert "Scheduled callback failed" in caplog.text


def test_get_scheduler_is_singleton():
    assert get_scheduler() is get_scheduler()
