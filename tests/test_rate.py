import threading
import time

from imagecrawlerlib.rate import Throttle


def test_throttle_pause_and_backoff():
    sleeps = []
    throttle = Throttle(0.5, sleep=sleeps.append)
    throttle.pause()
    assert sleeps == [0.5]
    throttle.backoff(1)
    throttle.backoff(2)
    assert sleeps == [0.5, 0.5, 1.0]


def test_throttle_zero_delay_never_sleeps():
    sleeps = []
    throttle = Throttle(0.0, sleep=sleeps.append)
    throttle.pause()
    throttle.backoff(3)
    assert sleeps == []


def test_throttle_skips_waits_once_stopped():
    stop = threading.Event()
    throttle = Throttle(30.0, stop_event=stop)
    stop.set()
    t0 = time.monotonic()
    throttle.pause()
    throttle.backoff(2)
    assert throttle.cancelled
    assert time.monotonic() - t0 < 1.0


def test_throttle_stop_interrupts_running_wait():
    stop = threading.Event()
    throttle = Throttle(30.0, stop_event=stop)
    timer = threading.Timer(0.05, stop.set)
    timer.start()
    t0 = time.monotonic()
    throttle.pause()
    timer.join()
    assert time.monotonic() - t0 < 5.0
