import threading
import time
from typing import Callable


class Throttle:
    """Fixed politeness delay between page visits and linear backoff between retries.

    With a stop_event, waits return as soon as the event is set.
    """

    def __init__(
        self,
        delay_seconds: float,
        sleep: Callable[[float], None] | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.delay_seconds = delay_seconds
        self.stop_event = stop_event
        if sleep is not None:
            self._sleep = sleep
        elif stop_event is not None:
            self._sleep = stop_event.wait
        else:
            self._sleep = time.sleep

    @property
    def cancelled(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def _wait(self, seconds: float) -> None:
        if seconds > 0 and not self.cancelled:
            self._sleep(seconds)

    def pause(self) -> None:
        self._wait(self.delay_seconds)

    def backoff(self, attempt: int) -> None:
        self._wait(self.delay_seconds * attempt)
