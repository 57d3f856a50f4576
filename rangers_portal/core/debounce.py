import time
from typing import Any, Callable


class Debouncer:
    """Collapse bursts of calls into one, fired ``wait`` seconds after the last.

    Nothing runs in the background: the owner calls :meth:`poll` from its
    event loop (or :meth:`flush` to fire immediately).
    """

    def __init__(self, wait: float, func: Callable[..., Any], clock: Callable[[], float] = time.monotonic):
        self.wait = wait
        self.func = func
        self.clock = clock
        self._deadline: float | None = None
        self._args: tuple = ()
        self._kwargs: dict = {}

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        self._args = args
        self._kwargs = kwargs
        self._deadline = self.clock() + self.wait

    def poll(self) -> bool:
        if self._deadline is None or self.clock() < self._deadline:
            return False
        self._fire()
        return True

    def flush(self) -> bool:
        if self._deadline is None:
            return False
        self._fire()
        return True

    def cancel(self) -> None:
        self._deadline = None
        self._args = ()
        self._kwargs = {}

    def _fire(self) -> None:
        args, kwargs = self._args, self._kwargs
        self.cancel()
        self.func(*args, **kwargs)
