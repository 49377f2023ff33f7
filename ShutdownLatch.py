# ShutdownLatch.py
import threading


class CountDownLatch:
    """
    Blocks waiters until count_down() has been called `count` times.
    The main thread waits on this to know the HTTP server has fully stopped.
    """
    def __init__(self, count=1):
        if count < 0:
            raise ValueError("count must be >= 0")
        self._count = count
        self._cond = threading.Condition()

    @property
    def count(self):
        with self._cond:
            return self._count

    def count_down(self):
        with self._cond:
            if self._count == 0:
                return
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self, timeout=None):
        # True once the count reached zero, False on timeout
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)
