# -*- coding: utf-8 -*-

"""Host timers, used by `Promise.delay()` and `Promise.timeout()`.

A host timer is any callable accepting `(delay, callback)`: it must call
`callback()` once, not before `delay` seconds have elapsed, and never from
inside the call who scheduled it.
"""

import heapq
import itertools
import logging
from threading import Lock, Timer

from .common import config

_logger = logging.getLogger(__name__)


class ThreadTimer(object):
    """Host timer executing each callback in its own `threading.Timer`."""

    def __init__(self, name='PromiseTimer'):
        """
        Args:
            name (str, optional): name given to the timer threads.
        """
        self.name = name

    def __call__(self, delay, callback):
        """Schedule the callback.

        Args:
            delay (float): delay in seconds.
            callback (callable): called without argument.
        Returns:
            threading.Timer: the started timer. It can be cancelled.
        """
        timer = Timer(delay, callback)
        timer.name = self.name
        timer.daemon = True
        timer.start()
        return timer


class ScheduledCall(object):
    """Handle of a callback scheduled on a `ManualTimer`."""

    def __init__(self, timer, entry):
        self._timer = timer
        self._entry = entry

    def cancel(self):
        """Prevent the callback to be called.

        Returns:
            boolean: True if the callback was still scheduled.
        """
        return self._timer._remove(self._entry)


class ManualTimer(object):
    """Host timer with a fake clock, advanced manually.

    Nothing happens until `advance()` is called. It allows to write
    deterministic code (and tests) on top of delays and timeouts.

    Example:

        >>> timer = ManualTimer()
        >>> p = Promise.resolve(3).delay(10, timer)
        >>> timer.advance(10)
        >>> p.result(0)
        3
    """

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._counter = itertools.count()
        self._lock = Lock()

    @property
    def pending(self):
        """int: number of callbacks not fired yet."""
        with self._lock:
            return len(self._queue)

    def __call__(self, delay, callback):
        """Schedule the callback.

        Returns:
            ScheduledCall: handle who can cancel the call.
        """
        with self._lock:
            entry = (self.now + max(delay, 0), next(self._counter), callback)
            heapq.heappush(self._queue, entry)
        return ScheduledCall(self, entry)

    def _remove(self, entry):
        with self._lock:
            try:
                self._queue.remove(entry)
            except ValueError:
                return False  # Already fired or cancelled.
            heapq.heapify(self._queue)
            return True

    def advance(self, seconds=0):
        """Move the clock forward, and fire all callbacks due.

        Callbacks are executed in the order of their due time; callbacks due
        at the same time are executed in scheduling order. A callback
        scheduled by another callback is fired in the same call if it's due.

        Args:
            seconds (float): time to add to the clock.
        """
        target = self.now + seconds
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    self.now = target
                    return
                due_time, _, callback = heapq.heappop(self._queue)
                self.now = due_time
            callback()


_default_timer = None
_timer_factories = {
    'thread': ThreadTimer,
    'manual': ManualTimer
}


def get_default_timer():
    """Returns the timer used when no timer is passed explicitly.

    On first call, it's built from the config entry 'default_timer'.
    """
    global _default_timer

    if _default_timer is None:
        timer_name = config.get('default_timer')
        if timer_name not in _timer_factories:
            _logger.warning('Unknown default timer "%s". Use "thread" '
                            'instead.', timer_name)
            timer_name = 'thread'
        _logger.debug('Create default timer: %s', timer_name)
        _default_timer = _timer_factories[timer_name]()
    return _default_timer


def set_default_timer(timer):
    """Replace the default timer.

    Args:
        timer (callable): new host timer. If None, the next call to
            `get_default_timer()` will build a new one from the config.
    """
    global _default_timer

    _default_timer = timer
