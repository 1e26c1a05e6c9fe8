# -*- coding: utf-8 -*-

import logging
from functools import partial
from threading import Condition, Lock

from .errors import AggregateError, CancelledError, TimeoutError, as_exception
from .timer import get_default_timer

_logger = logging.getLogger(__name__)


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise contains a value not yet known when the Promise is created. It
    allows to set callbacks who will be called as soon as the result is
    known. It's a "promise" of a future value.

    Callbacks are executed synchronously, in the call who settles the
    Promise, in the order they have been registered. Callbacks registered on
    an already settled Promise are executed immediately.

    All calls to the methods are thread-safe.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'

    def __init__(self, executor, _name=None, _previous=None):
        """Constructor of the Promise.

        Generate the three callbacks for the executor, then call the
        `executor`. It means the executor will be fully executed before the
        constructor returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception.

        Args:
            executor (callable): Takes 3 callable arguments:
                The first one, `resolve()` should be called when the Promise
                is fulfilled (ie the tasks is done) and must accept the
                result's value as its only argument.
                The second, `reject()`, should be called when an error
                occurs. Its argument is the rejection reason, usually an
                instance of `Exception`.
                The third, `notify_progress()`, can be called any number of
                times while the task is running, with a progress value.
            _name (str): if set, name used when converted to text.
            _previous (Promise): if set, the Promise this one is derived
                from. Only used when converted to text.
        """

        self._state = self.PENDING
        self._value = None
        self._condition = Condition()
        self._name = _name or getattr(executor, '__name__', '???')
        self._previous = _previous

        self._callbacks = []
        self._progress_callbacks = []
        self._cancellation_token = None

        def resolve(value):
            return self._settle(self.FULFILLED, value)

        def reject(reason):
            return self._settle(self.REJECTED, reason)

        try:
            executor(resolve, reject, self._notify_progress)
        except Exception as error:
            reject(error)

    @property
    def state(self):
        """str: one of PENDING, FULFILLED, REJECTED or CANCELLED."""
        with self._condition:
            return self._state

    @property
    def value(self):
        """Result, rejection reason or cancel error. None while pending."""
        with self._condition:
            return self._value

    def _settle(self, state, value):
        """Move out of the PENDING state, then execute the callbacks.

        Returns:
            boolean: True if the state has changed; False if the Promise was
                already settled.
        """
        with self._condition:
            if self._state != self.PENDING:
                _logger.debug('Try to settle Promise %s already settled. '
                              'New state %s will be ignored: %r',
                              self, state, value)
                return False
            self._value = value
            self._state = state
            callbacks = self._callbacks

            # Free the references
            self._callbacks = None
            self._progress_callbacks = None
            self._cancellation_token = None
            self._previous = None

            self._condition.notify_all()

        for callback in callbacks:
            self._exec_callback(callback)
        return True

    def _notify_progress(self, progress):
        with self._condition:
            if self._state != self.PENDING:
                return
            observers = list(self._progress_callbacks)
            value = self._value

        for observer in observers:
            try:
                observer(progress, value)
            except Exception:
                _logger.warning('Progress callback %r of Promise %s raised '
                                'an exception. Ignored.', observer, self,
                                exc_info=True)

    def result(self, timeout=None):
        """Wait for the result and returns it as soon as it's available.

        Args:
            timeout (float, optional): if set, maximum time to wait the
                promise to be fulfilled. By default, it can wait indefinitely.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            CancelledError: if the promise has been cancelled.
            *: If the promise is rejected, the rejection cause is raised. If
                it's not an exception, it's wrapped in a `RejectionError`.
        """
        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait(timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            elif self._state == self.FULFILLED:
                return self._value
            else:
                raise as_exception(self._value)

    def exception(self, timeout=None):
        """Wait for the promise rejection and returns it's reason.

        Args:
            timeout (float, optional): if set, maximum time to wait the
                promise to be rejected. By default, it can wait indefinitely.
        Returns:
            *: the reason of the rejection, or the `CancelledError` if the
                promise has been cancelled.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """

        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait(timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            elif self._state == self.FULFILLED:
                return None
            else:
                return self._value

    def _forward(self, resolve, reject):
        """Transfer the outcome of this settled promise to other callbacks.

        A cancelled promise is forwarded as a rejection.
        """
        if self._state == self.FULFILLED:
            resolve(self._value)
        else:
            reject(self._value)

    def then(self, on_fulfilled=None, on_rejected=None, on_progress=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected or cancelled), the
        `on_rejected` callback is called.
        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected. Otherwise, the new Promise is fulfilled with the returned
        value, as is: a Promise returned by a callback is not unwrapped.

        If a callback is not defined, the state of the "self promise" is
        transferred at the new promise (the state and the value/reason).
        A cancelled promise is transferred as a rejection by `CancelledError`.

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                rejection reason of the original promise as argument.
            on_progress (callable, optional): Progress observer of the
                original promise. It receives the progress value and the
                (still unset) value of the promise.
        Returns:
            Promise<*>: new promise depending of self.
        """

        def deferred_chained_promise(resolve, reject, _notify_progress):

            def callback():
                if self._state == self.FULFILLED:
                    handler, fallback = on_fulfilled, resolve
                else:
                    handler, fallback = on_rejected, reject

                if handler is None:
                    return fallback(self._value)
                try:
                    result = handler(self._value)
                except Exception as error:
                    return reject(error)
                resolve(result)

            if on_progress is not None:
                self._add_progress_callback(on_progress)
            self._add_callback(callback)

        if not on_rejected:
            name = '%s' % getattr(on_fulfilled, '__name__', '???')
        elif not on_fulfilled:
            name = '<None, %s>' % getattr(on_rejected, '__name__', '???')
        else:
            name = '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                                 getattr(on_rejected, '__name__', '???'))
        return Promise(deferred_chained_promise, _name=name, _previous=self)

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Will receive the rejection reason if
                `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    def progress(self, on_progress):
        """Alias of `self.then(None, None, on_progress)`"""
        return self.then(None, None, on_progress)

    def finally_(self, on_finally):
        """Call `on_finally()` when the promise is settled, whatever happens.

        The returned Promise is settled exactly like `self`: same value, or
        same rejection reason. If `on_finally()` raises an exception, the
        returned Promise is rejected with it.

        Args:
            on_finally (callable): called without argument.
        Returns:
            Promise<*>: new Promise chained to `self`.
        """
        def finally_promise(resolve, reject, _notify_progress):
            def callback():
                try:
                    on_finally()
                except Exception as error:
                    return reject(error)
                self._forward(resolve, reject)

            self._add_callback(callback)

        return Promise(finally_promise, _name='FINALLY', _previous=self)

    def chain(self, *promises):
        """Wait for this promise, then for each of the others, in order.

        Values of the intermediate promises are ignored: the resulting
        Promise is settled like the last promise of the sequence. As soon as
        one of them is rejected (or cancelled), the resulting Promise is
        rejected and the next ones are not considered.

        Args:
            *promises (Promise): promises to wait after this one.
        Returns:
            Promise<*>: settled as the last promise of the sequence.
        """
        def chained_promise(resolve, reject, _notify_progress):
            def callback():
                if self._state != self.FULFILLED or not promises:
                    return self._forward(resolve, reject)

                next_promise = promises[0].chain(*promises[1:])
                next_promise._add_callback(
                    partial(next_promise._forward, resolve, reject))

            self._add_callback(callback)

        return Promise(chained_promise, _name='CHAIN', _previous=self)

    def delay(self, seconds, timer=None):
        """Create a promise fulfilled a while after this one.

        Args:
            seconds (float): time to wait once `self` is fulfilled.
            timer (callable, optional): host timer used to wait. Default to
                `get_default_timer()`.
        Returns:
            Promise<*>: fulfilled with the same value than `self`, `seconds`
                after it. If `self` is rejected, it's rejected immediately.
        """
        timer = timer or get_default_timer()

        def delayed_promise(resolve, reject, _notify_progress):
            def callback():
                if self._state == self.FULFILLED:
                    timer(seconds, partial(resolve, self._value))
                else:
                    self._forward(resolve, reject)

            self._add_callback(callback)

        return Promise(delayed_promise, _name='DELAY %ss' % seconds,
                       _previous=self)

    def timeout(self, seconds, timer=None):
        """Returns a promise rejected if `self` is not settled in time.

        It's a race between `self` and a timer. If the host timer returns a
        handle with a `cancel()` method, it's cancelled once `self` is
        settled. Note that `self` is not cancelled when the timer wins; use
        `cancel()` for that.

        Args:
            seconds (float): maximum time allowed.
            timer (callable, optional): host timer used to wait. Default to
                `get_default_timer()`.
        Returns:
            Promise<*>: settled like `self`, or rejected with a
                `TimeoutError` after `seconds`.
        """
        timer = timer or get_default_timer()

        def timer_executor(_resolve, reject, _notify_progress):
            handle = timer(seconds, partial(
                reject, TimeoutError('Promise timed out after %ss' % seconds)))

            # Release the timer as soon as the race is decided by self.
            cancel_timer = getattr(handle, 'cancel', None)
            if callable(cancel_timer):
                self._add_callback(cancel_timer)

        timeout_promise = Promise(timer_executor,
                                  _name='TIMEOUT %ss' % seconds)
        return Promise.race([self, timeout_promise])

    def with_cancellation(self, token):
        """Attach a cancellation token to the promise.

        The token is called by `cancel()`. It should stop the underlying
        task. A token can be attached only once; it has no effect on a
        promise already settled.

        Args:
            token (callable): called without argument.
        Returns:
            Promise: self
        """
        with self._condition:
            if self._state != self.PENDING:
                return self
            if self._cancellation_token is not None:
                _logger.warning('Promise %s has already a cancellation '
                                'token. The new one is ignored.', self)
                return self
            self._cancellation_token = token
        return self

    def cancel(self):
        """Cancel the promise, using its cancellation token.

        The promise is set in the CANCELLED state, and the promises chained
        to it are rejected by a `CancelledError`. Then the token is called.
        Calls to resolve() or reject() made by the task after that are
        ignored.

        Returns:
            boolean: True if the promise has been cancelled. False if it was
                already settled, or if it has no cancellation token.
        """
        with self._condition:
            if self._state != self.PENDING:
                return False
            token = self._cancellation_token
        if token is None:
            return False

        if not self._settle(self.CANCELLED,
                            CancelledError('Promise %s cancelled' % self)):
            return False
        _logger.debug('Promise %s cancelled', self)
        token()
        return True

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        This method is aimed to protect the program from uncaught rejected
        Promise. If no error handler has been set (via then() or catch()), the
        default behavior is to do nothing, and thus, errors are silently
        ignored.
        Calling `safeguard()` after all chains are set will catch these errors,
        and log them as ERROR with the maximum of details possible.
        """
        def guard():
            if self._state == self.FULFILLED:
                return
            if isinstance(self._value, BaseException):
                _logger.error('[SAFEGUARD] %s', self, exc_info=self._value)
            else:
                _logger.error('[SAFEGUARD] %s rejected: %r', self,
                              self._value)

        self._add_callback(guard)

    def __repr__(self):
        return 'Promise(%s)' % self._inner_print()

    def _inner_print(self):
        with self._condition:
            state = self._state[0].upper()
            previous = self._previous

        if previous:
            return '%s -> %s %s' % (previous._inner_print(), self._name,
                                    state)
        return '%s %s' % (self._name, state)

    @classmethod
    def resolve(cls, value):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. A Promise is not unwrapped: it
                becomes the value of the new one.
        Returns:
            Promise: new Promise already fulfilled, containing the value
                passed in parameter.
        """
        return cls(lambda ok, _error, _progress: ok(value), _name='RESOLVE')

    @classmethod
    def reject(cls, reason):
        """Create a Promise rejected for the reason specified.

        Args:
            reason: rejection reason, usually an Exception.
        Returns:
            Promise: new Promise already rejected.
        """
        return cls(lambda _ok, error, _progress: error(reason),
                   _name='REJECT')

    @classmethod
    def all(cls, promises):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list are
        resolved, and returns a list of all the resulting values, keeping the
        order of the promise list.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            promises (iterable of Promise)
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises
                are fulfilled, or rejected when one of the promises has been
                rejected.
        """
        promises = list(promises)
        lock = Lock()

        _remaining_tasks = [len(promises)]
        results = [None] * len(promises)

        if _remaining_tasks[0] == 0:
            return cls.resolve([])

        def executor(resolve, reject, _notify_progress):
            def resolve_one_promise(index, value):
                with lock:
                    results[index] = value
                    _remaining_tasks[0] -= 1
                    is_done = _remaining_tasks[0] == 0
                if is_done:
                    resolve(list(results))

            for index, p in enumerate(promises):
                p.then(partial(resolve_one_promise, index), reject)

        return cls(executor, _name='ALL')

    @classmethod
    def race(cls, promises):
        """Resolve or reject with the fastest Promise.

        The resulting Promise will be settled as soon as the one of the given
        Promises is settled. Result value or rejection reason of the finished
        promise are transmitted. If several promises are already settled, the
        first of the list wins.
        All other Promise result's will be ignored. They are not cancelled.

        Args:
            promises (iterable of Promise): promises to race.
        Returns:
            Promise: a promise
        Raises:
            ValueError: If the promise list is empty.
        """
        promises = list(promises)
        if not promises:
            raise ValueError('Empty promise list in Promise.race()')

        def executor(resolve, reject, _notify_progress):
            for p in promises:
                p.then(resolve, reject)

        return cls(executor, _name='RACE')

    @classmethod
    def any(cls, promises):
        """Resolve with the first Promise fulfilled.

        If all promises are rejected, the resulting Promise is rejected with
        an `AggregateError`. Its `reasons` attribute is a dict associating the
        index of each promise to its rejection reason.

        Args:
            promises (iterable of Promise): promises to wait.
        Returns:
            Promise: fulfilled with the value of the first fulfilled promise.
        """
        promises = list(promises)
        lock = Lock()

        _remaining_tasks = [len(promises)]
        rejections = {}

        if _remaining_tasks[0] == 0:
            return cls.reject(AggregateError(rejections))

        def executor(resolve, reject, _notify_progress):
            def reject_one_promise(index, reason):
                with lock:
                    rejections[index] = reason
                    _remaining_tasks[0] -= 1
                    is_done = _remaining_tasks[0] == 0
                if is_done:
                    reject(AggregateError(dict(rejections)))

            for index, p in enumerate(promises):
                p.then(resolve, partial(reject_one_promise, index))

        return cls(executor, _name='ANY')

    def _exec_callback(self, callback):
        try:
            callback()
        except Exception:
            _logger.exception('Callback of Promise %s raise an exception!',
                              self)

    def _add_callback(self, callback):
        """Register a continuation, called without argument on settlement.

        If the promise is already settled, it's executed immediately.
        """
        with self._condition:
            if self._state == self.PENDING:
                self._callbacks.append(callback)
                return

        self._exec_callback(callback)

    def _add_progress_callback(self, on_progress):
        with self._condition:
            if self._state == self.PENDING:
                self._progress_callbacks.append(on_progress)
