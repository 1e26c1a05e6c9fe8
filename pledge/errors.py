# -*- coding: utf-8 -*-


class PromiseError(Exception):
    """Base class of the errors produced by the promise engine."""
    pass


class CancelledError(PromiseError):
    """The promise has been cancelled before being settled."""
    pass


class TimeoutError(PromiseError):
    """An operation could not be executed within the time allowed."""
    pass


class AggregateError(PromiseError):
    """All the promises given to `Promise.any()` have been rejected.

    Attributes:
        reasons (dict): rejection reasons, keyed by the index of the promise
            in the list passed to `Promise.any()`.
    """

    def __init__(self, reasons):
        PromiseError.__init__(self, 'All promises were rejected (%s)'
                              % len(reasons))
        self.reasons = reasons


class RejectionError(PromiseError):
    """Wraps a rejection reason who is not an exception.

    A promise can be rejected with any value. When this value must be raised
    (by `Promise.result()` or inside a coroutine), it's wrapped in this
    error.

    Attributes:
        reason: the original rejection reason.
    """

    def __init__(self, reason):
        PromiseError.__init__(self, 'Promise rejected with non-exception '
                              'value: %r' % (reason,))
        self.reason = reason


def as_exception(reason):
    """Returns the reason itself if it can be raised, or wraps it."""
    if isinstance(reason, BaseException):
        return reason
    return RejectionError(reason)
