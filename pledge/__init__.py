# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

from .decorators import wrap_promise
from .deferred import Deferred
from .errors import (AggregateError, CancelledError, PromiseError,
                     RejectionError, TimeoutError)
from .promise import Promise
from .reduce_coroutine import reduce_coroutine
from .timer import (ManualTimer, ThreadTimer, get_default_timer,
                    set_default_timer)
from .util import is_thenable

__all__ = ['AggregateError', 'CancelledError', 'Deferred', 'ManualTimer',
           'Promise', 'PromiseError', 'RejectionError', 'ThreadTimer',
           'TimeoutError', 'get_default_timer', 'is_thenable',
           'reduce_coroutine', 'set_default_timer', 'wrap_promise']
