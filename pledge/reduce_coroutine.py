# -*- coding: utf-8 -*-

from functools import wraps

from .deferred import Deferred
from .errors import RejectionError, as_exception
from .promise import Promise
from .util import is_thenable


def reduce_coroutine(safeguard=False):
    """Decorator who converts a coroutine of promises into a single promise.

    The greatest interest is the ability to write a function in an
    synchronous-like style, using many asynchronous Promises.
    Whatever is the number of Promises or async calls used, the result will
    always be an unique Promise wrapping the whole process.

    Each yielded Promise is waited: its value is sent back into the
    generator, or its rejection reason is raised at the `yield` expression.
    The first value yielded who is not a Promise is the result, as is the
    value returned by the generator. If the generator ends without any of
    them, the last value received is the result.

    Args:
        safeguard (boolean): if true, use `Promise.safeguard()` on the
            resulting promise.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(_name='COROUTINE %s' % func.__name__)
            if safeguard:
                df.promise.safeguard()

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _end(stop, last_value):
                if stop.value is not None:
                    df.resolve(stop.value)
                else:
                    df.resolve(last_value)

            def _run(method, arg, last_value):
                """Iter the generator until it waits a pending thenable.

                Promises already settled are consumed in this loop, so a long
                sequence of them doesn't grow the stack.
                """
                while True:
                    try:
                        yielded_value = method(arg)
                    except StopIteration as stop:
                        return _end(stop, last_value)
                    except Exception as error:
                        if (isinstance(error, RejectionError) and
                                error is arg):
                            # Non-exception reason raised again, unwrapped.
                            return df.reject(error.reason)
                        return df.reject(error)

                    if not is_thenable(yielded_value):
                        gen.close()
                        return df.resolve(yielded_value)

                    if (isinstance(yielded_value, Promise) and
                            yielded_value.state != Promise.PENDING):
                        if yielded_value.state == Promise.FULFILLED:
                            method, arg = gen.send, yielded_value.value
                            last_value = arg
                        else:
                            method = gen.throw
                            arg = as_exception(yielded_value.value)
                            last_value = None
                        continue

                    return yielded_value.then(iter_next, iter_error)

            def iter_next(received_value):
                _run(gen.send, received_value, received_value)

            def iter_error(reason):
                _run(gen.throw, as_exception(reason), None)

            # Start and resolve loop.
            _run(gen.send, None, None)

            return df.promise

        return wrapper
    return decorator
