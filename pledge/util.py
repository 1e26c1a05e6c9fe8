# -*- coding: utf-8 -*-


def is_thenable(value):
    """Check if an object can be chained, like a Promise, or is a "result".

    Helpers like `wrap_promise` and `reduce_coroutine` use this function to
    differentiate "chainable" objects and direct return values.
    Note that `Promise.then()` itself never unwraps a thenable.

    Returns:
        boolean: True if the value has an attribute 'then' who is callable.
            False if not.
    """
    return callable(getattr(value, 'then', None))
