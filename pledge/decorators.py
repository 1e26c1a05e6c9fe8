# -*- coding: utf-8 -*-

from functools import wraps

from .promise import Promise
from .util import is_thenable


def wrap_promise(f):
    """Decorator who converts the result in a Promise object.

    If the function decorated returns a thenable, it's transmitted as is.
    Else, a new Promise is created with the returned value as result. If the
    function raises an exception, the Promise is rejected.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            result = f(*args, **kwargs)
        except Exception as error:
            return Promise.reject(error)
        if is_thenable(result):
            return result
        return Promise.resolve(result)

    return wrapper
