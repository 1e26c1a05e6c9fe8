# -*- coding: utf-8 -*-

import pytest

import pledge
from pledge import Deferred, ManualTimer, Promise, RejectionError


class Err(Exception):
    pass


class TestReduceCoroutine(object):

    def test_reduce_two_promises_coroutine(self):
        """Use @reduce_coroutine on a generator of two fulfilled promises.

        The most common Promise-generator case: a generator who yield two
        promises. the decorated coroutine must return a Promise who resolves
        when the generator is over.

        The last promise yielded contains the "result" value.
        """

        @pledge.reduce_coroutine()
        def generator():
            first_value = yield Promise.resolve(1)
            assert first_value == 1
            yield Promise.resolve(2)

        p = generator()
        assert isinstance(p, Promise)
        assert p.result() == 2

    def test_reduce_direct_value_coroutine(self):
        """Use @reduce_coroutine on a generator yielding non-future result.

        The last value yielded by the generator is the "return" value. In this
        scenario, it's yielded without being wrapped in a Promise.
        """

        @pledge.reduce_coroutine()
        def generator():
            first_value = yield Promise.resolve(1)
            assert first_value
            second_value = yield Promise.resolve(2)
            assert second_value == 2
            yield 3

        p = generator()
        assert p.result() == 3

    def test_reduce_coroutine_return_value(self):
        @pledge.reduce_coroutine()
        def generator():
            value = yield Promise.resolve(20)
            return value + 1

        assert generator().result() == 21

    def test_reduce_coroutine_with_pending_promises(self):
        timer = ManualTimer()

        @pledge.reduce_coroutine()
        def generator():
            a = yield Promise.resolve('a').delay(1, timer)
            b = yield Promise.resolve('b').delay(1, timer)
            return a + b

        p = generator()
        assert p.state == Promise.PENDING
        timer.advance(1)
        assert p.state == Promise.PENDING
        timer.advance(1)
        assert p.result(0) == 'ab'

    def test_reduce_coroutine_with_failed_promise(self):
        """Use @reduce_coroutine on a generator who yield rejected Promise

        If not caught (like in this case), the error is transmitted to the
        Promise p.
        """

        @pledge.reduce_coroutine()
        def generator():
            first_value = yield Promise.resolve(1)
            assert first_value
            yield Promise.reject(Err())

        p = generator()
        err = p.exception(0.01)
        assert isinstance(err, Err)

    def test_reduce_coroutine_with_non_exception_reason(self):
        """A non-exception reason is raised in the generator as
        RejectionError, and transmitted unwrapped if not caught.
        """
        caught = []

        @pledge.reduce_coroutine()
        def catching_generator():
            try:
                yield Promise.reject('boom')
            except RejectionError as error:
                caught.append(error.reason)
            yield 'fixed'

        @pledge.reduce_coroutine()
        def generator():
            yield Promise.reject('boom')

        assert catching_generator().result() == 'fixed'
        assert caught == ['boom']
        assert generator().exception() == 'boom'

    def test_reduce_coroutine_raising_exception(self):
        """Use @reduce_coroutine on a generator who raise an Exception."""

        @pledge.reduce_coroutine()
        def generator():
            first_value = yield Promise.resolve(1)
            assert first_value
            raise Err()

        p = generator()
        err = p.exception(0.01)
        assert isinstance(err, Err)

    def test_reduce_one_step_coroutine(self):
        """Use @reduce_coroutine on a generator who yield only once."""
        @pledge.reduce_coroutine()
        def generator():
            yield 'direct_result'

        p = generator()
        assert p.result() == 'direct_result'

    def test_reduce_coroutine_raising_exception_at_initialization(self):
        """Use @reduce_coroutine on a generator raising error before any yield.

        A typical example is the coroutine raising due to missing call
        preconditions.
        """

        @pledge.reduce_coroutine()
        def generator():
            raise Err()
            yield None

        p = generator()
        err = p.exception(0.01)
        assert isinstance(err, Err)

    def test_reduce_coroutine_catching_exception(self):
        """Use a generator who catch exceptions from Promise.

        The coroutine uses the classical try/except block on yield
        instruction over a Promise.
        """

        @pledge.reduce_coroutine()
        def generator():
            try:
                yield Promise.reject(Err())
            except Err:
                yield 'fixed_result'
            yield 'never_yielded'

        p = generator()
        assert p.result(0.01) == 'fixed_result'

    def test_reduce_coroutine_close_generator(self):
        """Ensure the generator is properly closed when it returns a value.

        If a generator has yielded the final result, and the caller don't want
        to iter until the end, the caller must close the generator.
        Closing the generator will raise an exception GeneratorExit, and so
        allow the generator to clean resources.
        """
        is_generator_closed = []

        @pledge.reduce_coroutine()
        def generator():
            try:
                yield 'RESULT'
            except GeneratorExit:
                is_generator_closed.append(True)

        p = generator()
        assert p.result(0.01) == 'RESULT'
        assert is_generator_closed

    def test_coroutine_empty_coroutine(self):
        """Use a coroutine who never yield (it returns directly)."""

        @pledge.reduce_coroutine()
        def generator():
            return
            yield

        p = generator()
        assert p.result(0.01) is None

    def test_coroutine_cancelled_promise(self):
        df = Deferred()
        df.promise.with_cancellation(lambda: None)

        @pledge.reduce_coroutine()
        def generator():
            yield df.promise

        p = generator()
        df.promise.cancel()
        assert isinstance(p.exception(), pledge.CancelledError)

    def test_coroutine_many_settled_promises(self):
        """Thousands of already settled promises don't exhaust the stack."""

        @pledge.reduce_coroutine()
        def generator():
            total = 0
            for i in range(5000):
                total += yield Promise.resolve(i)
            try:
                yield Promise.reject(Err())
            except Err:
                pass
            return total

        p = generator()
        assert p.state == Promise.FULFILLED
        assert p.result(0) == sum(range(5000))

    def test_coroutine_settled_then_pending_promises(self):
        timer = ManualTimer()

        @pledge.reduce_coroutine()
        def generator():
            values = []
            for i in range(3):
                values.append((yield Promise.resolve(i)))
                values.append((yield Promise.resolve(i).delay(1, timer)))
            return values

        p = generator()
        for _ in range(3):
            assert p.state == Promise.PENDING
            timer.advance(1)
        assert p.result(0) == [0, 0, 1, 1, 2, 2]

    @pytest.fixture
    def replace_safeguard(self, request):
        safeguard = Promise.safeguard
        context = {'flag': False}

        def raise_flag(*args):
            context['flag'] = True
        Promise.safeguard = raise_flag

        def _reset_safeguard():
            Promise.safeguard = safeguard
        request.addfinalizer(_reset_safeguard)
        return context

    def test_use_safeguard(self, replace_safeguard):
        @pledge.reduce_coroutine(safeguard=True)
        def generator():
            raise Err()
            yield None

        p = generator()
        assert isinstance(p.exception(0.001), Err)
        assert replace_safeguard['flag']
