# -*- coding: utf-8 -*-

import pytest

from pledge import ManualTimer, set_default_timer


@pytest.fixture
def manual_default_timer():
    """Replace the default timer by a ManualTimer during the test."""
    timer = ManualTimer()
    set_default_timer(timer)
    yield timer
    set_default_timer(None)
