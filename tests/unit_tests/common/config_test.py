#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging

import pytest

from pledge.common import config
from pledge.common.config import _get_config_file_path, get, load, set


@pytest.fixture
def config_file(tmpdir):
    """Load an empty config file located in a temporary directory."""
    path = str(tmpdir.join('pledge.ini'))
    config.reset()
    load(path)
    yield path
    config.reset()


class TestConfigLoad(object):

    def test_default_path(self):
        config.reset()
        assert _get_config_file_path().endswith('pledge.ini')

    def test_load_without_existing_file(self, tmpdir, caplog):
        config.reset()
        path = str(tmpdir.join('missing.ini'))
        with caplog.at_level(logging.DEBUG, logger='pledge.common.config'):
            assert load(path) is False
        assert 'Unable to load config file' in caplog.text
        assert _get_config_file_path() == path
        config.reset()

    def test_load_with_existing_file(self, tmpdir):
        config.reset()
        path = tmpdir.join('pledge.ini')
        path.write('[config]\ndebug_mode = true\ndefault_timer = manual\n')

        assert load(str(path)) is True
        assert get('debug_mode') is True
        assert get('default_timer') == 'manual'
        config.reset()


class TestConfigGet(object):

    def test_key_does_not_exist(self, config_file):
        with pytest.raises(KeyError):
            get('plop')
        with pytest.raises(KeyError):
            set('plop', 42)

    def test_default_values(self, config_file):
        assert get('debug_mode') is False
        assert get('log_levels') == {}
        assert get('default_timer') == 'thread'

    def test_get_a_bool_value(self, config_file):
        set('debug_mode', True)
        value = get('debug_mode')
        assert type(value) is bool and value

        set('debug_mode', 'False')
        value = get('debug_mode')
        assert type(value) is bool and not value

    def test_get_a_bool_with_invalid_value(self, config_file):
        set('debug_mode', 'plop')
        assert get('debug_mode') is False

    def test_get_a_dict_value(self, config_file):
        set('log_levels', 'aa=bb;cc=dd')
        assert get('log_levels') == {'aa': 'bb', 'cc': 'dd'}

    def test_set_a_dict_value(self, config_file):
        set('log_levels', {'pledge.timer': 'debug'})
        assert get('log_levels') == {'pledge.timer': 'debug'}

    def test_get_a_dict_with_invalid_pair(self, config_file, caplog):
        set('log_levels', 'plop;aa=bb')
        with caplog.at_level(logging.WARNING):
            assert get('log_levels') == {'aa': 'bb'}
        assert 'plop' in caplog.text


class TestConfigSet(object):

    def test_set_writes_the_file(self, config_file):
        set('default_timer', 'manual')

        with open(config_file) as f:
            content = f.read()
        assert 'default_timer = manual' in content

        config.reset()
        load(config_file)
        assert get('default_timer') == 'manual'

    def test_set_creates_the_directory(self, tmpdir):
        path = str(tmpdir.join('sub', 'dir', 'pledge.ini'))
        config.reset()
        load(path)
        set('debug_mode', True)
        assert tmpdir.join('sub', 'dir', 'pledge.ini').check()
        config.reset()

    def test_set_in_unwritable_location(self, tmpdir, caplog):
        path = tmpdir.join('file')
        path.write('')
        config.reset()
        # A regular file can't be used as a directory.
        load(str(path.join('pledge.ini')))
        with caplog.at_level(logging.WARNING):
            set('debug_mode', True)
        assert 'Unable to write in the config file' in caplog.text
        assert get('debug_mode') is True
        config.reset()
