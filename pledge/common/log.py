# -*- coding: utf-8 -*-

"""Configuration module of the logs.

This module configure the python ``logging`` module, in order to have useful
and easy to activate logs when debugging promise chains.

Log entries are displayed to the output console. If the system supports it,
they are colorized. Non-caught exceptions are logged before the program quit.

The debug mode and per-module log levels are read from the config file (see
``pledge.common.config``).
"""

import logging
import sys

from . import config


def _support_color_output(stream=None):
    """Try to guess if the output supports color term code.

    Returns:
        boolean: True if we are sure the output supports color; False otherwise
    """
    stream = stream or sys.stderr
    if hasattr(stream, 'isatty') and stream.isatty():
        if not sys.platform.startswith('win'):
            return True
    return False


class ColoredFormatter(logging.Formatter):
    """Formatter who display colored messages using ANSI escape codes."""

    _colors = {
        'RESET': '\033[0m',
        'DEBUG': '\033[34m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[31m',
        'NAME': '\033[36m',
        'DATE': '\033[30;1m',
        'EXCEPTION_NAME': '\033[31;1m',
        'EXCEPTION_STR': '\033[37;1m'
    }

    def _colorize(self, msg, color):
        return self._colors.get(color, '') + msg + self._colors.get('RESET')

    def formatTime(self, record, datefmt=None):
        result = logging.Formatter.formatTime(self, record, datefmt)
        return self._colorize(result, 'DATE')

    def formatException(self, ei):
        msg = logging.Formatter.formatException(self, ei)
        msg_lines = msg.split('\n')
        last_line = msg_lines[-1]
        result = '\n'.join(msg_lines[:-1]) + '\n'
        result += self._colorize(last_line.split(':')[0], 'EXCEPTION_NAME')
        result += ':' + self._colorize(':'.join(last_line.split(':')[1:]),
                                       'EXCEPTION_STR')
        return result

    def format(self, record):
        # The record is shared between handlers: colorize a copy.
        record = logging.makeLogRecord(record.__dict__)
        record.name = self._colorize(record.name, 'NAME')
        record.levelname = self._colorize(record.levelname, record.levelname)
        return logging.Formatter.format(self, record)


def _excepthook(exctype, value, traceback):
    try:
        logging.getLogger(__name__).critical(
            'Uncaught exception', exc_info=(exctype, value, traceback))
    except Exception:
        pass  # Avoid recursive logging attempt.


class Context(object):
    """Context class used to install and remove the log handler.

    It's meant for applications and scripts, around their main function.
    A library importing pledge must not use it: the context adds a handler
    on the root logger, replaces `sys.excepthook` and loads the config file.

    Example:

        >>> with Context():
        ...     main()
    """

    def __init__(self, stream=None, config_path=None):
        """Prepare a new log context.

        Args:
            stream (optional): stream used by the handler. Default to
                sys.stderr.
            config_path (str, optional): config file to load. If not set, the
                default config file is used.
        """
        self._stream = stream
        self._config_path = config_path
        self._handler = None
        self._excepthook = None

    def __enter__(self):
        """Prepare the logging module, then apply the config."""

        logging.captureWarnings(True)

        date_format = '%Y-%m-%d %H:%M:%S'
        string_format = '%(asctime)s %(levelname)-7s %(name)s - %(message)s'

        self._handler = logging.StreamHandler(self._stream)
        if _support_color_output(self._stream):
            formatter = ColoredFormatter(fmt=string_format,
                                         datefmt=date_format)
        else:
            formatter = logging.Formatter(fmt=string_format,
                                          datefmt=date_format)
        self._handler.setFormatter(formatter)
        logging.getLogger().addHandler(self._handler)

        config.load(self._config_path)
        set_debug_mode(config.get('debug_mode'))
        set_logs_level(config.get('log_levels'))

        # Log all uncaught exceptions
        self._excepthook = sys.excepthook
        sys.excepthook = _excepthook
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Remove the handler and restore the exception hook."""
        logging.getLogger(__name__).debug('Stop logger ...')
        logging.getLogger().removeHandler(self._handler)
        self._handler.close()
        self._handler = None
        sys.excepthook = self._excepthook
        logging.captureWarnings(False)


def set_logs_level(levels):
    """Configure a fine-grained log levels for the different modules.

    Args:
        levels (dict): A dict associating a module name and a log level. A
            log level can be a number or a str representing one of the
            logging levels (DEBUG, WARNING, ...). The level name will be
            converted to uppercase.
            Invalids values will be ignored.

    Example:

        >>> # Accept DEBUG logs only for timers
        >>> set_logs_level({'pledge':'info', 'pledge.timer': 'debug'})
    """
    for (module, level) in levels.items():
        try:
            if isinstance(level, str):
                level = level.upper()
                if level.isdigit():
                    level = int(level)
            logging.getLogger(module).setLevel(level)
        except (TypeError, ValueError):
            logger = logging.getLogger(__name__)
            logger.warning('Invalid log level "%s" for logger "%s". '
                           'Will be ignored.',
                           level, module)


def set_debug_mode(debug):
    """Set, or unset the debug log level.

    Args:
        debug (boolean): if True, the pledge log level will be set to DEBUG.
            If False, it will be set to INFO.
    """
    if debug:
        logging.getLogger('pledge').setLevel(logging.DEBUG)
    else:
        logging.getLogger('pledge').setLevel(logging.INFO)


def reset():
    """Reset the root logger (remove handlers and filters)."""
    logger = logging.getLogger()

    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for f in logger.filters[:]:
        logger.removeFilter(f)
