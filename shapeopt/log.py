# Copyright (C) 2015-2025 The shapeopt developers
#
# This file is part of shapeopt.
#
# shapeopt is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# shapeopt is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with shapeopt.  If not, see <https://www.gnu.org/licenses/>.

"""Logging for shapeopt.

All messages are issued through :py:data:`shapeopt_logger`, its methods are also
available as module level functions, e.g., ``shapeopt.log.info``. Timed blocks are
opened with :py:func:`begin` and closed with :py:func:`end`, messages within a block
are indented.
"""

from __future__ import annotations

import datetime
import functools
import logging
from typing import Any, Callable, NamedTuple, TypeVar


class LogLevel:
    """Stores the various log levels of shapeopt."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


DEBUG = LogLevel.DEBUG
INFO = LogLevel.INFO
WARNING = LogLevel.WARNING
ERROR = LogLevel.ERROR
CRITICAL = LogLevel.CRITICAL


class _Group(NamedTuple):
    message: str
    level: int
    start: datetime.datetime


class Logger:
    """Indenting logger with timed blocks."""

    def __init__(self, name: str) -> None:
        """Initializes self.

        Args:
            name: The name of the underlying :py:class:`logging.Logger`.

        """
        self._handler = logging.StreamHandler()
        self._handler.setLevel(INFO)

        self._log = logging.getLogger(name)
        self._log.setLevel(DEBUG)
        self._log.addHandler(self._handler)

        self._logfiles: dict[str, logging.FileHandler] = {}
        self._groups: list[_Group] = []
        self._use_timestamp = True

    @property
    def _indent_level(self) -> int:
        return len(self._groups)

    def log(self, level: int, message: str) -> None:
        """Issues a (possibly multi-line) message with the current indentation.

        Args:
            level: The log level of the message.
            message: The message.

        """
        prefix = (
            f"{datetime.datetime.now().isoformat()} | " if self._use_timestamp else ""
        )
        prefix += "  " * self._indent_level
        self._log.log(level, "\n".join(prefix + line for line in message.split("\n")))

    debug = functools.partialmethod(log, DEBUG)
    info = functools.partialmethod(log, INFO)
    warning = functools.partialmethod(log, WARNING)
    # error and critical only log, they do not raise
    error = functools.partialmethod(log, ERROR)
    critical = functools.partialmethod(log, CRITICAL)

    def begin(self, message: str, level: int = INFO) -> None:
        """Opens a timed block of messages, which has to be closed by :py:meth:`end`.

        Args:
            message: Describes what happens in the block.
            level: The log level for the start and finish messages.

        """
        start_message = f"Start: {message}"
        self.log(level, start_message)
        self.log(level, "-" * len(start_message))
        self._groups.append(_Group(message, level, datetime.datetime.now()))

    def end(self) -> None:
        """Closes the innermost block and reports its elapsed time."""
        group = self._groups.pop()
        elapsed_time = datetime.datetime.now() - group.start
        self.log(
            group.level,
            f"Finish: {group.message} -- Elapsed time: {elapsed_time}\n",
        )

    def set_log_level(self, level: int) -> None:
        """Sets the log level of the console output."""
        self._handler.setLevel(level)

    def add_logfile(
        self, filename: str, mode: str = "a", level: int = DEBUG
    ) -> logging.FileHandler:
        """Additionally writes the log to a file.

        Args:
            filename: The path of the log file.
            mode: ``"a"`` appends to the file, ``"w"`` overwrites it.
            level: The log level for the file.

        Returns:
            The file handler of the log file.

        """
        if filename in self._logfiles:
            self.warning(f"Adding logfile {filename} multiple times.")
        else:
            handler = logging.FileHandler(filename, mode, encoding="utf-8")
            handler.setLevel(level)
            self._log.addHandler(handler)
            self._logfiles[filename] = handler

        return self._logfiles[filename]

    def remove_logfile(self, filename: str) -> None:
        """Stops logging to a file added with :py:meth:`add_logfile`."""
        handler = self._logfiles.pop(filename, None)
        if handler is not None:
            self._log.removeHandler(handler)
            handler.close()

    def add_timestamps(self) -> None:
        self._use_timestamp = True

    def remove_timestamps(self) -> None:
        self._use_timestamp = False


shapeopt_logger = Logger("shapeopt")

debug = shapeopt_logger.debug
info = shapeopt_logger.info
warning = shapeopt_logger.warning
error = shapeopt_logger.error
critical = shapeopt_logger.critical

begin = shapeopt_logger.begin
end = shapeopt_logger.end

set_log_level = shapeopt_logger.set_log_level
add_logfile = shapeopt_logger.add_logfile
remove_logfile = shapeopt_logger.remove_logfile
add_timestamps = shapeopt_logger.add_timestamps
remove_timestamps = shapeopt_logger.remove_timestamps


T = TypeVar("T")


def profile_execution_time(
    action: str, level: int = DEBUG
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Logs the time a function call takes.

    Args:
        action: Describes what the decorated function does.
        level: The log level of the timing message.

    Returns:
        The decorator.

    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = datetime.datetime.now()
            result = func(*args, **kwargs)
            shapeopt_logger.log(
                level,
                f"Elapsed time for {action}: {datetime.datetime.now() - start}.\n",
            )
            return result

        return wrapper

    return decorator
