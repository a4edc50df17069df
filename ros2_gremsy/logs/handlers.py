"""
Logging Handlers.

This module forwards the records of the package's stdlib loggers to the
ROS 2 node logger so they show up in ``ros2 run`` output and rosout.
"""

from __future__ import annotations

import logging
from typing import Any

PACKAGE_LOGGER = "ros2_gremsy"


class RosLoggerHandler(logging.Handler):
    """
    A logging handler that emits through a ROS 2 node logger.

    Args:
        ros_logger: The logger returned by ``Node.get_logger()``
    """

    def __init__(self, ros_logger: Any) -> None:
        super().__init__()
        self._ros_logger = ros_logger
        self.setFormatter(logging.Formatter("[%(name)s] %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record at the matching ROS severity."""
        try:
            msg = self.format(record)
            if record.levelno >= logging.CRITICAL:
                self._ros_logger.fatal(msg)
            elif record.levelno >= logging.ERROR:
                self._ros_logger.error(msg)
            elif record.levelno >= logging.WARNING:
                self._ros_logger.warning(msg)
            elif record.levelno >= logging.INFO:
                self._ros_logger.info(msg)
            else:
                self._ros_logger.debug(msg)
        except Exception:
            self.handleError(record)


def setup_ros2_gremsy_logging(ros_logger: Any, level: int = logging.INFO) -> RosLoggerHandler:
    """
    Route ros2_gremsy logging to a ROS 2 node logger.

    Args:
        ros_logger: The logger returned by ``Node.get_logger()``
        level: Log level for the ros2_gremsy logger

    Returns:
        The installed handler, to be passed to :func:`teardown_ros2_gremsy_logging`
    """
    handler = RosLoggerHandler(ros_logger)
    package_logger = get_ros2_gremsy_logger()
    package_logger.setLevel(level)
    package_logger.addHandler(handler)
    package_logger.propagate = False
    return handler


def teardown_ros2_gremsy_logging(handler: logging.Handler) -> None:
    """Remove a handler installed by :func:`setup_ros2_gremsy_logging`."""
    package_logger = get_ros2_gremsy_logger()
    package_logger.removeHandler(handler)
    if not package_logger.handlers:
        package_logger.propagate = True


def get_ros2_gremsy_logger() -> logging.Logger:
    """Get the main ros2_gremsy logger."""
    return logging.getLogger(PACKAGE_LOGGER)
