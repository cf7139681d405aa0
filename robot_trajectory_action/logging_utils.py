"""
Logging utilities for the trajectory action server.

- Terminal: records from the package loggers forwarded to the ROS 2 node logger
- File: optional detailed DEBUG log with timestamps
"""

import logging
import os
from datetime import datetime
from pathlib import Path

PACKAGE_LOGGER = 'robot_trajectory_action'


class RosLoggerHandler(logging.Handler):
    """Forward Python log records to an rclpy logger."""

    def __init__(self, ros_logger):
        super().__init__()
        self.ros_logger = ros_logger

    def emit(self, record):
        try:
            msg = self.format(record)
            if record.levelno >= logging.ERROR:
                self.ros_logger.error(msg)
            elif record.levelno >= logging.WARNING:
                self.ros_logger.warning(msg)
            elif record.levelno >= logging.INFO:
                self.ros_logger.info(msg)
            else:
                self.ros_logger.debug(msg)
        except Exception:
            self.handleError(record)


def configure_logging(ros_logger=None, log_dir: str = None, level=logging.INFO) -> logging.Logger:
    """
    Attach handlers to the package logger.

    Args:
        ros_logger: ROS2 node logger (from node.get_logger()); a stream
            handler is used when None
        log_dir: Optional directory for a detailed DEBUG log file

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if log_dir else level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if ros_logger is not None:
        terminal = RosLoggerHandler(ros_logger)
        terminal.setFormatter(logging.Formatter('%(message)s'))
    else:
        terminal = logging.StreamHandler()
        terminal.setFormatter(logging.Formatter('[%(levelname)s] [%(name)s] %(message)s'))
    terminal.setLevel(level)
    logger.addHandler(terminal)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = os.path.join(log_dir, f"trajectory_action_{timestamp}.log")

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s', datefmt='%H:%M:%S'))
        logger.addHandler(file_handler)
        logger.info(f'Detailed log: {log_file_path}')

    return logger
