# batch_scaler/log_handler/logging_config.py
import logging
import queue
import os
import re
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Optional, Union

# Global variable to ensure we only configure logging once
_logging_configured = False
_log_listener = None

# Client libraries are chatty at INFO (connection churn on every probe)
DEFAULT_MODULE_LEVELS = {
    "aio_pika": logging.WARNING,
    "aiormq": logging.WARNING,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
    "urllib3": logging.WARNING,
}

_CREDENTIALS_PATTERN = re.compile(r"//[^/@]*:[^/@]*@")


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    module_levels: Optional[dict] = None
) -> QueueListener:
    """
    Central logging configuration for the scaling service.

    Records are pushed through a queue and written by a background listener
    so that a slow handler never stalls the scaling loop.

    Args:
        log_level: Base logging level for the application
        log_file: Optional file path to write logs to
        module_levels: Dictionary mapping module names to specific log levels,
                      merged over DEFAULT_MODULE_LEVELS
                      e.g. {"batch_scaler.broker": logging.DEBUG}

    Returns:
        QueueListener instance that should be stopped with the application
    """
    global _logging_configured, _log_listener

    if _logging_configured and _log_listener is not None:
        return _log_listener

    if log_file and os.path.dirname(log_file):
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    log_queue = queue.Queue()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    queue_handler = QueueHandler(log_queue)
    listener = QueueListener(
        log_queue, *handlers, respect_handler_level=True
    )

    root_logger = logging.getLogger()

    # Remove any existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.addHandler(queue_handler)
    root_logger.setLevel(log_level)

    levels = dict(DEFAULT_MODULE_LEVELS)
    if module_levels:
        levels.update(module_levels)
    for module_name, level in levels.items():
        logging.getLogger(module_name).setLevel(level)

    listener.start()

    _logging_configured = True
    _log_listener = listener

    return listener


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module.

    Args:
        name: The module name, typically __name__
    """
    return logging.getLogger(name)


def mask_url(url: str) -> str:
    """Hide the user:password part of a connection URL before logging it."""
    if not url:
        return url
    return _CREDENTIALS_PATTERN.sub("//*****:*****@", url)


def shutdown_logging():
    """
    Flush and stop the logging listener.
    Should be called during application shutdown.
    """
    global _log_listener, _logging_configured

    if _log_listener is not None:
        _log_listener.stop()
        _log_listener = None
        _logging_configured = False
