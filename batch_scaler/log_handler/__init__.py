# batch_scaler/log_handler/__init__.py
from .logging_config import setup_logging, get_logger, mask_url, shutdown_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "mask_url",
    "shutdown_logging"
]
