from .log_manager import get_logger
from .log_config import setup_logging

__all__ = ["get_logger", "setup_logging"]
