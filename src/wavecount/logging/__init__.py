from .logger import JsonFormatter, LogConfig, get_logger, level_from_name, setup_logging  # noqa: F401

__all__ = ["JsonFormatter", "LogConfig", "get_logger", "level_from_name", "setup_logging"]
