import sys
from loguru import logger
from pos_core.config import get_config

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "{extra[terminal]} | <cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

class AppLogger:
    """Global logger configuration for the terminal.

    Sets the log level from get_config().log_level and tags every record with
    the terminal id so interleaved logs from several terminals stay readable.
    """
    def __init__(self) -> None:
        config = get_config()
        logger.remove()
        logger.configure(extra={"name": "pos_core", "terminal": config.terminal_id})
        logger.add(
            sink=lambda msg: print(msg, end="", file=sys.stderr),
            level=config.log_level.upper(),
            format=_FORMAT,
        )
        self.logger = logger

    def get_logger(self, name: str = None):
        """Get the configured logger instance.

        Args:
            name (str, optional): Name for the logger context. Defaults to None.
        Returns:
            loguru.Logger: The configured logger instance.
        """
        if name:
            return self.logger.bind(name=name)
        return self.logger

_app_logger = None

def get_logger(name: str = None):
    """Get a bound application logger, configuring loguru on first use."""
    global _app_logger
    if _app_logger is None:
        _app_logger = AppLogger()
    return _app_logger.get_logger(name)

def reset_logging() -> None:
    """Re-read the log level from the current config on the next get_logger call."""
    global _app_logger
    _app_logger = None
