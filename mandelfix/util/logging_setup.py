import logging
import logging.handlers
from typing import List, Optional

_LOGGER_NAME = "mandelfix"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)

def parse_level(name: str) -> int:
    name = name.strip().upper()
    if name not in _LEVELS:
        raise ValueError(f"log level must be one of: {', '.join(_LEVELS)}")
    return getattr(logging, name)

def _handlers(console: bool, log_file: Optional[str], rotate_bytes: int, rotate_count: int) -> List[logging.Handler]:
    out: List[logging.Handler] = []
    if console:
        out.append(logging.StreamHandler())
    if log_file:
        out.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    return out

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 1024 * 1024,
    rotate_count: int = 3,
) -> logging.Logger:
    """Attach fresh console/file handlers to the package logger.

    Conversion rejections are logged at DEBUG, orbit progress at INFO.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    for h in _handlers(console, log_file, rotate_bytes, rotate_count):
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger
