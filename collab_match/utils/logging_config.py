"""
Logging for the matching service.

One dictConfig tree rooted at the ``collab_match`` logger; every module asks
for its logger through ``get_logger(__name__)``. ``main.py`` applies the
profile for the current ``ENVIRONMENT`` once at startup.
"""
import functools
import inspect
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER = "collab_match"
LOG_DIR = Path("logs")

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-36s | %(message)s",
}

# Per-environment defaults: (level, write log files, format)
PROFILES = {
    "production": (None, True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}


# ---------- setup ----------

def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(level: str = "INFO", write_files: bool = False, format_style: str = "detailed") -> None:
    """
    Apply the service logging tree.

    Console output always goes to stdout. With ``write_files`` a daily match
    log and a separate error log are kept under ``logs/``.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }
    }

    if write_files:
        LOG_DIR.mkdir(exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(LOG_DIR / f"collab_match_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(LOG_DIR / f"collab_match_errors_{stamp}.log", "ERROR")

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, fmt in FORMATS.items()},
        "handlers": handlers,
        "loggers": {
            ROOT_LOGGER: {"level": level, "handlers": list(handlers), "propagate": True},
            # uvicorn keeps its own access log on the console only
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    })

    get_logger("logging").info(f"Logging configured - level {level}, files: {write_files}")


def configure_for_environment() -> None:
    """Pick the logging profile from ENVIRONMENT, overriding the level with LOG_LEVEL"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    env_level = os.getenv("LOG_LEVEL", "INFO").upper()

    level, write_files, format_style = PROFILES.get(environment, (env_level, False, "detailed"))
    setup_logging(level=level or env_level, write_files=write_files, format_style=format_style)


def get_logger(name: str) -> logging.Logger:
    """Logger under the service root, whatever module name is passed in"""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


# ---------- instrumentation ----------

def log_function_call(func):
    """Debug-log entry and timing of a sync or async callable; errors are logged and re-raised."""
    logger = get_logger(func.__module__)

    def _done(started: float, error: Optional[Exception] = None) -> None:
        elapsed = time.time() - started
        if error is None:
            logger.debug(f"{func.__qualname__} finished in {elapsed:.3f}s")
        else:
            logger.error(f"{func.__qualname__} failed after {elapsed:.3f}s: {error}")

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            started = time.time()
            logger.debug(f"Calling {func.__qualname__}")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _done(started, e)
                raise
            _done(started)
            return result
        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        started = time.time()
        logger.debug(f"Calling {func.__qualname__}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _done(started, e)
            raise
        _done(started)
        return result
    return sync_wrapper


class PerformanceMonitor:
    """Times a block; logs at INFO, or WARNING when it runs past ``threshold_ms``"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None

    @property
    def elapsed_ms(self) -> float:
        return (time.time() - self.start_time) * 1000

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = self.elapsed_ms
        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {elapsed:.2f}ms: {exc_val}")
        elif elapsed > self.threshold_ms:
            self.logger.warning(f"{self.operation_name} took {elapsed:.2f}ms (threshold {self.threshold_ms}ms)")
        else:
            self.logger.info(f"{self.operation_name} completed in {elapsed:.2f}ms")
        return False
