"""
统一日志管理模块

Logging for casemap and the editor tooling.

* one ``LogManager`` owns the root handlers; setup is idempotent and locked
* console level defaults to ``$CASEMAP_LOG_LEVEL`` (INFO when unset)
* colour on TTYs through ``colorama``
* optional rotating file log (by size or at midnight)
* chatty third-party loggers (Pillow's PNG chunk tracing) are held at WARNING
* ``log`` proxy resolving the caller's module name
* ``log_function_call`` / ``log_performance`` decorators
"""

from __future__ import annotations

import datetime as _dt
import logging
import os
import sys
import threading
import time
from functools import wraps
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

LOG_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LEVEL_ENV_VAR = "CASEMAP_LOG_LEVEL"
QUIET_LOGGERS: Sequence[str] = ("PIL",)

PathLike = Union[str, os.PathLike[str]]


def env_level(default: int = logging.INFO) -> int:
    """Level named by ``$CASEMAP_LOG_LEVEL``; unknown names fall back to ``default``."""
    name = os.environ.get(LEVEL_ENV_VAR, "").strip().upper()
    return LOG_LEVELS.get(name, default)


# ----------------------------------------------------------------------
# 格式化器
class CaseFormatter(logging.Formatter):
    """[2026-03-02 14:05:11.204] [WARNING] [casemap.core.evidence.evidence_table] message"""

    _FMT = "[%(asctime)s] [%(levelname)-7s] [%(name)s] %(message)s"

    def __init__(self, colored: bool = False) -> None:
        super().__init__(self._FMT)
        self._colored = colored and _console_is_tty() and _enable_colorama()

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:  # noqa: N802
        ts = _dt.datetime.fromtimestamp(record.created)
        return ts.strftime(datefmt or "%Y-%m-%d %H:%M:%S.%f")[:-3]

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        code = _LEVEL_COLORS.get(record.levelno) if self._colored else None
        return f"\x1b[{code}m{text}\x1b[0m" if code else text


_LEVEL_COLORS = {
    logging.DEBUG: 36,
    logging.INFO: 32,
    logging.WARNING: 33,
    logging.ERROR: 31,
    logging.CRITICAL: 41,
}


def _console_is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _enable_colorama() -> bool:
    try:
        import colorama  # type: ignore
    except ModuleNotFoundError:
        return False
    colorama.just_fix_windows_console()
    return True


def _file_handler(
    path: PathLike,
    rotation: str,
    max_bytes: int,
    backup_count: int,
    encoding: str,
) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if rotation == "size":
        return RotatingFileHandler(
            str(log_path), mode="a", maxBytes=max_bytes, backupCount=backup_count, encoding=encoding
        )
    if rotation == "time":
        return TimedRotatingFileHandler(
            str(log_path), when="midnight", backupCount=backup_count, encoding=encoding
        )
    raise ValueError(f"rotation must be 'size' or 'time', got {rotation!r}")


# ----------------------------------------------------------------------
# 日志管理器
class LogManager:
    """Owns the root console/file handlers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._configured = False
        self._console: Optional[logging.Handler] = None
        self._file: Optional[logging.Handler] = None

    def setup_logging(
        self,
        *,
        console_level: Optional[int] = None,
        log_file: Optional[PathLike] = None,
        file_level: int = logging.DEBUG,
        rotation: str = "size",  # 'size' | 'time'
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        encoding: str = "utf-8",
        colored: bool = True,
        force: bool = False,
    ) -> None:
        """Configure the root logger once; ``force=True`` rebuilds the handlers."""
        with self._lock:
            if self._configured and not force:
                return
            if console_level is None:
                console_level = env_level()

            # 先构建文件 handler，失败时不动现有配置
            fh = None
            if log_file:
                fh = _file_handler(log_file, rotation, max_bytes, backup_count, encoding)
                fh.setFormatter(CaseFormatter(colored=False))
                fh.setLevel(file_level)

            root = logging.getLogger()
            for h in list(root.handlers):
                root.removeHandler(h)
                h.close()

            ch = logging.StreamHandler(sys.stdout)
            ch.setFormatter(CaseFormatter(colored=colored))
            ch.setLevel(console_level)
            root.addHandler(ch)
            if fh is not None:
                root.addHandler(fh)
            root.setLevel(min(console_level, file_level) if fh else console_level)

            for name in QUIET_LOGGERS:
                logging.getLogger(name).setLevel(max(logging.WARNING, console_level))

            self._console, self._file = ch, fh
            self._configured = True
            logging.getLogger(__name__).debug(
                "logging configured: console=%s file=%s",
                logging.getLevelName(console_level), log_file or "-",
            )

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.setup_logging()
        return logging.getLogger(name)

    def set_level(self, level: int, handler_type: str = "all") -> None:
        """Change handler levels at runtime; ``handler_type`` is 'console', 'file' or 'all'."""
        with self._lock:
            targets = {
                "console": [self._console],
                "file": [self._file],
                "all": [self._console, self._file],
            }[handler_type]
            for h in targets:
                if h is not None:
                    h.setLevel(level)
            root = logging.getLogger()
            if root.handlers:
                root.setLevel(min(h.level for h in root.handlers))

    def get_stats(self) -> dict[str, object]:
        root = logging.getLogger()
        return {
            "configured": self._configured,
            "handlers": [type(h).__name__ for h in root.handlers],
            "root_level": logging.getLevelName(root.level),
            "console_level": logging.getLevelName(self._console.level) if self._console else None,
            "file_level": logging.getLevelName(self._file.level) if self._file else None,
        }


logManager = LogManager()


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[PathLike] = None,
    file_level: int = logging.DEBUG,
    **kwargs,
) -> None:
    """Shortcut for ``logManager.setup_logging``; ``level=None`` reads ``$CASEMAP_LOG_LEVEL``."""
    logManager.setup_logging(console_level=level, log_file=log_file, file_level=file_level, **kwargs)


# ----------------------------------------------------------------------
# 装饰器
def log_function_call(logger_name: Optional[str] = None):
    """DEBUG-log entry and result of a function; exceptions are logged and re-raised."""

    def decorator(func: Callable[..., object]):
        qualname = f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = logManager.get_logger(logger_name or func.__module__)
            logger.debug("-> %s", qualname)
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                logger.debug("!! %s raised %s: %s", qualname, type(exc).__name__, exc)
                raise
            logger.debug("<- %s = %r", qualname, result)
            return result

        return wrapper

    return decorator


def log_performance(logger_name: Optional[str] = None, threshold_ms: float = 100.0):
    """Time a function; WARNING when it takes longer than ``threshold_ms``, DEBUG otherwise."""

    def decorator(func: Callable[..., object]):
        @wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = (time.perf_counter() - started) * 1000.0
                logger = logManager.get_logger(logger_name or func.__module__)
                level = logging.WARNING if elapsed > threshold_ms else logging.DEBUG
                logger.log(level, "%s took %.1f ms (threshold %.0f ms)", func.__qualname__, elapsed, threshold_ms)

        return wrapper

    return decorator


class LoggerProxy:
    """``log.info(...)`` logs through the calling module's logger."""

    def __getattr__(self, name: str) -> Callable[..., None]:
        module = sys._getframe(1).f_globals.get("__name__", "__main__")
        return getattr(logManager.get_logger(module), name)


log = LoggerProxy()
