from __future__ import annotations
"""Console logging for the site, the batch scripts and the static build.

  - ``setup_logging`` installs a colorama level-colored handler on stdout
    (no timestamps), unless a ``log.config.json`` dictConfig file is found.
  - ``Logger.bind(__name__)`` gives a module logger; the static ``Logger.*``
    calls log under ``luxcars``.
  - Messages are pre-formatted f-strings in ``key=value`` style.
"""
import json
import logging
import os
import sys
import time
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from colorama import init as colorama_init, Fore, Style

LEVEL_COLORS: Dict[int, str] = {
    logging.DEBUG: Style.DIM + Fore.CYAN,
    logging.INFO: Style.NORMAL + Fore.GREEN,
    logging.WARNING: Style.NORMAL + Fore.YELLOW,
    logging.ERROR: Style.BRIGHT + Fore.RED,
    logging.CRITICAL: Style.BRIGHT + Fore.RED,
}

LOG_CONFIG_NAME = 'log.config.json'
CONSOLE_FORMAT = "[ %(levelname)5s ] %(name)s : %(message)s"
# chatty at INFO/DEBUG during batch uploads
QUIET_LOGGERS = ('urllib3', 'botocore', 'boto3', 's3transfer', 'google.auth')


class ColorFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}{Style.RESET_ALL}" if color else text


def _level_from_env(default: int) -> int:
    name = (os.environ.get('LOG_LEVEL') or '').upper()
    value = logging.getLevelName(name) if name else default
    return value if isinstance(value, int) else default


def _load_config_file(level: int) -> bool:
    for p in (Path.cwd() / LOG_CONFIG_NAME, Path(__file__).resolve().parent.parent / LOG_CONFIG_NAME):
        if not p.is_file():
            continue
        try:
            dictConfig(json.loads(p.read_text(encoding='utf-8')))
        except (OSError, ValueError) as e:
            print(f"[logging] config load fail {p}: {e}", file=sys.stderr)
            continue
        logging.getLogger().setLevel(level)
        logging.getLogger(__name__).debug(f"logging config loaded path={p}")
        return True
    return False


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the root logger once per process entry point.

    ``LOG_LEVEL`` in the environment overrides ``level``.
    """
    level = _level_from_env(level)
    if not _load_config_file(level):
        colorama_init()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter(fmt=CONSOLE_FORMAT))
        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)
        root.addHandler(handler)
        root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


class _BoundLogger:
    """Module logger returned by ``Logger.bind``."""

    def __init__(self, name: Optional[str] = None):
        self._log = logging.getLogger(name or 'luxcars')

    @property
    def name(self) -> str:
        return self._log.name

    def debug(self, msg: str) -> None:
        self._log.debug(msg)

    def info(self, msg: str) -> None:
        self._log.info(msg)

    def warn(self, msg: str) -> None:  # noqa: D401
        self._log.warning(msg)

    def error(self, msg: str) -> None:
        self._log.error(msg)

    def exception(self, msg: Any) -> None:
        self._log.exception(msg)


_DEFAULT = _BoundLogger('luxcars')


class Logger:
    """Static entry points plus ``bind`` for module loggers.

        Logger.info("build start")
        log = Logger.bind(__name__)
        log.warn(f"page skipped path={p}")
    """

    @staticmethod
    def bind(name: str) -> _BoundLogger:
        return _BoundLogger(name)

    @staticmethod
    def debug(msg: str) -> None:
        _DEFAULT.debug(msg)

    @staticmethod
    def info(msg: str) -> None:
        _DEFAULT.info(msg)

    @staticmethod
    def warn(msg: str) -> None:
        _DEFAULT.warn(msg)

    @staticmethod
    def error(msg: str) -> None:
        _DEFAULT.error(msg)

    @staticmethod
    def exception(msg: Any) -> None:
        _DEFAULT.exception(msg)

    @staticmethod
    def time_block(label: str) -> Callable[[], float]:
        """Start a timer; calling the returned function logs and returns elapsed ms.

            done = Logger.time_block("dealer index load")
            ...
            done()
        """
        start = time.perf_counter()

        def _end() -> float:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            _DEFAULT.debug(f"{label} ms={elapsed_ms:.1f}")
            return elapsed_ms

        return _end


__all__ = ["Logger", "setup_logging", "ColorFormatter"]
