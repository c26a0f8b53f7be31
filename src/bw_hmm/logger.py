"""
Logging setup for bw-hmm.

All package loggers hang off the ``bw_hmm`` logger. Its handlers are built
from the ``logging`` configuration section: a rich console handler, plus a
plain file handler when ``logging.file_logging`` is enabled. Call
:func:`configure_logging` again after the configuration changes (for example
once a ``--config`` file has been loaded) to rebuild them.
"""

import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import get_config

ROOT_LOGGER_NAME = 'bw_hmm'


def _resolve_level(level: Optional[str]) -> int:
    name = (level or get_config('logging', 'level') or 'INFO').upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(level: int) -> List[logging.Handler]:
    # Console() looks up sys.stdout on every write, so output follows
    # stream redirection (CliRunner, pytest capture) after setup
    console_handler = RichHandler(console=Console(), show_path=False,
                                  rich_tracebacks=False)
    console_handler.setFormatter(logging.Formatter('%(name)s: %(message)s'))
    handlers: List[logging.Handler] = [console_handler]

    if get_config('logging', 'file_logging'):
        log_path = Path(get_config('logging', 'log_file') or 'bw_hmm.log')
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(get_config('logging', 'format')))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    (Re)build the handlers of the package logger from the current config.

    Args:
        level: Level name overriding ``logging.level`` from the config

    Returns:
        The ``bw_hmm`` logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    log_level = _resolve_level(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(log_level):
        root_logger.addHandler(handler)

    root_logger.setLevel(log_level)
    # Package output stays out of the application's root logger
    root_logger.propagate = False
    return root_logger


def get_logger(name: str = 'main') -> logging.Logger:
    """Logger for a module; names outside the package are nested under it."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + '.'):
        name = f'{ROOT_LOGGER_NAME}.{name}'
    return logging.getLogger(name)


configure_logging()
