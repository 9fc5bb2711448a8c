"""
railscene.log - logging facade of the editor model.

Usage:
    from railscene import log

    log.info("Scene loaded")
    log.warn("Connector has both slots occupied")

    try:
        scene_io.read_file(path)
    except scene_io.SceneFormatError as e:
        log.error(e, f"Cannot read {path}")  # includes traceback

Every function takes either a message or an exception. Exceptions are
written together with their traceback, prefixed by `context`.
Records go to the standard logger "railscene", so applications route
them with the usual logging configuration, or through set_callback().
"""

import enum
import logging
import traceback


class Level(enum.IntEnum):
    """Уровни railscene, совпадают с числовыми уровнями logging."""

    NOTSET = logging.NOTSET
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


_logger = logging.getLogger("railscene")


def _format(msg_or_exc, context: str) -> str:
    if not isinstance(msg_or_exc, BaseException):
        return str(msg_or_exc)

    exc = msg_or_exc
    head = f"{type(exc).__name__}: {exc}"
    if context:
        head = f"{context}: {head}"
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"{head}\n{tb}"


def _emit(level: int, msg_or_exc, context: str) -> None:
    if _logger.isEnabledFor(level):
        _logger.log(int(level), _format(msg_or_exc, context))


def debug(msg_or_exc, context: str = ""):
    _emit(Level.DEBUG, msg_or_exc, context)


def info(msg_or_exc, context: str = ""):
    _emit(Level.INFO, msg_or_exc, context)


def warn(msg_or_exc, context: str = ""):
    _emit(Level.WARN, msg_or_exc, context)


warning = warn


def error(msg_or_exc, context: str = ""):
    _emit(Level.ERROR, msg_or_exc, context)


def exception(msg: str = ""):
    """Log an error with the traceback of the exception being handled."""
    _logger.exception(msg)


def set_level(level: Level) -> None:
    """Minimum level of the railscene logger."""
    _logger.setLevel(int(level))


class _CallbackHandler(logging.Handler):
    def __init__(self, callback):
        super().__init__()
        self.callback = callback

    def emit(self, record: logging.LogRecord) -> None:
        self.callback(record.levelno, record.getMessage())


def set_callback(callback) -> None:
    """
    Route every record of the railscene logger to callback(level, message).

    Replaces a previously installed callback; None removes it.
    """
    for handler in [h for h in _logger.handlers if isinstance(h, _CallbackHandler)]:
        _logger.removeHandler(handler)
    if callback is not None:
        _logger.addHandler(_CallbackHandler(callback))
