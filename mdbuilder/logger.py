import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_MODES = ('off', 'info', 'debug')

# Cached log settings; updated through configure_logging()
_log_mode_cache: Optional[str] = None
_log_file_cache: Optional[Path] = None


def _get_log_mode() -> str:
    """Get the active log mode (defaults to 'info')."""
    if _log_mode_cache is not None:
        return _log_mode_cache
    return 'info'


def _level_for_mode(log_mode: str) -> int:
    if log_mode == 'debug':
        return logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1
    return logging.INFO


def _apply_handlers(logger: logging.Logger, log_mode: str) -> None:
    """Bring a logger's level and handlers in line with the current settings."""
    target_level = _level_for_mode(log_mode)
    log_format = logging.Formatter(LOG_FORMAT)
    logger.setLevel(target_level)

    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    wants_file = log_mode != 'off' and _log_file_cache is not None

    # Drop file handlers that point somewhere else or should not exist
    for handler in file_handlers:
        if not wants_file or Path(handler.baseFilename) != _log_file_cache.resolve():
            handler.close()
            logger.removeHandler(handler)

    if wants_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        _log_file_cache.parent.mkdir(parents=True, exist_ok=True)
        f_handler = logging.FileHandler(_log_file_cache, encoding='utf-8')
        f_handler.setLevel(logging.DEBUG)
        f_handler.setFormatter(log_format)
        logger.addHandler(f_handler)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if not has_console:
        c_handler = logging.StreamHandler()
        c_handler.setFormatter(log_format)
        logger.addHandler(c_handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(target_level)


def configure_logging(log_mode: str = 'info', log_file: Optional[Path] = None) -> None:
    """
    Set the log mode and optional log file, and update every logger created by get_logger.

    Args:
        log_mode: One of 'off', 'info', 'debug'
        log_file: Optional path of a file that receives DEBUG and above
    """
    global _log_mode_cache, _log_file_cache
    if log_mode not in LOG_MODES:
        log_mode = 'info'
    _log_mode_cache = log_mode
    _log_file_cache = Path(log_file) if log_file else None

    # Only touch loggers that have handlers (i.e. were created by get_logger)
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        if logger.handlers and logger_name.startswith('mdbuilder'):
            _apply_handlers(logger, log_mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    _apply_handlers(logger, _get_log_mode())
    return logger
