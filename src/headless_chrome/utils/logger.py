import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from ..core.config_loader import ConfigLoader, PROJECT_ROOT

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _build_file_handler(file_handler_config: dict, log_file_path: Path) -> logging.Handler:
    rotation_type = file_handler_config.get('rotation_type')  # 'size', 'time' or None
    backup_count = int(file_handler_config.get('backup_count', 5))

    if rotation_type == 'size':
        max_bytes = int(file_handler_config.get('max_bytes', 1024 * 1024 * 5))
        return logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
    if rotation_type == 'time':
        return logging.handlers.TimedRotatingFileHandler(
            log_file_path,
            when=file_handler_config.get('when', 'midnight'),
            interval=int(file_handler_config.get('interval', 1)),
            backupCount=backup_count,
            encoding='utf-8',
        )
    return logging.FileHandler(log_file_path, encoding='utf-8')


def setup_logger(config_loader: Optional[ConfigLoader] = None, logger_name: Optional[str] = None) -> logging.Logger:
    """
    Sets up a logger (root logger by default) from the 'logging' settings block.
    Call once at startup; calling again replaces the handlers instead of stacking them.
    """
    if config_loader is None:
        config_loader = ConfigLoader()

    default_level_str = str(config_loader.get_logging_setting('level', 'INFO')).upper()
    default_format = config_loader.get_logging_setting('format', DEFAULT_LOG_FORMAT)
    log_level = getattr(logging, default_level_str, logging.INFO)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if logger_name is not None:
        logger.propagate = bool(config_loader.get_logging_setting('propagate', False))

    console_config = config_loader.get_logging_setting('console_handler', {}) or {}
    if console_config.get('enabled', True):
        console_level = getattr(logging, str(console_config.get('level', default_level_str)).upper(), log_level)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(console_config.get('format', default_format)))
        logger.addHandler(console_handler)

    file_config = config_loader.get_logging_setting('file_handler', {}) or {}
    if file_config.get('enabled', False):
        log_file_path = Path(file_config.get('path', 'logs/headless_chrome.log'))
        if not log_file_path.is_absolute():
            log_file_path = PROJECT_ROOT / log_file_path
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Logging is not usable yet
            print(f"Error: Could not create log directory {log_file_path.parent}. File logging disabled. Error: {e}", file=sys.stderr)
        else:
            file_level = getattr(logging, str(file_config.get('level', default_level_str)).upper(), log_level)
            file_handler = _build_file_handler(file_config, log_file_path)
            file_handler.setLevel(file_level)
            file_handler.setFormatter(logging.Formatter(file_config.get('format', default_format)))
            logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
