import json
import logging
import logging.handlers

from headless_chrome.core.config_loader import ConfigLoader
from headless_chrome.utils.logger import setup_logger


def make_loader(tmp_path, logging_block):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"logging": logging_block}), encoding="utf-8")
    return ConfigLoader(path)


def test_setup_logger_replaces_handlers(tmp_path):
    loader = make_loader(tmp_path, {"level": "DEBUG"})

    logger = setup_logger(loader, "headless_chrome.test.console")
    setup_logger(loader, "headless_chrome.test.console")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert logger.propagate is False


def test_size_rotating_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    loader = make_loader(tmp_path, {
        "level": "INFO",
        "console_handler": {"enabled": False},
        "file_handler": {
            "enabled": True,
            "path": str(log_file),
            "rotation_type": "size",
            "max_bytes": 1024,
            "backup_count": 2,
            "level": "WARNING",
        },
    })

    logger = setup_logger(loader, "headless_chrome.test.file")
    try:
        (handler,) = logger.handlers
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        assert handler.level == logging.WARNING

        logger.warning("disk is full")
        handler.flush()
        assert "disk is full" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()


def test_no_handlers_enabled_uses_null_handler(tmp_path):
    loader = make_loader(tmp_path, {"console_handler": {"enabled": False}})
    logger = setup_logger(loader, "headless_chrome.test.silent")
    assert [type(h) for h in logger.handlers] == [logging.NullHandler]
