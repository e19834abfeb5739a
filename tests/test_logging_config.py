"""Tests for setup_logging."""

import logging
import logging.handlers

import pytest

from catalog_health.logging_config import setup_logging


@pytest.fixture
def app_name(request):
    name = f"catalog_health_test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogging:
    def test_console_only(self, app_name):
        logger = setup_logging(level=logging.WARNING, app_name=app_name)

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.WARNING

    def test_rotating_file(self, app_name, tmp_path):
        logger = setup_logging(log_dir=tmp_path / "logs", app_name=app_name)

        file_handlers = [
            h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.WARNING

        logger.warning("stale sync")
        file_handlers[0].flush()
        assert "stale sync" in (tmp_path / "logs" / f"{app_name}.log").read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate_handlers(self, app_name):
        setup_logging(app_name=app_name)
        logger = setup_logging(app_name=app_name)
        assert len(logger.handlers) == 1
