"""
Tests for logging setup.
"""

import logging
import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from logging_config import LOG_FORMAT, configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logger():
    logger = get_logger()
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_logger_name():
    assert get_logger().name == 'spectral_engine'


def test_configure_is_idempotent():
    logger = configure_logging(logging.DEBUG)
    count = len(logger.handlers)
    configure_logging(logging.DEBUG)
    assert len(logger.handlers) == count
    assert logger.level == logging.DEBUG


def test_module_loggers_reach_file(tmp_path):
    log_file = tmp_path / 'logs' / 'engine.log'
    logger = configure_logging(logging.INFO, str(log_file))
    configure_logging(logging.INFO, str(log_file))

    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1

    logging.getLogger('spectral_engine.pipeline').info('stage denoise: applied')
    for handler in file_handlers:
        handler.flush()

    content = log_file.read_text()
    assert 'stage denoise: applied' in content
    assert ' | INFO | spectral_engine.pipeline | ' in content


def test_format_matches_convention():
    assert LOG_FORMAT == '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
