"""Tests for logging setup."""

import logging

from fileshelf.logger import setup_logging


def test__setup_logging__installs_stream_handler() -> None:
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    previous_handlers = list(root_logger.handlers)

    setup_logging(logging.DEBUG)
    try:
        added = [h for h in root_logger.handlers if h not in previous_handlers]

        assert root_logger.level == logging.DEBUG
        assert len(added) == 1
        assert added[0].formatter._fmt == "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
    finally:
        for handler in list(root_logger.handlers):
            if handler not in previous_handlers:
                root_logger.removeHandler(handler)
        root_logger.setLevel(previous_level)
