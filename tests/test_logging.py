"""setup_logging keeps the app and uvicorn loggers on one level."""
import logging

import pytest

from paybridge.logging import setup_logging


@pytest.fixture
def restore_logging():
    yield
    setup_logging(level=logging.INFO)


def test_levels_follow_setting(restore_logging):
    setup_logging(level=logging.WARNING)
    for name in ("paybridge", "uvicorn", "uvicorn.error", "uvicorn.access"):
        assert logging.getLogger(name).level == logging.WARNING
    assert logging.getLogger().level == logging.WARNING
