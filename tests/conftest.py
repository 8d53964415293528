import io
import json

import pytest

from clf_logging import CommonLogger


@pytest.fixture
def stream():
    """In-memory stream the logger writes to"""
    return io.StringIO()


@pytest.fixture
def clf_logger(stream):
    """Uninitialized logger writing to the in-memory stream"""
    return CommonLogger(stream=stream)


@pytest.fixture
def read_entries(stream):
    """Parse every line written so far into a list of dicts"""

    def _read():
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    return _read
