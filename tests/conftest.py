from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from gridwalk.config import Settings
from gridwalk.runtime import init_runtime, reset_runtime_for_tests
from tests.support import TEST_STREAM, Harness, make_harness


@pytest.fixture()
def harness() -> Harness:
    # Short window so inactivity tests stay fast.
    return make_harness(timeout=0.05)


@pytest.fixture()
def slow_harness() -> Harness:
    # Window long enough that no deadline fires during a test.
    return make_harness(timeout=30)


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis and a 200ms inactivity window."""

    from gridwalk.main import app

    r = fakeredis.FakeRedis(decode_responses=True)
    reset_runtime_for_tests()
    init_runtime(settings=Settings(inactivity_timeout_ms=200, moves_stream=TEST_STREAM), r=r)
    with TestClient(app) as c:
        yield c, r
    reset_runtime_for_tests()
