"""Shared fixtures for integration tests running the full FastAPI application in-process."""

import re
import time
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from relay.services.container import RelayServices
from relay_web.app import create_app
from relay_web.routes.whatsapp import limiter

API_KEY = "test-relay-api-key-0123456789"


def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until the application's event loop thread has caught up."""
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met within timeout")
        time.sleep(0.01)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-API-Key": API_KEY}


@pytest.fixture
def services(test_settings, fake_driver) -> RelayServices:
    """Services over the fake driver; retries without delay."""
    settings = test_settings.model_copy(update={"send_retry_delay": 0})
    return RelayServices.build(settings, driver=fake_driver)


@pytest.fixture
def app(test_settings, services):
    limiter.reset()
    return create_app(settings=test_settings, services=services)


@pytest.fixture
def client(app, fake_driver):
    """Client with the lifespan running and the session initialization finished."""
    with TestClient(app) as test_client:
        wait_for(lambda: fake_driver.listener is not None)
        yield test_client


@pytest.fixture
def ready_client(client, fake_driver):
    """Client whose WhatsApp session has reported ready."""
    fake_driver.emit_ready()
    return client


@pytest.fixture
def sent_code(fake_driver) -> Callable[..., str]:
    """Return the code inside a message the fake driver delivered."""

    def extract(index: int = -1) -> str:
        _, text = fake_driver.sent[index]
        match = re.search(r": (\d+)\n", text)
        assert match, text
        return match.group(1)

    return extract


@pytest.fixture
def wait_until() -> Callable[..., None]:
    """Expose wait_for to test modules."""
    return wait_for
