"""Pytest configuration and common fixtures."""

import os
import warnings
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Set, Tuple

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Bootstrap variables for module-level imports; isolation per test is provided by
# the setup_test_environment fixture using monkeypatch.
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
import pytest_asyncio

from relay.core.exceptions import DriverError
from relay.core.settings import RelaySettings, reset_settings
from relay.services.otp.service import OTPService
from relay.services.otp.store import InMemoryOTPStore
from relay.services.session.driver import ConnectionDriver, SessionListener
from relay.services.session.manager import SessionManager
from relay.utils.phone import PhoneNormalizer

TEST_API_KEY = "test-relay-api-key-0123456789"


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("SESSION_PATH", str(tmp_path / "session"))
    for name in ("API_KEY", "VPS_API_KEY", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    # Reset settings singleton so each test gets fresh settings
    reset_settings()
    yield
    reset_settings()


class FakeDriver(ConnectionDriver):
    """In-memory connection driver recording sent messages."""

    def __init__(self) -> None:
        self.listener: Optional[SessionListener] = None
        self.started = False
        self.stopped = False
        self.start_error: Optional[Exception] = None
        self.sent: List[Tuple[str, str]] = []
        self.unregistered: Set[str] = set()
        self.send_failures = 0
        self.send_error: Optional[Exception] = None
        self.send_attempts = 0

    async def start(self, listener: SessionListener) -> None:
        self.listener = listener
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def send_message(self, chat_id: str, text: str) -> None:
        self.send_attempts += 1
        if self.send_error is not None:
            raise self.send_error
        if self.send_failures > 0:
            self.send_failures -= 1
            raise DriverError("compose box did not appear")
        self.sent.append((chat_id, text))

    async def is_registered(self, chat_id: str) -> bool:
        return chat_id not in self.unregistered

    def emit_ready(self) -> None:
        assert self.listener is not None
        self.listener.handle_ready()

    def emit_disconnected(self, reason: Optional[str] = None) -> None:
        assert self.listener is not None
        self.listener.handle_disconnected(reason)


class FakeClock:
    """Controllable timezone-aware clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 15, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def fake_qr_encoder(payload: str) -> str:
    return f"data:image/png;base64,{payload}"


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_manager(fake_driver) -> SessionManager:
    """Session manager over the fake driver, retrying sends without delay."""
    return SessionManager(
        fake_driver, qr_encoder=fake_qr_encoder, send_max_retries=2, send_retry_delay=0
    )


@pytest.fixture
def ready_session(session_manager) -> SessionManager:
    session_manager.handle_ready()
    return session_manager


@pytest.fixture
def otp_store() -> InMemoryOTPStore:
    return InMemoryOTPStore()


@pytest_asyncio.fixture
async def otp_service(ready_session, otp_store, clock):
    """OTP service with a ready session and a controllable clock."""
    service = OTPService(
        ready_session,
        store=otp_store,
        normalizer=PhoneNormalizer("62", "0"),
        clock=clock,
    )
    yield service
    await service.clear()


@pytest.fixture
def test_settings(tmp_path) -> RelaySettings:
    """Testing settings with an API key and rate limiting disabled."""
    return RelaySettings(
        env="testing",
        api_key=TEST_API_KEY,
        rate_limit_enabled=False,
        allowed_origins="http://localhost:3000",
        log_dir=str(tmp_path / "logs"),
        session_path=str(tmp_path / "session"),
    )
