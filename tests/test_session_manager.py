"""Tests for the WhatsApp session manager state machine."""

from unittest.mock import AsyncMock

import pytest

from relay.constants import DisconnectReason
from relay.core.exceptions import (
    DeliveryFailedError,
    DriverError,
    RecipientNotRegisteredError,
    ServiceUnavailableError,
)
from relay.services.session.manager import SessionManager, SessionState


def fake_qr_encoder(payload):
    return f"data:image/png;base64,{payload}"


class TestLifecycle:
    """Tests for initialize and destroy."""

    @pytest.mark.asyncio
    async def test_initialize_starts_driver(self, session_manager, fake_driver):
        await session_manager.initialize()

        assert fake_driver.started
        assert fake_driver.listener is session_manager
        assert session_manager.state is SessionState.STARTING
        assert session_manager.is_ready() is False

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, fake_driver):
        fake_driver.start = AsyncMock()
        session = SessionManager(fake_driver, qr_encoder=fake_qr_encoder)

        await session.initialize()
        await session.initialize()

        fake_driver.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_initialize_failure_is_recorded_not_raised(self, session_manager, fake_driver):
        fake_driver.start_error = DriverError("Chromium failed to launch")

        await session_manager.initialize()

        assert session_manager.state is SessionState.FAILED
        assert session_manager.init_error == "Chromium failed to launch"
        assert session_manager.snapshot()["init_error"] == "Chromium failed to launch"

    @pytest.mark.asyncio
    async def test_destroy_stops_driver_and_runs_hooks(self, ready_session, fake_driver):
        hook = AsyncMock()
        ready_session.add_destroy_hook(hook)

        await ready_session.destroy()

        assert fake_driver.stopped
        hook.assert_awaited_once()
        assert ready_session.is_ready() is False
        assert ready_session.get_qr_code() is None
        assert ready_session.state is SessionState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_destroy_is_idempotent(self, session_manager):
        hook = AsyncMock()
        session_manager.add_destroy_hook(hook)

        await session_manager.destroy()
        await session_manager.destroy()

        hook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_destroy_survives_failures(self, session_manager, fake_driver):
        fake_driver.stop = AsyncMock(side_effect=RuntimeError("browser gone"))
        failing_hook = AsyncMock(side_effect=RuntimeError("hook failed"))
        second_hook = AsyncMock()
        session_manager.add_destroy_hook(failing_hook)
        session_manager.add_destroy_hook(second_hook)

        await session_manager.destroy()

        second_hook.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_initialize_after_destroy_restarts(self, session_manager, fake_driver):
        await session_manager.initialize()
        await session_manager.destroy()
        fake_driver.started = False

        await session_manager.initialize()

        assert fake_driver.started


class TestEvents:
    """Tests for driver event handlers."""

    @pytest.mark.asyncio
    async def test_qr_stores_data_url(self, session_manager):
        await session_manager.handle_qr("challenge-1")

        assert session_manager.get_qr_code() == "data:image/png;base64,challenge-1"
        assert session_manager.state is SessionState.PAIRING
        assert session_manager.is_ready() is False

    @pytest.mark.asyncio
    async def test_newer_qr_replaces_older(self, session_manager):
        await session_manager.handle_qr("challenge-1")
        await session_manager.handle_qr("challenge-2")

        assert session_manager.get_qr_code().endswith("challenge-2")

    @pytest.mark.asyncio
    async def test_qr_ignored_when_ready(self, ready_session):
        await ready_session.handle_qr("late-challenge")

        assert ready_session.get_qr_code() is None
        assert ready_session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_qr_encoding_failure_is_swallowed(self, fake_driver):
        def broken_encoder(payload):
            raise ValueError("bad payload")

        session = SessionManager(fake_driver, qr_encoder=broken_encoder)

        await session.handle_qr("challenge")

        assert session.get_qr_code() is None

    @pytest.mark.asyncio
    async def test_ready_clears_qr(self, session_manager):
        await session_manager.handle_qr("challenge")
        session_manager.handle_authenticated()
        assert session_manager.state is SessionState.AUTHENTICATED
        assert session_manager.get_qr_code() is None

        session_manager.handle_ready()

        assert session_manager.is_ready() is True
        assert session_manager.state is SessionState.READY
        assert session_manager.get_qr_code() is None

    def test_authenticated_after_ready_keeps_ready(self, ready_session):
        ready_session.handle_authenticated()

        assert ready_session.state is SessionState.READY
        assert ready_session.is_ready() is True

    def test_auth_failure(self, session_manager):
        session_manager.handle_auth_failure("restore failed")

        assert session_manager.is_ready() is False
        assert session_manager.state is SessionState.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_disconnect_keeps_qr_except_logout(self, session_manager):
        await session_manager.handle_qr("challenge")

        session_manager.handle_disconnected(DisconnectReason.CONNECTION_LOST)
        assert session_manager.get_qr_code() is not None
        assert session_manager.state is SessionState.DISCONNECTED

        session_manager.handle_disconnected(DisconnectReason.LOGOUT)
        assert session_manager.get_qr_code() is None

    def test_disconnect_clears_ready(self, ready_session):
        ready_session.handle_disconnected()

        assert ready_session.is_ready() is False

    def test_snapshot(self, ready_session):
        snapshot = ready_session.snapshot()

        assert snapshot["state"] == "ready"
        assert snapshot["ready"] is True
        assert snapshot["has_qr_code"] is False
        assert snapshot["last_event_at"] is not None


class TestMessaging:
    """Tests for send and registration checks."""

    @pytest.mark.asyncio
    async def test_send_requires_ready(self, session_manager, fake_driver):
        with pytest.raises(ServiceUnavailableError):
            await session_manager.send("+6281234567890", "hello")

        assert fake_driver.send_attempts == 0

    @pytest.mark.asyncio
    async def test_send_uses_chat_address(self, ready_session, fake_driver):
        await ready_session.send("+6281234567890", "hello")

        assert fake_driver.sent == [("6281234567890@c.us", "hello")]

    @pytest.mark.asyncio
    async def test_send_retries_driver_errors(self, ready_session, fake_driver):
        fake_driver.send_failures = 2

        await ready_session.send("+6281234567890", "hello")

        assert fake_driver.send_attempts == 3

    @pytest.mark.asyncio
    async def test_send_gives_up_after_retries(self, ready_session, fake_driver):
        fake_driver.send_failures = 3

        with pytest.raises(DeliveryFailedError) as exc_info:
            await ready_session.send("+6281234567890", "hello")

        assert exc_info.value.details["reason"] == "compose box did not appear"
        assert fake_driver.send_attempts == 3

    @pytest.mark.asyncio
    async def test_relay_errors_pass_through_without_retry(self, ready_session, fake_driver):
        fake_driver.send_error = RecipientNotRegisteredError("+6281234567890")

        with pytest.raises(RecipientNotRegisteredError):
            await ready_session.send("+6281234567890", "hello")

        assert fake_driver.send_attempts == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_delivery_failures(self, ready_session, fake_driver):
        fake_driver.send_error = RuntimeError("boom")

        with pytest.raises(DeliveryFailedError):
            await ready_session.send("+6281234567890", "hello")

    @pytest.mark.asyncio
    async def test_is_registered(self, ready_session, fake_driver):
        fake_driver.unregistered.add("6289999999999@c.us")

        assert await ready_session.is_registered("+6281234567890") is True
        assert await ready_session.is_registered("+6289999999999") is False

    @pytest.mark.asyncio
    async def test_is_registered_lookup_failure(self, ready_session, fake_driver):
        fake_driver.is_registered = AsyncMock(side_effect=DriverError("page closed"))

        with pytest.raises(DeliveryFailedError, match="Failed to verify WhatsApp registration"):
            await ready_session.is_registered("+6281234567890")

    @pytest.mark.asyncio
    async def test_is_registered_requires_ready(self, session_manager):
        with pytest.raises(ServiceUnavailableError):
            await session_manager.is_registered("+6281234567890")
