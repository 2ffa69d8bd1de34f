"""Tests for the authorization session manager"""

import asyncio
from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest
import pytest_asyncio

from codex_oauth import (
    AuthorizationSessionManager,
    AuthState,
    CallbackListener,
    TokenExchangeFailed,
    TokenResponse,
)
from tests.conftest import make_jwt


class FakeListener:
    """Records lifecycle calls instead of binding a port"""

    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self.running = False
        self.starts = 0
        self.stops = 0

    @property
    def is_running(self):
        return self.running

    async def start(self):
        if self.fail_start:
            raise OSError("address already in use")
        self.starts += 1
        self.running = True

    def request_stop(self):
        if self.running:
            self.stops += 1
        self.running = False

    async def stop(self):
        self.request_stop()


class FakeExchanger:
    def __init__(self, tokens=None, error=None, delay=0.0):
        self.tokens = tokens or TokenResponse(
            id_token=make_jwt({"https://api.openai.com/auth": {"chatgpt_account_id": "acct_42"}}),
            access_token="access",
            refresh_token="refresh",
            expires_in=3600,
        )
        self.error = error
        self.delay = delay
        self.calls = []

    async def __call__(self, code, redirect_uri, pkce):
        self.calls.append((code, redirect_uri, pkce))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.tokens


class CountingStore:
    """Wraps a real store and counts writes"""

    def __init__(self, store):
        self._store = store
        self.saves = 0

    def save(self, credential):
        self.saves += 1
        return self._store.save(credential)

    def __getattr__(self, name):
        return getattr(self._store, name)


def state_from(url):
    return parse_qs(urlparse(url).query)["state"][0]


@pytest.fixture
def listener():
    return FakeListener()


@pytest.fixture
def exchanger():
    return FakeExchanger()


@pytest.fixture
def counting_store(store):
    return CountingStore(store)


@pytest_asyncio.fixture
async def manager(counting_store, listener, exchanger):
    manager = AuthorizationSessionManager(
        store=counting_store,
        listener=listener,
        exchanger=exchanger,
        timeout=30,
    )
    yield manager
    await manager.shutdown()


class TestStart:
    @pytest.mark.asyncio
    async def test_start_sets_pending(self, manager, listener):
        request = await manager.start()

        assert manager.auth_status.status == AuthState.PENDING
        assert manager.auth_status.error is None
        assert listener.running
        assert request.method == "auto"
        assert state_from(request.url) == manager.session.state

    @pytest.mark.asyncio
    async def test_restart_replaces_session_and_cancels_timer(self, manager, listener):
        await manager.start()
        first = manager.session
        await manager.start()

        await asyncio.gather(first.timer, return_exceptions=True)
        assert first.timer.cancelled()
        assert manager.session is not first
        assert manager.session.state != first.state
        assert manager.auth_status.status == AuthState.PENDING
        # The listener is shared across attempts
        assert listener.running

    @pytest.mark.asyncio
    async def test_listener_failure_leaves_status_untouched(self, store, exchanger):
        manager = AuthorizationSessionManager(
            store=store, listener=FakeListener(fail_start=True), exchanger=exchanger,
        )

        with pytest.raises(OSError):
            await manager.start()
        assert manager.auth_status.status == AuthState.IDLE
        assert manager.session is None


class TestCallback:
    @pytest.mark.asyncio
    async def test_success_persists_once(self, manager, listener, exchanger, counting_store):
        request = await manager.start()
        pkce = manager.session.pkce

        outcome = await manager.handle_callback({"code": "abc", "state": state_from(request.url)})

        assert outcome.ok
        assert manager.auth_status.status == AuthState.SUCCESS
        assert manager.session is None
        assert not listener.running
        assert counting_store.saves == 1
        assert exchanger.calls == [("abc", manager.redirect_uri, pkce)]

        credential = counting_store.load()
        assert credential.access == "access"
        assert credential.refresh == "refresh"
        assert credential.account_id == "acct_42"

    @pytest.mark.asyncio
    async def test_state_mismatch_never_exchanges(self, manager, listener, exchanger, counting_store):
        await manager.start()

        outcome = await manager.handle_callback({"code": "abc", "state": "forged"})

        assert not outcome.ok
        assert outcome.http_status == 400
        assert exchanger.calls == []
        assert counting_store.saves == 0
        status = manager.auth_status
        assert status.status == AuthState.ERROR
        assert "CSRF" in status.error
        assert not listener.running

    @pytest.mark.asyncio
    async def test_callback_without_session(self, manager, exchanger):
        outcome = await manager.handle_callback({"code": "abc", "state": "anything"})

        assert not outcome.ok
        assert exchanger.calls == []
        assert manager.auth_status.status == AuthState.ERROR

    @pytest.mark.asyncio
    async def test_provider_error(self, manager, exchanger):
        await manager.start()

        outcome = await manager.handle_callback({"error": "access_denied", "error_description": "User said no"})

        assert not outcome.ok
        assert outcome.http_status == 400
        assert manager.auth_status.error == "User said no"
        assert exchanger.calls == []

    @pytest.mark.asyncio
    async def test_missing_code(self, manager):
        request = await manager.start()

        outcome = await manager.handle_callback({"state": state_from(request.url)})

        assert outcome.http_status == 400
        assert manager.auth_status.error == "missing authorization code"

    @pytest.mark.asyncio
    async def test_exchange_failure(self, store, listener):
        manager = AuthorizationSessionManager(
            store=store,
            listener=listener,
            exchanger=FakeExchanger(error=TokenExchangeFailed("Token exchange failed: 500")),
        )
        request = await manager.start()

        outcome = await manager.handle_callback({"code": "abc", "state": state_from(request.url)})

        assert outcome.http_status == 500
        assert manager.auth_status.status == AuthState.ERROR
        assert manager.auth_status.error == "Token exchange failed: 500"
        assert store.load() is None

    @pytest.mark.asyncio
    async def test_unexpected_exchange_error_ends_in_error(self, store, listener):
        manager = AuthorizationSessionManager(
            store=store,
            listener=listener,
            exchanger=FakeExchanger(error=OverflowError("cannot convert float infinity to integer")),
        )
        request = await manager.start()
        timer = manager.session.timer

        outcome = await manager.handle_callback({"code": "abc", "state": state_from(request.url)})
        await asyncio.gather(timer, return_exceptions=True)

        assert not outcome.ok
        assert outcome.http_status == 500
        assert manager.auth_status.status == AuthState.ERROR
        assert manager.auth_status.error.startswith("Token exchange failed")
        assert manager.session is None
        assert timer.cancelled()
        assert not listener.running
        assert store.load() is None

    @pytest.mark.asyncio
    async def test_second_redirect_after_success_is_rejected(self, manager, counting_store):
        request = await manager.start()
        params = {"code": "abc", "state": state_from(request.url)}
        await manager.handle_callback(params)

        outcome = await manager.handle_callback(params)

        assert not outcome.ok
        assert counting_store.saves == 1


class TestCancelAndTimeout:
    @pytest.mark.asyncio
    async def test_cancel_pending(self, manager, listener, counting_store):
        await manager.start()

        await manager.cancel()

        assert manager.auth_status.status == AuthState.ERROR
        assert manager.auth_status.error == "login cancelled"
        assert manager.session is None
        assert not listener.running
        assert counting_store.saves == 0

    @pytest.mark.asyncio
    async def test_cancel_without_session_keeps_status(self, manager):
        await manager.cancel()
        assert manager.auth_status.status == AuthState.IDLE

    @pytest.mark.asyncio
    async def test_timeout_fails_session(self, store, listener, exchanger):
        manager = AuthorizationSessionManager(
            store=store, listener=listener, exchanger=exchanger, timeout=0.05,
        )
        request = await manager.start()

        await asyncio.sleep(0.2)

        assert manager.auth_status.status == AuthState.ERROR
        assert "timeout" in manager.auth_status.error
        assert not listener.running

        # A late redirect finds no session
        outcome = await manager.handle_callback({"code": "abc", "state": state_from(request.url)})
        assert not outcome.ok
        assert exchanger.calls == []

    @pytest.mark.asyncio
    async def test_timer_cancelled_on_success(self, manager):
        request = await manager.start()
        timer = manager.session.timer

        await manager.handle_callback({"code": "abc", "state": state_from(request.url)})
        await asyncio.gather(timer, return_exceptions=True)

        assert timer.cancelled()
        assert manager.auth_status.status == AuthState.SUCCESS


class TestStatusAndDisconnect:
    @pytest.mark.asyncio
    async def test_idle_without_credential(self, manager):
        assert manager.status() == {"status": "idle", "connected": False, "accountId": None}

    @pytest.mark.asyncio
    async def test_stored_credential_reports_success(self, manager, counting_store, valid_credential):
        counting_store.save(valid_credential)
        assert manager.status() == {"status": "success", "connected": True, "accountId": "acct_123"}

    @pytest.mark.asyncio
    async def test_error_is_reported(self, manager):
        await manager.start()
        await manager.cancel()

        status = manager.status()
        assert status["status"] == "error"
        assert status["error"] == "login cancelled"

    @pytest.mark.asyncio
    async def test_disconnect(self, manager, listener, counting_store, valid_credential):
        counting_store.save(valid_credential)
        await manager.start()

        await manager.disconnect()

        assert counting_store.load() is None
        assert manager.session is None
        assert not listener.running
        assert manager.status() == {"status": "idle", "connected": False, "accountId": None}


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_timer_firing_during_exchange_yields_one_terminal_state(self, counting_store, listener):
        manager = AuthorizationSessionManager(
            store=counting_store,
            listener=listener,
            exchanger=FakeExchanger(delay=0.2),
            timeout=0.05,
        )
        request = await manager.start()
        timer = manager.session.timer

        # The timer fires while the redirect holds the lock for the exchange
        outcome = await manager.handle_callback({"code": "abc", "state": state_from(request.url)})
        await asyncio.gather(timer, return_exceptions=True)
        await asyncio.sleep(0.1)

        assert outcome.ok
        assert timer.cancelled()
        assert manager.auth_status.status == AuthState.SUCCESS
        assert manager.auth_status.error is None
        assert counting_store.saves == 1


class TestRealListener:
    @pytest.mark.asyncio
    async def test_cancel_route_stops_listener(self, counting_store, exchanger):
        manager = AuthorizationSessionManager(store=counting_store, exchanger=exchanger)
        listener = CallbackListener(manager.handle_callback, manager.cancel, host="127.0.0.1", port=0)
        manager.listener = listener

        await manager.start()
        assert listener.is_running
        url = f"http://127.0.0.1:{listener.bound_port}/cancel"

        try:
            async with aiohttp.ClientSession() as http:
                async with http.get(url) as response:
                    body = await response.text()

            assert response.status == 200
            assert body == "Login cancelled"
            assert not listener.is_running
            assert manager.auth_status.status == AuthState.ERROR
            assert manager.auth_status.error == "login cancelled"
            assert counting_store.saves == 0
        finally:
            await manager.shutdown()
