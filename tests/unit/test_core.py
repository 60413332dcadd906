import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from lms.core.cache import InMemoryCache
from lms.core.circuit_breaker import CircuitBreaker, CircuitState
from lms.core.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    NotFoundError,
    ValidationError,
)
from lms.core.security import PasswordHasher, TokenManager
from lms.core.telemetry import setup_telemetry


async def _fail():
    raise RuntimeError("stripe down")


class TestCircuitBreaker:
    def test_initial_state(self):
        cb = CircuitBreaker("test", failure_threshold=2)
        assert cb.state == CircuitState.CLOSED
        assert cb.name == "test"
        assert cb.failure_count == 0

    @pytest.mark.asyncio
    async def test_successful_call(self):
        cb = CircuitBreaker("test")
        mock_func = AsyncMock(return_value="success")

        result = await cb.call(mock_func)

        assert result == "success"
        assert cb.state == CircuitState.CLOSED
        mock_func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_call_opens_after_threshold(self):
        cb = CircuitBreaker("test", failure_threshold=2)

        # 1st failure
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.state == CircuitState.CLOSED

        # 2nd failure -> Open
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.failure_count == 2
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_open_circuit_blocks_calls(self):
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=60)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)

        mock_func = AsyncMock(return_value="should not run")
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await cb.call(mock_func)

        assert exc_info.value.status_code == 503
        mock_func.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignored_exceptions_do_not_count(self):
        cb = CircuitBreaker("test", failure_threshold=1, ignored_exceptions=(ValidationError,))

        async def declined():
            raise ValidationError("Your card was declined")

        with pytest.raises(ValidationError):
            await cb.call(declined)

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    @pytest.mark.asyncio
    async def test_recovery_half_open(self):
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=0.1)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)

        time.sleep(0.15)  # Wait for timeout

        res = await cb.call(AsyncMock(return_value="recovered"))
        assert res == "recovered"
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self):
        cb = CircuitBreaker("test", failure_threshold=3, recovery_timeout_sec=0.1)
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await cb.call(_fail)
        time.sleep(0.15)

        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_manual_reset(self):
        cb = CircuitBreaker("test", failure_threshold=1)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.state == CircuitState.OPEN

        cb.reset()
        assert cb.state == CircuitState.CLOSED


class TestTelemetry:
    @patch("lms.core.telemetry.get_settings")
    @patch("lms.core.telemetry.Instrumentator")
    def test_setup_telemetry_prometheus_enabled(self, mock_instrumentator, mock_get_settings):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = True
        mock_settings.ENABLE_OTEL = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_instrumentator.assert_called_once()
        mock_instrumentator.return_value.instrument.assert_called_once_with(app)

    @patch("lms.core.telemetry.get_settings")
    @patch("lms.core.telemetry.trace")
    @patch("lms.core.telemetry.OTLPSpanExporter")
    @patch("lms.core.telemetry.BatchSpanProcessor")
    @patch("lms.core.telemetry.FastAPIInstrumentor")
    def test_setup_telemetry_otel_enabled(
        self, mock_fastapi_instr, mock_processor, mock_exporter, mock_trace, mock_get_settings
    ):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = False
        mock_settings.ENABLE_OTEL = True
        mock_settings.APP_NAME = "test"
        mock_settings.APP_VERSION = "1.0"
        mock_settings.DEBUG = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_fastapi_instr.instrument_app.assert_called_once()
        mock_processor.assert_called_once()
        mock_trace.set_tracer_provider.assert_called_once()


class TestInMemoryCache:
    def test_get_set(self):
        cache = InMemoryCache()
        cache.set("key", "value")
        assert cache.get("key") == "value"
        assert cache.get("missing") is None

    def test_expiration(self):
        cache = InMemoryCache(default_ttl_seconds=0.1)
        cache.set("key", "value")
        assert cache.get("key") == "value"

        time.sleep(0.15)
        assert cache.get("key") is None
        # Expired entries are dropped on read
        assert cache.size() == 0

    def test_delete_clear(self):
        cache = InMemoryCache()
        cache.set("k1", "v1")
        cache.set("k2", "v2")

        assert cache.delete("k1") is True
        assert cache.delete("missing") is False

        cache.clear()
        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_get_or_load(self):
        cache = InMemoryCache()
        loader = AsyncMock(return_value="tenant-acme")

        assert await cache.get_or_load("acme.example.com", loader) == "tenant-acme"
        assert await cache.get_or_load("acme.example.com", loader) == "tenant-acme"
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_or_load_does_not_cache_misses(self):
        cache = InMemoryCache()
        loader = AsyncMock(return_value=None)

        assert await cache.get_or_load("unknown.example.com", loader) is None
        assert await cache.get_or_load("unknown.example.com", loader) is None
        assert loader.await_count == 2


class TestSecurity:
    def test_password_hash_and_verify(self):
        hasher = PasswordHasher(rounds=4)
        hashed = hasher.hash("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert hasher.verify("s3cret-pass", hashed) is True
        assert hasher.verify("wrong", hashed) is False

    def test_verify_rejects_missing_or_malformed_hash(self):
        hasher = PasswordHasher(rounds=4)
        assert hasher.verify("anything", None) is False
        assert hasher.verify("anything", "not-a-bcrypt-hash") is False

    def test_empty_password_cannot_be_hashed(self):
        with pytest.raises(ValueError):
            PasswordHasher(rounds=4).hash("")

    def test_token_round_trip(self, token_manager):
        token = token_manager.create_access_token("user-1", "tenant-1", ["regular"])
        claims = token_manager.decode(token)

        assert claims.sub == "user-1"
        assert claims.tenant_id == "tenant-1"
        assert claims.roles == ["regular"]
        assert claims.exp - claims.iat == token_manager.expires_in

    def test_token_signed_with_other_key_is_rejected(self, token_manager):
        forged = TokenManager(secret_key="other-secret").create_access_token("u", "t", ["admin"])
        with pytest.raises(AuthenticationError) as exc_info:
            token_manager.decode(forged)
        assert exc_info.value.status_code == 401

    def test_expired_token_is_rejected(self):
        manager = TokenManager(secret_key="test-secret", expire_minutes=-1)
        token = manager.create_access_token("user-1", None, [])
        with pytest.raises(AuthenticationError, match="expired"):
            manager.decode(token)


class TestExceptions:
    def test_to_dict_shape(self):
        body = NotFoundError("Video", "v1").to_dict()
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["details"] == {"resource": "Video", "identifier": "v1"}
