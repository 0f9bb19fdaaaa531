"""Tests for engine and session construction."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mailwise.core.config import Settings
from mailwise.db.session import build_async_engine, session_scope


class TestBuildAsyncEngine:
    def test_engine_options(self):
        settings = Settings(_env_file=None, db_pool_size=7, db_pool_max_overflow=3)

        with patch("mailwise.db.session.create_async_engine") as create:
            build_async_engine(settings)

        url = create.call_args.args[0]
        kwargs = create.call_args.kwargs
        assert url.startswith("postgresql+asyncpg://")
        assert kwargs["pool_size"] == 7
        assert kwargs["max_overflow"] == 3
        assert kwargs["isolation_level"] == "READ COMMITTED"
        assert "ssl" not in kwargs["connect_args"]

    def test_ssl_disabled(self):
        settings = Settings(_env_file=None, POSTGRES_SSLMODE="disable")

        with patch("mailwise.db.session.create_async_engine") as create:
            build_async_engine(settings)

        assert create.call_args.kwargs["connect_args"]["ssl"] is False


class TestSessionScope:
    @pytest.mark.asyncio
    async def test_closes_session_on_error(self):
        session = MagicMock()
        session.close = AsyncMock()
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=session)
        context.__aexit__ = AsyncMock(return_value=False)
        factory = MagicMock(return_value=context)

        with pytest.raises(ValueError):
            async with session_scope(factory) as db:
                assert db is session
                raise ValueError("boom")

        session.close.assert_awaited_once()
