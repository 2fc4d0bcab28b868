"""Unit tests for Settings, load_config and build_context."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from animebrowse.config.loader import load_config
from animebrowse.config.settings import Settings
from animebrowse.context import build_context, build_store
from animebrowse.interfaces.transport import CancellationToken, TransportResponse
from animebrowse.providers.storage.memory_store import MemoryKeyValueStore
from animebrowse.providers.storage.sqlite_store import SQLiteKeyValueStore
from animebrowse.utils.errors import ConfigurationError, RequestCancelledError
from tests.conftest import Gate, ScriptedTransport, json_response, make_anime


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("CACHE_BACKEND", "JIKAN_BASE_URL", "HTTP_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.jikan_base_url == "https://api.jikan.moe/v4"
        assert settings.cache_backend == "sqlite"
        assert settings.http_timeout_seconds == 15.0

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_BACKEND", "memory")
        monkeypatch.setenv("APP_PORT", "9001")
        settings = Settings(_env_file=None)
        assert settings.cache_backend == "memory"
        assert settings.app_port == 9001

    def test_rejects_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_BACKEND", "redis")
        with pytest.raises(ValueError):
            Settings(_env_file=None)


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "cache:\n  ttl_seconds: 60\n  details_capacity: 3\njikan:\n  page_size: 10\n"
        )
        settings = Settings(_env_file=None, cache_backend="memory", log_level="DEBUG")

        config = load_config(str(config_file), settings=settings)

        assert config["cache"]["ttl_seconds"] == 60
        assert config["cache"]["details_capacity"] == 3
        assert config["cache"]["backend"] == "memory"
        assert config["jikan"]["page_size"] == 10
        assert "base_url" in config["jikan"]
        assert config["logging"]["level"] == "DEBUG"

    def test_missing_file_yields_env_layer_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))
        assert "cache" in config
        assert "ttl_seconds" not in config["cache"]

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("cache: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(str(config_file), settings=Settings(_env_file=None))

    def test_repository_config_parses(self) -> None:
        project_root = Path(__file__).resolve().parents[2]
        config = load_config(
            str(project_root / "config" / "config.yaml"),
            settings=Settings(_env_file=None),
        )
        assert config["cache"]["details_capacity"] == 5
        assert config["cache"]["listing_capacity"] == 10
        assert config["cache"]["ttl_seconds"] == 1800


class TestBuildContext:
    def test_builds_from_config(self, test_config: dict[str, Any]) -> None:
        transport = ScriptedTransport()
        context = build_context(test_config, transport=transport)

        assert isinstance(context.store, MemoryKeyValueStore)
        assert context.transport is transport
        assert context.details.entry_store.capacity == 5
        assert context.listings.entry_store.capacity == 10
        assert context.details.entry_store.ttl_ms == 1_800_000

    def test_custom_capacities_and_keys(self, test_config: dict[str, Any]) -> None:
        test_config["cache"].update(
            details_capacity=2,
            ttl_seconds=10,
            details_storage_key="custom_details",
        )
        context = build_context(test_config, transport=ScriptedTransport())
        assert context.details.entry_store.capacity == 2
        assert context.details.entry_store.ttl_ms == 10_000
        assert context.details.entry_store.storage_key == "custom_details"

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        store = build_store({"backend": "sqlite", "db_path": str(tmp_path / "c.db")})
        assert isinstance(store, SQLiteKeyValueStore)
        assert (tmp_path / "c.db").exists()

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError):
            build_store({"backend": "redis"})

    @pytest.mark.asyncio
    async def test_aclose_closes_transport(self, test_config: dict[str, Any]) -> None:
        transport = ScriptedTransport()
        context = build_context(test_config, transport=transport)
        await context.aclose()
        assert transport.closed is True


class TestClientQueryServices:
    def test_same_client_shares_slots(self, test_config: dict[str, Any]) -> None:
        context = build_context(test_config, transport=ScriptedTransport())
        first = context.query_service_for("a")
        assert context.query_service_for("a") is first
        assert context.query_service_for("b") is not first
        assert first.coordinator is not context.coordinator

    def test_missing_client_id_gets_private_slots(self, test_config: dict[str, Any]) -> None:
        context = build_context(test_config, transport=ScriptedTransport())
        first = context.query_service_for(None)
        second = context.query_service_for("")
        assert first is not second
        assert first.coordinator is not second.coordinator

    def test_least_recent_client_forgotten(self, test_config: dict[str, Any]) -> None:
        test_config["api"]["max_clients"] = 2
        context = build_context(test_config, transport=ScriptedTransport())
        assert context.max_clients == 2

        a = context.query_service_for("a")
        context.query_service_for("b")
        context.query_service_for("a")
        context.query_service_for("c")

        assert context.query_service_for("a") is a
        assert len(context._clients) == 2
        assert "b" not in context._clients

    @pytest.mark.asyncio
    async def test_client_services_share_the_cache(self, test_config: dict[str, Any]) -> None:
        async def handler(url: str, token: CancellationToken) -> TransportResponse:
            return json_response({"data": make_anime(1)})

        transport = ScriptedTransport(handler)
        context = build_context(test_config, transport=transport)

        await context.query_service_for("a").details(1)
        await context.query_service_for("b").details(1)
        await context.query_service.details(1)

        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_pending_and_aclose_cover_client_slots(
        self, test_config: dict[str, Any]
    ) -> None:
        gate = Gate()

        async def handler(url: str, token: CancellationToken) -> TransportResponse:
            await gate.wait()
            return json_response({"data": make_anime(1)})

        context = build_context(test_config, transport=ScriptedTransport(handler))
        task = asyncio.create_task(context.query_service_for("a").details(1))
        await gate.entered.wait()
        assert context.pending_classes() == ["details"]

        await context.aclose()
        gate.release.set()
        with pytest.raises(RequestCancelledError):
            await task
        assert context.pending_classes() == []
