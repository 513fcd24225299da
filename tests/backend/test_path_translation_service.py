"""
Tests for session-aware path translation and settings loading.
"""
import logging
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from sandbox_paths.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    PathResolverSettings,
    get_settings,
    load_settings,
    reload_settings,
)
from sandbox_paths.core.session_context import SandboxContextCache
from sandbox_paths.services import SandboxPathService

HOST_ROOT = "/opt/openclaw/sandboxes/agent-test-123"


@pytest.fixture
def service(workspace_resolver, fake_clock) -> SandboxPathService:
    cache = SandboxContextCache(resolver=workspace_resolver, clock=fake_clock)
    return SandboxPathService(cache, config={"sandbox": {"mode": "all"}})


@pytest.mark.integration
class TestSandboxPathService:
    """Cache lookup followed by translation."""

    @pytest.mark.asyncio
    async def test_resolve_path(self, service, workspace_resolver) -> None:
        host_path = await service.resolve_path("session-1", "/workspace/report.pdf")

        assert host_path == f"{HOST_ROOT}/report.pdf"
        workspace_resolver.assert_awaited_once_with(
            config={"sandbox": {"mode": "all"}}, session_key="session-1"
        )

    @pytest.mark.asyncio
    async def test_resolve_params_uses_cache(self, service, workspace_resolver) -> None:
        params = {"media": "/workspace/image.png", "caption": "hi", "count": 2}

        first = await service.resolve_params("session-1", params)
        second = await service.resolve_params("session-1", params)

        assert first == {"media": f"{HOST_ROOT}/image.png", "caption": "hi", "count": 2}
        assert second == first
        assert params["media"] == "/workspace/image.png"
        workspace_resolver.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_resolve_params_custom_keys(self, service) -> None:
        params = {"attachment": "/workspace/a.zip", "filePath": "/workspace/b.txt"}

        result = await service.resolve_params("session-1", params, file_keys=["attachment"])

        assert result == {"attachment": f"{HOST_ROOT}/a.zip", "filePath": "/workspace/b.txt"}

    @pytest.mark.asyncio
    async def test_no_session_key_means_no_translation(self, service, workspace_resolver) -> None:
        params = {"filePath": "/workspace/a.txt"}

        assert await service.resolve_params(None, params) == params
        assert await service.resolve_path("", "/workspace/a.txt") == "/workspace/a.txt"
        workspace_resolver.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsandboxed_session(self, fake_clock) -> None:
        resolver = AsyncMock(return_value=None)
        service = SandboxPathService(SandboxContextCache(resolver=resolver, clock=fake_clock))

        assert await service.resolve_path("main", "/workspace/a.txt") == "/workspace/a.txt"

    def test_from_settings(self, workspace_resolver) -> None:
        settings = PathResolverSettings(
            cache_ttl_seconds=60, single_flight=False, file_keys=["attachment"]
        )

        service = SandboxPathService.from_settings(settings, workspace_resolver)

        assert service.cache.ttl_seconds == 60
        assert service.cache.single_flight is False
        assert service.file_keys == ("attachment",)


@pytest.mark.unit
class TestSettings:
    """YAML settings loading."""

    def test_defaults_when_file_missing(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.yaml")

        assert settings == PathResolverSettings()
        assert settings.cache_ttl_seconds == 300
        assert settings.file_keys == ["filePath", "path", "media"]

    def test_loads_section(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text(
            "sandbox_paths:\n"
            "  cache_ttl_seconds: 30\n"
            "  single_flight: false\n"
            "  file_keys: [attachment, filePath]\n"
        )

        settings = load_settings(config_file)

        assert settings.cache_ttl_seconds == 30.0
        assert settings.single_flight is False
        assert settings.file_keys == ["attachment", "filePath"]

    def test_invalid_values_fall_back(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text(
            "sandbox_paths:\n"
            "  cache_ttl_seconds: -5\n"
            "  file_keys: filePath\n"
        )

        settings = load_settings(config_file)

        assert settings.cache_ttl_seconds == 300
        assert settings.file_keys == ["filePath", "path", "media"]

    def test_malformed_yaml_falls_back(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text("sandbox_paths: [unclosed\n")

        assert load_settings(config_file) == PathResolverSettings()

    def test_env_var_selects_file(self, tmp_path: Path, monkeypatch) -> None:
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("sandbox_paths:\n  cache_ttl_seconds: 12\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

        assert get_settings().cache_ttl_seconds == 12.0

    def test_reload_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text("sandbox_paths:\n  single_flight: false\n")

        settings = reload_settings(config_file)

        assert settings.single_flight is False
        assert get_settings() is settings

    def test_shipped_config_file(self) -> None:
        shipped = Path(__file__).parent.parent.parent / "config" / "sandbox-paths.yaml"

        assert load_settings(shipped) == PathResolverSettings()

    @pytest.mark.parametrize("value", ['"false"', '"no"', "0", "off-ish"])
    def test_non_bool_single_flight_falls_back(self, tmp_path: Path, caplog, value) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text(f"sandbox_paths:\n  single_flight: {value}\n")

        with caplog.at_level(logging.WARNING, logger="sandbox_paths.config"):
            settings = load_settings(config_file)

        assert settings.single_flight is True
        assert "Invalid single_flight" in caplog.text

    def test_bool_single_flight_accepted(self, tmp_path: Path) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text("sandbox_paths:\n  single_flight: no\n")

        # YAML 1.1 "no" is a real boolean
        assert load_settings(config_file).single_flight is False

    def test_section_not_a_mapping_warns(self, tmp_path: Path, caplog) -> None:
        config_file = tmp_path / "sandbox-paths.yaml"
        config_file.write_text("sandbox_paths:\n  - cache_ttl_seconds\n")

        with caplog.at_level(logging.WARNING, logger="sandbox_paths.config"):
            settings = load_settings(config_file)

        assert settings == PathResolverSettings()
        assert "not a mapping" in caplog.text

    def test_default_path_independent_of_cwd(self, tmp_path: Path, monkeypatch) -> None:
        shipped = Path(__file__).parent.parent.parent / "config" / "sandbox-paths.yaml"
        assert DEFAULT_CONFIG_PATH.resolve() == shipped.resolve()

        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        config_file = DEFAULT_CONFIG_PATH

        assert config_file.is_absolute()
        assert config_file.exists()
        assert get_settings() == PathResolverSettings()
