"""Tests de la configuration (fusion des couches, persistance)."""

import json

import pytest
from unittest.mock import AsyncMock, patch

from tenth_man.config import (
    ConfigOverrides,
    RuntimeConfig,
    build_runtime_config,
    config_path,
    load_repo_config,
    merge_config_layers,
    save_repo_config,
)
from tenth_man.models import AgentEngine, Mode


class TestMergeConfigLayers:
    """Tests de l'ordre de priorité : appel > persisté > défaut > détecté."""

    def test_defaults_and_detection(self, tmp_path, settings):
        config = merge_config_layers(tmp_path, None, None, settings, {AgentEngine.GEMINI})

        assert config.available_agents == frozenset({AgentEngine.GEMINI})
        assert config.timeout_seconds == 180
        assert config.default_mode == Mode.STANDARD
        assert config.repo_root == tmp_path

    def test_call_beats_persisted_beats_default(self, tmp_path, settings):
        call = ConfigOverrides(timeout_seconds=60)
        persisted = ConfigOverrides(timeout_seconds=300, default_mode=Mode.AUTO)

        config = merge_config_layers(tmp_path, call, persisted, settings)

        assert config.timeout_seconds == 60
        assert config.default_mode == Mode.AUTO

    def test_pinned_agents_ignore_detection(self, tmp_path, settings):
        persisted = ConfigOverrides(available_agents=[AgentEngine.CODEX])
        config = merge_config_layers(
            tmp_path, None, persisted, settings, {AgentEngine.CODEX, AgentEngine.GEMINI}
        )
        assert config.available_agents == frozenset({AgentEngine.CODEX})

    def test_empty_list_pins_no_externals(self, tmp_path, settings):
        call = ConfigOverrides(available_agents=[])
        config = merge_config_layers(tmp_path, call, None, settings, {AgentEngine.CODEX})
        assert config.available_agents == frozenset()

    def test_claude_is_not_an_external_agent(self, tmp_path, settings):
        call = ConfigOverrides(available_agents=[AgentEngine.CLAUDE, AgentEngine.GEMINI])
        config = merge_config_layers(tmp_path, call, None, settings)
        assert config.available_agents == frozenset({AgentEngine.GEMINI})

    def test_timeout_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            ConfigOverrides(timeout_seconds=5)


class TestRepoConfig:
    """Tests de .tenth-man/config.json."""

    def test_missing_file(self, tmp_path):
        assert load_repo_config(tmp_path) == ConfigOverrides()

    def test_save_merges_with_existing(self, tmp_path):
        save_repo_config(tmp_path, ConfigOverrides(timeout_seconds=240))
        merged = save_repo_config(tmp_path, ConfigOverrides(default_mode=Mode.AUTO))

        assert merged.timeout_seconds == 240
        assert merged.default_mode == Mode.AUTO
        on_disk = json.loads(config_path(tmp_path).read_text(encoding="utf-8"))
        assert on_disk == {"timeout_seconds": 240, "default_mode": "auto"}

    def test_invalid_file_is_ignored(self, tmp_path):
        path = config_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")

        assert load_repo_config(tmp_path) == ConfigOverrides()


class TestBuildRuntimeConfig:
    """Tests de la construction asynchrone (avec détection)."""

    @pytest.mark.asyncio
    async def test_detects_when_nothing_pinned(self, tmp_path, settings):
        mock_detect = AsyncMock(return_value={AgentEngine.CODEX})
        with patch("tenth_man.config.detect_agents", mock_detect):
            config = await build_runtime_config(tmp_path, settings=settings)

        mock_detect.assert_awaited_once()
        assert config.available_agents == frozenset({AgentEngine.CODEX})

    @pytest.mark.asyncio
    async def test_skips_detection_when_pinned(self, tmp_path, settings):
        mock_detect = AsyncMock()
        with patch("tenth_man.config.detect_agents", mock_detect):
            config = await build_runtime_config(
                tmp_path, ConfigOverrides(available_agents=[AgentEngine.GEMINI]), settings=settings
            )

        mock_detect.assert_not_called()
        assert config.available_agents == frozenset({AgentEngine.GEMINI})


class TestAutoTrigger:
    """Tests de matches_auto_trigger."""

    def test_patterns(self, runtime_config: RuntimeConfig):
        matched = runtime_config.matches_auto_trigger([
            "src/auth/login.py",
            "db/migrations/0001_init.py",
            "api/user.schema.json",
            "README.md",
            "auth/session.py",
        ])
        assert matched == [
            "src/auth/login.py",
            "db/migrations/0001_init.py",
            "api/user.schema.json",
            "auth/session.py",
        ]

    def test_no_match(self, runtime_config: RuntimeConfig):
        assert runtime_config.matches_auto_trigger(["docs/index.md"]) == []
