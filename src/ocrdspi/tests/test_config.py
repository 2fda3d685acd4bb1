"""Tests for configuration key resolution and environment settings."""

from __future__ import annotations

import pytest

from ocrdspi.foundation.config import (
    DOCKER_IMAGE,
    FRAMEWORK_KEYS,
    OPT_RESOURCES,
    UID,
    CollectionKey,
    Configuration,
    ExitPolicy,
    clear_settings_cache,
    framework_key,
    get_settings,
    resolve,
)


# ═════════════════════════════════════════════════════════════════════════════
# Key Resolution
# ═════════════════════════════════════════════════════════════════════════════


def test_override_is_trimmed() -> None:
    cfg = Configuration(overrides={("ocr-d", "opt-resources"): " MyRes "})
    assert resolve(cfg, OPT_RESOURCES) == "MyRes"


@pytest.mark.parametrize("value", ["", "   ", "\t\n"])
def test_blank_override_falls_back_to_default(value: str) -> None:
    cfg = Configuration(overrides={("ocr-d", "opt-resources"): value})
    assert resolve(cfg, OPT_RESOURCES) == "resources"


def test_missing_configuration_yields_default() -> None:
    assert resolve(None, DOCKER_IMAGE) == "ocrd/all:maximum"
    assert resolve(Configuration(), UID) is None


def test_overrides_are_namespaced() -> None:
    cfg = Configuration(overrides={("other", "opt-resources"): "elsewhere"})
    assert resolve(cfg, OPT_RESOURCES) == "resources"


def test_from_mapping_and_set() -> None:
    key = CollectionKey("ocr-d", "tesserocr-segment-line-id", "ocrd-tesserocr-segment-line")
    cfg = Configuration.from_mapping("ocr-d", {"uid": "1000"}, commands=["docker"])
    cfg.set(key, "my-segmenter")

    assert cfg.value(UID) == "1000"
    assert cfg.value(key) == "my-segmenter"
    assert cfg.get(OPT_RESOURCES) is None
    assert cfg.is_command_available("docker")
    assert not cfg.is_command_available("podman")


def test_framework_keys() -> None:
    assert framework_key("docker-stop-wait-kill-seconds").default == "2"
    assert framework_key("opt-folder").default == "ocr-d"
    assert set(FRAMEWORK_KEYS) >= {"uid", "gid", "docker-image", "docker-resources", "msa-host-id"}
    with pytest.raises(KeyError):
        framework_key("unknown")


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OCRDSPI_PROCESS_POLL_INTERVAL")
    monkeypatch.delenv("OCRDSPI_PROCESS_STOP_GRACE")
    clear_settings_cache()

    settings = get_settings()
    assert settings.process.poll_interval == 0.1
    assert settings.process.stop_grace == 2.0
    assert settings.process.exit_policy == ExitPolicy.REPORT
    assert settings.events.workers == 4
    assert settings.logging.format == "text"


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCRDSPI_PROCESS_EXIT_POLICY", "interrupt")
    monkeypatch.setenv("OCRDSPI_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("OCRDSPI_DEBUG", "true")
    clear_settings_cache()

    settings = get_settings()
    assert settings.process.exit_policy == ExitPolicy.INTERRUPT
    assert settings.logging.level == "WARNING"
    assert settings.effective_log_level == "DEBUG"


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()
