"""Tests for environment-backed settings."""

from __future__ import annotations

import pytest

from civicbroker.config import Settings, load_settings


def test_defaults_apply_without_variables() -> None:
    """An empty environment yields the default settings."""
    assert load_settings({}) == Settings(), "Expected default settings."


def test_variables_override_defaults() -> None:
    """Prefixed variables populate every setting."""
    settings = load_settings({
        "CIVICBROKER_REDIS_HOST": "redis.internal",
        "CIVICBROKER_REDIS_PORT": "6380",
        "CIVICBROKER_PUBLIC_BASE_URL": "https://broker.example.org/",
        "CIVICBROKER_IMG_CACHE_URL": "https://img.example.org",
        "CIVICBROKER_IMG_CACHE_OPT": "200x250",
        "CIVICBROKER_LOG_LEVEL": "warn",
        "CIVICBROKER_DEBUG": "Yes",
    })

    assert settings == Settings(
        redis_host="redis.internal",
        redis_port=6380,
        public_base_url="https://broker.example.org",
        img_cache_url="https://img.example.org",
        img_cache_opt="200x250",
        log_level="warn",
        debug=True,
    ), "Expected every variable to be applied."
    assert settings.photo_cache_enabled, "Expected the image cache to be enabled."


@pytest.mark.parametrize("port", ["not-a-port", "0", "70000", " "])
def test_invalid_ports_fall_back_to_default(port: str) -> None:
    """Malformed ports are ignored."""
    assert load_settings({"CIVICBROKER_REDIS_PORT": port}).redis_port == 6379, (
        f"Expected the default port for {port!r}."
    )


def test_image_cache_needs_both_settings() -> None:
    """A cache URL without options leaves photos untouched."""
    settings = load_settings({"CIVICBROKER_IMG_CACHE_URL": "https://img.example.org"})

    assert not settings.photo_cache_enabled, "Expected the image cache to be off."
