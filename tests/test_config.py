"""Tests for environment-driven settings."""

import os
from unittest.mock import patch

import pytest

from storytime.config import DEFAULT_IMAGE_MODEL, DEFAULT_STORY_MODEL, StudioSettings


class TestStudioSettingsFromEnv:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = StudioSettings.from_env()

        assert settings.story_model == DEFAULT_STORY_MODEL
        assert settings.image_model == DEFAULT_IMAGE_MODEL
        assert settings.target_pages == 6
        assert settings.max_workers == 1
        assert settings.checkout_notification_recipient is None

    def test_precedence_of_model_variables(self):
        env = {
            "LITELLM_MODEL": "generic-model",
            "LITELLM_STORY_MODEL": "story-model",
            "REPLICATE_MODEL": "google/nano-banana",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = StudioSettings.from_env()

        assert settings.story_model == "story-model"
        assert settings.image_model == "google/nano-banana"

    def test_numeric_and_recipient_values(self):
        env = {
            "STORYTIME_TARGET_PAGES": "8",
            "STORYTIME_MAX_WORKERS": "3",
            "STORYTIME_DOWNLOAD_TIMEOUT": "12.5",
            "STORYTIME_CHECKOUT_RECIPIENT": "orders@example.com",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = StudioSettings.from_env()

        assert settings.target_pages == 8
        assert settings.max_workers == 3
        assert settings.download_timeout == 12.5
        assert settings.checkout_notification_recipient == "orders@example.com"

    @pytest.mark.parametrize(
        "env",
        [
            {"STORYTIME_TARGET_PAGES": "lots"},
            {"STORYTIME_TARGET_PAGES": "0"},
            {"STORYTIME_MAX_WORKERS": "0"},
        ],
    )
    def test_invalid_values(self, env):
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError):
                StudioSettings.from_env()
