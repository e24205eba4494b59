"""
Environment-driven configuration for StoryTime Studio.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_STORY_MODEL = "gpt-4o-mini"
DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-kontext-pro"
DEFAULT_TARGET_PAGES = 6


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class StudioSettings:
    """
    Runtime settings resolved from the environment.

    Attributes
    ----------
    story_model:
        LiteLLM model identifier used for structured story composition.
    story_api_key:
        API key forwarded to LiteLLM. ``None`` lets LiteLLM use its own lookup.
    image_model:
        Replicate model identifier used for every image stage.
    replicate_api_token:
        Replicate API token.
    target_pages:
        Page count suggested to the story model. Any positive count is accepted back.
    max_workers:
        Thread count for cover and page illustration calls. ``1`` runs them sequentially.
    checkout_notification_recipient:
        Optional address notified whenever a book is checked out.
    download_timeout:
        Seconds to wait when downloading generated images.
    """

    story_model: str = DEFAULT_STORY_MODEL
    story_api_key: str | None = None
    image_model: str = DEFAULT_IMAGE_MODEL
    replicate_api_token: str | None = None
    target_pages: int = DEFAULT_TARGET_PAGES
    max_workers: int = 1
    checkout_notification_recipient: str | None = None
    download_timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "StudioSettings":
        target_pages = _int_env("STORYTIME_TARGET_PAGES", DEFAULT_TARGET_PAGES)
        if target_pages < 1:
            raise ValueError("STORYTIME_TARGET_PAGES must be at least 1.")

        max_workers = _int_env("STORYTIME_MAX_WORKERS", 1)
        if max_workers < 1:
            raise ValueError("STORYTIME_MAX_WORKERS must be at least 1.")

        return cls(
            story_model=_first_env(
                "STORYTIME_STORY_MODEL",
                "LITELLM_STORY_MODEL",
                "LITELLM_MODEL",
            )
            or DEFAULT_STORY_MODEL,
            story_api_key=_first_env(
                "STORYTIME_STORY_API_KEY",
                "OPENAI_API_KEY",
                "LITELLM_API_KEY",
            ),
            image_model=_first_env("STORYTIME_IMAGE_MODEL", "REPLICATE_MODEL")
            or DEFAULT_IMAGE_MODEL,
            replicate_api_token=_first_env("REPLICATE_API_TOKEN"),
            target_pages=target_pages,
            max_workers=max_workers,
            checkout_notification_recipient=_first_env("STORYTIME_CHECKOUT_RECIPIENT"),
            download_timeout=_float_env("STORYTIME_DOWNLOAD_TIMEOUT", 60.0),
        )
