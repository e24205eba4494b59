"""
The generation capability every pipeline stage talks to.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Mapping, Protocol

from storytime.common import (
    AssetRef,
    CompletionCallable,
    build_multimodal_messages,
    call_chat_completion,
)
from storytime.config import StudioSettings

from .prompting import StorybookPrompt
from .replicate_service import ReplicateImageGenerator

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURED_SYSTEM_PROMPT = (
    "You are a helpful assistant. Respond with a single valid JSON object and nothing else."
)


class GenerationMode(str, enum.Enum):
    IMAGE = "image"
    STRUCTURED = "structured"


class GenerationCapability(Protocol):
    """
    Opaque single-shot generator used by every stage.

    ``IMAGE`` mode returns an :class:`AssetRef`; ``STRUCTURED`` mode returns a
    JSON-like mapping. Any failure is raised; callers validate whatever comes back.
    """

    def generate(
        self,
        prompt: str | StorybookPrompt,
        *,
        reference_image: AssetRef | None = None,
        mode: GenerationMode = GenerationMode.IMAGE,
        system_prompt: str | None = None,
    ) -> AssetRef | Mapping[str, Any]:
        ...


class StudioGenerationCapability:
    """
    Default capability: Replicate for images, LiteLLM for structured text.
    """

    def __init__(
        self,
        *,
        settings: StudioSettings | None = None,
        image_generator: ReplicateImageGenerator | None = None,
        completion_fn: CompletionCallable | None = None,
        temperature: float = 0.8,
        max_output_tokens: int = 3000,
    ) -> None:
        self._settings = settings or StudioSettings.from_env()
        self._image_generator = image_generator
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens

    @property
    def image_generator(self) -> ReplicateImageGenerator:
        # Built lazily so structured-only use does not require a Replicate token.
        if self._image_generator is None:
            self._image_generator = ReplicateImageGenerator(
                api_token=self._settings.replicate_api_token,
                model_identifier=self._settings.image_model,
                download_timeout=self._settings.download_timeout,
            )
        return self._image_generator

    def generate(
        self,
        prompt: str | StorybookPrompt,
        *,
        reference_image: AssetRef | None = None,
        mode: GenerationMode = GenerationMode.IMAGE,
        system_prompt: str | None = None,
    ) -> AssetRef | Mapping[str, Any]:
        if mode is GenerationMode.IMAGE:
            return self._generate_image(prompt, reference_image)
        if mode is GenerationMode.STRUCTURED:
            return self._generate_structured(prompt, reference_image, system_prompt)
        raise ValueError(f"Unsupported generation mode: {mode!r}")

    def _generate_image(
        self,
        prompt: str | StorybookPrompt,
        reference_image: AssetRef | None,
    ) -> AssetRef:
        if reference_image is None:
            raise ValueError("Image generation requires a reference image.")
        if isinstance(prompt, str):
            prompt = StorybookPrompt(positive=prompt)

        logger.debug("Requesting image from %s", self.image_generator.model_identifier)
        return self.image_generator.generate_image(prompt, input_image=reference_image)

    def _generate_structured(
        self,
        prompt: str | StorybookPrompt,
        reference_image: AssetRef | None,
        system_prompt: str | None,
    ) -> Mapping[str, Any]:
        user_prompt = prompt.positive if isinstance(prompt, StorybookPrompt) else prompt
        messages = build_multimodal_messages(
            system=system_prompt or DEFAULT_STRUCTURED_SYSTEM_PROMPT,
            user=user_prompt,
            image_url=reference_image.uri if reference_image is not None else None,
        )

        logger.debug("Requesting structured output from %s", self._settings.story_model)
        result = self._completion_fn(
            model=self._settings.story_model,
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_output_tokens,
            api_key=self._settings.story_api_key,
            response_format={"type": "json_object"},
        )

        if not result.text:
            raise RuntimeError("LLM response did not contain any text content.")
        return result.as_json()
