"""
Integration with Replicate for storybook image generation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate
import requests

from storytime.common import AssetRef, is_image_data_uri
from storytime.config import DEFAULT_IMAGE_MODEL

from .prompting import StorybookPrompt

logger = logging.getLogger(__name__)


def _build_flux_kontext_input(
    *,
    prompt: StorybookPrompt,
    image_input: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "input_image": image_input,
        "output_format": "png",
        "safety_tolerance": 2,
        "prompt_upsampling": False,
        "aspect_ratio": "match_input_image",
    }


def _build_nano_banana_input(
    *,
    prompt: StorybookPrompt,
    image_input: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "image_input": [image_input],
        "output_format": "png",
    }


def _build_instant_id_input(
    *,
    prompt: StorybookPrompt,
    image_input: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "negative_prompt": prompt.negative,
        "image": image_input,
        "output_format": "png",
        "guidance_scale": 5,
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-kontext-pro": _build_flux_kontext_input,
    "black-forest-labs/flux-kontext-max": _build_flux_kontext_input,
    "google/nano-banana": _build_nano_banana_input,
    "zsxkib/instant-id": _build_instant_id_input,
}


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: StorybookPrompt,
    image_input: str,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(set(_MODEL_INPUT_BUILDERS)))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, image_input=image_input)


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for storybook image generation.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back
        to ``REPLICATE_MODEL`` and then to FLUX Kontext Pro.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    session:
        Optional :class:`requests.Session` used to download generated images.
    download_timeout:
        Seconds to wait for each image download.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
        session: requests.Session | None = None,
        download_timeout: float = 60.0,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_IMAGE_MODEL
        )
        self._client = client or replicate.Client(api_token=self._api_token)
        self._session = session or requests.Session()
        self._download_timeout = download_timeout

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    def generate_image(
        self,
        prompt: StorybookPrompt,
        *,
        input_image: AssetRef,
        **model_kwargs: Any,
    ) -> AssetRef:
        """
        Generate an image from Replicate and return it as an encoded asset.

        Parameters
        ----------
        prompt:
            Positive/negative prompt pair built by :mod:`storytime.ai_generation.prompting`.
        input_image:
            Reference image passed to the model as a data URI.
        **model_kwargs:
            Additional keyword arguments forwarded directly to the Replicate model invocation.

        Raises
        ------
        RuntimeError
            When Replicate returns no usable output.
        """
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
            image_input=input_image.uri,
        )
        # Allow the caller to tweak model-specific knobs (e.g., seed, aspect_ratio).
        replicate_input.update(model_kwargs)

        raw_output = self._client.run(self._model_identifier, input=replicate_input)
        outputs = normalize_image_outputs(raw_output)
        if not outputs:
            raise RuntimeError("Image generation failed or did not return a media URL.")

        return self._to_asset(outputs[0])

    def _to_asset(self, output: str) -> AssetRef:
        if is_image_data_uri(output):
            return AssetRef.parse(output)

        if not output.lower().startswith(("http://", "https://")):
            raise RuntimeError("Image generation failed: unexpected output format from Replicate.")

        logger.debug("Downloading generated image from %s", output)
        response = self._session.get(output, timeout=self._download_timeout)
        response.raise_for_status()

        content_type = response.headers.get("Content-Type", "image/png").split(";", 1)[0].strip()
        return AssetRef.from_bytes(response.content, content_type or "image/png")


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw]

    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            if isinstance(item, str):
                normalized.append(item)
            elif isinstance(item, bytes):
                normalized.append(item.decode("utf-8", errors="ignore"))
            elif item is not None:
                normalized.extend(normalize_image_outputs(item))
        return normalized

    return [str(raw)]
