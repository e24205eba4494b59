"""
LiteLLM-powered chat completion helper utilities.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, MutableMapping, Sequence

from litellm import completion

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any

    def as_json(self) -> dict[str, Any]:
        """
        Parse the reply as a JSON object, tolerating a fenced ```json block.
        """
        text = self.text.strip()
        if text.startswith("```"):
            text = text.strip("`")
            if text.lower().startswith("json"):
                text = text[4:]
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError("Failed to parse LLM response as JSON.") from exc

        if not isinstance(parsed, dict):
            raise ValueError("LLM JSON response must be an object.")
        return parsed


CompletionCallable = Callable[..., ChatResult]


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Invoke LiteLLM's `completion` API and return the consolidated text.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
    }

    if temperature is not None:
        payload["temperature"] = temperature

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens

    if api_key is not None:
        payload["api_key"] = api_key

    payload.update(extra_kwargs)

    response = completion(**payload)

    try:
        message = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM response format.") from exc

    if message is None:
        raise RuntimeError("LiteLLM response did not contain any message content.")

    text = str(message).strip()
    return ChatResult(text=text, raw=response)


def build_multimodal_messages(
    *,
    system: str,
    user: str,
    image_url: str | None = None,
) -> list[dict[str, Any]]:
    """
    Build a system + user message pair, attaching ``image_url`` to the user turn.
    """
    user_content: Any = user
    if image_url:
        user_content = [
            {"type": "text", "text": user},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]

    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user_content},
    ]
