"""
Pytest configuration and shared fixtures.
"""

import base64
from dataclasses import dataclass
from typing import Any, Optional

import pytest

from storytime.ai_generation import GenerationMode, StorybookPrompt
from storytime.common import AssetRef
from storytime.config import StudioSettings
from storytime.pipeline import StoryPipeline
from storytime.story_generation import StoryPreferences

# A real 1x1 PNG, so the PDF renderer can decode it.
PNG_1X1_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
PNG_1X1_URI = f"data:image/png;base64,{PNG_1X1_BASE64}"

PHOTO_URI = "data:image/jpeg;base64," + base64.b64encode(b"uploaded-photo").decode("ascii")


def make_asset(label: str) -> AssetRef:
    return AssetRef.from_bytes(label.encode("utf-8"), "image/png")


def story_payload(page_count: int = 3) -> dict:
    return {
        "title": "Maya and the Moon Garden",
        "characterDescription": "A cheerful girl with curly brown hair and a yellow raincoat.",
        "pages": [
            {
                "text": f"Page {number} text about Maya.",
                "sceneDescription": f"Scene {number}: Maya explores the moon garden.",
            }
            for number in range(1, page_count + 1)
        ],
    }


@dataclass
class RecordedCall:
    prompt: str
    reference_image: Optional[AssetRef]
    mode: GenerationMode
    system_prompt: Optional[str]


class ScriptedCapability:
    """
    Fake generation capability.

    Image calls return a distinct asset per call; structured calls return
    ``story``. ``overrides`` maps a prompt substring to an exception (raised) or
    a value (returned) for calls whose prompt contains it.
    """

    def __init__(self, *, story: Any = None, overrides: Optional[dict] = None):
        self.story = story if story is not None else story_payload()
        self.overrides = dict(overrides or {})
        self.calls: list[RecordedCall] = []

    def generate(
        self,
        prompt,
        *,
        reference_image=None,
        mode=GenerationMode.IMAGE,
        system_prompt=None,
    ):
        text = prompt.positive if isinstance(prompt, StorybookPrompt) else prompt
        self.calls.append(RecordedCall(text, reference_image, mode, system_prompt))

        for marker, outcome in self.overrides.items():
            if marker in text:
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome

        if mode is GenerationMode.STRUCTURED:
            return self.story
        return make_asset(f"generated-{len(self.calls)}")

    def calls_with_mode(self, mode: GenerationMode) -> list[RecordedCall]:
        return [call for call in self.calls if call.mode is mode]


@pytest.fixture
def preferences():
    return StoryPreferences(
        story_theme="space adventure",
        moral_lesson="courage",
        character_name="Maya",
        additional_details="A friendly robot sidekick.",
    )


@pytest.fixture
def settings():
    return StudioSettings(target_pages=3, max_workers=1)


@pytest.fixture
def capability():
    return ScriptedCapability()


@pytest.fixture
def pipeline(capability, settings):
    return StoryPipeline(capability=capability, settings=settings)
