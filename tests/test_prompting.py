"""Tests for image prompt construction."""

import pytest

from storytime.ai_generation.prompting import (
    SCENE_DETAILS_MARKER,
    build_character_prompt,
    build_cover_prompt,
    build_page_illustration_prompt,
    merge_scene_details,
)


class TestMergeSceneDetails:
    """General details first, scene-specific notes appended."""

    def test_general_before_specific(self):
        merged = merge_scene_details("A", "B")

        assert merged.index("A") < merged.index("B")
        assert SCENE_DETAILS_MARKER in merged
        assert merged.index(SCENE_DETAILS_MARKER) < merged.index("B")

    def test_nothing_dropped(self):
        merged = merge_scene_details("Use pastel colors.", "Add a rainbow.")

        assert "Use pastel colors." in merged
        assert "Add a rainbow." in merged

    def test_only_general(self):
        assert merge_scene_details("Use pastel colors.", None) == "Use pastel colors."

    def test_only_specific(self):
        assert merge_scene_details(None, "Add a rainbow.") == f"{SCENE_DETAILS_MARKER} Add a rainbow."

    def test_blank_values(self):
        assert merge_scene_details("  ", "") is None
        assert merge_scene_details(None, None) is None


class TestCharacterPrompt:
    def test_includes_story_context(self):
        prompt = build_character_prompt(
            story_theme="pirates",
            moral_lesson="sharing",
            character_name="Leo",
            additional_details="on a sunny beach",
        )

        assert "pirates" in prompt.positive
        assert "sharing" in prompt.positive
        assert "Leo" in prompt.positive
        assert "on a sunny beach" in prompt.positive

    def test_general_setting_without_details(self):
        prompt = build_character_prompt(story_theme="pirates", moral_lesson="sharing")

        assert "general setting" in prompt.positive


class TestCoverPrompt:
    def test_title_is_context_only(self):
        prompt = build_cover_prompt(
            title="Leo's Treasure",
            story_theme="pirates",
            character_name="Leo",
        )

        assert "Leo's Treasure" in prompt.positive
        assert "must NOT be part of the image" in prompt.positive

    def test_requires_title(self):
        with pytest.raises(ValueError):
            build_cover_prompt(title=" ", story_theme="pirates", character_name="Leo")


class TestPageIllustrationPrompt:
    def test_no_text_policy(self):
        prompt = build_page_illustration_prompt(
            scene_description="Leo digs in the sand.",
            page_text="Leo found a map!",
            story_theme="pirates",
            moral_lesson="sharing",
        )

        assert "do NOT include this text in the image" in prompt.positive
        assert "No text, letters" in prompt.positive
        assert "text" in prompt.negative

    def test_details_section_only_when_present(self):
        without = build_page_illustration_prompt(
            scene_description="Leo digs in the sand.",
            page_text="Leo found a map!",
            story_theme="pirates",
            moral_lesson="sharing",
        )
        with_details = build_page_illustration_prompt(
            scene_description="Leo digs in the sand.",
            page_text="Leo found a map!",
            story_theme="pirates",
            moral_lesson="sharing",
            additional_details=merge_scene_details("Sunset light.", "Add a parrot."),
        )

        assert "ADDITIONAL DETAILS" not in without.positive
        assert "ADDITIONAL DETAILS" in with_details.positive
        assert with_details.positive.index("Sunset light.") < with_details.positive.index("Add a parrot.")

    def test_requires_scene(self):
        with pytest.raises(ValueError):
            build_page_illustration_prompt(
                scene_description="",
                page_text="text",
                story_theme="pirates",
                moral_lesson="sharing",
            )
