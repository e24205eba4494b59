"""Tests for the individual image stages."""

import pytest

from conftest import PHOTO_URI, ScriptedCapability, make_asset
from storytime.ai_generation import GenerationMode
from storytime.common import InvalidInputError, RegenerationFailure, StageFailure
from storytime.pipeline import CharacterStyler, CoverComposer, PageIllustrator
from storytime.story_generation import StoryPage


class TestCharacterStyler:
    def test_rejects_invalid_photo_before_calling(self, preferences):
        capability = ScriptedCapability()
        styler = CharacterStyler(capability)

        with pytest.raises(InvalidInputError):
            styler.style("/tmp/photo.jpg", preferences)

        assert capability.calls == []

    def test_passes_photo_as_reference(self, preferences):
        capability = ScriptedCapability()
        styled = CharacterStyler(capability).style(PHOTO_URI, preferences)

        call = capability.calls[0]
        assert call.mode is GenerationMode.IMAGE
        assert call.reference_image.uri == PHOTO_URI
        assert styled.uri.startswith("data:image")

    def test_accepts_plain_data_uri_string_result(self, preferences):
        capability = ScriptedCapability(overrides={"provided photo": "data:image/png;base64,AAAA"})

        styled = CharacterStyler(capability).style(PHOTO_URI, preferences)

        assert styled.uri == "data:image/png;base64,AAAA"

    def test_wraps_capability_errors(self, preferences):
        error = RuntimeError("Image generation failed")
        capability = ScriptedCapability(overrides={"provided photo": error})

        with pytest.raises(StageFailure) as excinfo:
            CharacterStyler(capability).style(PHOTO_URI, preferences)

        assert excinfo.value.stage == "style_character"
        assert excinfo.value.__cause__ is error


class TestCoverComposer:
    def test_prompt_carries_title_and_name(self, preferences):
        capability = ScriptedCapability()
        styled = make_asset("styled")

        CoverComposer(capability).compose_cover(styled, "Maya's Big Day", preferences)

        call = capability.calls[0]
        assert "Maya's Big Day" in call.prompt
        assert "Maya" in call.prompt
        assert call.reference_image == styled

    def test_malformed_result(self, preferences):
        capability = ScriptedCapability(overrides={"book cover": 42})

        with pytest.raises(StageFailure) as excinfo:
            CoverComposer(capability).compose_cover(make_asset("styled"), "Title", preferences)

        assert excinfo.value.stage == "compose_cover"


class TestPageIllustrator:
    page = StoryPage(text="Maya climbs aboard.", scene_description="Maya climbs a silver ladder.")

    def test_merges_page_specific_details_after_general(self, preferences):
        capability = ScriptedCapability()

        PageIllustrator(capability).illustrate(
            make_asset("styled"),
            self.page,
            preferences,
            page_specific_details="Add shooting stars.",
        )

        prompt = capability.calls[0].prompt
        assert prompt.index("A friendly robot sidekick.") < prompt.index("Add shooting stars.")
        assert "For this specific scene, also consider:" in prompt

    def test_does_not_require_character_name(self, preferences):
        capability = ScriptedCapability()

        image = PageIllustrator(capability).illustrate(
            make_asset("styled"),
            self.page,
            preferences.with_character_name(None),
        )

        assert image.uri.startswith("data:image")

    def test_regenerate_raises_regeneration_failure(self, preferences):
        capability = ScriptedCapability(overrides={"silver ladder": RuntimeError("503 Service Unavailable")})

        with pytest.raises(RegenerationFailure):
            PageIllustrator(capability).regenerate(make_asset("styled"), self.page, preferences)

    def test_regenerate_accepts_data_uri_string(self, preferences):
        capability = ScriptedCapability()
        base = make_asset("styled")

        PageIllustrator(capability).regenerate(base.uri, self.page, preferences)

        assert capability.calls[0].reference_image == base

    @pytest.mark.parametrize("scene", ["", "   ", None])
    def test_regenerate_rejects_blank_scene_before_calling(self, preferences, scene):
        capability = ScriptedCapability()
        page = StoryPage(text="Maya climbs.", scene_description=scene)

        with pytest.raises(InvalidInputError):
            PageIllustrator(capability).regenerate(make_asset("styled"), page, preferences)

        assert capability.calls == []

    def test_regenerate_tolerates_missing_page_text(self, preferences):
        capability = ScriptedCapability()
        page = StoryPage(text=None, scene_description="Maya on a silver ladder.")

        image = PageIllustrator(capability).regenerate(make_asset("styled"), page, preferences)

        assert image.uri.startswith("data:image")
        assert len(capability.calls) == 1
