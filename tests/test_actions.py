"""Tests for the caller-facing create and regenerate actions."""

from conftest import PHOTO_URI, ScriptedCapability, make_asset
from storytime.actions import create_story, regenerate_page_illustration
from storytime.common.errors import UPSTREAM_MESSAGE
from storytime.pipeline import StoryPipeline

COVER_MARKER = "captivating children's book cover"
STYLER_MARKER = "from the provided photo"


def _pipeline(capability, settings):
    return StoryPipeline(capability=capability, settings=settings)


class TestCreateStory:
    def test_success(self, capability, settings):
        result = create_story(
            PHOTO_URI,
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert result.success
        assert result.error is None
        assert result.warnings == ()
        assert result.data.character_name == "Maya"
        assert len(result.data.pages) == 3

    def test_recovered_failures_become_warnings(self, settings):
        capability = ScriptedCapability(overrides={COVER_MARKER: RuntimeError("cover exploded")})

        result = create_story(
            PHOTO_URI,
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert result.success
        assert result.data.cover_image_uri == result.data.original_character_uri
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("compose_cover: ")
        assert "cover exploded" in result.warnings[0]

    def test_invalid_photo_makes_no_calls(self, capability, settings):
        result = create_story(
            "https://example.com/photo.png",
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert result.data is None
        assert result.error == "Invalid character image data URI format."
        assert capability.calls == []

    def test_missing_name_makes_no_calls(self, capability, settings):
        result = create_story(
            PHOTO_URI,
            "  ",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert capability.calls == []

    def test_upstream_failure_is_rephrased(self, settings):
        capability = ScriptedCapability(
            overrides={STYLER_MARKER: RuntimeError("upstream connect error")}
        )

        result = create_story(
            PHOTO_URI,
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert result.error == UPSTREAM_MESSAGE

    def test_incomplete_story_is_reported(self, settings):
        capability = ScriptedCapability(story={"title": "", "characterDescription": "x", "pages": []})

        result = create_story(
            PHOTO_URI,
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert result.error


class TestRegeneratePageIllustration:
    def test_success(self, capability, settings):
        base = make_asset("styled")

        result = regenerate_page_illustration(
            base,
            "Maya waves goodbye.",
            "Maya on the launch pad.",
            "space adventure",
            "courage",
            page_specific_details="Make it sunset.",
            pipeline=_pipeline(capability, settings),
        )

        assert result.success
        assert result.image_uri is not None
        assert result.error is None
        assert capability.calls[0].reference_image == base
        assert "Make it sunset." in capability.calls[0].prompt

    def test_failure_has_no_fallback_image(self, settings):
        capability = ScriptedCapability(
            overrides={"launch pad": RuntimeError("503 Service Unavailable")}
        )

        result = regenerate_page_illustration(
            make_asset("styled"),
            "Maya waves goodbye.",
            "Maya on the launch pad.",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert result.image_uri is None
        assert result.error == UPSTREAM_MESSAGE

    def test_invalid_base_character(self, capability, settings):
        result = regenerate_page_illustration(
            "not-an-image",
            "Text.",
            "Scene.",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
        )

        assert not result.success
        assert capability.calls == []


class TestUnexpectedErrors:
    def test_bad_configuration_is_reported(self, monkeypatch):
        monkeypatch.setenv("STORYTIME_MAX_WORKERS", "abc")

        result = create_story(PHOTO_URI, "Maya", "space adventure", "courage")

        assert not result.success
        assert result.data is None
        assert "STORYTIME_MAX_WORKERS" in result.error

    def test_failing_progress_callback_is_reported(self, capability, settings):
        def callback(stage, payload):
            raise RuntimeError("display closed")

        result = create_story(
            PHOTO_URI,
            "Maya",
            "space adventure",
            "courage",
            pipeline=_pipeline(capability, settings),
            progress_callback=callback,
        )

        assert not result.success
        assert result.error == "display closed"

    def test_regeneration_with_bad_configuration_is_reported(self, monkeypatch):
        monkeypatch.setenv("STORYTIME_TARGET_PAGES", "many")

        result = regenerate_page_illustration(
            make_asset("styled"),
            "Text.",
            "Scene.",
            "space adventure",
            "courage",
        )

        assert not result.success
        assert result.image_uri is None
        assert "STORYTIME_TARGET_PAGES" in result.error
