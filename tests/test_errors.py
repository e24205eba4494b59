"""Tests for error categorization."""

import pytest

from storytime.common import (
    FatalStageFailure,
    RecoverableStageFailure,
    StageFailure,
    friendly_error_message,
)
from storytime.common.errors import SAFETY_MESSAGE, UPSTREAM_MESSAGE


class TestFriendlyErrorMessage:
    @pytest.mark.parametrize(
        "raw",
        [
            "Response blocked due to SAFETY",
            "Prompt was flagged by the safety system",
            "NSFW content detected",
        ],
    )
    def test_safety_indicators(self, raw):
        assert friendly_error_message(RuntimeError(raw)) == SAFETY_MESSAGE

    @pytest.mark.parametrize(
        "raw",
        [
            "upstream connect error or disconnect/reset before headers",
            "Image generation failed or did not return a media URL.",
            "503 Service Unavailable",
            "Request timed out",
        ],
    )
    def test_upstream_indicators(self, raw):
        assert friendly_error_message(RuntimeError(raw)) == UPSTREAM_MESSAGE

    def test_unmatched_passes_through(self):
        error = FatalStageFailure("The story has no title.", stage="compose_story")

        assert friendly_error_message(error) == "The story has no title."

    def test_accepts_plain_strings(self):
        assert friendly_error_message("Something odd") == "Something odd"

    def test_empty_message_uses_class_name(self):
        assert friendly_error_message(ValueError()) == "ValueError"

    def test_stage_wording_does_not_decide_the_category(self):
        cause = RuntimeError("cover exploded")
        stage_error = StageFailure('Cover generation failed for title: "Moon". cover exploded', stage="compose_cover")
        stage_error.__cause__ = cause
        error = RecoverableStageFailure(str(stage_error), stage="compose_cover")
        error.__cause__ = stage_error

        assert friendly_error_message(error) == str(stage_error)

    def test_upstream_cause_is_recognised_through_the_chain(self):
        error = FatalStageFailure("Failed to animate character.", stage="style_character")
        error.__cause__ = RuntimeError("503 Service Unavailable")

        assert friendly_error_message(error) == UPSTREAM_MESSAGE
