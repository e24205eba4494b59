"""
Error taxonomy for the StoryTime generation pipeline.
"""

from __future__ import annotations

SAFETY_INDICATORS = ("safety", "blocked", "prohibited", "nsfw")
UPSTREAM_INDICATORS = (
    "upstream",
    "image generation failed",
    "service unavailable",
    "503",
    "timed out",
    "rate limit",
)

SAFETY_MESSAGE = (
    "The AI declined this request under its safety guidelines. "
    "Please try a different photo, or adjust the theme and details to something gentler."
)
UPSTREAM_MESSAGE = (
    "There was an issue with the AI image generation service. "
    "Please try again later or with a different image/prompt."
)


class StoryStudioError(RuntimeError):
    """Base class for every error raised by the StoryTime pipeline."""


class InvalidInputError(StoryStudioError):
    """Raised when caller-supplied input is malformed; no generation call is made."""


class InvalidAssetError(InvalidInputError):
    """Raised when a value does not look like encoded image data."""


class StageFailure(StoryStudioError):
    """
    A single generation stage failed.

    Attributes
    ----------
    stage:
        Name of the pipeline stage that failed (see ``STAGE_POLICIES``).
    """

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage


class FatalStageFailure(StageFailure):
    """A stage the rest of the pipeline depends on failed; the run is aborted."""


class CompositionIncompleteError(StageFailure):
    """The story composer returned a story that cannot be illustrated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, stage="compose_story")


class RecoverableStageFailure(StageFailure):
    """A non-critical stage failed and was replaced by the fallback asset."""


class RegenerationFailure(StageFailure):
    """A targeted single-page regeneration failed; no fallback is substituted."""

    def __init__(self, message: str) -> None:
        super().__init__(message, stage="regenerate_page")


class ConsistencyViolation(StoryStudioError):
    """The assembled page list no longer matches the composed story."""


class CheckoutError(StoryStudioError):
    """The checkout request could not be processed."""


def friendly_error_message(error: BaseException | str) -> str:
    """
    Rewrite known upstream failures into user-actionable guidance.

    Indicators are matched against the innermost cause, so a stage's own
    wording never decides the category. Unrecognised errors pass through with
    their raw message.
    """
    message = str(error) or error.__class__.__name__
    lowered = _root_cause_text(error).lower()

    if any(indicator in lowered for indicator in SAFETY_INDICATORS):
        return SAFETY_MESSAGE
    if any(indicator in lowered for indicator in UPSTREAM_INDICATORS):
        return UPSTREAM_MESSAGE
    return message


def _root_cause_text(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error

    seen: set[int] = set()
    while error.__cause__ is not None and id(error.__cause__) not in seen:
        seen.add(id(error))
        error = error.__cause__
    return str(error) or error.__class__.__name__
