"""
Common utilities shared across StoryTime modules.
"""

from .assets import AssetRef, is_image_data_uri, load_photo
from .errors import (
    CheckoutError,
    CompositionIncompleteError,
    ConsistencyViolation,
    FatalStageFailure,
    InvalidAssetError,
    InvalidInputError,
    RecoverableStageFailure,
    RegenerationFailure,
    StageFailure,
    StoryStudioError,
    friendly_error_message,
)
from .llm import ChatResult, CompletionCallable, build_multimodal_messages, call_chat_completion

__all__ = [
    "AssetRef",
    "is_image_data_uri",
    "load_photo",
    "ChatResult",
    "CompletionCallable",
    "build_multimodal_messages",
    "call_chat_completion",
    "StoryStudioError",
    "InvalidInputError",
    "InvalidAssetError",
    "StageFailure",
    "FatalStageFailure",
    "CompositionIncompleteError",
    "RecoverableStageFailure",
    "RegenerationFailure",
    "ConsistencyViolation",
    "CheckoutError",
    "friendly_error_message",
]
