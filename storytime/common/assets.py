"""
Encoded image handles exchanged between pipeline stages.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import InvalidAssetError, InvalidInputError

IMAGE_DATA_PREFIX = "data:image"

ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
MAX_PHOTO_BYTES = 5 * 1024 * 1024


def is_image_data_uri(value: Any) -> bool:
    """Return True when ``value`` is a string carrying the image data-URI marker."""
    return isinstance(value, str) and value.startswith(IMAGE_DATA_PREFIX)


@dataclass(frozen=True)
class AssetRef:
    """
    Validated handle to a generated (or uploaded) image payload.

    Only ``data:image/...`` URIs are accepted; construct through :meth:`parse`
    or :meth:`from_bytes` so the check always runs.
    """

    uri: str

    def __post_init__(self) -> None:
        if not is_image_data_uri(self.uri):
            raise InvalidAssetError("Asset is not a valid image data URI.")

    @classmethod
    def parse(cls, value: Any) -> "AssetRef":
        if isinstance(value, AssetRef):
            return value
        if not is_image_data_uri(value):
            preview = str(value)[:32] if value is not None else "None"
            raise InvalidAssetError(f"Expected an image data URI, received {preview!r}.")
        return cls(uri=value)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "AssetRef":
        if not data:
            raise InvalidAssetError("Cannot build an image asset from empty data.")
        if not mime_type.startswith("image/"):
            raise InvalidAssetError(f"Unsupported content type {mime_type!r} for an image asset.")
        encoded = base64.b64encode(data).decode("ascii")
        return cls(uri=f"data:{mime_type};base64,{encoded}")

    @property
    def mime_type(self) -> str:
        header = self.uri.split(",", 1)[0]
        return header[len("data:"):].split(";", 1)[0]

    def to_bytes(self) -> bytes:
        """Decode the base64 payload of the data URI."""
        header, _, payload = self.uri.partition(",")
        if not header.endswith(";base64"):
            raise InvalidAssetError("Only base64-encoded image data URIs can be decoded.")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidAssetError("Image data URI payload is not valid base64.") from exc

    def __str__(self) -> str:
        return self.uri


def load_photo(path: str | Path) -> str:
    """
    Read a local photo and return it as a data URI suitable for the pipeline.

    Mirrors the upload form's limits: jpeg/png/webp/gif only, at most 5 MB.
    """
    photo_path = Path(path).expanduser()
    if not photo_path.is_file():
        raise InvalidInputError(f"Photo not found at '{photo_path}'.")

    mime_type, _ = mimetypes.guess_type(photo_path.name)
    if mime_type not in ACCEPTED_IMAGE_TYPES:
        raise InvalidInputError(
            "Only .jpg, .jpeg, .png, .gif and .webp formats are accepted."
        )

    data = photo_path.read_bytes()
    if len(data) > MAX_PHOTO_BYTES:
        raise InvalidInputError(
            f"Max file size is {MAX_PHOTO_BYTES // (1024 * 1024)}MB."
        )

    return AssetRef.from_bytes(data, mime_type).uri
