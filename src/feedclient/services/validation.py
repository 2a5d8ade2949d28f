"""Request-shape checks run by the domain services before anything is sent.

Every helper raises :class:`~feedclient.exceptions.ValidationError` naming the
offending field. None of them touch the network or the cache, so callers may
also use them to validate user input ahead of time.
"""

from __future__ import annotations

from typing import Any

from feedclient.exceptions import ValidationError
from feedclient.models import UploadFile

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/jpg", "image/gif")

MB = 1024 * 1024
MAX_POST_IMAGE_SIZE = 10 * MB
MAX_PROFILE_PICTURE_SIZE = 5 * MB

MIN_POST_IMAGES = 1
MAX_POST_IMAGES = 5


def require_text(value: Any, field: str) -> str:
    """Return *value* if it is a string with non-whitespace content."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return value


def require_id(value: Any, field: str) -> str:
    """Return *value* as a path-safe resource id."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValidationError(field, "must be a string or integer id")
    text = str(value).strip()
    if not text:
        raise ValidationError(field, "is required")
    if "/" in text or "?" in text or "#" in text:
        raise ValidationError(field, f"contains invalid characters: {text!r}")
    return text


def validate_image(file: Any, max_size: int, field: str = "image") -> UploadFile:
    """Check that *file* is a JPEG, PNG, or GIF upload no larger than *max_size* bytes."""
    if not isinstance(file, UploadFile):
        raise ValidationError(field, "no file selected")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            field, "invalid file type, please upload a JPEG, PNG, or GIF image"
        )
    if file.size > max_size:
        raise ValidationError(
            field, f"file size too large, maximum size is {max_size // MB}MB"
        )
    return file


def validate_image_count(count: int, field: str = "images") -> None:
    """Check that a post carries between 1 and 5 images."""
    if count < MIN_POST_IMAGES:
        raise ValidationError(field, "at least one image is required")
    if count > MAX_POST_IMAGES:
        raise ValidationError(field, f"you can only upload up to {MAX_POST_IMAGES} images")


def validate_post_images(images: Any, field: str = "images") -> list[UploadFile]:
    """Validate each new post image, naming its 1-based position on failure."""
    files = list(images or ())
    for index, image in enumerate(files, 1):
        validate_image(image, MAX_POST_IMAGE_SIZE, f"{field}[{index}]")
    return files


def require_positive_int(value: Any, field: str, maximum: int | None = None) -> int:
    """Return *value* if it is an ``int`` in ``1..maximum``."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(field, "must be a positive integer")
    if maximum is not None and value > maximum:
        raise ValidationError(field, f"must be at most {maximum}")
    return value
