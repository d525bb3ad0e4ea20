"""Validation of base64 encoded product image uploads.

Images arrive as ``data:<mime>;base64,<payload>`` strings. Validation checks the
declared MIME type and the decoded size, sniffs the real content type with
libmagic, then has Pillow verify and decode the file to read its dimensions.
"""

import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import magic
from PIL import Image, UnidentifiedImageError

from storefront.domain.exceptions import InvalidImage


MIN_FILE_SIZE = 1024  # 1KB
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_IMAGES_PER_PRODUCT = 20
MAX_IMAGES_PER_REQUEST = 10
MIN_IMAGE_WIDTH = 100
MIN_IMAGE_HEIGHT = 100
MAX_IMAGE_WIDTH = 10000
MAX_IMAGE_HEIGHT = 10000

ALLOWED_MIME_TYPES = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
}
# What libmagic reports for each kind, including older libmagic spellings
SNIFFED_MIME_TYPES = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
    "image/x-webp": "webp",
}
PILLOW_FORMATS = {"JPEG": "jpeg", "PNG": "png", "WEBP": "webp"}
EXTENSIONS = {"jpeg": "jpg", "png": "png", "webp": "webp"}

_DATA_URL = re.compile(r"^data:([A-Za-z+/-]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class ValidatedImage:
    content: bytes
    mime_type: str
    kind: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return EXTENSIONS[self.kind]


def detect_image_kind(data: bytes) -> Optional[str]:
    """JPEG, PNG or WebP as sniffed by libmagic, ``None`` for anything else."""
    return SNIFFED_MIME_TYPES.get(magic.from_buffer(data, mime=True))


def read_dimensions(data: bytes, kind: str) -> Optional[Tuple[int, int]]:
    """Width and height of a fully decodable image of ``kind``, else ``None``."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            if PILLOW_FORMATS.get(img.format) != kind:
                return None
            img.verify()
        # verify() leaves the image unusable, so decode from a fresh handle
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return None


def validate_base64_image(value: str, index: Optional[int] = None) -> ValidatedImage:
    """Decode and validate one upload, raising ``InvalidImage`` on failure."""
    match = _DATA_URL.match(value.strip())
    if match is None:
        raise InvalidImage("Invalid base64 format", index)

    mime_type = match.group(1).lower()
    declared_kind = ALLOWED_MIME_TYPES.get(mime_type)
    if declared_kind is None:
        allowed = ", ".join(ALLOWED_MIME_TYPES)
        raise InvalidImage(f"Invalid MIME type: {mime_type}. Allowed: {allowed}", index)

    try:
        content = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImage("Invalid base64 format", index)

    if len(content) < MIN_FILE_SIZE:
        raise InvalidImage(f"File too small (minimum {MIN_FILE_SIZE // 1024}KB)", index)
    if len(content) > MAX_FILE_SIZE:
        raise InvalidImage(f"File too large (maximum {MAX_FILE_SIZE // (1024 * 1024)}MB)", index)

    kind = detect_image_kind(content)
    if kind is None or kind != declared_kind:
        raise InvalidImage(
            "Invalid file type. File content does not match declared MIME type.", index
        )

    dimensions = read_dimensions(content, kind)
    if not dimensions or not all(dimensions):
        raise InvalidImage("Corrupted or invalid image file", index)
    width, height = dimensions

    if width < MIN_IMAGE_WIDTH or height < MIN_IMAGE_HEIGHT:
        raise InvalidImage(
            f"Image too small (minimum {MIN_IMAGE_WIDTH}x{MIN_IMAGE_HEIGHT}px)", index
        )
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise InvalidImage(
            f"Image too large (maximum {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}px)", index
        )

    return ValidatedImage(
        content=content, mime_type=mime_type, kind=kind, width=width, height=height
    )
