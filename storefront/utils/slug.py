import re
import secrets
import string
from typing import Callable

from storefront.core.constants import SLUG_PATTERN


_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SLUG_RE = re.compile(SLUG_PATTERN)


def generate_slug(text: str) -> str:
    """Lowercase, hyphenated, URL-safe form of ``text``.

    >>> generate_slug("Nike Air Max 90")
    'nike-air-max-90'
    """
    slug = text.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Return ``base`` or, when taken, ``base`` with a random 6-char suffix."""
    if not exists(base):
        return base
    return f"{base}-{random_suffix()}"


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG_RE.match(slug))
