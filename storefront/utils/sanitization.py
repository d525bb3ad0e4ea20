import html
import re


MAX_ALT_TEXT_LENGTH = 255

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SCRIPT_TAGS = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_HANDLERS = re.compile(r"""on\w+\s*=\s*["'][^"']*["']""", re.IGNORECASE)


def sanitize_alt_text(alt_text: str | None) -> str:
    """Make user supplied alt text safe to render inside an HTML attribute."""
    if not alt_text:
        return ""
    cleaned = _CONTROL_CHARS.sub("", alt_text)
    # Strip markup before escaping, escaped text no longer matches the patterns
    cleaned = _SCRIPT_TAGS.sub("", cleaned)
    cleaned = _EVENT_HANDLERS.sub("", cleaned)
    cleaned = html.escape(cleaned, quote=True)
    return cleaned.strip()[:MAX_ALT_TEXT_LENGTH]
