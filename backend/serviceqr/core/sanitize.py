"""Text sanitization utilities to prevent XSS attacks."""

import html


def sanitize_text(value: str | None) -> str | None:
    """Sanitize guest-supplied text to prevent stored XSS.

    HTML-escapes dangerous characters (&, <, >, ", ') so that feedback
    comments are safe to render on the owner's feedback screen. Blank
    input collapses to None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return html.escape(value, quote=True)
