"""TwiML rendering for webhook replies."""

from __future__ import annotations

from html import escape as html_escape

TWIML_MEDIA_TYPE = "application/xml"


def render_message(text: str) -> str:
    """Wrap ``text`` in a single-message TwiML document."""

    return f"<Response><Message>{html_escape(text, quote=False)}</Message></Response>"
