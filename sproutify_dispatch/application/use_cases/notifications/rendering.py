"""Plain-text to HTML conversion for notification emails."""

from __future__ import annotations

import html

_EMAIL_DOCUMENT = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
  </head>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;">{body}</div>
  </body>
</html>
"""


def render_email_body(text: str) -> str:
    """Return ``text`` as an HTML document.

    ``&``, ``<`` and ``>`` are escaped first so that only the ``<br>`` tags
    inserted for line breaks reach the markup.
    """

    escaped = html.escape(text or "", quote=False)
    with_breaks = escaped.replace("\r\n", "\n").replace("\n", "<br>")
    return _EMAIL_DOCUMENT.format(body=with_breaks)


__all__ = ["render_email_body"]
