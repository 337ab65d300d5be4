"""
sandbox.py - Preview Document Synthesis and Isolation Policy
Snippet Catalog

Builds the standalone document for a snippet's HTML/CSS/JavaScript triple
and defines how that document is isolated from the host page.

Author code is never filtered here. Isolation comes from the browser:
the document is only ever loaded into a frame sandboxed to
"allow-scripts" (opaque origin, no top navigation, no host storage or DOM),
and the frame endpoint repeats that sandbox in its Content-Security-Policy.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

# Capabilities granted to the preview frame. Anything not listed is denied,
# in particular allow-same-origin, allow-top-navigation, allow-popups and allow-forms.
SANDBOX_FLAGS = ('allow-scripts',)

PREVIEW_CSP = '; '.join([
    'sandbox ' + ' '.join(SANDBOX_FLAGS),
    "default-src 'none'",
    "script-src 'unsafe-inline'",
    "style-src 'unsafe-inline'",
    'img-src https: data:',
    'font-src https: data:',
    'media-src https: data:',
    "connect-src 'none'",
    "form-action 'none'",
    "base-uri 'none'",
    "frame-ancestors 'self'",
])

PREVIEW_HEADERS = {
    'Content-Security-Policy': PREVIEW_CSP,
    'X-Frame-Options': 'SAMEORIGIN',
    'Referrer-Policy': 'no-referrer',
    'X-Content-Type-Options': 'nosniff',
    'Cache-Control': 'no-store',
}

RESET_CSS = """\
*, *::before, *::after { box-sizing: border-box; }
html, body { margin: 0; padding: 0; }
body {
  padding: 16px;
  font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif;
  line-height: 1.5;
  color: #111;
  background: #fff;
}
img, svg, video { max-width: 100%; height: auto; }
button, input, select, textarea { font: inherit; }"""

DOCUMENT_TEMPLATE = """\
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="referrer" content="no-referrer">
<style id="preview-reset">
{reset}
</style>
<style id="preview-styles">
{css}
</style>
</head>
<body>
{html}
<script id="preview-script">
{javascript}
</script>
</body>
</html>
"""


@dataclass(frozen=True)
class SnippetCode:
    """The renderable part of a snippet: one immutable HTML/CSS/JavaScript triple."""

    html: str = ''
    css: str = ''
    javascript: str = ''

    @classmethod
    def from_record(cls, record: dict) -> 'SnippetCode':
        """Take the triple from a snippet record or draft dict; missing fields are empty."""
        return cls(
            html=record.get('html') or '',
            css=record.get('css') or '',
            javascript=record.get('javascript') or '',
        )

    def to_dict(self) -> dict:
        return {'html': self.html, 'css': self.css, 'javascript': self.javascript}


def build_document(code: SnippetCode) -> str:
    """
    Assemble the complete preview document for a triple.

    Order matters: the reset stylesheet comes before the author CSS, and the
    author script follows the author markup so top-level DOM queries find
    their targets. Synthesis never fails; broken author code simply produces
    a broken page inside the sandbox.
    """
    return DOCUMENT_TEMPLATE.format(
        reset=RESET_CSS,
        css=code.css,
        html=code.html,
        javascript=code.javascript,
    )


def sandbox_attribute() -> str:
    return ' '.join(SANDBOX_FLAGS)


def frame_tag(src: str, title: Optional[str] = None) -> str:
    """
    Markup the host page uses to mount a preview frame.

    Every render produces a new src, so swapping the tag's src replaces the
    whole browsing context instead of patching the old one.
    """
    return (
        f'<iframe src="{escape(src)}" sandbox="{sandbox_attribute()}" '
        f'referrerpolicy="no-referrer" loading="eager" '
        f'title="{escape(title or "Snippet preview")}"></iframe>'
    )
