"""LICENSE renderer: copyright and license-name passes ahead of the Markdown rules."""

import re

from gitpeek.rendering.base import PipelineRenderer, RenderContext, RenderedMarkup, RenderState, Rule
from gitpeek.rendering.markdown import MARKDOWN_RULES

GENERIC_LABEL = "License"

# Names recognised at the start of a line, with the label each one gives the document.
KNOWN_LICENSE_NAMES = {
    "mit license": "MIT License",
    "apache license": "Apache License",
    "gpl": "GPL",
    "bsd": "BSD",
    "isc license": "ISC License",
    "mozilla public license": "Mozilla Public License",
}

# Whole-text fallback, checked in order.
_LICENSE_MARKERS = [
    ("MIT LICENSE", "MIT License"),
    ("APACHE LICENSE", "Apache License 2.0"),
    ("GNU GENERAL PUBLIC LICENSE", "GPL License"),
    ("BSD LICENSE", "BSD License"),
    ("ISC LICENSE", "ISC License"),
    ("MOZILLA PUBLIC LICENSE", "Mozilla Public License"),
]


def detect_license_type(text: str) -> str:
    """Guess a license label from anywhere in the text."""
    upper = text.upper()
    for marker, label in _LICENSE_MARKERS:
        if marker in upper:
            return label
    return GENERIC_LABEL


def _copyright(match: re.Match[str], state: RenderState) -> str:
    return f'<div class="license-copyright"><strong>Copyright &copy; {match.group(1)}</strong></div>'


def _license_name(match: re.Match[str], state: RenderState) -> str:
    if state.title is None:
        state.title = KNOWN_LICENSE_NAMES[match.group(1).lower()]
    return f'<div class="license-name">{match.group(0).strip()}</div>'


LICENSE_RULES: list[Rule] = [
    Rule("copyright", re.compile(r"Copyright (?:\(c\)|©) ([^\n]+)", re.IGNORECASE), _copyright),
    Rule(
        "license_name",
        re.compile(
            r"^[ \t]*(MIT License|Apache License|GPL|BSD|ISC License|Mozilla Public License).*$",
            re.MULTILINE | re.IGNORECASE,
        ),
        _license_name,
    ),
]


class LicenseRenderer(PipelineRenderer):
    """Renders LICENSE text and labels it with the license it names."""

    rules = LICENSE_RULES + MARKDOWN_RULES

    def render(self, text: str, context: RenderContext | None = None) -> RenderedMarkup:
        rendered = super().render(text, context)
        if rendered.title is None:
            rendered.title = detect_license_type(text)
        return rendered
