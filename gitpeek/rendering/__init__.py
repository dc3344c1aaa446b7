"""README and LICENSE rendering."""

from gitpeek.rendering.base import (
    MediaReference,
    RenderContext,
    RenderedMarkup,
    Renderer,
    Rule,
    RulePipeline,
)
from gitpeek.rendering.license import LicenseRenderer, detect_license_type
from gitpeek.rendering.markdown import MarkdownRenderer
from gitpeek.rendering.media import MediaResolver, assemble

__all__ = [
    "LicenseRenderer",
    "MarkdownRenderer",
    "MediaReference",
    "MediaResolver",
    "RenderContext",
    "RenderedMarkup",
    "Renderer",
    "Rule",
    "RulePipeline",
    "assemble",
    "detect_license_type",
]
