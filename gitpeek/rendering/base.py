"""
Rule pipeline shared by the README and LICENSE renderers.

A renderer is an ordered list of rules run over one text buffer. Rules are
applied strictly in list order: later rules rely on the shape of what earlier
ones emitted, so the order is part of each renderer's contract.
"""

import html
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit

from gitpeek.config import DEFAULT_RAW_BASE_URL, DEFAULT_WEB_BASE_URL

_ABSOLUTE_PREFIXES = ("http://", "https://", "//")
_SAFE_SCHEMES = {"http", "https", "mailto"}


@dataclass(frozen=True)
class RenderContext:
    """Where relative links and media in a document point to."""

    repo_html_url: str | None = None
    branch: str = "main"
    redirect_id: str | None = None
    web_host: str = urlsplit(DEFAULT_WEB_BASE_URL).netloc
    raw_host: str = urlsplit(DEFAULT_RAW_BASE_URL).netloc


@dataclass(frozen=True)
class MediaReference:
    """An image or video found in a document, awaiting resolution."""

    id: str
    alt: str
    src: str
    is_video: bool

    @property
    def placeholder(self) -> str:
        return media_placeholder(self.id)


@dataclass
class RenderedMarkup:
    """Renderer output: markup with media placeholders, plus the media list."""

    html: str
    media: list[MediaReference] = field(default_factory=list)
    title: str | None = None


@dataclass
class RenderState:
    """Per-render scratch space handed to callable rules."""

    context: RenderContext
    media: list[MediaReference] = field(default_factory=list)
    title: str | None = None

    def add_media(self, alt: str, src: str, is_video: bool) -> MediaReference:
        ref = MediaReference(id=f"media-{len(self.media)}", alt=alt, src=src, is_video=is_video)
        self.media.append(ref)
        return ref


Replacement = str | Callable[[re.Match[str], RenderState], str]


@dataclass(frozen=True)
class Rule:
    """One pattern substitution in a pipeline."""

    name: str
    pattern: re.Pattern[str]
    replacement: Replacement

    def apply(self, text: str, state: RenderState) -> str:
        replacement = self.replacement
        if isinstance(replacement, str):
            return self.pattern.sub(replacement, text)
        return self.pattern.sub(lambda match: replacement(match, state), text)


class RulePipeline:
    """An ordered sequence of rules over an accumulating text buffer."""

    def __init__(self, rules: list[Rule]) -> None:
        self.rules = list(rules)

    @property
    def order(self) -> list[str]:
        return [rule.name for rule in self.rules]

    def run(self, text: str, state: RenderState) -> str:
        for rule in self.rules:
            text = rule.apply(text, state)
        return text


class Renderer(Protocol):
    """Anything that turns README or LICENSE text into markup.

    Callers depend only on this interface, so a rule pipeline can be replaced
    by a real Markdown parser without touching them.
    """

    def render(self, text: str, context: RenderContext | None = None) -> RenderedMarkup: ...


class PipelineRenderer:
    """Renderer backed by a RulePipeline.

    Input is HTML-escaped before any rule runs, so markup in the source text
    is displayed, never interpreted.
    """

    rules: list[Rule] = []

    def __init__(self) -> None:
        self.pipeline = RulePipeline(self.rules)

    def render(self, text: str, context: RenderContext | None = None) -> RenderedMarkup:
        state = RenderState(context=context or RenderContext())
        buffer = html.escape(text.replace("\r\n", "\n").replace("\r", "\n"), quote=True)
        buffer = self.pipeline.run(buffer, state)
        return RenderedMarkup(html=buffer, media=state.media, title=state.title)


def media_placeholder(media_id: str) -> str:
    return f'<span data-gitpeek-media="{media_id}"></span>'


def is_absolute_url(url: str) -> bool:
    return url.startswith(_ABSOLUTE_PREFIXES) or url.startswith("data:")


def is_safe_url(url: str) -> bool:
    """True for relative URLs and http(s)/mailto ones."""
    try:
        scheme = urlsplit(url).scheme.lower()
    except ValueError:
        return False
    return scheme == "" or scheme in _SAFE_SCHEMES


def clean_relative_path(path: str) -> str:
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def raw_content_url(path: str, context: RenderContext) -> str | None:
    """
    Rewrite a repository-relative path onto the raw content host.

    The web host in the repository URL is replaced literally by the raw
    host, then the branch and path are appended.
    """
    if not context.repo_html_url:
        return None
    raw_base = context.repo_html_url.rstrip("/").replace(context.web_host, context.raw_host)
    return f"{raw_base}/{context.branch}/{clean_relative_path(path)}"


def is_upstream_host(url: str, context: RenderContext) -> bool:
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    for upstream in (context.web_host.lower(), context.raw_host.lower()):
        if host == upstream or host.endswith("." + upstream):
            return True
    return False
