"""README renderer: a line-oriented Markdown subset as ordered rewrite rules."""

import html
import re
from collections.abc import Callable

from gitpeek.mime import is_video
from gitpeek.rendering.base import (
    PipelineRenderer,
    RenderState,
    Rule,
    is_absolute_url,
    is_safe_url,
    is_upstream_host,
    raw_content_url,
)


def _fenced_code(match: re.Match[str], state: RenderState) -> str:
    language, body = match.group(1), match.group(2)
    css = f' class="language-{language.lower()}"' if language else ""
    return f'<pre class="md-code-block"><code{css}>{body}</code></pre>'


def _media(match: re.Match[str], state: RenderState) -> str:
    # The buffer is HTML-escaped; descriptors hold the unescaped text.
    alt = html.unescape(match.group(1))
    src = html.unescape(match.group(2).strip())
    return state.add_media(alt=alt, src=src, is_video=is_video(src)).placeholder


def _collapse(tag: str) -> Callable[[re.Match[str], RenderState], str]:
    def collapse(match: re.Match[str], state: RenderState) -> str:
        items = match.group(0)
        trailing = "\n" if items.endswith("\n") else ""
        inner = items.strip().replace("\n", "")
        return f'<{tag} class="md-list">{inner}</{tag}>{trailing}'

    return collapse


def resolve_link(href: str, state: RenderState) -> str:
    """Resolve a link target the way a README on the upstream host would."""
    if not is_safe_url(href):
        return "#"
    if is_absolute_url(href) or href.startswith(("#", "mailto:")):
        return href
    return raw_content_url(href, state.context) or href


def _link(match: re.Match[str], state: RenderState) -> str:
    text = match.group(1)
    href = resolve_link(html.unescape(match.group(2).strip()), state)
    attributes = ""
    if href.startswith(("http://", "https://", "//")) and not is_upstream_host(href, state.context):
        attributes = ' target="_blank" rel="noopener noreferrer"'
    return f'<a href="{html.escape(href, quote=True)}" class="md-link"{attributes}>{text}</a>'


MARKDOWN_RULES: list[Rule] = [
    # Most specific header marker first so "###" is never read as "#".
    Rule("h3", re.compile(r"^### (.*)$", re.MULTILINE), r'<h3 class="md-h3">\1</h3>'),
    Rule("h2", re.compile(r"^## (.*)$", re.MULTILINE), r'<h2 class="md-h2">\1</h2>'),
    Rule("h1", re.compile(r"^# (.*)$", re.MULTILINE), r'<h1 class="md-h1">\1</h1>'),
    Rule("bold", re.compile(r"\*\*(?=[^\s*])(.+?)(?<=[^\s*])\*\*"), r"<strong>\1</strong>"),
    Rule("italic", re.compile(r"\*(?=[^\s*])(.+?)(?<=[^\s*])\*"), r"<em>\1</em>"),
    Rule("strikethrough", re.compile(r"~~(.+?)~~"), r"<del>\1</del>"),
    Rule("fenced_code", re.compile(r"```(\w*)\n?(.*?)```", re.DOTALL), _fenced_code),
    Rule("inline_code", re.compile(r"`(.+?)`"), r'<code class="md-code">\1</code>'),
    Rule("media", re.compile(r"!\[([^\]]*)\]\(([^)]+)\)"), _media),
    Rule("unordered_item", re.compile(r"^[*-] (.*)$", re.MULTILINE), r'<li class="md-ul-item">\1</li>'),
    Rule("unordered_list", re.compile(r'(?:^<li class="md-ul-item">.*</li>$\n?)+', re.MULTILINE), _collapse("ul")),
    Rule("ordered_item", re.compile(r"^\d+\. (.*)$", re.MULTILINE), r'<li class="md-ol-item">\1</li>'),
    Rule("ordered_list", re.compile(r'(?:^<li class="md-ol-item">.*</li>$\n?)+', re.MULTILINE), _collapse("ol")),
    Rule("blockquote", re.compile(r"^&gt; (.*)$", re.MULTILINE), r'<blockquote class="md-quote">\1</blockquote>'),
    Rule("horizontal_rule", re.compile(r"^---$", re.MULTILINE), r'<hr class="md-rule" />'),
    Rule("link", re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), _link),
    Rule("line_break", re.compile(r"\n"), "<br>"),
]


class MarkdownRenderer(PipelineRenderer):
    """
    Renders README text.

    Example:
        ```python
        rendered = MarkdownRenderer().render(readme, RenderContext(repo_html_url=url, branch="main"))
        page = await MediaResolver(aggregator.fetch_image_as_data_url).finish(rendered, context)
        ```
    """

    rules = MARKDOWN_RULES
