"""
Deferred media resolution.

Rendering leaves a placeholder for every image or video. Resolution then
runs one task per reference and the results are substituted back into the
placeholders, in document order.
"""

import asyncio
import html
from collections.abc import Awaitable, Callable

from gitpeek.logging import get_logger
from gitpeek.mime import mime_type_for
from gitpeek.rendering.base import (
    MediaReference,
    RenderContext,
    RenderedMarkup,
    clean_relative_path,
    is_absolute_url,
    raw_content_url,
)

logger = get_logger("rendering")

ImageFetcher = Callable[[str, str], Awaitable[str | None]]


def render_media_element(ref: MediaReference, src: str) -> str:
    """Markup for a resolved image or video."""
    safe_src = html.escape(src, quote=True)
    if ref.is_video:
        return (
            '<video controls preload="metadata" class="md-video">'
            f'<source src="{safe_src}" type="{mime_type_for(ref.src)}">'
            "Your browser does not support the video tag."
            "</video>"
        )
    return (
        f'<img src="{safe_src}" alt="{html.escape(ref.alt, quote=True)}" '
        'class="md-image" loading="lazy" />'
    )


def assemble(markup: str, media: list[MediaReference], sources: list[str]) -> str:
    """Substitute resolved media into their placeholders."""
    for ref, src in zip(media, sources):
        markup = markup.replace(ref.placeholder, render_media_element(ref, src), 1)
    return markup


class MediaResolver:
    """
    Resolves media references found by a renderer.

    Args:
        fetch_image: Coroutine taking (redirect_id, path) and returning a data
            URL or None; normally ``ContentAggregator.fetch_image_as_data_url``
    """

    def __init__(self, fetch_image: ImageFetcher | None = None) -> None:
        self.fetch_image = fetch_image

    async def resolve(self, ref: MediaReference, context: RenderContext) -> str:
        """
        Resolve one reference to a usable source.

        Absolute URLs pass through. Relative paths go through the private
        image fetch when a redirect is known, then fall back to the raw
        content host, and are otherwise left as written.
        """
        if is_absolute_url(ref.src):
            return ref.src

        if context.redirect_id is not None and self.fetch_image is not None:
            data_url = await self.fetch_image(context.redirect_id, clean_relative_path(ref.src))
            if data_url is not None:
                return data_url
            logger.debug("No inline data for %s in %s, using raw host", ref.src, context.redirect_id)

        return raw_content_url(ref.src, context) or ref.src

    async def resolve_all(self, media: list[MediaReference], context: RenderContext) -> list[str]:
        """Resolve every reference concurrently; results keep the input order."""
        return list(await asyncio.gather(*(self.resolve(ref, context) for ref in media)))

    async def finish(self, rendered: RenderedMarkup, context: RenderContext) -> str:
        """Resolve a rendered document's media and return the final markup."""
        sources = await self.resolve_all(rendered.media, context)
        return assemble(rendered.html, rendered.media, sources)
