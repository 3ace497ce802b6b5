"""Font optimization stage.

Inlines web-font stylesheets into the document head. The stage inspects the
parsed document for `<link rel="stylesheet" data-href="...">` tags that point at
a known font provider, then edits the markup string:

- the resolved font-face CSS is inserted as `<style data-href="...">` before
  `</head>` and the original link tag is removed;
- when no CSS can be resolved, a plain `<link rel="stylesheet" href="...">` is
  inserted instead so the browser still loads the font;
- the preconnect placeholder is replaced with one preconnect hint per provider
  that was inlined.

Running the stage over its own output is a no-op.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from .constants import (
    FONT_PRECONNECT_PLACEHOLDER,
    HEAD_CLOSE_MARKER,
    OPTIMIZED_FONT_PROVIDERS,
    FontProvider,
    find_font_provider,
)
from .serialize import (
    fallback_link_tag,
    insert_before,
    link_tag_pattern,
    preconnect_tags,
    replace_marker,
    style_tag,
    style_tag_prefix,
)

if TYPE_CHECKING:
    from justhtml import JustHTML

    from .options import ProcessingOptions, RenderContext

log = logging.getLogger(__name__)


class FontCandidate(NamedTuple):
    url: str
    nonce: str | None = None


def font_optimization_enabled(options: ProcessingOptions) -> bool:
    return bool(options.optimize_fonts)


class FontOptimizer:
    """Inline font-face CSS for stylesheet links served by known font providers."""

    __slots__ = ("providers",)

    def __init__(self, providers: tuple[FontProvider, ...] = OPTIMIZED_FONT_PROVIDERS) -> None:
        self.providers = tuple(providers)

    def __repr__(self) -> str:
        return f"FontOptimizer(providers={[p.url for p in self.providers]!r})"

    def _is_font_link(self, attrs: dict[str, str | None]) -> bool:
        data_href = attrs.get("data-href")
        if attrs.get("rel") != "stylesheet" or not data_href:
            return False
        return find_font_provider(data_href, self.providers) is not None

    def inspect(self, document: JustHTML, context: RenderContext) -> list[FontCandidate]:
        if not context.has_font_resolver:
            return []

        candidates: list[FontCandidate] = []
        for node in document.root.query("link"):
            attrs = node.attrs or {}
            # Links without a usable data-href never become candidates
            if not self._is_font_link(attrs):
                continue
            candidates.append(FontCandidate(attrs["data-href"], attrs.get("nonce") or None))
        return candidates

    async def mutate(self, markup: str, candidates: list[FontCandidate], context: RenderContext) -> str:
        if not context.has_font_resolver:
            return markup

        result = markup
        # dict keeps first-seen order
        preconnect_origins: dict[str, None] = {}

        for url, nonce in candidates:
            fallback = fallback_link_tag(url)
            if style_tag_prefix(url) in result or fallback in result:
                # Already optimized, e.g. a cached response went through again
                log.debug("Font %s already optimized, skipping", url)
                continue

            css = await context.resolve(url)
            if not css:
                log.debug("No font definition for %s, falling back to a stylesheet link", url)
                result = insert_before(result, HEAD_CLOSE_MARKER, fallback)
                continue

            result = insert_before(result, HEAD_CLOSE_MARKER, style_tag(url, css, nonce))
            result = link_tag_pattern("data-href", url).sub("", result)

            provider = find_font_provider(url, self.providers)
            if provider is not None:
                preconnect_origins.setdefault(provider.preconnect, None)

        return replace_marker(result, FONT_PRECONNECT_PLACEHOLDER, preconnect_tags(preconnect_origins))
