"""Post-processing constants

This module defines the font provider table and the markup markers the
post-processing stages splice around. Providers are kept in a tuple to maintain
a stable lookup order: the first matching prefix wins.

Usage:
    from posthtml.constants import OPTIMIZED_FONT_PROVIDERS, find_font_provider

References:
    - https://html.spec.whatwg.org/multipage/links.html#link-type-preconnect
    - https://developers.google.com/fonts/docs/css2
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FontProvider:
    """A font service: stylesheet URL prefix and the origin its font files live on."""

    url: str
    preconnect: str


# Font services whose stylesheets can be inlined
OPTIMIZED_FONT_PROVIDERS: tuple[FontProvider, ...] = (
    FontProvider(url="https://fonts.googleapis.com/css", preconnect="https://fonts.gstatic.com"),
    FontProvider(url="https://use.typekit.net", preconnect="https://use.typekit.net"),
)


def find_font_provider(
    url: str,
    providers: tuple[FontProvider, ...] = OPTIMIZED_FONT_PROVIDERS,
) -> FontProvider | None:
    for provider in providers:
        if url.startswith(provider.url):
            return provider
    return None


# Markup markers
HEAD_CLOSE_MARKER = "</head>"
FONT_PRECONNECT_PLACEHOLDER = '<meta name="next-font-preconnect"/>'

INLINE_FONTS_STAGE = "Inline-Fonts"

# Environment variables read by ProcessingOptions.from_env()
ENV_OPTIMIZE_FONTS = "POSTHTML_OPTIMIZE_FONTS"
ENV_MIDDLEWARE_TIME_BUDGET = "POSTHTML_MIDDLEWARE_TIME_BUDGET"

TRUTHY_ENV_VALUES = frozenset({"1", "true", "yes", "on"})
