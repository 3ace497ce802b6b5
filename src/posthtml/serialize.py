"""Markup splicing utilities.

Stages never re-serialize the parsed tree. They edit the markup string
directly, so the helpers here build tags and splice them in at literal markers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable


def escape_attr_value(value: str | None) -> str:
    """Escape a value for use inside a double-quoted attribute."""
    if value is None:
        return ""
    return str(value).replace("&", "&amp;").replace('"', "&quot;")


def style_tag(url: str, css: str, nonce: str | None = None) -> str:
    nonce_str = f' nonce="{escape_attr_value(nonce)}"' if nonce else ""
    return f'<style data-href="{escape_attr_value(url)}"{nonce_str}>{css}</style>'


def style_tag_prefix(url: str) -> str:
    # Matches the inlined style with or without a nonce attribute.
    return f'<style data-href="{escape_attr_value(url)}"'


def fallback_link_tag(url: str) -> str:
    return f'<link rel="stylesheet" href="{escape_attr_value(url)}"/>'


def preconnect_tags(origins: Iterable[str]) -> str:
    return "".join(f'<link rel="preconnect" href="{escape_attr_value(origin)}" crossorigin />' for origin in origins)


def insert_before(markup: str, marker: str, snippet: str) -> str:
    """Insert `snippet` before the first occurrence of `marker`.

    Missing markers are not an error: the markup is returned unchanged.
    """
    index = markup.find(marker)
    if index == -1:
        return markup
    return f"{markup[:index]}{snippet}{markup[index:]}"


def replace_marker(markup: str, marker: str, replacement: str) -> str:
    """Replace the first occurrence of `marker` only."""
    return markup.replace(marker, replacement, 1)


def _attr_value_pattern(value: str) -> str:
    # Renderers serialize '&' as '&amp;' and '"' as '&quot;'. Accept the raw
    # character too, since the parser tolerates both.
    parts: list[str] = []
    for ch in value:
        if ch == "&":
            parts.append("&(?:amp;)?")
        elif ch == '"':
            parts.append("(?:&quot;|&#34;)")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def link_tag_pattern(attr: str, value: str) -> re.Pattern[str]:
    """Compile a pattern for a whole `<link>` start tag with `attr="value"`.

    The value must match exactly (up to the closing quote) and the match never
    crosses a `>`, so neighbouring tags are left alone.
    """
    return re.compile(rf'<link(?=[\s/])[^>]*?\s{re.escape(attr)}="{_attr_value_pattern(value)}"[^>]*>')
