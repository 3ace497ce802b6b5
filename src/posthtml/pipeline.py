"""Post-processing pipeline.

A `PostProcessor` holds an ordered list of named stages. Running it parses the
markup once, then hands every enabled stage the shared (read-only) document for
inspection and the current markup string for mutation:

    processor = PostProcessor()
    processor.register("Inline-Fonts", FontOptimizer(), font_optimization_enabled)
    html = await processor.run(html, RenderContext(resolve_font_css=fetch_css), options)

Stages run strictly one after another: each mutation sees the markup produced
by the stages before it. Stage failures are not isolated; an exception from a
gate, `inspect` or `mutate` aborts the run and reaches the caller unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from justhtml import JustHTML

from .constants import INLINE_FONTS_STAGE, OPTIMIZED_FONT_PROVIDERS, FontProvider
from .fonts import FontOptimizer, font_optimization_enabled
from .options import ProcessingOptions, RenderContext

log = logging.getLogger(__name__)

T = TypeVar("T")

Gate = Callable[[ProcessingOptions], bool]


class Middleware(Protocol[T]):
    """A pipeline stage.

    `inspect` reads the parsed document and returns stage-specific data;
    `mutate` receives that same data together with the current markup and
    returns the new markup. The parsed document must not be modified.
    """

    def inspect(self, document: JustHTML, context: RenderContext) -> T: ...

    async def mutate(self, markup: str, data: T, context: RenderContext) -> str: ...


@dataclass(frozen=True, slots=True)
class MiddlewareEntry:
    name: str
    middleware: Middleware[Any]
    gate: Gate | None = None

    def enabled(self, options: ProcessingOptions) -> bool:
        if self.gate is None:
            return True
        return bool(self.gate(options))


def parse_document(markup: str, options: ProcessingOptions) -> JustHTML:
    """Parse markup for inspection. Strict mode raises on the first parse error."""
    # The default sanitizer drops <link> and <style>; stages need the raw tree.
    document = JustHTML(markup, sanitize=False, strict=options.strict, collect_errors=options.collect_errors)
    if options.collect_errors:
        for error in document.errors:
            log.debug("Parse error: %s", error)
    return document


class PostProcessor:
    """Ordered registry of post-processing stages.

    Stages are registered at startup and the registry is only read while
    running, so one processor can serve concurrent runs.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: tuple[MiddlewareEntry, ...] = ()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MiddlewareEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"PostProcessor({list(self.names)!r})"

    @property
    def entries(self) -> tuple[MiddlewareEntry, ...]:
        return self._entries

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self._entries)

    def register(self, name: str, middleware: Middleware[Any], gate: Gate | None = None) -> MiddlewareEntry:
        if not isinstance(name, str) or not name:
            raise ValueError("Stage name must be a non-empty string")
        for attr in ("inspect", "mutate"):
            if not callable(getattr(middleware, attr, None)):
                raise TypeError(f"Stage {name!r} must define a callable {attr}()")
        if gate is not None and not callable(gate):
            raise TypeError(f"Gate for stage {name!r} must be callable")

        entry = MiddlewareEntry(name, middleware, gate)
        # Replace rather than append so runs already iterating keep their snapshot.
        self._entries = (*self._entries, entry)
        return entry

    async def run(
        self,
        markup: str,
        context: RenderContext | None = None,
        options: ProcessingOptions | None = None,
    ) -> str:
        entries = self._entries
        # Don't parse unless there's at least one stage
        if not entries:
            return markup

        context = context if context is not None else RenderContext()
        options = options if options is not None else ProcessingOptions()

        document = parse_document(markup, options)
        result = markup

        for entry in entries:
            if not entry.enabled(options):
                log.debug("Skipping stage %s: gate is off", entry.name)
                continue

            started = time.perf_counter()
            data = entry.middleware.inspect(document, context)
            result = await entry.middleware.mutate(result, data, context)
            elapsed_ms = (time.perf_counter() - started) * 1000

            log.debug("Stage %s took %.2fms", entry.name, elapsed_ms)
            if options.time_budget_ms is not None and elapsed_ms > options.time_budget_ms:
                log.warning(
                    "Stage %s took %.2fms, over the %.2fms budget; consider disabling it",
                    entry.name,
                    elapsed_ms,
                    options.time_budget_ms,
                )

        return result

    def run_sync(
        self,
        markup: str,
        context: RenderContext | None = None,
        options: ProcessingOptions | None = None,
    ) -> str:
        """Run from synchronous code. Must not be called inside a running event loop."""
        return asyncio.run(self.run(markup, context, options))


def register_post_processor(
    processor: PostProcessor,
    name: str,
    middleware: Middleware[Any],
    gate: Gate | None = None,
) -> MiddlewareEntry:
    """Register a stage at startup.

    Same as `processor.register()`; kept as a function for renderers that wire
    their stages from a list of `(name, middleware, gate)` tuples.
    """
    return processor.register(name, middleware, gate)


def default_post_processor(providers: tuple[FontProvider, ...] = OPTIMIZED_FONT_PROVIDERS) -> PostProcessor:
    """Build a processor with the built-in stages registered."""
    processor = PostProcessor()
    processor.register(INLINE_FONTS_STAGE, FontOptimizer(providers), font_optimization_enabled)
    return processor
