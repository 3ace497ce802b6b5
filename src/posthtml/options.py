"""Processing options and render context.

`ProcessingOptions` decides which stages run; `RenderContext` carries the
capabilities stages need from the renderer. Both are immutable for the duration
of a run.
"""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from .constants import ENV_MIDDLEWARE_TIME_BUDGET, ENV_OPTIMIZE_FONTS, TRUTHY_ENV_VALUES

log = logging.getLogger(__name__)

FontResolver = Callable[[str], str | None | Awaitable[str | None]]


def _env_flag(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in TRUTHY_ENV_VALUES


@dataclass(frozen=True, slots=True)
class ProcessingOptions:
    """Options that gate stages for one pipeline run.

    - `optimize_fonts` enables the font inlining stage.
    - `strict` parses in strict mode: the first parse error raises
      `justhtml.StrictModeError` out of the run.
    - `collect_errors` collects (and debug-logs) parse errors without raising.
    - `time_budget_ms` logs a warning when a single stage takes longer.
    """

    optimize_fonts: bool = False
    strict: bool = False
    collect_errors: bool = False
    time_budget_ms: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ProcessingOptions:
        """Build options, merging environment overrides.

        POSTHTML_OPTIMIZE_FONTS turns font optimization on even when
        `optimize_fonts=False` is passed explicitly. POSTHTML_MIDDLEWARE_TIME_BUDGET
        only applies when `time_budget_ms` is not passed.
        """
        env = os.environ if environ is None else environ
        options = cls(**overrides)

        if _env_flag(env.get(ENV_OPTIMIZE_FONTS)):
            options = options.replace(optimize_fonts=True)

        raw_budget = env.get(ENV_MIDDLEWARE_TIME_BUDGET)
        if raw_budget and "time_budget_ms" not in overrides:
            try:
                budget = float(raw_budget)
            except ValueError:
                log.debug("Ignoring invalid %s=%r", ENV_MIDDLEWARE_TIME_BUDGET, raw_budget)
            else:
                if budget > 0:
                    options = options.replace(time_budget_ms=budget)

        return options

    def replace(self, **changes: Any) -> ProcessingOptions:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Renderer-supplied capabilities.

    `resolve_font_css(url)` returns the font-face CSS for a stylesheet URL, or
    None when it is not available. It may be a plain function or a coroutine
    function.
    """

    resolve_font_css: FontResolver | None = None

    @property
    def has_font_resolver(self) -> bool:
        return self.resolve_font_css is not None

    async def resolve(self, url: str) -> str | None:
        if self.resolve_font_css is None:
            return None
        result = self.resolve_font_css(url)
        if inspect.isawaitable(result):
            result = await result
        return result
