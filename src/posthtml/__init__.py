import logging

from .constants import OPTIMIZED_FONT_PROVIDERS, FontProvider, find_font_provider
from .fonts import FontCandidate, FontOptimizer, font_optimization_enabled
from .options import ProcessingOptions, RenderContext
from .pipeline import (
    Middleware,
    MiddlewareEntry,
    PostProcessor,
    default_post_processor,
    parse_document,
    register_post_processor,
)

# Stay silent unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "OPTIMIZED_FONT_PROVIDERS",
    "FontCandidate",
    "FontOptimizer",
    "FontProvider",
    "Middleware",
    "MiddlewareEntry",
    "PostProcessor",
    "ProcessingOptions",
    "RenderContext",
    "default_post_processor",
    "find_font_provider",
    "font_optimization_enabled",
    "parse_document",
    "register_post_processor",
]
