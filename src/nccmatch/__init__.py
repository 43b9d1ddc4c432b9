"""
Core package for normalized cross-correlation template matching.
"""

from .config import MatchConfig
from .errors import (
    DegenerateNormalization,
    InvalidDimensions,
    OutOfBounds,
    TemplateMatchError,
    UnsupportedPixelFormat,
)
from .matching.engine import MatchResult, TemplateMatcher, match_template
from .methods import Backend, ExtremumKind, MatchMethod

__all__ = [
    "Backend",
    "DegenerateNormalization",
    "ExtremumKind",
    "InvalidDimensions",
    "MatchConfig",
    "MatchMethod",
    "MatchResult",
    "OutOfBounds",
    "TemplateMatchError",
    "TemplateMatcher",
    "UnsupportedPixelFormat",
    "match_template",
]
