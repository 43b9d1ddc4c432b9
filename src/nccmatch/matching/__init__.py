"""
Matching subpackage exposes the sliding-window scoring engine.
"""

from ..methods import Backend, ExtremumKind, MatchMethod
from .buffer import PixelBuffer
from .engine import MatchResult, MatchStats, TemplateMatcher, match_template
from .extrema import Extrema, Match, find_extrema, find_matches
from .integral import IntegralSquaredTable, IntegralTable, TemplateStats, template_energy
from .scanner import ParallelScanner
from .scorer import WindowScorer, score_window

__all__ = [
    "Backend",
    "Extrema",
    "ExtremumKind",
    "IntegralSquaredTable",
    "IntegralTable",
    "Match",
    "MatchMethod",
    "MatchResult",
    "MatchStats",
    "ParallelScanner",
    "PixelBuffer",
    "TemplateMatcher",
    "TemplateStats",
    "WindowScorer",
    "find_extrema",
    "find_matches",
    "match_template",
    "score_window",
    "template_energy",
]
