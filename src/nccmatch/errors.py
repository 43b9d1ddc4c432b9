"""
Exception types raised by the matching core.
"""

from __future__ import annotations


class TemplateMatchError(Exception):
    """
    Base class for all matching failures.
    """


class InvalidDimensions(TemplateMatchError, ValueError):
    """
    Template does not fit inside the image, or a buffer has an unusable shape.
    """


class UnsupportedPixelFormat(TemplateMatchError, ValueError):
    """
    Pixel depth, channel count or value range outside the supported set.
    """


class OutOfBounds(TemplateMatchError, IndexError):
    """
    Rectangle query exceeds the domain of an integral table.
    """


class DegenerateNormalization(TemplateMatchError, RuntimeWarning):
    """
    One or more windows had a non-positive normalization denominator.

    Only ever issued as a warning; affected windows carry the fill value.
    """


__all__ = [
    "DegenerateNormalization",
    "InvalidDimensions",
    "OutOfBounds",
    "TemplateMatchError",
    "UnsupportedPixelFormat",
]
