"""
IO helpers for loading image assets consumed by matching routines.
"""

from .image_loader import load_grayscale, to_grayscale

__all__ = ["load_grayscale", "to_grayscale"]
