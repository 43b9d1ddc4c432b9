from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ..errors import UnsupportedPixelFormat

PathLike = Union[str, Path]


def load_grayscale(path: PathLike) -> np.ndarray:
    """
    Load an image as a single-channel array suitable for template matching.
    """
    image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise FileNotFoundError(f"Unable to load image at {path}")
    return image


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Reduce a BGR or BGRA array to one channel; single-channel input is returned as is.
    """
    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise UnsupportedPixelFormat(f"cannot convert array of shape {image.shape} to grayscale")
