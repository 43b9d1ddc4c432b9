from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import InvalidDimensions, UnsupportedPixelFormat

SUPPORTED_DTYPES = (np.dtype(np.uint8), np.dtype(np.float32), np.dtype(np.float64))


@dataclass(frozen=True, slots=True)
class PixelBuffer:
    """
    Read-only single-channel intensity grid, indexed ``data[y, x]``.
    """

    data: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray | PixelBuffer, name: str = "image") -> PixelBuffer:
        """
        Validate ``array`` and wrap a private read-only copy of it.
        """
        if isinstance(array, PixelBuffer):
            return array

        array = np.asarray(array)
        if array.ndim == 3 and array.shape[2] == 1:
            array = array[:, :, 0]
        if array.ndim == 3:
            raise UnsupportedPixelFormat(
                f"{name} has {array.shape[2]} channels; convert to grayscale before matching"
            )
        if array.ndim != 2:
            raise InvalidDimensions(f"{name} must be two-dimensional, got shape {array.shape}")
        if array.shape[0] < 1 or array.shape[1] < 1:
            raise InvalidDimensions(f"{name} must not be empty, got shape {array.shape}")
        if array.dtype not in SUPPORTED_DTYPES:
            raise UnsupportedPixelFormat(f"{name} dtype {array.dtype} is not one of uint8, float32, float64")
        if array.dtype.kind == "f":
            if not np.all(np.isfinite(array)):
                raise UnsupportedPixelFormat(f"{name} contains non-finite intensities")
            if np.any(array < 0):
                raise UnsupportedPixelFormat(f"{name} contains negative intensities")

        data = np.array(array, copy=True, order="C")
        data.setflags(write=False)
        return cls(data=data)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def is_integer(self) -> bool:
        return self.data.dtype.kind == "u"

    def __getitem__(self, position: Tuple[int, int]):
        x, y = position
        return self.data[y, x]


def validate_pair(image: np.ndarray | PixelBuffer, template: np.ndarray | PixelBuffer) -> Tuple[PixelBuffer, PixelBuffer]:
    """
    Check formats and dimensions of an image/template pair before any work is done.
    """
    image_buffer = PixelBuffer.from_array(image, name="image")
    template_buffer = PixelBuffer.from_array(template, name="template")

    if image_buffer.dtype != template_buffer.dtype:
        raise UnsupportedPixelFormat(
            f"image dtype {image_buffer.dtype} and template dtype {template_buffer.dtype} differ"
        )
    if template_buffer.width > image_buffer.width or template_buffer.height > image_buffer.height:
        raise InvalidDimensions(
            f"template {template_buffer.width}x{template_buffer.height} does not fit inside "
            f"image {image_buffer.width}x{image_buffer.height}"
        )
    return image_buffer, template_buffer


def output_shape(image: PixelBuffer, template: PixelBuffer) -> Tuple[int, int]:
    """
    Score grid shape as ``(rows, cols)``.
    """
    return image.height - template.height + 1, image.width - template.width + 1


__all__ = ["PixelBuffer", "SUPPORTED_DTYPES", "output_shape", "validate_pair"]
