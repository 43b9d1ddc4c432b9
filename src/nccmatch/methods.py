from __future__ import annotations

from enum import Enum

import cv2


class ExtremumKind(str, Enum):
    """
    Which end of the score grid marks the best match.
    """

    MINIMUM = "minimum"
    MAXIMUM = "maximum"


class Backend(str, Enum):
    """
    Strategy used to compute the per-window sum of products.
    """

    REFERENCE = "reference"
    NUMPY = "numpy"
    OPENCV = "opencv"


class MatchMethod(str, Enum):
    """
    Scoring formula; mirrors OpenCV's TM_* family.
    """

    SQDIFF = "sqdiff"
    SQDIFF_NORMED = "sqdiff_normed"
    CCORR = "ccorr"
    CCORR_NORMED = "ccorr_normed"
    CCOEFF = "ccoeff"
    CCOEFF_NORMED = "ccoeff_normed"

    @classmethod
    def parse(cls, value: MatchMethod | str | int) -> MatchMethod:
        """
        Accept a member, its string value, or an OpenCV ``cv2.TM_*`` flag.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                raise ValueError(f"unknown match method: {value!r}") from None
        if isinstance(value, int) and not isinstance(value, bool):
            for member in cls:
                if member.opencv_flag == value:
                    return member
        raise ValueError(f"unknown match method: {value!r}")

    @property
    def normalized(self) -> bool:
        return self.value.endswith("_normed")

    @property
    def base(self) -> MatchMethod:
        return MatchMethod(self.value.removesuffix("_normed"))

    def with_normalization(self) -> MatchMethod:
        return MatchMethod(f"{self.base.value}_normed")

    @property
    def kind(self) -> ExtremumKind:
        if self.base is MatchMethod.SQDIFF:
            return ExtremumKind.MINIMUM
        return ExtremumKind.MAXIMUM

    @property
    def needs_squares(self) -> bool:
        return self.normalized or self.base is MatchMethod.SQDIFF

    @property
    def needs_sums(self) -> bool:
        return self.base is MatchMethod.CCOEFF

    @property
    def default_fill(self) -> float:
        """
        Score assigned to windows whose normalization denominator is not positive.
        """
        if self is MatchMethod.SQDIFF_NORMED:
            return 1.0
        return 0.0

    @property
    def opencv_flag(self) -> int:
        return _OPENCV_FLAGS[self]


_OPENCV_FLAGS = {
    MatchMethod.SQDIFF: cv2.TM_SQDIFF,
    MatchMethod.SQDIFF_NORMED: cv2.TM_SQDIFF_NORMED,
    MatchMethod.CCORR: cv2.TM_CCORR,
    MatchMethod.CCORR_NORMED: cv2.TM_CCORR_NORMED,
    MatchMethod.CCOEFF: cv2.TM_CCOEFF,
    MatchMethod.CCOEFF_NORMED: cv2.TM_CCOEFF_NORMED,
}


def resolve_method(method: MatchMethod | str | int, normalize: bool | None = None) -> MatchMethod:
    """
    Combine a method with an explicit normalization switch.
    """
    resolved = MatchMethod.parse(method)
    if normalize is None:
        return resolved
    if normalize:
        return resolved.with_normalization()
    if resolved.normalized:
        raise ValueError(f"{resolved.value} is a normalized method but normalize=False was requested")
    return resolved


__all__ = ["Backend", "ExtremumKind", "MatchMethod", "resolve_method"]
