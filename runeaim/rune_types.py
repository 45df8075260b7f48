"""Rune detection results: feature points and detected objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .rune_postprocess import Rect

Point = tuple[float, float]

_UNSET: Point = (-1.0, -1.0)


class RuneType(IntEnum):
    """Whether a rune blade still has to be hit."""

    INACTIVATED = 0
    ACTIVATED = 1


class EnemyColor(IntEnum):
    """Colour of the side a target belongs to."""

    RED = 0
    BLUE = 1


def _add(p: Point, q: Point) -> Point:
    return (p[0] + q[0], p[1] + q[1])


def _div(p: Point, divisor: float) -> Point:
    return (p[0] / divisor, p[1] / divisor)


@dataclass
class FeaturePoints:
    """The R centre and the four armour corners of one rune blade."""

    r_center: Point = _UNSET
    bottom_right: Point = _UNSET
    top_right: Point = _UNSET
    top_left: Point = _UNSET
    bottom_left: Point = _UNSET
    children: list[FeaturePoints] = field(default_factory=list)

    def reset(self) -> None:
        """Set every point back to (-1, -1)."""
        self.r_center = _UNSET
        self.bottom_right = _UNSET
        self.top_right = _UNSET
        self.top_left = _UNSET
        self.bottom_left = _UNSET

    def __add__(self, other: FeaturePoints) -> FeaturePoints:
        if not isinstance(other, FeaturePoints):
            return NotImplemented
        return FeaturePoints(
            r_center=_add(self.r_center, other.r_center),
            bottom_right=_add(self.bottom_right, other.bottom_right),
            top_right=_add(self.top_right, other.top_right),
            top_left=_add(self.top_left, other.top_left),
            bottom_left=_add(self.bottom_left, other.bottom_left),
        )

    def __truediv__(self, divisor: float) -> FeaturePoints:
        return FeaturePoints(
            r_center=_div(self.r_center, divisor),
            bottom_right=_div(self.bottom_right, divisor),
            top_right=_div(self.top_right, divisor),
            top_left=_div(self.top_left, divisor),
            bottom_left=_div(self.bottom_left, divisor),
        )

    def to_list(self) -> list[Point]:
        """Points in the order r_center, bottom_left, top_left, top_right, bottom_right."""
        return [self.r_center, self.bottom_left, self.top_left, self.top_right, self.bottom_right]

    def to_int_list(self) -> list[tuple[int, int]]:
        """The points of ``to_list`` rounded to integer pixels."""
        return [(round(x), round(y)) for x, y in self.to_list()]


@dataclass
class RuneObject:
    """One detected rune blade."""

    color: EnemyColor
    type: RuneType
    prob: float
    pts: FeaturePoints = field(default_factory=FeaturePoints)
    box: Rect | None = None