"""Choosing the rune blade to aim at from the detector's results."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .rune_types import EnemyColor, Point, RuneObject, RuneType

NUM_TARGET_POINTS = 5


def _zero_points() -> list[Point]:
    return [(0.0, 0.0)] * NUM_TARGET_POINTS


@dataclass
class RuneTarget:
    """The target published for the solver.

    ``pts`` holds the R centre followed by the bottom-left, top-left,
    top-right and bottom-right armour corners.
    """

    frame_id: str = ""
    stamp: int = 0
    is_big_rune: bool = False
    is_lost: bool = True
    pts: list[Point] = field(default_factory=_zero_points)


def _by_probability(objects: Iterable[RuneObject]) -> list[RuneObject]:
    return sorted(objects, key=lambda obj: obj.prob, reverse=True)


def filter_by_color(
    objects: Iterable[RuneObject], detect_color: EnemyColor
) -> list[RuneObject]:
    """The objects of colour ``detect_color``, in their original order."""
    return [obj for obj in objects if obj.color == detect_color]


def average_r_center(objects: Sequence[RuneObject]) -> Point:
    """The mean of the objects' R centres."""
    if not objects:
        raise ValueError("cannot average the R centre of no objects")
    n = float(len(objects))
    x = sum(obj.pts.r_center[0] / n for obj in objects)
    y = sum(obj.pts.r_center[1] / n for obj in objects)
    return (x, y)


def assign_r_center(objects: Iterable[RuneObject], r_tag: Point) -> None:
    """Give every object the same R centre."""
    r_tag = (float(r_tag[0]), float(r_tag[1]))
    for obj in objects:
        obj.pts.r_center = r_tag


def select_target(
    objects: Iterable[RuneObject], detect_color: EnemyColor
) -> RuneObject | None:
    """The most probable inactivated blade of ``detect_color``, if any."""
    return next(
        (
            obj
            for obj in _by_probability(objects)
            if obj.type == RuneType.INACTIVATED and obj.color == detect_color
        ),
        None,
    )


def build_rune_target(
    objects: Iterable[RuneObject],
    detect_color: EnemyColor,
    is_big_rune: bool = False,
    frame_id: str = "camera_optical_frame",
    stamp: int = 0,
    r_tag: Point | None = None,
) -> RuneTarget:
    """Build the target message from one frame's detections.

    Objects of other colours are dropped. The R centre of every remaining
    object is set to ``r_tag``, or to the mean of their R centres when
    ``r_tag`` is None. The target is lost when no inactivated blade of
    ``detect_color`` remains.
    """
    target = RuneTarget(frame_id=frame_id, stamp=stamp, is_big_rune=is_big_rune)

    candidates = _by_probability(filter_by_color(objects, detect_color))
    if not candidates:
        return target

    center = r_tag if r_tag is not None else average_r_center(candidates)
    assign_r_center(candidates, center)

    chosen = select_target(candidates, detect_color)
    if chosen is None:
        return target

    target.is_lost = False
    target.pts = [(float(x), float(y)) for x, y in chosen.pts.to_list()]
    return target