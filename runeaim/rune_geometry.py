"""Angle and geometry helpers for tracking and aiming at a rune."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .rune_types import Point

DEG_72 = 0.4 * math.pi
ARMOR_KEYPOINTS_NUM = 4
KEYPOINTS_NUM = 5

#: Rune arm length in metres.
ARM_LENGTH = 0.700

#: Acceptable distance between robot and rune in metres; the true value is 6.436 m.
MIN_RUNE_DISTANCE = 4.0
MAX_RUNE_DISTANCE = 9.0

#: Object points in metres: r_tag, bottom_left, top_left, top_right, bottom_right.
RUNE_OBJECT_POINTS: tuple[tuple[float, float, float], ...] = (
    (0.0, 0.0, 0.0),
    (0.0, -541.5 / 1000, 186 / 1000),
    (0.0, -858.5 / 1000, 160 / 1000),
    (0.0, -858.5 / 1000, -160 / 1000),
    (0.0, -541.5 / 1000, -186 / 1000),
)

#: Radius of a rune armour target in metres.
TARGET_RADIUS = 0.308

#: The shooting window never gets narrower than this many degrees.
MIN_SHOOTING_RANGE_DEG = 1.0

_TWO_PI = 2.0 * math.pi


def normalize_angle_positive(angle: float) -> float:
    """``angle`` wrapped into [0, 2π)."""
    return math.fmod(math.fmod(angle, _TWO_PI) + _TWO_PI, _TWO_PI)


def normalize_angle(angle: float) -> float:
    """``angle`` wrapped into (-π, π]."""
    a = normalize_angle_positive(angle)
    if a > math.pi:
        a -= _TWO_PI
    return a


def shortest_angular_distance(source: float, target: float) -> float:
    """The signed smallest rotation taking ``source`` to ``target``."""
    return normalize_angle(target - source)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def center_point(points: Sequence[Point]) -> Point:
    """The centroid of the four armour corners."""
    if len(points) != ARMOR_KEYPOINTS_NUM:
        raise ValueError(f"expected {ARMOR_KEYPOINTS_NUM} armour points, got {len(points)}")
    x = sum(float(p[0]) for p in points) / ARMOR_KEYPOINTS_NUM
    y = sum(float(p[1]) for p in points) / ARMOR_KEYPOINTS_NUM
    return (x, y)


def normal_angle(points: Sequence[Point]) -> float:
    """Angle in [0, 2π) of the armour centre around the R centre.

    ``points`` holds the R centre followed by the four armour corners, in
    image coordinates (y grows downwards); the angle is measured with y up.
    """
    if len(points) != KEYPOINTS_NUM:
        raise ValueError(f"expected {KEYPOINTS_NUM} points, got {len(points)}")
    cx, cy = float(points[0][0]), float(points[0][1])
    ax, ay = center_point(points[1:])
    return normalize_angle_positive(math.atan2(-(ay - cy), ax - cx))


def observed_angle(
    normal_angle: float,
    last_angle: float,
    last_observed_angle: float,
    angle_offset_thres: float,
) -> float:
    """Continue the observed angle, absorbing jumps of whole 72° blade switches."""
    angle_diff = shortest_angular_distance(last_angle, normal_angle)
    if abs(angle_diff) > angle_offset_thres:
        angle_diff = normal_angle - last_angle
        offset = _round_half_away(angle_diff / DEG_72)
        angle_diff -= offset * DEG_72
    return last_observed_angle + angle_diff


def yaw_from_rotation(rotation) -> float:
    """The yaw, in (-π, π], of a 3x3 rotation matrix in roll-pitch-yaw order."""
    m = np.asarray(rotation, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"expected a 3x3 rotation matrix, got shape {m.shape}")
    if abs(m[2, 0]) >= 1.0:
        yaw = 0.0
    else:
        cos_pitch = math.cos(-math.asin(m[2, 0]))
        yaw = math.atan2(m[1, 0] / cos_pitch, m[0, 0] / cos_pitch)
    return normalize_angle(yaw)


def continuous_yaw(previous_yaw: float, yaw: float) -> float:
    """``yaw`` shifted by whole turns to lie within π of ``previous_yaw``."""
    return previous_yaw + shortest_angular_distance(previous_yaw, yaw)


def distance_in_range(position) -> bool:
    """Whether ``position`` lies at an acceptable distance from the robot."""
    distance = float(np.linalg.norm(np.asarray(position, dtype=float)))
    return MIN_RUNE_DISTANCE <= distance <= MAX_RUNE_DISTANCE


def shooting_range(distance: float) -> float:
    """Half-width in degrees of the window within which firing is advised."""
    angle = abs(math.atan2(TARGET_RADIUS / 2, distance)) * 180 / math.pi
    return max(angle, MIN_SHOOTING_RANGE_DEG)


def fire_advice(yaw_diff: float, pitch_diff: float, distance: float) -> bool:
    """Whether the gimbal errors, in degrees, are small enough to fire."""
    window = shooting_range(distance)
    return abs(yaw_diff) < window and abs(pitch_diff) < window