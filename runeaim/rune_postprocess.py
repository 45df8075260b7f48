"""Decoding the rune network's output into rune objects."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import reduce
from operator import add

import numpy as np
from PIL import Image

from .rune_types import EnemyColor, FeaturePoints, RuneObject, RuneType

INPUT_W = 480
INPUT_H = 480
NUM_CLASSES = 2
NUM_COLORS = 2
NUM_POINTS = 5
NUM_POINTS_2 = 2 * NUM_POINTS
MERGE_CONF_ERROR = 0.15
MERGE_MIN_IOU = 0.9
STRIDES = (8, 16, 32)
PAD_VALUE = 114

# The network was trained with its colour labels swapped.
DNN_COLOR_TO_ENEMY_COLOR = {0: EnemyColor.BLUE, 1: EnemyColor.RED}


@dataclass(frozen=True)
class GridAndStride:
    """One anchor: its grid cell and the stride of its feature map."""

    grid0: int
    grid1: int
    stride: int


@dataclass(frozen=True)
class Rect:
    """An integer axis-aligned rectangle."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def area(self) -> int:
        return self.width * self.height

    def __and__(self, other: Rect) -> Rect:
        if not isinstance(other, Rect):
            return NotImplemented
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.x + self.width, other.x + other.width)
        y2 = min(self.y + self.height, other.y + other.height)
        if x2 <= x1 or y2 <= y1:
            return Rect()
        return Rect(x1, y1, x2 - x1, y2 - y1)

    def contains(self, point: tuple[float, float]) -> bool:
        px, py = point
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height


def bounding_rect(points: Iterable[tuple[float, float]]) -> Rect:
    """The smallest integer rectangle holding every point."""
    pts = list(points)
    if not pts:
        return Rect()
    xmin = math.floor(min(p[0] for p in pts))
    ymin = math.floor(min(p[1] for p in pts))
    xmax = math.floor(max(p[0] for p in pts))
    ymax = math.floor(max(p[1] for p in pts))
    return Rect(xmin, ymin, xmax - xmin + 1, ymax - ymin + 1)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def letterbox(
    img: np.ndarray, new_shape: Sequence[int] = (INPUT_W, INPUT_H)
) -> tuple[np.ndarray, np.ndarray]:
    """Resize keeping aspect ratio and pad to ``new_shape`` (width, height).

    Returns the padded image and the 3x3 matrix mapping points of the padded
    image back to the source image.
    """
    img = np.asarray(img)
    if img.size == 0:
        raise ValueError("cannot letterbox an empty image")
    new_w, new_h = new_shape
    img_h, img_w = img.shape[:2]

    scale = min(new_h / img_h, new_w / img_w)
    resize_h = _round_half_away(img_h * scale)
    resize_w = _round_half_away(img_w * scale)
    pad_h = new_h - resize_h
    pad_w = new_w - resize_w

    if (resize_w, resize_h) == (img_w, img_h):
        resized = img.copy()
    else:
        resized = np.asarray(
            Image.fromarray(img).resize((resize_w, resize_h), Image.Resampling.BILINEAR)
        )

    half_h = pad_h / 2
    half_w = pad_w / 2
    top = _round_half_away(half_h - 0.1)
    bottom = _round_half_away(half_h + 0.1)
    left = _round_half_away(half_w - 0.1)
    right = _round_half_away(half_w + 0.1)

    transform = np.array(
        [
            [1.0 / scale, 0.0, -half_w / scale],
            [0.0, 1.0 / scale, -half_h / scale],
            [0.0, 0.0, 1.0],
        ]
    )

    pad = [(top, bottom), (left, right)] + [(0, 0)] * (resized.ndim - 2)
    padded = np.pad(resized, pad, mode="constant", constant_values=PAD_VALUE)
    return padded, transform


def generate_grids_and_stride(
    target_w: int, target_h: int, strides: Iterable[int] = STRIDES
) -> list[GridAndStride]:
    """Every anchor of every feature map, row by row."""
    return [
        GridAndStride(g0, g1, stride)
        for stride in strides
        for g1 in range(target_h // stride)
        for g0 in range(target_w // stride)
    ]


def generate_proposals(
    output: np.ndarray,
    transform: np.ndarray,
    conf_threshold: float,
    grid_strides: Sequence[GridAndStride],
) -> list[RuneObject]:
    """Decode the anchors whose confidence reaches ``conf_threshold``."""
    output = np.asarray(output, dtype=np.float32)
    transform = np.asarray(transform, dtype=np.float64)
    num_anchors = len(grid_strides)
    if output.shape[0] < num_anchors:
        raise ValueError(f"output has {output.shape[0]} rows, expected {num_anchors}")

    confidences = output[:num_anchors, NUM_POINTS_2]
    color_start = NUM_POINTS_2 + 1
    class_start = color_start + NUM_COLORS

    objects = []
    for anchor_idx in np.flatnonzero(confidences >= conf_threshold):
        row = output[anchor_idx]
        anchor = grid_strides[anchor_idx]
        color_id = int(np.argmax(row[color_start : color_start + NUM_COLORS]))
        class_id = int(np.argmax(row[class_start : class_start + NUM_CLASSES]))

        coords = row[:NUM_POINTS_2].astype(np.float64).reshape(NUM_POINTS, 2)
        xs = (coords[:, 0] + anchor.grid0) * anchor.stride
        ys = (coords[:, 1] + anchor.grid1) * anchor.stride
        apex = transform @ np.vstack([xs, ys, np.ones(NUM_POINTS)])
        points = [(float(apex[0, k]), float(apex[1, k])) for k in range(NUM_POINTS)]

        pts = FeaturePoints(
            r_center=points[0],
            bottom_left=points[1],
            top_left=points[2],
            top_right=points[3],
            bottom_right=points[4],
        )
        objects.append(
            RuneObject(
                color=DNN_COLOR_TO_ENEMY_COLOR[color_id],
                type=RuneType(class_id),
                prob=float(row[NUM_POINTS_2]),
                pts=pts,
                box=bounding_rect(pts.to_list()),
            )
        )
    return objects


def nms_merge_sorted_bboxes(objects: Sequence[RuneObject], nms_threshold: float) -> list[int]:
    """Indices of the objects kept by non-maximum suppression.

    ``objects`` must be sorted by descending probability. A suppressed object
    that closely matches a kept one records the kept one's points among its
    children.
    """
    areas = [obj.box.area() for obj in objects]
    kept: list[int] = []
    for i, a in enumerate(objects):
        keep = True
        for j in kept:
            b = objects[j]
            inter = (a.box & b.box).area()
            union = areas[i] + areas[j] - inter
            iou = inter / union if union else math.nan
            if iou > nms_threshold or math.isnan(iou):
                keep = False
                if (
                    a.type == b.type
                    and a.color == b.color
                    and iou > MERGE_MIN_IOU
                    and abs(a.prob - b.prob) < MERGE_CONF_ERROR
                ):
                    a.pts.children.append(b.pts)
        if keep:
            kept.append(i)
    return kept


def postprocess(
    output: np.ndarray,
    transform: np.ndarray,
    conf_threshold: float,
    top_k: int,
    nms_threshold: float,
    grid_strides: Sequence[GridAndStride],
) -> list[RuneObject]:
    """Decode, keep the ``top_k`` best, suppress overlaps and merge duplicates."""
    objects = generate_proposals(output, transform, conf_threshold, grid_strides)
    objects.sort(key=lambda obj: obj.prob, reverse=True)
    del objects[top_k:]

    results = []
    for index in nms_merge_sorted_bboxes(objects, nms_threshold):
        obj = objects[index]
        if obj.pts.children:
            count = len(obj.pts.children) + 1
            obj.pts = reduce(add, obj.pts.children, obj.pts) / count
        results.append(obj)
    return results