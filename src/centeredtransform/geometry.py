"""Geometry primitives and homogeneous matrix helpers.

This module provides the value types shared by the measurer, the transform
builder and the control surface, plus the 3x3 homogeneous matrices the
transform builder composes.

Matrices use the column-vector convention:
- A point ``(x, y)`` is mapped as ``M @ [x, y, 1]``
- ``concat(A, B)`` applies ``A`` first, then ``B`` (i.e. ``B @ A``)
- The last row of every affine matrix is ``[0, 0, 1]``
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple
import numpy as np


@dataclass(frozen=True)
class Point:
    """A location in a 2D coordinate space."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Size:
    """Width and height; negative input is clamped to zero."""

    width: float = 0.0
    height: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "width", max(0.0, float(self.width)))
        object.__setattr__(self, "height", max(0.0, float(self.height)))

    def as_tuple(self) -> Tuple[float, float]:
        return (self.width, self.height)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in a shared (global / canvas) coordinate space.

    Example:
        >>> r = Rect.from_xywh(10, 20, 100, 40)
        >>> r.center
        Point(x=60.0, y=40.0)
    """

    origin: Point = Point()
    size: Size = Size()

    @classmethod
    def zero(cls) -> Rect:
        """The empty rect at the origin (the "not yet measured" value)."""
        return cls(Point(0.0, 0.0), Size(0.0, 0.0))

    @classmethod
    def from_xywh(cls, x: float, y: float, width: float, height: float) -> Rect:
        return cls(Point(float(x), float(y)), Size(width, height))

    @property
    def min_x(self) -> float:
        return self.origin.x

    @property
    def min_y(self) -> float:
        return self.origin.y

    @property
    def max_x(self) -> float:
        return self.origin.x + self.size.width

    @property
    def max_y(self) -> float:
        return self.origin.y + self.size.height

    @property
    def mid_x(self) -> float:
        return self.origin.x + self.size.width / 2

    @property
    def mid_y(self) -> float:
        return self.origin.y + self.size.height / 2

    @property
    def center(self) -> Point:
        return Point(self.mid_x, self.mid_y)

    @property
    def is_empty(self) -> bool:
        return self.size.width == 0 or self.size.height == 0

    def corners(self) -> np.ndarray:
        """Corners as a (4, 2) array, clockwise from the origin in Y-down space."""
        return np.array([
            [self.min_x, self.min_y],
            [self.max_x, self.min_y],
            [self.max_x, self.max_y],
            [self.min_x, self.max_y],
        ], dtype=np.float64)


# -------------------- Homogeneous Matrices --------------------

def translation_matrix(tx: float, ty: float) -> np.ndarray:
    """3x3 matrix translating by ``(tx, ty)``."""
    return np.array([[1.0, 0.0, tx],
                     [0.0, 1.0, ty],
                     [0.0, 0.0, 1.0]], dtype=np.float64)


def rotation_matrix(theta: float) -> np.ndarray:
    """3x3 matrix rotating about the origin by ``theta`` radians.

    Uses ``[[cos, -sin], [sin, cos]]``. In a Y-down screen space a positive
    angle turns content clockwise, matching CSS ``rotate()``.
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s, 0.0],
                     [s,  c, 0.0],
                     [0.0, 0.0, 1.0]], dtype=np.float64)


def scale_matrix(scale: float) -> np.ndarray:
    """3x3 matrix scaling uniformly about the origin."""
    return np.array([[scale, 0.0, 0.0],
                     [0.0, scale, 0.0],
                     [0.0, 0.0, 1.0]], dtype=np.float64)


def concat(*matrices: np.ndarray) -> np.ndarray:
    """Concatenate transforms in application order.

    ``concat(A, B, C)`` maps a point through ``A``, then ``B``, then ``C``,
    which as a column-vector product is ``C @ B @ A``.
    """
    out = np.eye(3, dtype=np.float64)
    for m in matrices:
        out = m @ out
    return out


def apply_transform(matrix: np.ndarray, points: Iterable) -> np.ndarray:
    """Map points through a 3x3 affine matrix.

    Args:
        matrix: 3x3 homogeneous affine matrix.
        points: A single ``(x, y)`` pair or an (N, 2) array-like of points.

    Returns:
        Array with the same leading shape as ``points`` holding mapped
        coordinates.

    Example:
        >>> apply_transform(translation_matrix(5, 0), (1, 1))
        array([6., 1.])
    """
    P = np.asarray(points, dtype=np.float64)
    single = P.ndim == 1
    P = np.atleast_2d(P)
    # [x, y] @ A.T + t  ==  (A @ [x, y]^T)^T + t
    mapped = P @ matrix[:2, :2].T + matrix[:2, 2]
    return mapped[0] if single else mapped


def transformed_bounds(matrix: np.ndarray, rect: Rect) -> Rect:
    """Axis-aligned bounds of ``rect`` after ``matrix`` is applied."""
    pts = apply_transform(matrix, rect.corners())
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return Rect.from_xywh(lo[0], lo[1], hi[0] - lo[0], hi[1] - lo[1])
