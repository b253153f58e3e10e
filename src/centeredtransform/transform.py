"""Pivot-stable rotate/scale/translate transform builder.

Composing translate, rotate and scale on a rectangle naively shifts the
apparent pivot depending on operation order. ``CenteredTransform`` fixes the
pivot at the element's own center:

1. Translate so the element's center becomes the origin
2. Rotate and scale about the origin (these two commute)
3. Translate the origin to ``center + (offset_x, offset_y)``

Example:
    Move a 200x50 element 30px right and rotate it 45 degrees in place::

        from centeredtransform import CenteredTransform
        from centeredtransform.geometry import Size

        effect = CenteredTransform.from_degrees(offset_x=30, rotation=45)
        M = effect.effect_value(Size(200, 50))
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Union
import math
import numpy as np

from .geometry import (
    Point,
    Size,
    concat,
    rotation_matrix,
    scale_matrix,
    translation_matrix,
)


@dataclass(frozen=True)
class CenteredTransform:
    """Snapshot of the four transform parameters.

    Attributes:
        offset_x: Horizontal displacement of the element's center.
        offset_y: Vertical displacement of the element's center.
        rotation: Rotation in radians about the element's center.
        scale: Uniform scale about the element's center. Not constrained
            here: 0 collapses the element to a point, negative mirrors it.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    rotation: float = 0.0
    scale: float = 1.0

    @classmethod
    def from_degrees(
        cls,
        offset_x: float = 0.0,
        offset_y: float = 0.0,
        rotation: float = 0.0,
        scale: float = 1.0,
    ) -> CenteredTransform:
        """Build from a rotation expressed in degrees (as sliders report it)."""
        return cls(float(offset_x), float(offset_y), math.radians(rotation), float(scale))

    @property
    def rotation_degrees(self) -> float:
        return math.degrees(self.rotation)

    def effect_value(self, size: Size, *, rotate_first: bool = True) -> np.ndarray:
        """The composed 3x3 affine matrix for an element of ``size``.

        See :func:`build_centered_transform`.
        """
        return build_centered_transform(size, self, rotate_first=rotate_first)


def build_centered_transform(
    size: Union[Size, tuple],
    params: CenteredTransform,
    *,
    rotate_first: bool = True,
) -> np.ndarray:
    """Compose the pivot-stable transform for an element in its local frame.

    The element's local frame has its top-left corner at ``(0, 0)``, so its
    center is ``(width/2, height/2)``. The returned matrix maps a point p to
    ``T_new(S(R(T_origin(p))))``.

    Args:
        size: Element size as a :class:`Size` or ``(width, height)`` pair.
            ``(0, 0)`` (not yet measured) gives a translation-only effect.
        params: Transform parameters snapshot.
        rotate_first: Apply rotation before scaling (the default) or after.
            Both orders produce the same matrix; the flag exists so callers
            can verify that.

    Returns:
        3x3 homogeneous affine matrix (column-vector convention).

    Example:
        >>> M = build_centered_transform(Size(100, 40), CenteredTransform(10, 0, 1.2, 0.5))
        >>> apply_transform(M, (50, 20))   # original center
        array([60., 20.])
    """
    if not isinstance(size, Size):
        size = Size(*size)

    original_center = Point(size.width / 2, size.height / 2)
    new_center = original_center + Point(params.offset_x, params.offset_y)

    # Step 1: original center -> origin
    to_origin = translation_matrix(-original_center.x, -original_center.y)
    # Step 2: rotate and scale about the origin
    rotate = rotation_matrix(params.rotation)
    scale = scale_matrix(params.scale)
    # Step 3: origin -> new center
    to_new_center = translation_matrix(new_center.x, new_center.y)

    if rotate_first:
        return concat(to_origin, rotate, scale, to_new_center)
    return concat(to_origin, scale, rotate, to_new_center)


def to_css_matrix(matrix: np.ndarray) -> str:
    """Render a 3x3 affine matrix as a CSS ``matrix(a, b, c, d, e, f)`` value.

    The renderer must use ``transform-origin: 0 0`` so the element's local
    frame matches the one the matrix was built for.
    """
    a, c, e = matrix[0]
    b, d, f = matrix[1]
    # + 0.0 folds -0.0 into 0.0
    vals = (float(v) + 0.0 for v in (a, b, c, d, e, f))
    return "matrix(" + ", ".join(f"{v:.6g}" for v in vals) + ")"


# -------------------- Animation --------------------

def interpolate(start: CenteredTransform, end: CenteredTransform, t: float) -> CenteredTransform:
    """Linearly interpolate the four parameters (not the matrix).

    Interpolating matrices entry-wise does not preserve rotation/scale, so
    animations step the parameters and rebuild the matrix every frame.
    """
    t = float(t)

    def lerp(a: float, b: float) -> float:
        return a + (b - a) * t

    return CenteredTransform(
        offset_x=lerp(start.offset_x, end.offset_x),
        offset_y=lerp(start.offset_y, end.offset_y),
        rotation=lerp(start.rotation, end.rotation),
        scale=lerp(start.scale, end.scale),
    )


def animation_frames(
    start: CenteredTransform,
    end: CenteredTransform,
    size: Size,
    steps: int,
) -> Iterator[np.ndarray]:
    """Yield one matrix per frame from ``start`` to ``end`` inclusive.

    ``steps`` is the number of intervals; ``steps + 1`` matrices are
    produced. ``steps <= 0`` yields only the final matrix.
    """
    if steps <= 0:
        yield build_centered_transform(size, end)
        return
    for i in range(steps + 1):
        yield build_centered_transform(size, interpolate(start, end, i / steps))


def animation_css_frames(
    start: CenteredTransform,
    end: CenteredTransform,
    size: Size,
    steps: int,
) -> List[str]:
    return [to_css_matrix(m) for m in animation_frames(start, end, size, steps)]
