"""Untransformed bounds measurement.

Applying a transform to an element changes what a naive bounds query reports,
so the transform must never be computed from the transformed element itself.
Two ways to get the natural bounds are provided:

- ``BoundsMeasurer.measure``: ask the layout engine for the content's
  intrinsic frame directly.
- ``MeasuredContainer``: render the content twice, one hidden untransformed
  copy that is only laid out and observed, and one visible copy that receives
  the transform built from the hidden copy's bounds.
"""

from __future__ import annotations
from typing import Callable, Generic, Optional, TypeVar
import logging

from .geometry import Rect

log = logging.getLogger(__name__)

C = TypeVar("C")
R = TypeVar("R")

LayoutFn = Callable[[C], Rect]


class BoundsMeasurer(Generic[C]):
    """Holds the latest untransformed frame of one element.

    The stored rect is owned by this object and written only through
    :meth:`on_geometry_change`. Before the first layout pass it is
    ``Rect.zero()``.

    Args:
        layout: Opaque layout computation returning the content's frame in
            the shared coordinate space. Only needed for :meth:`measure`.

    Example:
        >>> m = BoundsMeasurer(layout=lambda text: Rect.from_xywh(0, 0, 8 * len(text), 20))
        >>> m.measured_frame
        Rect(origin=Point(x=0.0, y=0.0), size=Size(width=0.0, height=0.0))
        >>> m.measure("Hello world").size.width
        88.0
    """

    def __init__(self, layout: Optional[LayoutFn] = None):
        self._layout = layout
        self._frame: Rect = Rect.zero()
        self.measure_count: int = 0

    @property
    def measured_frame(self) -> Rect:
        return self._frame

    def on_geometry_change(self, frame: Rect) -> None:
        """Layout observation callback: replace the stored frame."""
        if frame != self._frame:
            log.debug("layout pass %d: measured frame changed %s -> %s",
                      self.measure_count + 1, self._frame, frame)
        self._frame = frame
        self.measure_count += 1

    def measure(self, content: C) -> Rect:
        """Lay out ``content`` untransformed and record its frame."""
        if self._layout is None:
            raise RuntimeError("BoundsMeasurer has no layout function; "
                               "report frames through on_geometry_change()")
        frame = self._layout(content)
        self.on_geometry_change(frame)
        return frame


class MeasuredContainer(Generic[C, R]):
    """Dual render: hidden copy for measuring, visible copy for display.

    Each :meth:`render` pass:

    1. Builds a hidden instance from ``content`` and lays it out with no
       transform; the result replaces the measurer's frame.
    2. Builds a second instance and hands it, with the frame measured in
       step 1, to ``modifier``. Its return value is the visible rendering.

    The measurement of a pass is therefore always visible to the modifier of
    the same pass.

    Args:
        content: Factory producing a fresh instance of the element content.
        modifier: ``(content, measured_frame) -> rendering``; typically
            applies a transform built from ``measured_frame``.
        layout: Layout function used for the hidden copy.
    """

    def __init__(
        self,
        content: Callable[[], C],
        modifier: Callable[[C, Rect], R],
        layout: LayoutFn,
    ):
        self.content = content
        self.modifier = modifier
        self.measurer: BoundsMeasurer[C] = BoundsMeasurer(layout)

    @property
    def measured_frame(self) -> Rect:
        return self.measurer.measured_frame

    def render(self) -> R:
        hidden = self.content()
        self.measurer.measure(hidden)
        visible = self.content()
        return self.modifier(visible, self.measurer.measured_frame)
