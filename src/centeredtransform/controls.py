"""Control-surface boundary: ranges, clamping, reset and target mode.

The interactive controls own the transform parameters as plain mutable
fields. The core only ever receives a :class:`CenteredTransform` snapshot
built from them via :meth:`TransformControls.snapshot` or
:meth:`TargetControls.snapshot`.
"""

from __future__ import annotations
from typing import Dict, Optional, Tuple
import json
import logging
import math

from .geometry import Point, Rect, Size
from .transform import CenteredTransform

log = logging.getLogger(__name__)


# Keys that may appear in a settings file
SETTINGS_KEYS = (
    'horizontal_range', 'vertical_range', 'rotation_range', 'scale_range',
    'default_target'
)

# Slider ranges (rotation in degrees) and target-mode reset point
DEFAULT_SETTINGS = {
    'horizontal_range': (-300.0, 300.0),
    'vertical_range': (-300.0, 300.0),
    'rotation_range': (-90.0, 90.0),
    'scale_range': (0.01, 1.0),
    'default_target': (0.1, 0.1),
}


def load_settings_file(filepath: str) -> dict:
    """Load a settings preset from a JSON file, merged over the defaults.

    Args:
        filepath: Path to the JSON file.

    Returns:
        Dictionary of settings with every key in ``SETTINGS_KEYS``.

    Raises:
        ValueError: If the file is not a JSON object, holds keys outside
            ``SETTINGS_KEYS``, a value that is not a pair of finite numbers,
            a range whose low end exceeds its high end, or a default target
            outside the unit square.
    """
    settings = dict(DEFAULT_SETTINGS)

    with open(filepath, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must hold a JSON object, got {type(data).__name__}")

    supported = set(SETTINGS_KEYS)
    unknown = set(data.keys()) - supported
    if unknown:
        raise ValueError(f"Unknown settings in file: {unknown}. Supported: {supported}")

    for key in SETTINGS_KEYS:
        if key in data:
            settings[key] = _parse_pair(key, data[key])

    for key in SETTINGS_KEYS:
        if key.endswith('_range'):
            lo, hi = settings[key]
            if lo > hi:
                raise ValueError(f"Setting '{key}' is inverted: {lo} > {hi}")

    tx, ty = settings['default_target']
    if not (0.0 <= tx <= 1.0 and 0.0 <= ty <= 1.0):
        raise ValueError(f"Setting 'default_target' must lie in [0, 1]x[0, 1], got {(tx, ty)}")

    log.debug("loaded settings from %s: %s", filepath, settings)
    return settings


def _parse_pair(key: str, value) -> Tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Setting '{key}' must be a pair of numbers, got {value!r}")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        raise ValueError(f"Setting '{key}' must be a pair of numbers, got {value!r}")
    pair = (float(value[0]), float(value[1]))
    if not all(math.isfinite(v) for v in pair):
        raise ValueError(f"Setting '{key}' must be finite, got {value!r}")
    return pair


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    lo, hi = bounds
    return float(min(max(value, lo), hi))


def _require_finite(**values: float) -> None:
    bad = {k: v for k, v in values.items() if not math.isfinite(v)}
    if bad:
        raise ValueError(f"Non-finite transform parameters: {bad}")


def clamp_params(
    offset_x: float,
    offset_y: float,
    rotation_deg: float,
    scale: float,
    settings: Optional[dict] = None,
) -> CenteredTransform:
    """Validate and clamp raw control values into a transform snapshot.

    Raises:
        ValueError: If any value is NaN or infinite.
    """
    _require_finite(offset_x=offset_x, offset_y=offset_y,
                    rotation_deg=rotation_deg, scale=scale)
    s = settings or DEFAULT_SETTINGS
    return CenteredTransform.from_degrees(
        offset_x=_clamp(offset_x, s['horizontal_range']),
        offset_y=_clamp(offset_y, s['vertical_range']),
        rotation=_clamp(rotation_deg, s['rotation_range']),
        scale=_clamp(scale, s['scale_range']),
    )


# -------------------- Target Mode Math --------------------

def clamp_unit(point: Point) -> Point:
    """Clamp a normalized point to the unit square."""
    return Point(_clamp(point.x, (0.0, 1.0)), _clamp(point.y, (0.0, 1.0)))


def drag_to_target(location: Point, canvas_size: Size) -> Point:
    """Convert a canvas-local drag location to a normalized target.

    Locations outside the canvas clamp to its edges. A zero-sized canvas axis
    maps to 0.
    """
    w, h = canvas_size.width, canvas_size.height
    nx = location.x / w if w > 0 else 0.0
    ny = location.y / h if h > 0 else 0.0
    return clamp_unit(Point(nx, ny))


def target_absolute(normalized_target: Point, canvas: Rect) -> Point:
    """Absolute position of a normalized target inside ``canvas``."""
    return Point(
        canvas.origin.x + canvas.size.width * normalized_target.x,
        canvas.origin.y + canvas.size.height * normalized_target.y,
    )


def target_offset(normalized_target: Point, canvas: Rect, measured_center: Point) -> Point:
    """Offset moving ``measured_center`` onto the normalized target.

    All three inputs may change independently (a window resize changes the
    canvas without moving the target), so this is recomputed on every call.

    Example:
        >>> target_offset(Point(0.5, 0.5), Rect.from_xywh(0, 0, 400, 400), Point(150, 150))
        Point(x=50.0, y=50.0)
    """
    return target_absolute(normalized_target, canvas) - measured_center


# -------------------- Controllers --------------------

class TransformControls:
    """Offset-mode control state: two offsets, a rotation and a scale.

    Fields are plain mutable attributes written by interaction handlers. Each
    setter clamps into the configured range.

    Example:
        >>> ctl = TransformControls()
        >>> ctl.set_rotation(120)
        >>> ctl.rotation_deg
        90.0
    """

    def __init__(self, settings_file: Optional[str] = None, settings: Optional[dict] = None):
        if settings_file is not None:
            self.settings = load_settings_file(settings_file)
        else:
            self.settings = dict(settings or DEFAULT_SETTINGS)
        self.offset_x: float = 0.0
        self.offset_y: float = 0.0
        self.rotation_deg: float = 0.0
        self.scale: float = 1.0
        self.reset()

    def reset(self) -> None:
        """Offset (0, 0), rotation 0, scale 1."""
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.rotation_deg = 0.0
        self.scale = 1.0
        log.debug("offset controls reset")

    def set_offset(self, offset_x: float, offset_y: float) -> None:
        _require_finite(offset_x=offset_x, offset_y=offset_y)
        self.offset_x = _clamp(offset_x, self.settings['horizontal_range'])
        self.offset_y = _clamp(offset_y, self.settings['vertical_range'])

    def set_rotation(self, degrees: float) -> None:
        _require_finite(rotation_deg=degrees)
        self.rotation_deg = _clamp(degrees, self.settings['rotation_range'])

    def set_scale(self, scale: float) -> None:
        _require_finite(scale=scale)
        self.scale = _clamp(scale, self.settings['scale_range'])

    def snapshot(self) -> CenteredTransform:
        return CenteredTransform.from_degrees(
            self.offset_x, self.offset_y, self.rotation_deg, self.scale
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            'offset_x': self.offset_x,
            'offset_y': self.offset_y,
            'rotation_deg': self.rotation_deg,
            'scale': self.scale,
        }


class TargetControls(TransformControls):
    """Target-mode control state: a normalized target, rotation and scale.

    The offsets are not stored; :meth:`snapshot` derives them from the
    current canvas rect and measured element center on every call.
    """

    def __init__(self, settings_file: Optional[str] = None, settings: Optional[dict] = None):
        self.target: Point = Point(*DEFAULT_SETTINGS['default_target'])
        super().__init__(settings_file=settings_file, settings=settings)

    def reset(self) -> None:
        """Target at the configured default, rotation 0, scale 1."""
        super().reset()
        self.target = clamp_unit(Point(*self.settings['default_target']))

    def set_target(self, normalized: Point) -> None:
        _require_finite(x=normalized.x, y=normalized.y)
        self.target = clamp_unit(normalized)

    def drag(self, location: Point, canvas_size: Size) -> Point:
        """Drag handler: move the target to a canvas-local location."""
        _require_finite(x=location.x, y=location.y)
        self.target = drag_to_target(location, canvas_size)
        return self.target

    def target_location(self, canvas_size: Size) -> Point:
        """Canvas-local position of the target marker."""
        return Point(self.target.x * canvas_size.width, self.target.y * canvas_size.height)

    def snapshot(self, canvas: Optional[Rect] = None,
                 measured_frame: Optional[Rect] = None) -> CenteredTransform:
        canvas = canvas if canvas is not None else Rect.zero()
        measured_frame = measured_frame if measured_frame is not None else Rect.zero()
        if measured_frame.is_empty:
            log.debug("no measured frame yet; target offset is taken from the origin")
        offset = target_offset(self.target, canvas, measured_frame.center)
        return CenteredTransform.from_degrees(
            offset.x, offset.y, self.rotation_deg, self.scale
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            'target_x': self.target.x,
            'target_y': self.target.y,
            'rotation_deg': self.rotation_deg,
            'scale': self.scale,
        }
