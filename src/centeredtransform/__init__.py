from .transform import CenteredTransform, build_centered_transform
from .measure import BoundsMeasurer, MeasuredContainer
from .controls import TargetControls, TransformControls, target_offset

def centered_transform(size, offset_x=0.0, offset_y=0.0, rotation=0.0, scale=1.0):
    """
    Convenience function: the pivot-stable matrix for an element of `size`,
    with `rotation` in degrees.
    Returns a 3x3 numpy array.
    """
    return CenteredTransform.from_degrees(offset_x, offset_y, rotation, scale).effect_value(size)
