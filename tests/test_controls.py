import json
import math
import numpy as np
import pytest
from centeredtransform.geometry import Point, Rect, Size, apply_transform
from centeredtransform.transform import build_centered_transform
from centeredtransform import controls
from centeredtransform.controls import (
    DEFAULT_SETTINGS,
    TargetControls,
    TransformControls,
    clamp_params,
    clamp_unit,
    drag_to_target,
    load_settings_file,
    target_absolute,
    target_offset,
)

# --------------------- Settings ---------------------

def test_default_settings_values():
    assert DEFAULT_SETTINGS['horizontal_range'] == (-300.0, 300.0)
    assert DEFAULT_SETTINGS['vertical_range'] == (-300.0, 300.0)
    assert DEFAULT_SETTINGS['rotation_range'] == (-90.0, 90.0)
    assert DEFAULT_SETTINGS['scale_range'] == (0.01, 1.0)
    assert DEFAULT_SETTINGS['default_target'] == (0.1, 0.1)

def test_controls_copy_default_settings():
    """Controls must own a copy; mutating it must not touch the module default."""
    ctl = TransformControls()
    assert ctl.settings == DEFAULT_SETTINGS
    assert ctl.settings is not DEFAULT_SETTINGS
    ctl.settings['scale_range'] = (0, 5)
    assert DEFAULT_SETTINGS['scale_range'] == (0.01, 1.0)

def test_real_settings_file_loading(tmp_path):
    config_file = tmp_path / "settings.json"
    config_file.write_text(json.dumps({"scale_range": [0.1, 2.0], "default_target": [0.5, 0.5]}))

    ctl = TargetControls(settings_file=str(config_file))

    assert ctl.settings['scale_range'] == (0.1, 2.0)
    assert ctl.settings['rotation_range'] == (-90.0, 90.0)
    assert ctl.target == Point(0.5, 0.5)

def test_settings_file_unknown_keys(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"scale_range": [0.1, 1], "skew_range": [0, 1]}))

    with pytest.raises(ValueError, match="Unknown settings"):
        load_settings_file(str(bad))

def test_settings_file_bad_value(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"scale_range": 3}))

    with pytest.raises(ValueError, match="pair of numbers"):
        load_settings_file(str(bad))

def test_settings_file_not_an_object(tmp_path):
    """A top-level JSON array is rejected with ValueError, not AttributeError."""
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([1, 2]))

    with pytest.raises(ValueError, match="JSON object"):
        load_settings_file(str(bad))

def test_settings_file_inverted_range(tmp_path):
    """An inverted range would pin every clamped value to one end; reject it."""
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"scale_range": [1.0, 0.01]}))

    with pytest.raises(ValueError, match="inverted"):
        TransformControls(settings_file=str(bad))

@pytest.mark.parametrize("target", [[1.5, 0.5], [0.5, -0.1]])
def test_settings_file_target_outside_unit_square(tmp_path, target):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"default_target": target}))

    with pytest.raises(ValueError, match="default_target"):
        load_settings_file(str(bad))

@pytest.mark.parametrize("value", [["a", 1], [True, 1], [float('nan'), 1], [0, float('inf')]])
def test_settings_file_non_numeric_or_non_finite(tmp_path, value):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"rotation_range": value}))

    with pytest.raises(ValueError, match="rotation_range"):
        load_settings_file(str(bad))

def test_settings_file_degenerate_range_is_allowed(tmp_path):
    """lo == hi pins a slider but is a valid range."""
    config_file = tmp_path / "settings.json"
    config_file.write_text(json.dumps({"scale_range": [0.5, 0.5]}))

    ctl = TransformControls(settings_file=str(config_file))
    ctl.set_scale(0.9)
    assert ctl.scale == 0.5


def test_settings_loader_called_with_path(mocker):
    custom = dict(DEFAULT_SETTINGS, rotation_range=(-45.0, 45.0))
    loader = mocker.patch.object(controls, 'load_settings_file', return_value=custom)

    ctl = TransformControls(settings_file="custom.json")

    loader.assert_called_once_with("custom.json")
    ctl.set_rotation(80)
    assert ctl.rotation_deg == 45.0

def test_missing_settings_file_propagates():
    with pytest.raises(FileNotFoundError):
        TransformControls(settings_file="/nonexistent/settings.json")

# --------------------- Clamping ---------------------

def test_clamp_params_clamps_into_ranges():
    params = clamp_params(500, -999, 120, 0.0)
    assert params.offset_x == 300
    assert params.offset_y == -300
    assert np.isclose(params.rotation, math.pi / 2)
    assert params.scale == 0.01

@pytest.mark.parametrize("bad", [float('nan'), float('inf'), -float('inf')])
def test_clamp_params_rejects_non_finite(bad):
    with pytest.raises(ValueError, match="Non-finite"):
        clamp_params(0, 0, bad, 1)

def test_setters_reject_non_finite():
    ctl = TransformControls()
    with pytest.raises(ValueError):
        ctl.set_scale(float('nan'))
    assert ctl.scale == 1.0

def test_clamp_unit():
    assert clamp_unit(Point(-0.2, 1.7)) == Point(0.0, 1.0)
    assert clamp_unit(Point(0.3, 0.4)) == Point(0.3, 0.4)

# --------------------- Offset mode ---------------------

def test_offset_controls_reset():
    ctl = TransformControls()
    ctl.set_offset(120, -40)
    ctl.set_rotation(30)
    ctl.set_scale(0.5)

    ctl.reset()

    assert ctl.as_dict() == {'offset_x': 0.0, 'offset_y': 0.0, 'rotation_deg': 0.0, 'scale': 1.0}

def test_offset_snapshot_is_a_value():
    """The snapshot does not follow later edits to the controls."""
    ctl = TransformControls()
    ctl.set_offset(10, 20)
    snap = ctl.snapshot()
    ctl.set_offset(99, 99)

    assert (snap.offset_x, snap.offset_y) == (10.0, 20.0)

# --------------------- Target mode ---------------------

def test_target_round_trip():
    """Canvas 400x400 at the origin, target (0.5, 0.5), measured center (150, 150):
    offset is (50, 50) and the center lands on (200, 200)."""
    canvas = Rect.from_xywh(0, 0, 400, 400)
    offset = target_offset(Point(0.5, 0.5), canvas, Point(150, 150))
    assert offset == Point(50, 50)

    assert offset.x + 150 == 200 and offset.y + 150 == 200

    ctl = TargetControls()
    ctl.set_target(Point(0.5, 0.5))
    measured = Rect.from_xywh(100, 100, 100, 100)
    snap = ctl.snapshot(canvas=canvas, measured_frame=measured)
    assert (snap.offset_x, snap.offset_y) == (50.0, 50.0)

    # Translation component applied to the center in the element's local frame
    M = build_centered_transform(measured.size, snap)
    local_center = apply_transform(M, (50, 50))
    assert np.allclose(local_center + [100, 100], [200, 200])

def test_target_absolute_uses_canvas_origin():
    canvas = Rect.from_xywh(20, 40, 200, 100)
    assert target_absolute(Point(0.25, 0.5), canvas) == Point(70, 90)

def test_target_offset_tracks_canvas_resize():
    """Same normalized target, bigger canvas: the offset changes."""
    center = Point(50, 50)
    small = target_offset(Point(0.5, 0.5), Rect.from_xywh(0, 0, 200, 200), center)
    large = target_offset(Point(0.5, 0.5), Rect.from_xywh(0, 0, 600, 400), center)
    assert small == Point(50, 50)
    assert large == Point(250, 150)

def test_target_controls_reset_default():
    ctl = TargetControls()
    ctl.set_target(Point(0.9, 0.9))
    ctl.set_rotation(45)
    ctl.reset()
    assert ctl.target == Point(0.1, 0.1)
    assert ctl.rotation_deg == 0.0
    assert ctl.scale == 1.0

def test_target_snapshot_before_measurement():
    """Unmeasured element: center (0, 0), offset is the absolute target itself."""
    ctl = TargetControls()
    snap = ctl.snapshot(canvas=Rect.from_xywh(0, 0, 400, 300))
    assert (snap.offset_x, snap.offset_y) == pytest.approx((40.0, 30.0))

# --------------------- Dragging ---------------------

@pytest.mark.parametrize("location,expected", [
    (Point(200, 100), Point(0.5, 0.25)),
    (Point(-50, 100), Point(0.0, 0.25)),
    (Point(900, 900), Point(1.0, 1.0)),
    (Point(400, -1), Point(1.0, 0.0)),
])
def test_drag_clamps_to_unit_square(location, expected):
    assert drag_to_target(location, Size(400, 400)) == expected

def test_drag_on_zero_canvas():
    assert drag_to_target(Point(10, 10), Size(0, 0)) == Point(0.0, 0.0)

def test_drag_updates_target_and_marker():
    ctl = TargetControls()
    ctl.drag(Point(300, 50), Size(400, 200))
    assert ctl.target == Point(0.75, 0.25)
    assert ctl.target_location(Size(400, 200)) == Point(300, 50)

# --------------------- Controller state ---------------------

def test_controller_state_declared_in_init(mocker):
    """State exists right after construction even when reset() is replaced."""
    mocker.patch.object(TransformControls, 'reset')
    ctl = TransformControls()
    assert ctl.as_dict() == {'offset_x': 0.0, 'offset_y': 0.0, 'rotation_deg': 0.0, 'scale': 1.0}

    mocker.patch.object(TargetControls, 'reset')
    target_ctl = TargetControls()
    assert target_ctl.target == Point(0.1, 0.1)

def test_offset_controls_have_no_target():
    assert not hasattr(TransformControls(), 'target')

def test_target_snapshot_logs_unmeasured_frame(caplog):
    ctl = TargetControls()
    with caplog.at_level("DEBUG", logger="centeredtransform.controls"):
        ctl.snapshot(canvas=Rect.from_xywh(0, 0, 400, 300))
    assert "no measured frame yet" in caplog.text

    caplog.clear()
    with caplog.at_level("DEBUG", logger="centeredtransform.controls"):
        ctl.snapshot(canvas=Rect.from_xywh(0, 0, 400, 300),
                     measured_frame=Rect.from_xywh(0, 0, 100, 40))
    assert "no measured frame yet" not in caplog.text
