import math

import pytest

from casemap.core.map_module.map_logic import MapLogic, pixel_to_world, world_to_pixel
from casemap.core.map_module.map_meta import MapMetadata, Origin


def test_origin_scenario(metadata):
    p = world_to_pixel(0.0, 0.0, metadata, 200)
    assert (p.x, p.y) == pytest.approx((100.0, 100.0))


def test_bottom_left_is_origin(metadata):
    p = world_to_pixel(-5.0, -5.0, metadata, 200)
    assert (p.x, p.y) == pytest.approx((0.0, 200.0))


def test_no_clamping(metadata):
    p = world_to_pixel(100.0, -100.0, metadata, 200)
    assert p.x > 200 and p.y > 200


@pytest.mark.parametrize("theta", [0.0, 0.3, -1.2, math.pi])
@pytest.mark.parametrize("wx,wy", [(0.0, 0.0), (3.25, -7.5), (-123.4, 56.7)])
def test_round_trip(theta, wx, wy):
    meta = MapMetadata(resolution=0.025, origin=Origin(-10.0, 4.0, theta))
    p = world_to_pixel(wx, wy, meta, 384)
    w = pixel_to_world(p.x, p.y, meta, 384)
    assert w.x == pytest.approx(wx, rel=1e-6, abs=1e-9)
    assert w.y == pytest.approx(wy, rel=1e-6, abs=1e-9)


def test_rotation_applied_before_scaling():
    meta = MapMetadata(resolution=1.0, origin=Origin(0.0, 0.0, math.pi / 2))
    # world +y lies along the map frame's +x axis
    p = world_to_pixel(0.0, 2.0, meta, 10)
    assert (p.x, p.y) == pytest.approx((2.0, 10.0))


def test_map_logic_binds_metadata(metadata):
    logic = MapLogic(metadata, 200)
    assert logic.resolution == 0.05
    assert logic.pixel_distance_to_world(100) == pytest.approx(5.0)
    p = logic.world_to_pixel(1.0, 1.0)
    assert logic.pixel_to_world(p.x, p.y).x == pytest.approx(1.0)
