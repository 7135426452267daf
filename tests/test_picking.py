import pytest

from polycube.controller.picking import (
    CameraModel,
    Viewport,
    intersect_sphere,
    pick_point,
    pointer_to_ndc,
    ray_from_camera,
)
from polycube.view.scene import Group, PointMarker

VIEWPORT = Viewport(0.0, 0.0, 200.0, 100.0)
CAMERA = CameraModel(position=(0.0, 0.0, 100.0), focal_point=(0.0, 0.0, 0.0))


def marker_at(x, y, z, name="m", radius=2.0):
    marker = PointMarker(name, radius=radius)
    marker.user_data["record_id"] = name
    marker.set_position(x, y, z)
    return marker


def test_pointer_to_ndc():
    assert pointer_to_ndc((100.0, 50.0), VIEWPORT) == (0.0, 0.0)
    assert pointer_to_ndc((0.0, 0.0), VIEWPORT) == (-1.0, 1.0)
    assert pointer_to_ndc((200.0, 100.0), VIEWPORT) == (1.0, -1.0)


def test_ray_through_centre_follows_view_direction():
    ray = ray_from_camera((0.0, 0.0), CAMERA, VIEWPORT.aspect)
    assert ray.direction.tolist() == pytest.approx([0.0, 0.0, -1.0])
    assert intersect_sphere(ray, marker_at(0, 0, 0).position, 2.0) == pytest.approx(98.0)


def test_nearest_visible_marker_wins():
    root = Group("root")
    far, near = marker_at(0, 0, 0, "far"), marker_at(0, 0, 50, "near")
    root.add(far, near)

    assert pick_point(root, (100.0, 50.0), VIEWPORT, CAMERA) is near
    near.visible = False
    assert pick_point(root, (100.0, 50.0), VIEWPORT, CAMERA) is far
    root.visible = False
    assert pick_point(root, (100.0, 50.0), VIEWPORT, CAMERA) is None


def test_miss_and_markers_behind_camera():
    root = Group("root")
    root.add(marker_at(0, 0, 150, "behind"))
    assert pick_point(root, (100.0, 50.0), VIEWPORT, CAMERA) is None
    root.add(marker_at(0, 0, 0, "front"))
    assert pick_point(root, (0.0, 0.0), VIEWPORT, CAMERA) is None


def test_nested_groups_use_world_position():
    root, inner = Group("root"), Group("inner")
    inner.set_position(30.0, 0.0, 0.0)
    target = marker_at(-30.0, 0.0, 0.0, "target")
    inner.add(target)
    root.add(inner)
    assert pick_point(root, (100.0, 50.0), VIEWPORT, CAMERA) is target


def test_parallel_projection():
    camera = CameraModel(position=(0.0, 0.0, 100.0), focal_point=(0.0, 0.0, 0.0),
                         parallel_projection=True, parallel_scale=10.0)
    root = Group("root")
    target = marker_at(10.0, 0.0, 0.0, "edge")
    root.add(target)
    # Half a viewport to the right is aspect * parallel_scale / 2 = 10 world units
    assert pick_point(root, (150.0, 50.0), VIEWPORT, camera) is target
