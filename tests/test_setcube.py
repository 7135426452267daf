import math
from datetime import datetime

from polycube.model.state import SetLayout


def test_random_layout_stays_inside_slice(controller):
    for marker in controller.set_cube.markers.values():
        assert abs(marker.position[0]) <= 225.0
        assert abs(marker.position[2]) <= 225.0


def test_category_layout_gathers_categories_in_sectors(controller, datastore):
    set_cube = controller.set_cube
    controller.apply_style({"sLayout": "category"})
    assert set_cube.set_layout is SetLayout.CATEGORY

    categories = datastore.categories
    sector = 2.0 * math.pi / len(categories)
    for rid, marker in set_cube.markers.items():
        k = categories.index(datastore.get_record(rid).category_1)
        angle = math.atan2(marker.position[2], marker.position[0]) % (2.0 * math.pi)
        assert k * sector <= angle <= (k + 1) * sector


def test_set_layout_switch_keeps_time_height(controller):
    set_cube = controller.set_cube
    controller.update_time("absolute")
    heights = {rid: m.position[1] for rid, m in set_cube.markers.items()}

    controller.apply_style({"sLayout": "category"})
    assert {rid: m.position[1] for rid, m in set_cube.markers.items()} == heights


def test_hulls_follow_layout_and_filter(controller, datastore):
    set_cube = controller.set_cube
    controller.apply_style({"sLayout": "category", "hull": True})

    segments = [s for ts in set_cube.stack.slices for s in set_cube.hull_segments(ts.index)]
    assert segments
    palette = {datastore.color_for(c) for c in datastore.categories}
    assert {s.color for s in segments} <= palette
    for segment in segments:
        assert segment.start[1] == 0.0 and segment.end[1] == 0.0

    controller.filter_data("Letter", None, None)
    segments = [s for ts in set_cube.stack.slices for s in set_cube.hull_segments(ts.index)]
    assert segments
    assert {s.color for s in segments} == {datastore.color_for("Letter")}

    controller.apply_style({"hull": False})
    assert all(set_cube.hull_segments(ts.index) == [] for ts in set_cube.stack.slices)


def test_filter_and_highlight(controller, datastore):
    set_cube = controller.set_cube
    controller.filter_data("", datetime(1940, 1, 1), datetime(1941, 1, 1))
    for rid, marker in set_cube.markers.items():
        date = datastore.get_record(rid).date_time
        assert marker.visible == (datetime(1940, 1, 1) <= date <= datetime(1941, 1, 1))

    controller.highlight("r3")
    assert set_cube.markers["r3"].scale == 2.0
    assert set_cube.markers["r3"].user_data["highlighted"]
