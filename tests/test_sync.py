from datetime import datetime

import numpy as np
import pytest

from polycube.controller.picking import CameraModel, Viewport
from polycube.controller.sync import PolyCubeController
from polycube.model.datastore import DataStore
from polycube.model.state import LayoutMode, ViewState
from polycube.view.cubes.slices import juxtaposed_position, stacked_position
from polycube.view.cubes.styling import highlighted_ids

from conftest import make_records, ring_positions

VIEWPORT = Viewport(0.0, 0.0, 100.0, 100.0)


def all_cubes(controller):
    return [controller.geo_cube, controller.set_cube, controller.net_cube]


def slice_tweens(animator, cube):
    by_target = {tween.target: tween for tween in animator.active}
    return [by_target.get(s.group) for s in cube.stack.slices]


def test_cubes_are_laid_out_side_by_side(controller):
    xs = [cube.get_cube_position()[0] for cube in all_cubes(controller)]
    assert xs == pytest.approx([0.0, 800.0, 1600.0])
    assert all(cube.webgl_group.parent is controller.webgl_scene for cube in all_cubes(controller))


def test_filter_formula_in_every_cube(controller, datastore):
    start, end = datetime(1938, 1, 1), datetime(1942, 1, 1)
    controller.filter_data("Letter", start, end)
    for cube in all_cubes(controller):
        for rid, marker in cube.markers.items():
            record = datastore.get_record(rid)
            assert marker.visible == (record.category_1 == "Letter" and start <= record.date_time <= end)

    controller.clear_filter()
    assert all(m.visible for cube in all_cubes(controller) for m in cube.markers.values())


def test_highlight_is_exclusive_and_shared(controller):
    controller.highlight("r5")
    controller.highlight("r6")
    for cube in all_cubes(controller):
        assert highlighted_ids(cube.markers) == ["r6"]

    controller.highlight("missing")
    for cube in all_cubes(controller):
        assert highlighted_ids(cube.markers) == []


def test_highlight_survives_num_slices_change(controller):
    controller.highlight("r5")
    controller.apply_style({"numSlices": 3})
    for cube in all_cubes(controller):
        assert len(cube.stack.slices) == 3
        assert highlighted_ids(cube.markers) == ["r5"]


def test_style_errors_leave_state_untouched(controller):
    with pytest.raises(ValueError):
        controller.apply_style({"numSlices": 42})
    assert controller.dm.num_slices == 5
    assert all(len(cube.stack.slices) == 5 for cube in all_cubes(controller))


def test_events(controller, records):
    seen = []
    controller.subscribe("background", lambda color: seen.append(("background", color)))
    controller.subscribe("selection", lambda record: seen.append(("selection", record and record.id)))
    controller.subscribe("data", lambda: seen.append(("data",)))

    controller.apply_style({"backgroundColor": "#000000"})
    controller.highlight("r1")
    controller.clear_highlight()
    controller.load_records(records[:10], {})

    assert seen == [("background", "#000000"), ("selection", "r1"), ("selection", None),
                    ("selection", None), ("data",)]


def test_stagger_delays(controller, animator):
    controller.transition(LayoutMode.SI)
    for cube in all_cubes(controller):
        tweens = slice_tweens(animator, cube)
        assert [tw.start_time for tw in tweens] == [i * 300.0 for i in range(len(tweens))]
        assert all(tw.duration == 1000.0 for tw in tweens)


def test_round_trip_returns_to_stacked(controller, animator, clock):
    controller.transition(LayoutMode.SI)
    clock.advance(700)
    assert controller.tick()
    controller.transition(LayoutMode.STC)

    assert len(animator.active) == 3 * 5
    animator.finish_all()
    for cube in all_cubes(controller):
        assert cube.layout is LayoutMode.STC
        for time_slice in cube.stack.slices:
            np.testing.assert_allclose(time_slice.group.position, stacked_position(controller.dm, time_slice))


def test_juxtaposed_grid(controller, animator):
    controller.transition(LayoutMode.JP)
    animator.finish_all()
    for cube in all_cubes(controller):
        for time_slice in cube.stack.slices:
            np.testing.assert_allclose(time_slice.group.position, juxtaposed_position(controller.dm, time_slice))
            np.testing.assert_allclose(time_slice.label.position, time_slice.group.position + (-290.0, 0.0, 250.0))


def test_hidden_cubes_skip_and_catch_up(controller, animator):
    set_cube = controller.set_cube
    controller.set_view_state(ViewState.GEO_CUBE)
    assert not set_cube.visible
    controller.transition(LayoutMode.JP)

    assert set_cube.layout is LayoutMode.STC
    assert all(tw is None for tw in slice_tweens(animator, set_cube))
    assert controller.geo_cube.layout is LayoutMode.JP

    controller.set_view_state(ViewState.POLY_CUBE)
    assert set_cube.layout is LayoutMode.JP
    assert controller.net_cube.layout is LayoutMode.JP
    animator.finish_all()
    for time_slice in set_cube.stack.slices:
        np.testing.assert_allclose(time_slice.group.position, juxtaposed_position(controller.dm, time_slice))


def test_animated_layout_is_a_no_op(controller, animator):
    controller.transition(LayoutMode.ANI)
    assert animator.active == []
    assert controller.layout is LayoutMode.STC
    assert all(cube.layout is LayoutMode.STC for cube in all_cubes(controller))


def test_tick_reports_redraws(controller, clock):
    assert controller.tick()
    assert not controller.tick()

    controller.transition(LayoutMode.SI)
    assert controller.tick()
    clock.advance(10_000)
    # One more frame for the final positions
    assert controller.tick()
    assert not controller.tick()


def test_click_picks_geo_first_and_broadcasts(controller):
    target = controller.geo_cube.markers["r10"].world_position()
    camera = CameraModel(position=tuple(target + (0.0, 50.0, 0.0)), focal_point=tuple(target),
                         view_up=(0.0, 0.0, -1.0))

    hit = controller.on_click((50.0, 50.0), VIEWPORT, camera)

    assert hit is not None and hit.id == "r10"
    assert controller.selected_id == "r10"
    for cube in all_cubes(controller):
        assert highlighted_ids(cube.markers) == ["r10"]


def test_click_on_nothing_clears_every_cube(controller):
    controller.highlight("r10")
    camera = CameraModel(position=(0.0, 10_000.0, 0.0), focal_point=(0.0, 20_000.0, 0.0), view_up=(0.0, 0.0, -1.0))

    assert controller.on_click((50.0, 50.0), VIEWPORT, camera) is None
    assert controller.selected_id is None
    for cube in all_cubes(controller):
        assert highlighted_ids(cube.markers) == []


def test_empty_dataset_assembles_nothing(controller):
    controller.load_records([], {})
    for cube in all_cubes(controller):
        assert cube.markers == {}
        assert cube.stack.slices == []
    assert controller.net_cube.links[next(iter(controller.net_cube.links))] == []


def test_force_layout_used_without_positions(animator):
    ctrl = PolyCubeController(DataStore(), animator=animator)
    ctrl.load_records(make_records(20))
    assert ctrl.dm.has_layout_positions
    assert len(ctrl.net_cube.markers) == 20


def test_new_dataset_drops_previous_filter_and_selection(controller):
    controller.filter_data("Meeting", datetime(1937, 1, 1), datetime(1938, 1, 1))
    controller.highlight("r3")
    selections = []
    controller.subscribe("selection", selections.append)

    records = make_records(40)
    controller.load_records(records, ring_positions(records))

    assert controller.filter.is_empty
    assert controller.selected_id is None
    assert selections == [None]
    for cube in all_cubes(controller):
        assert cube.filter.is_empty
        assert len(cube.markers) == 40
        assert all(m.visible for m in cube.markers.values())
        assert highlighted_ids(cube.markers) == []
