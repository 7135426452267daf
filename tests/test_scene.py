from datetime import datetime

import numpy as np

from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.state import FilterState
from polycube.view.cubes.slices import SliceStack
from polycube.view.scene import Group, PointMarker


def test_world_position_and_visibility_follow_parents():
    root, child = Group("root"), Group("child")
    marker = PointMarker("m")
    root.set_position(10.0, 0.0, 0.0)
    child.set_position(0.0, 5.0, 0.0)
    marker.set_position(1.0, 1.0, 1.0)
    child.add(marker)
    root.add(child)

    np.testing.assert_allclose(marker.world_position(), [11.0, 6.0, 1.0])
    assert marker.is_visible_in_tree()
    child.visible = False
    assert not marker.is_visible_in_tree()
    assert root.get_object_by_name("m") is marker


def test_reparenting_and_revisions():
    a, b, node = Group("a"), Group("b"), Group("n")
    a.add(node)
    before = b.revision
    b.add(node)

    assert node.parent is b
    assert a.children == []
    assert b.revision > before
    b.clear(keep=lambda n: n.name == "n")
    assert b.children == [node]
    b.clear()
    assert node.parent is None


def test_slice_stack_skips_duplicate_ids(animator):
    dm = DataStore()
    first = Record(id="x", date_time=datetime(1940, 1, 1), category_1="A")
    dm.set_records([first, Record(id="x", date_time=datetime(1941, 1, 1)), Record(id="y", date_time=datetime(1942, 1, 1))])
    stack = SliceStack(dm, animator, "TEST")
    stack.rebuild(Group("webgl"), Group("css"))

    assert stack.add_marker(first, 0.0, 0.0, 1.0, "#000000") is not None
    assert stack.add_marker(first, 5.0, 5.0, 1.0, "#000000") is None
    assert sum(len(s.member_ids) for s in stack.slices) == 2
    assert stack.apply_filter(FilterState(category="A")) == {"x"}
