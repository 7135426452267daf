from datetime import datetime

import pytest

from polycube.model.state import FilterState, NodeColorMode, SetLayout, SizeEncoding, StyleSettings

DOMAIN = (datetime(1935, 1, 1), datetime(1945, 12, 31))


def test_style_update_accepts_event_keys_and_attribute_names():
    style = StyleSettings()
    changes = style.update({"numSlices": "7", "nodeColor": "temporal", "size_encoding": "in_degree", "hull": 1})

    assert changes == {
        "num_slices": 7,
        "node_color": NodeColorMode.TEMPORAL,
        "size_encoding": SizeEncoding.IN_DEGREE,
        "hull": True,
    }
    assert style.num_slices == 7
    assert style.node_color is NodeColorMode.TEMPORAL


@pytest.mark.parametrize("event", [
    {"numSlices": 0},
    {"numSlices": 11},
    {"nodeSize": 0},
    {"jitter": -1},
    {"backgroundColor": "red"},
    {"sLayout": "circle"},
    {"chargeFactor": 0},
    {"unknown": 1},
])
def test_invalid_style_event_raises(event):
    with pytest.raises(ValueError):
        StyleSettings().update(event)


def test_invalid_key_applies_nothing():
    style = StyleSettings()
    with pytest.raises(ValueError):
        style.update({"sLayout": "category", "nodeSize": 99})
    assert style.set_layout is SetLayout.RANDOM
    assert style.node_size == 3


def test_background_color_formats():
    style = StyleSettings()
    style.update({"backgroundColor": "#abc"})
    style.update({"backgroundColor": "#A0B1C2"})
    assert style.background_color == "#A0B1C2"


def test_filter_missing_bounds_use_domain():
    assert FilterState(start=None, end=None).resolve(DOMAIN) == DOMAIN
    assert FilterState().resolve(None) == (None, None)
    assert FilterState().is_empty


def test_filter_reversed_bounds_are_swapped():
    lo, hi = datetime(1940, 1, 1), datetime(1938, 1, 1)
    assert FilterState(start=lo, end=hi).resolve(DOMAIN) == (hi, lo)


def test_filter_matches_inclusive_bounds_and_category():
    state = FilterState(category="Letter", start=datetime(1940, 1, 1), end=datetime(1941, 1, 1))
    bounds = state.resolve(DOMAIN)

    assert state.matches("Letter", datetime(1940, 1, 1), bounds)
    assert state.matches("Letter", datetime(1941, 1, 1), bounds)
    assert not state.matches("Travel", datetime(1940, 6, 1), bounds)
    assert not state.matches("Letter", datetime(1939, 12, 31), bounds)
    assert FilterState().matches("Travel", datetime(1939, 12, 31), FilterState().resolve(DOMAIN))
