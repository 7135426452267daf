from datetime import datetime

import pytest

from polycube.model.datastore import DataStore
from polycube.model.records import NO_CATEGORY, Record

from conftest import END, START, make_records, ring_positions


def test_time_domain_and_buckets(datastore, records):
    assert datastore.time_domain == (records[0].date_time, records[-1].date_time)
    assert datastore.time_domain[0] == START
    assert len(datastore.slice_buckets()) == 5

    counts = [0] * 5
    for record in records:
        counts[datastore.bucket_index(record.date_time)] += 1
    assert sum(counts) == len(records)
    assert all(c > 0 for c in counts)


def test_time_scale_spans_cube_height(datastore):
    scale = datastore.get_time_scale()
    lo, hi = datastore.time_domain
    assert scale(lo) == pytest.approx(-250.0)
    assert scale(hi) == pytest.approx(250.0)


def test_set_num_slices_rebuilds_buckets(datastore):
    datastore.set_num_slices(8)
    assert datastore.num_slices == 8
    assert len(datastore.slice_buckets()) == 8


@pytest.mark.parametrize("bad", [0, 11, -3])
def test_num_slices_out_of_range(datastore, bad):
    with pytest.raises(ValueError):
        datastore.set_num_slices(bad)
    assert datastore.num_slices == 5


def test_empty_dataset_is_valid():
    dm = DataStore()
    dm.set_records([])

    assert len(dm) == 0
    assert dm.time_domain is None
    assert dm.slice_buckets() == []
    assert dm.bucket_index(datetime(1940, 1, 1)) == -1
    assert dm.categories == []


def test_single_date_dataset_maps_to_midpoint():
    dm = DataStore()
    dm.set_records([Record(id="a", date_time=datetime(1940, 1, 1)), Record(id="b", date_time=datetime(1940, 1, 1))])
    assert dm.get_time_scale()(datetime(1940, 1, 1)) == 0.0
    assert dm.bucket_index(datetime(1940, 1, 1)) in range(5)


def test_duplicate_ids_keep_first():
    first = Record(id="x", date_time=START, category_1="A")
    second = Record(id="x", date_time=END, category_1="B")
    dm = DataStore()
    dm.set_records([first, second])

    assert len(dm) == 2
    assert dm.get_record("x") is first


def test_categories_sorted_and_defaulted():
    dm = DataStore()
    dm.set_records([Record(id="1", date_time=START, category_1="Travel"),
                    Record(id="2", date_time=START, category_1=""),
                    Record(id="3", date_time=START, category_1="Letter")])
    assert dm.categories == sorted(["Letter", NO_CATEGORY, "Travel"])
    assert dm.color_for("Letter") != dm.color_for("Travel")


def test_layout_positions_are_normalized_uniformly(datastore, records):
    datastore.set_layout_positions({"a": (0.0, 0.0), "b": (10.0, 5.0), "c": (20.0, 0.0)})

    assert datastore.has_layout_positions
    assert datastore.get_normalized_position("a") == pytest.approx((-250.0, -62.5))
    assert datastore.get_normalized_position("c") == pytest.approx((250.0, -62.5))
    assert datastore.get_normalized_position("b") == pytest.approx((0.0, 62.5))
    assert datastore.get_layout_positions()["b"] == (10.0, 5.0)
    assert datastore.get_normalized_position("missing") is None


def test_new_records_reset_positions_and_annotation(datastore, records):
    datastore.set_layout_positions(ring_positions(records))
    datastore.network_annotated = True
    datastore.set_records(make_records(10))

    assert not datastore.has_layout_positions
    assert not datastore.network_annotated
