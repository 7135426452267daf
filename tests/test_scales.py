from datetime import datetime

from polycube.model.scales import (
    CategoricalPalette,
    LinearScale,
    TimeScale,
    bucket_index,
    partition_domain,
)

DOMAIN = (datetime(1935, 1, 1), datetime(1945, 12, 31))


def test_five_contiguous_buckets_cover_domain():
    buckets = partition_domain(DOMAIN, 5)

    assert len(buckets) == 5
    assert buckets[0].start == DOMAIN[0]
    assert buckets[-1].end == DOMAIN[1]
    for a, b in zip(buckets, buckets[1:]):
        assert a.end == b.start
        assert a.start < a.end
    assert [b.closed for b in buckets] == [False, False, False, False, True]


def test_records_fall_in_exactly_one_bucket(datastore):
    buckets = datastore.slice_buckets()
    records = datastore.records
    for record in records:
        owners = [b.index for b in buckets if b.contains(record.date_time)]
        assert owners == [bucket_index(buckets, record.date_time)]


def test_boundary_belongs_to_later_bucket_and_max_to_last():
    buckets = partition_domain(DOMAIN, 5)
    boundary = buckets[2].start

    assert bucket_index(buckets, boundary) == 2
    assert not buckets[1].contains(boundary)
    assert bucket_index(buckets, DOMAIN[1]) == 4
    assert buckets[4].contains(DOMAIN[1])


def test_out_of_domain_values_clamp():
    buckets = partition_domain(DOMAIN, 3)
    assert bucket_index(buckets, datetime(1900, 1, 1)) == 0
    assert bucket_index(buckets, datetime(2000, 1, 1)) == 2


def test_empty_domain_has_no_buckets():
    assert partition_domain(None, 5) == []
    assert bucket_index([], datetime(1940, 1, 1)) == -1


def test_time_scale_maps_domain_to_range():
    scale = TimeScale(DOMAIN, (-250.0, 250.0))
    assert scale(DOMAIN[0]) == -250.0
    assert scale(DOMAIN[1]) == 250.0
    assert scale.invert(-250.0) == DOMAIN[0]


def test_degenerate_and_empty_time_scale():
    single = datetime(1940, 6, 1)
    assert TimeScale((single, single), (-250.0, 250.0))(single) == 0.0
    assert TimeScale(None, (-250.0, 250.0))(single) == -250.0


def test_linear_scale_degenerate_domain_returns_range_start():
    assert LinearScale((3.0, 3.0), (1.0, 6.0))(3.0) == 1.0
    assert LinearScale((0.0, 10.0), (1.0, 6.0))(5.0) == 3.5


def test_palette_is_sorted_and_stable():
    palette = CategoricalPalette(["b", "a", "b"])
    first = palette.color_for("a")

    assert palette.categories == ["a", "b"]
    assert palette.color_for("c") not in (first, palette.color_for("b"))
    assert palette.color_for("a") == first
    assert len(palette) == 3
