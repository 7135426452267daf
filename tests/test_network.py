from datetime import datetime

import pytest

from polycube.controller.layout import build_graph, compute_force_layout
from polycube.controller.network import Edge, add_network_degree_to_nodes, annotate_datastore, edge_list
from polycube.model.datastore import DataStore
from polycube.model.records import Record

from conftest import make_records, ring_positions

DAY = datetime(1940, 1, 1)


def small_graph():
    return [
        Record(id="A", date_time=DAY, target_nodes=["B", "B", "C"]),
        Record(id="B", date_time=DAY, target_nodes=["A"]),
        Record(id="C", date_time=DAY, target_nodes=[]),
        Record(id="D", date_time=DAY, target_nodes=["D", "ghost"]),
    ]


def test_degree_counting():
    a, b, c, d = records = small_graph()
    add_network_degree_to_nodes(records)

    assert (a.network_degree_in, a.network_degree_out) == (1, 3)
    assert (b.network_degree_in, b.network_degree_out) == (1, 1)
    assert (c.network_degree_in, c.network_degree_out) == (1, 0)
    # Self links count
    assert (d.network_degree_in, d.network_degree_out) == (1, 2)
    assert a.incoming_nodes == {"B"}
    assert c.target_by == ["A"]


def test_overall_is_in_plus_out(records):
    add_network_degree_to_nodes(records)
    for record in records:
        assert record.network_degree_overall == record.network_degree_in + record.network_degree_out


def test_target_by_respects_links_per_node():
    records = small_graph()
    add_network_degree_to_nodes(records, links_per_node=1)
    a, b, c, _ = records
    assert c.target_by == []
    assert b.target_by == ["A"]


def test_annotation_runs_once_per_load(datastore):
    assert annotate_datastore(datastore)
    assert not annotate_datastore(datastore)
    datastore.set_records(make_records(20))
    assert annotate_datastore(datastore)


def test_edges_skip_dangling_targets_and_missing_positions():
    dm = DataStore()
    dm.set_records(small_graph())
    dm.set_layout_positions({"A": (0, 0), "B": (1, 0), "D": (0, 1)})

    edges = edge_list(dm)

    assert Edge("A", "B") in edges
    assert Edge("B", "A") in edges
    assert Edge("D", "D") in edges
    assert all("C" not in (e.source_id, e.target_id) for e in edges)
    assert all(e.target_id != "ghost" for e in edges)


def test_edges_limited_per_node():
    dm = DataStore(links_per_node=1)
    dm.set_records(small_graph())
    dm.set_layout_positions({"A": (0, 0), "B": (1, 0), "C": (1, 1), "D": (0, 1)})
    assert [e.key for e in edge_list(dm) if e.source_id == "A"] == ["A_B"]


def test_graph_ignores_missing_and_self_targets():
    G = build_graph(small_graph())
    assert set(G.nodes()) == {"A", "B", "C", "D"}
    assert not G.has_edge("D", "D")
    assert G.has_edge("A", "C")


def test_force_layout_is_seeded(records):
    first = compute_force_layout(records, iterations=30, seed=3)
    second = compute_force_layout(records, iterations=30, seed=3)

    assert set(first) == {r.id for r in records}
    assert first == second


def test_force_layout_degenerate_inputs():
    assert compute_force_layout([]) == {}
    assert compute_force_layout([Record(id="solo", date_time=DAY)]) == {"solo": (0.0, 0.0)}


def test_ring_positions_cover_every_record(records):
    assert len(ring_positions(records)) == len(records)
    assert ring_positions(records)["r0"] == pytest.approx((1.0, 0.0))
