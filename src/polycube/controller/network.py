"""
Network Annotation
==================
Degree computation and explicit directed edges for the network cube.

Why is this file needed?
------------------------
1. The degree fields live on the shared records, so the annotation pass must
   run exactly once per dataset load, before any view reads them. The
   DataStore flag ``network_annotated`` guards that.
2. Edges are explicit ``Edge(source_id, target_id)`` records resolved through
   the DataStore id index instead of ids encoded in strings.

Note:
    The pairwise scan is O(n^2). That is fine for hundreds of records; larger
    datasets would need an index-based pass, but the counting semantics (self
    links count, duplicate targets count once for in-degree and every time for
    out-degree) must be kept.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, List, Optional, Sequence

from polycube.model.datastore import DataStore
from polycube.model.records import Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    source_id: str
    target_id: str

    @property
    def key(self) -> str:
        return f"{self.source_id}_{self.target_id}"


def add_network_degree_to_nodes(records: Sequence[Record], links_per_node: Optional[int] = None) -> None:
    """
    Annotate records with in/out/overall degree, incoming nodes and target_by.

    For every ordered pair (source, target) where ``target.target_nodes``
    contains ``source.id``, ``source.network_degree_in`` is incremented and
    ``target.id`` is added to ``source.incoming_nodes``. The out-degree is the
    length of ``target_nodes``. ``target_by`` lists, for each record, the
    sources that reach it within their first ``links_per_node`` targets.
    """
    for record in records:
        record.reset_network()

    for source in records:
        for target in records:
            if source.id in target.target_nodes:
                source.network_degree_in += 1
                source.incoming_nodes.add(target.id)
        source.network_degree_out = len(source.target_nodes)
        source.network_degree_overall = source.network_degree_in + source.network_degree_out

    by_id = {}
    for record in records:
        by_id.setdefault(record.id, record)
    for source in records:
        targets = source.target_nodes if links_per_node is None else source.target_nodes[:links_per_node]
        for target_id in targets:
            target = by_id.get(target_id)
            if target is not None:
                target.target_by.append(source.id)


def annotate_datastore(dm: DataStore) -> bool:
    """
    Run the annotation pass over the DataStore records unless it already ran
    for the current record set. Returns True when the pass ran.
    """
    if dm.network_annotated:
        return False
    add_network_degree_to_nodes(dm.records, dm.links_per_node)
    dm.network_annotated = True
    logger.info(f"Annotated network degrees for {len(dm)} records.")
    return True


def iter_edges(dm: DataStore, links_per_node: Optional[int] = None) -> Iterable[Edge]:
    """
    Yield the drawable edges: the first ``links_per_node`` targets of every
    record, skipping targets missing from the dataset and pairs where either
    endpoint has no layout position.
    """
    limit = dm.links_per_node if links_per_node is None else links_per_node
    skipped = 0
    for source in dm.records:
        if dm.get_normalized_position(source.id) is None:
            skipped += len(source.target_nodes[:limit])
            continue
        for target_id in source.target_nodes[:limit]:
            if not dm.has_record(target_id) or dm.get_normalized_position(target_id) is None:
                skipped += 1
                continue
            yield Edge(source.id, target_id)
    if skipped:
        logger.debug(f"Skipped {skipped} dangling edges.")


def edge_list(dm: DataStore, links_per_node: Optional[int] = None) -> List[Edge]:
    return list(iter_edges(dm, links_per_node))
