"""
Network Layout
==============
Force-directed 2D positions for the network cube, used when the dataset does
not come with its own layout positions file.

Only records that exist as nodes get a position; targets missing from the
dataset are left out, so the edges pointing at them are skipped later.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from polycube.model.records import Record

logger = logging.getLogger(__name__)


def build_graph(records: Sequence[Record]) -> nx.DiGraph:
    G = nx.DiGraph()
    for record in records:
        G.add_node(record.id)
    for record in records:
        for target in record.target_nodes:
            # Target does not exist as a source node
            if target not in G or target == record.id:
                continue
            G.add_edge(record.id, target)
    return G


def compute_force_layout(
    records: Sequence[Record],
    iterations: int = 160,
    seed: Optional[int] = 42,
) -> Dict[str, Tuple[float, float]]:
    """
    Spring (Fruchterman-Reingold) layout over the record graph.

    Returns:
        id -> (x, y). Empty for an empty record set.
    """
    G = build_graph(records)
    n = G.number_of_nodes()
    if n == 0:
        return {}
    if n == 1:
        return {next(iter(G.nodes())): (0.0, 0.0)}

    # Sparse graphs need a larger optimal distance to avoid collapsing isolates
    H = G.to_undirected()
    avg_deg = float(np.mean([d for _, d in H.degree()]))
    k = (3.2 if avg_deg < 2 else 2.2 if avg_deg < 5 else 1.4) / np.sqrt(n)

    pos = nx.spring_layout(H, dim=2, k=k, iterations=iterations, seed=seed)
    logger.info(f"Computed force layout for {n} nodes, {G.number_of_edges()} edges.")
    return {str(node): (float(xy[0]), float(xy[1])) for node, xy in pos.items()}
