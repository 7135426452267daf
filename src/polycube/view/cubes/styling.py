"""
Node Styling Helpers
Color and size rules shared by the cube views.
"""
from __future__ import annotations

from typing import Dict, List

from polycube import config
from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.state import NodeColorMode
from polycube.view.scene import PointMarker


def base_node_color(dm: DataStore, record: Record, mode: NodeColorMode) -> str:
    if mode == NodeColorMode.TEMPORAL:
        return dm.temporal_color(record.date_time)
    if mode == NodeColorMode.MONOCHROME:
        return config.MONOCHROME_COLOR
    return dm.color_for(record.category_1)


def node_radius(node_size: int) -> float:
    return config.BASE_NODE_RADIUS * float(node_size)


def reset_markers(dm: DataStore, markers: Dict[str, PointMarker], mode: NodeColorMode,
                  base_scales: Dict[str, float] | None = None) -> None:
    """Restore the un-highlighted color and scale of every marker."""
    for record_id, marker in markers.items():
        record = dm.get_record(record_id)
        if record is None:
            continue
        marker.color = base_node_color(dm, record, mode)
        marker.scale = 1.0 if base_scales is None else base_scales.get(record_id, 1.0)
        marker.user_data.pop("highlighted", None)


def mark_highlighted(marker: PointMarker, base_scale: float = 1.0) -> None:
    marker.color = config.HIGHLIGHT_COLOR
    marker.scale = base_scale * config.HIGHLIGHT_SCALE
    marker.user_data["highlighted"] = True


def highlighted_ids(markers: Dict[str, PointMarker]) -> List[str]:
    return [rid for rid, m in markers.items() if m.user_data.get("highlighted")]
