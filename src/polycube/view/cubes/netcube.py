"""
NetCube
=======
Network space-time cube. Nodes sit at their (normalized) graph layout position
on X/Z and at their date on Y; directed links connect each record to its first
``links_per_node`` targets.

Why is this file needed?
------------------------
1. Degrees: the cube triggers the one-off degree annotation of the shared
   records and encodes a degree as the node size.
2. Link groups: the same edge is drawn at three heights (aggregated slice
   height, absolute date height, flattened floor) plus inside its slice when
   both endpoints share one. Exactly one global group is active; the
   juxtaposed layout shows the per-slice links instead.
3. Neighbourhood highlight: incoming neighbours and outgoing targets of the
   selected node are tinted.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
import numpy.typing as npt

from polycube import config
from polycube.controller.animation import Animator
from polycube.controller.network import Edge, annotate_datastore, iter_edges
from polycube.controller.picking import CameraModel, Viewport, pick_point
from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.scales import LinearScale
from polycube.model.state import (
    FilterState,
    LayoutMode,
    LinkGroupKind,
    NodeColorMode,
    SetLayout,
    SizeEncoding,
    TimeMode,
    ViewState,
)
from polycube.view.cubes.slices import SliceStack, relative_height
from polycube.view.cubes.styling import base_node_color, mark_highlighted, node_radius, reset_markers
from polycube.view.scene import Frame, Group, LineSegment, PointMarker, vec3

logger = logging.getLogger(__name__)

GLOBAL_LINK_GROUPS = (LinkGroupKind.AGGREGATED, LinkGroupKind.ABSOLUTE, LinkGroupKind.SUPERIMPOSED)

LinkEntry = Tuple[Edge, LineSegment]


class NetCube:
    name = "NetCube"

    def __init__(
        self,
        dm: DataStore,
        animator: Animator,
        webgl_scene: Group,
        css_scene: Group,
        position: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        self.dm = dm
        self.animator = animator
        self.webgl_scene = webgl_scene
        self.css_scene = css_scene

        self.webgl_group = Group("NET_CUBE")
        self.css_group = Group("NET_CUBE_CSS")
        self.webgl_group.position = position
        self.css_group.position = position

        self.node_color: NodeColorMode = NodeColorMode.CATEGORICAL
        self.node_size: int = 3
        self.charge_factor: float = config.DEFAULT_CHARGE_FACTOR
        self.size_encoding: SizeEncoding = SizeEncoding.OVERALL_DEGREE
        self.filter = FilterState()
        self._highlighted_id: Optional[str] = None

        self.stack = SliceStack(dm, animator, "NET")
        self._base_scales: Dict[str, float] = {}
        self.links: Dict[LinkGroupKind, List[LinkEntry]] = {kind: [] for kind in LinkGroupKind}
        self.create_objects()

    @property
    def visible(self) -> bool:
        return self.webgl_group.visible

    @property
    def layout(self) -> LayoutMode:
        return self.stack.layout

    @property
    def markers(self) -> Dict[str, PointMarker]:
        return self.stack.markers

    @property
    def time_mode(self) -> TimeMode:
        return self.stack.time_mode

    @property
    def active_link_group(self) -> LinkGroupKind:
        if self.stack.layout == LayoutMode.SI:
            return LinkGroupKind.SUPERIMPOSED
        if self.stack.time_mode == TimeMode.ABSOLUTE:
            return LinkGroupKind.ABSOLUTE
        return LinkGroupKind.AGGREGATED

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def create_objects(self) -> None:
        half = self.dm.cube_width / 2.0
        for time_slice in self.stack.slices:
            self.animator.cancel(time_slice.group)
        self.webgl_group.clear()
        self.css_group.clear()
        self.stack = SliceStack(self.dm, self.animator, "NET")
        self._base_scales = {}
        self._highlighted_id = None

        self.bounding_box = Frame("NET_BOUNDING_BOX", width=self.dm.cube_width, height=self.dm.cube_width,
                                  color=config.FRAME_COLOR)
        self.bounding_box.set_position(0.0, -half, 0.0)
        self.slices_group = Group("NET_SLICES")
        self.link_groups: Dict[LinkGroupKind, Group] = {
            kind: Group(f"NET_LINKS_{kind.upper()}") for kind in GLOBAL_LINK_GROUPS
        }
        self.juxtaposed_groups: Dict[int, Group] = {}
        self.links = {kind: [] for kind in LinkGroupKind}
        self.webgl_group.add(self.bounding_box, self.slices_group, *self.link_groups.values())
        self.labels_group = Group("NET_LABELS")
        self.css_group.add(self.labels_group)

    def assemble_data(self) -> None:
        annotate_datastore(self.dm)
        self.stack.rebuild(self.slices_group, self.labels_group)
        self.juxtaposed_groups = {}
        for time_slice in self.stack.slices:
            group = Group(f"NET_LINKS_JUXTAPOSED_{time_slice.index}")
            time_slice.group.add(group)
            self.juxtaposed_groups[time_slice.index] = group

        self._base_scales = self._compute_base_scales()
        radius = node_radius(self.node_size)
        missing = 0
        for record in self.dm.records:
            xz = self._node_xz(record.id)
            if xz is None:
                missing += 1
                continue
            x, z = xz
            self.stack.add_marker(record, x, z, radius, base_node_color(self.dm, record, self.node_color))
        if missing:
            logger.warning(f"NetCube: {missing} records have no layout position; skipped.")

        self.create_links()
        self.stack.place(self.stack.layout)
        self.bounding_box.visible = self.stack.layout == LayoutMode.STC
        self.filter_data(self.filter.category, self.filter.start, self.filter.end)
        self._restyle()
        self._update_link_visibility()
        logger.info(
            f"NetCube assembled {len(self.markers)} nodes and "
            f"{len(self.links[LinkGroupKind.AGGREGATED])} links in {len(self.stack.slices)} slices."
        )

    def create_links(self) -> None:
        """One segment per drawable edge in every global group, plus a juxtaposed one within a shared slice."""
        for group in self.link_groups.values():
            group.clear()
        for group in self.juxtaposed_groups.values():
            group.clear()
        self.links = {kind: [] for kind in LinkGroupKind}

        for edge in iter_edges(self.dm):
            for kind in GLOBAL_LINK_GROUPS:
                segment = LineSegment(f"NET_LINK_{kind.upper()}_{edge.key}", color=config.LINK_COLOR, opacity=0.35)
                self.link_groups[kind].add(segment)
                self.links[kind].append((edge, segment))
            source_slice = self.stack.slice_of(edge.source_id)
            if source_slice is not None and source_slice is self.stack.slice_of(edge.target_id):
                segment = LineSegment(f"NET_LINK_JUXTAPOSED_{edge.key}", color=config.LINK_COLOR, opacity=0.35)
                self.juxtaposed_groups[source_slice.index].add(segment)
                self.links[LinkGroupKind.JUXTAPOSED].append((edge, segment))
        self._update_link_geometry()

    def render(self) -> None:
        if self.webgl_group.parent is not self.webgl_scene:
            self.webgl_scene.add(self.webgl_group)
        if self.css_group.parent is not self.css_scene:
            self.css_scene.add(self.css_group)

    def update(self, view_state: ViewState) -> None:
        shown = view_state in (ViewState.NET_CUBE, ViewState.POLY_CUBE)
        self.webgl_group.visible = shown
        self.css_group.visible = shown

    def get_cube_position(self) -> npt.NDArray[np.float64]:
        return self.webgl_group.world_position()

    # ------------------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------------------

    def _node_xz(self, record_id: str) -> Optional[Tuple[float, float]]:
        pos = self.dm.get_normalized_position(record_id)
        if pos is None:
            return None
        return pos[0] * self.charge_factor, pos[1] * self.charge_factor

    def _link_endpoint(self, record: Record, kind: LinkGroupKind) -> npt.NDArray[np.float64]:
        # Edges only join positioned records
        x, z = self._node_xz(record.id)
        scale = self.dm.get_time_scale()
        time_slice = self.stack.slice_of(record.id)
        if kind == LinkGroupKind.ABSOLUTE:
            y = scale(record.date_time)
        elif kind == LinkGroupKind.SUPERIMPOSED:
            y = -self.dm.cube_width / 2.0
        elif kind == LinkGroupKind.JUXTAPOSED:
            # Slice-local coordinates
            y = 0.0 if time_slice is None else relative_height(self.dm, record, time_slice, self.stack.time_mode)
        else:
            y = scale(time_slice.bucket.start) if time_slice is not None else scale(record.date_time)
        return vec3(x, y, z)

    def _update_link_geometry(self) -> None:
        for kind, entries in self.links.items():
            for edge, segment in entries:
                source = self.dm.get_record(edge.source_id)
                target = self.dm.get_record(edge.target_id)
                segment.set_endpoints(self._link_endpoint(source, kind), self._link_endpoint(target, kind))

    def _update_link_visibility(self) -> None:
        active = self.active_link_group
        juxtaposed = self.stack.layout == LayoutMode.JP
        for kind, group in self.link_groups.items():
            group.visible = kind == active and not juxtaposed
        for group in self.juxtaposed_groups.values():
            group.visible = juxtaposed

    def _compute_base_scales(self) -> Dict[str, float]:
        records = self.dm.records
        if not records:
            return {}
        degrees_in = [r.network_degree_in for r in records]
        size_scale = LinearScale((float(min(degrees_in)), float(max(degrees_in))), config.NODE_SIZE_RANGE)
        scales: Dict[str, float] = {}
        for record in records:
            if self.size_encoding == SizeEncoding.CONSTANT:
                scales[record.id] = 1.0
                continue
            value = {
                SizeEncoding.OVERALL_DEGREE: record.network_degree_overall,
                SizeEncoding.IN_DEGREE: record.network_degree_in,
                SizeEncoding.OUT_DEGREE: record.network_degree_out,
            }[self.size_encoding]
            # The domain is the in-degree extent; other degrees can fall below it
            scales[record.id] = max(size_scale(float(value)), config.NODE_SIZE_RANGE[0])
        return scales

    def base_scale(self, record_id: str) -> float:
        return self._base_scales.get(record_id, 1.0)

    # ------------------------------------------------------------------------------
    # Time / style
    # ------------------------------------------------------------------------------

    def update_time(self, mode: TimeMode) -> None:
        self.stack.apply_time(TimeMode(mode))
        self._update_link_geometry()
        self._update_link_visibility()

    def update_num_slices(self, num_slices: int) -> None:
        if self.dm.num_slices != num_slices:
            self.dm.set_num_slices(num_slices)
        self.assemble_data()

    def update_node_color(self, mode: NodeColorMode) -> None:
        self.node_color = NodeColorMode(mode)
        self._restyle()

    def update_node_size(self, size: int) -> None:
        self.node_size = int(size)
        radius = node_radius(self.node_size)
        for marker in self.markers.values():
            marker.radius = radius

    def update_jitter(self, radius: float) -> None:
        pass

    def update_set_layout(self, layout: SetLayout) -> None:
        pass

    def update_hull(self, enabled: bool) -> None:
        pass

    def change_charge_factor(self, factor: float) -> None:
        """Spread or contract the layout. Positions are always derived from the unscaled normalized ones."""
        self.charge_factor = float(factor)
        for record_id, marker in self.markers.items():
            x, z = self._node_xz(record_id)
            marker.set_position(x, marker.position[1], z)
        self._update_link_geometry()

    def update_size_encoding(self, encoding: SizeEncoding) -> None:
        self.size_encoding = SizeEncoding(encoding)
        self._base_scales = self._compute_base_scales()
        self._restyle()

    # ------------------------------------------------------------------------------
    # Filtering / selection
    # ------------------------------------------------------------------------------

    def filter_data(self, category: str, start: Optional[datetime], end: Optional[datetime]) -> None:
        self.filter = FilterState(category=category or "", start=start, end=end)
        visible: Set[str] = self.stack.apply_filter(self.filter)
        for entries in self.links.values():
            for edge, segment in entries:
                segment.visible = edge.source_id in visible and edge.target_id in visible
        logger.debug(f"NetCube filter {self.filter}: {len(visible)}/{len(self.markers)} visible.")

    def highlight_object(self, record_id: str) -> None:
        self._restyle(record_id)

    def clear_highlight(self) -> None:
        self._restyle(None)

    def on_click(self, pointer: Tuple[float, float], viewport: Viewport, camera: CameraModel) -> Optional[Record]:
        hit = pick_point(self.slices_group, pointer, viewport, camera)
        if hit is None:
            self.clear_highlight()
            return None
        return self.dm.get_record(hit.record_id)

    def _restyle(self, record_id: Optional[str] = "") -> None:
        if record_id == "":
            record_id = self._highlighted_id
        reset_markers(self.dm, self.markers, self.node_color, self._base_scales)
        marker = self.markers.get(record_id) if record_id is not None else None
        self._highlighted_id = record_id if marker is not None else None
        if marker is None:
            return

        record = self.dm.get_record(record_id)
        for neighbour_id in record.incoming_nodes:
            neighbour = self.markers.get(neighbour_id)
            if neighbour is not None and neighbour is not marker:
                neighbour.color = config.INCOMING_COLOR
        for target_id in record.target_nodes[:self.dm.links_per_node]:
            target = self.markers.get(target_id)
            if target is not None and target is not marker:
                target.color = config.OUTGOING_COLOR
        mark_highlighted(marker, self.base_scale(record_id))

    # ------------------------------------------------------------------------------
    # Temporal layouts
    # ------------------------------------------------------------------------------

    def transition_stc(self) -> None:
        self._transition(LayoutMode.STC)

    def transition_jp(self) -> None:
        self._transition(LayoutMode.JP)

    def transition_si(self) -> None:
        self._transition(LayoutMode.SI)

    def transition_ani(self) -> None:
        logger.info("NetCube: animated layout is not available; keeping the current layout.")

    def _transition(self, layout: LayoutMode) -> None:
        if not self.visible:
            return
        self.bounding_box.visible = layout == LayoutMode.STC
        self.stack.transition(layout)
        self._update_link_visibility()
        logger.debug(f"NetCube transition to {layout}; active links: {self.active_link_group}.")
