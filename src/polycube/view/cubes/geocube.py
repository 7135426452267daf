"""
GeoCube
=======
Space-time cube over a map: X/Z from the projected location of each record,
Y from its date.

Why is this file needed?
------------------------
1. Geography: records are placed with the ``MapProjection`` fitted to the
   dataset, so the map floor and the points always agree.
2. Overplotting: records sharing a location can be spread with jitter. The
   projected (unjittered) coordinates are kept in a side table, so jitter never
   drifts away from the real location.
3. Map overlays: one map under the stacked cube, or one map per slice while
   the slices are juxtaposed.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from polycube import config
from polycube.controller.animation import Animator
from polycube.controller.picking import CameraModel, Viewport, pick_point
from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.state import (
    FilterState,
    LayoutMode,
    NodeColorMode,
    SetLayout,
    SizeEncoding,
    TimeMode,
    ViewState,
)
from polycube.view.cubes.geomap import MapProjection
from polycube.view.cubes.slices import SliceStack, TimeSlice
from polycube.view.cubes.styling import base_node_color, mark_highlighted, node_radius, reset_markers
from polycube.view.scene import Frame, Group, ImageOverlay, LineSegment, PointMarker, vec3

logger = logging.getLogger(__name__)


class GeoCube:
    name = "GeoCube"

    def __init__(
        self,
        dm: DataStore,
        animator: Animator,
        webgl_scene: Group,
        css_scene: Group,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        seed: Optional[int] = None,
    ) -> None:
        self.dm = dm
        self.animator = animator
        self.webgl_scene = webgl_scene
        self.css_scene = css_scene
        self.projection = MapProjection(dm.cube_width)
        self._rng = np.random.default_rng(seed)

        self.webgl_group = Group("GEO_CUBE")
        self.css_group = Group("GEO_CUBE_CSS")
        self.webgl_group.position = position
        self.css_group.position = position

        # Current style / filter, re-applied after every assembly
        self.node_color: NodeColorMode = NodeColorMode.CATEGORICAL
        self.node_size: int = 3
        self.jitter: float = 0.0
        self.filter = FilterState()
        self._highlighted_id: Optional[str] = None

        self.stack = SliceStack(dm, animator, "GEO")
        self._original_positions: Dict[str, Tuple[float, float]] = {}
        self.create_objects()

    # ------------------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------------------

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

    def original_position(self, record_id: str) -> Optional[Tuple[float, float]]:
        return self._original_positions.get(record_id)

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def create_objects(self) -> None:
        """Build the empty groups and the static decorations. Calling it again resets the cube."""
        half = self.dm.cube_width / 2.0
        for time_slice in self.stack.slices:
            self.animator.cancel(time_slice.group)
        self.webgl_group.clear()
        self.css_group.clear()
        self.stack = SliceStack(self.dm, self.animator, "GEO")
        self._original_positions = {}
        self._highlighted_id = None

        self.bounding_box = Frame("GEO_BOUNDING_BOX", width=self.dm.cube_width, height=self.dm.cube_width,
                                  color=config.FRAME_COLOR)
        self.bounding_box.set_position(0.0, -half, 0.0)
        self.slices_group = Group("GEO_SLICES")
        self.highlight_group = Group("GEO_HIGHLIGHT")
        self.guide_line = LineSegment("GEO_GUIDE_LINE", color=config.GUIDE_COLOR, width=1.5)
        self.base_marker = PointMarker("GEO_BASE_MARKER", radius=config.BASE_NODE_RADIUS, color=config.GUIDE_COLOR)
        self.highlight_group.add(self.guide_line, self.base_marker)
        self.highlight_group.visible = False
        self.webgl_group.add(self.bounding_box, self.slices_group, self.highlight_group)

        self.floor_map = ImageOverlay("GEO_FLOOR_MAP", size=self.dm.cube_width)
        self.floor_map.set_position(0.0, -half, 0.0)
        self.labels_group = Group("GEO_LABELS")
        self.css_group.add(self.floor_map, self.labels_group)

    def assemble_data(self) -> None:
        half = self.dm.cube_width / 2.0
        self.projection.fit(self.dm.records)
        self.floor_map.image = self.projection.snapshot() if len(self.dm) else None

        self.stack.rebuild(self.slices_group, self.labels_group)
        self._original_positions = {}
        radius = node_radius(self.node_size)
        for record in self.dm.records:
            px, py = self.projection.project(record.longitude, record.latitude)
            x, z = px - half, py - half
            self._original_positions[record.id] = (x, z)
            self.stack.add_marker(record, x, z, radius, base_node_color(self.dm, record, self.node_color))

        if self.jitter > 0:
            self.jitter_point(self.jitter)
        self.stack.place(self.stack.layout)
        self._apply_layout_decorations(self.stack.layout)
        if self.stack.layout == LayoutMode.JP:
            self._attach_map_clones()
        self.filter_data(self.filter.category, self.filter.start, self.filter.end)
        self._restyle()
        logger.info(f"GeoCube assembled {len(self.markers)} points in {len(self.stack.slices)} slices.")

    def render(self) -> None:
        if self.webgl_group.parent is not self.webgl_scene:
            self.webgl_scene.add(self.webgl_group)
        if self.css_group.parent is not self.css_scene:
            self.css_scene.add(self.css_group)

    def update(self, view_state: ViewState) -> None:
        shown = view_state in (ViewState.GEO_CUBE, ViewState.POLY_CUBE)
        self.webgl_group.visible = shown
        self.css_group.visible = shown

    def get_cube_position(self) -> npt.NDArray[np.float64]:
        return self.webgl_group.world_position()

    # ------------------------------------------------------------------------------
    # Time / style
    # ------------------------------------------------------------------------------

    def update_time(self, mode: TimeMode) -> None:
        self.stack.apply_time(TimeMode(mode))
        self._update_guide()

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
        self.jitter_point(radius)

    def jitter_point(self, radius: float) -> None:
        """
        Offset every point uniformly within ``[-radius, radius]`` on X and Z
        around its projected location. A radius of 0 restores the locations.
        """
        self.jitter = float(radius)
        for record_id, marker in self.markers.items():
            x, z = self._original_positions[record_id]
            if self.jitter > 0:
                dx, dz = self._rng.uniform(-self.jitter, self.jitter, size=2)
                x, z = x + dx, z + dz
            marker.set_position(x, marker.position[1], z)
        self._update_guide()

    def update_set_layout(self, layout: SetLayout) -> None:
        pass

    def update_hull(self, enabled: bool) -> None:
        pass

    def change_charge_factor(self, factor: float) -> None:
        pass

    def update_size_encoding(self, encoding: SizeEncoding) -> None:
        pass

    # ------------------------------------------------------------------------------
    # Filtering / selection
    # ------------------------------------------------------------------------------

    def filter_data(self, category: str, start: Optional[datetime], end: Optional[datetime]) -> None:
        self.filter = FilterState(category=category or "", start=start, end=end)
        visible = self.stack.apply_filter(self.filter)
        logger.debug(f"GeoCube filter {self.filter}: {len(visible)}/{len(self.markers)} visible.")

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
        """Reset every marker, then paint ``record_id``. The default keeps the current highlight."""
        if record_id == "":
            record_id = self._highlighted_id
        reset_markers(self.dm, self.markers, self.node_color)
        marker = self.markers.get(record_id) if record_id is not None else None
        if marker is not None:
            mark_highlighted(marker)
        self._highlighted_id = record_id if marker is not None else None
        self._update_guide()

    def _update_guide(self) -> None:
        """Guide line from the highlighted point straight down to the map floor."""
        marker = self.markers.get(self._highlighted_id) if self._highlighted_id is not None else None
        if marker is None:
            self.highlight_group.visible = False
            return
        top = marker.world_position() - self.webgl_group.world_position()
        base = vec3(top[0], -self.dm.cube_width / 2.0, top[2])
        self.guide_line.set_endpoints(top, base)
        self.base_marker.position = base
        self.highlight_group.visible = True

    # ------------------------------------------------------------------------------
    # Temporal layouts
    # ------------------------------------------------------------------------------

    def transition_stc(self) -> None:
        self._transition(LayoutMode.STC)

    def transition_si(self) -> None:
        self._transition(LayoutMode.SI)

    def transition_jp(self) -> None:
        if not self.visible:
            return
        self._apply_layout_decorations(LayoutMode.JP)
        self._attach_map_clones()
        self.stack.transition(LayoutMode.JP, on_update=self._on_slice_moved)
        logger.debug("GeoCube transition to JP.")

    def transition_ani(self) -> None:
        logger.info("GeoCube: animated layout is not available; keeping the current layout.")

    def _transition(self, layout: LayoutMode) -> None:
        if not self.visible:
            return
        self._apply_layout_decorations(layout)
        self.stack.transition(layout, on_update=self._on_slice_moved, on_complete=self._detach_map_clone)
        logger.debug(f"GeoCube transition to {layout}.")

    def _on_slice_moved(self, time_slice: TimeSlice) -> None:
        if self._highlighted_id is not None and self.stack.slice_of(self._highlighted_id) is time_slice:
            self._update_guide()

    def _apply_layout_decorations(self, layout: LayoutMode) -> None:
        self.bounding_box.visible = layout == LayoutMode.STC
        self.floor_map.visible = layout != LayoutMode.JP

    def _attach_map_clones(self) -> None:
        """One map per slice, following its slice. Existing clones are replaced."""
        for time_slice in self.stack.slices:
            self._detach_map_clone(time_slice)
            clone = ImageOverlay(f"GEO_SLICE_MAP_{time_slice.index}", image=self.floor_map.image,
                                 size=self.dm.cube_width, opacity=0.85)
            clone.position = time_slice.group.position
            time_slice.followers.append(clone)
            self.labels_group.add(clone)

    def _detach_map_clone(self, time_slice: TimeSlice) -> None:
        for follower in time_slice.followers:
            self.labels_group.remove(follower)
        time_slice.followers.clear()

    @property
    def map_clones(self) -> list[ImageOverlay]:
        return [f for s in self.stack.slices for f in s.followers if isinstance(f, ImageOverlay)]
