"""
SetCube
=======
Records as an unordered set inside each time slice. X/Z carry no meaning in
the random layout; the category layout gathers each category into its own
sector of the slice, optionally outlined by its convex hull.
"""
from __future__ import annotations

from datetime import datetime
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt
from scipy.spatial import ConvexHull, QhullError

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
from polycube.view.cubes.slices import SliceStack, TimeSlice
from polycube.view.cubes.styling import base_node_color, mark_highlighted, node_radius, reset_markers
from polycube.view.scene import Frame, Group, LineSegment, PointMarker, vec3

logger = logging.getLogger(__name__)

# Fraction of the half width used for point placement
_SPREAD = 0.9


class SetCube:
    name = "SetCube"

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
        self._seed = seed

        self.webgl_group = Group("SET_CUBE")
        self.css_group = Group("SET_CUBE_CSS")
        self.webgl_group.position = position
        self.css_group.position = position

        self.node_color: NodeColorMode = NodeColorMode.CATEGORICAL
        self.node_size: int = 3
        self.set_layout: SetLayout = SetLayout.RANDOM
        self.hull: bool = False
        self.filter = FilterState()
        self._highlighted_id: Optional[str] = None

        self.stack = SliceStack(dm, animator, "SET")
        self._layouts: Dict[SetLayout, Dict[str, Tuple[float, float]]] = {}
        self._hull_groups: Dict[int, Group] = {}
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

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def create_objects(self) -> None:
        half = self.dm.cube_width / 2.0
        for time_slice in self.stack.slices:
            self.animator.cancel(time_slice.group)
        self.webgl_group.clear()
        self.css_group.clear()
        self.stack = SliceStack(self.dm, self.animator, "SET")
        self._layouts = {}
        self._hull_groups = {}
        self._highlighted_id = None

        self.bounding_box = Frame("SET_BOUNDING_BOX", width=self.dm.cube_width, height=self.dm.cube_width,
                                  color=config.FRAME_COLOR)
        self.bounding_box.set_position(0.0, -half, 0.0)
        self.slices_group = Group("SET_SLICES")
        self.webgl_group.add(self.bounding_box, self.slices_group)
        self.labels_group = Group("SET_LABELS")
        self.css_group.add(self.labels_group)

    def assemble_data(self) -> None:
        self.stack.rebuild(self.slices_group, self.labels_group)
        self._hull_groups = {}
        for time_slice in self.stack.slices:
            hull_group = Group(f"SET_HULLS_{time_slice.index}")
            time_slice.group.add(hull_group)
            self._hull_groups[time_slice.index] = hull_group

        self._layouts = {
            SetLayout.RANDOM: self._random_layout(),
            SetLayout.CATEGORY: self._category_layout(),
        }
        positions = self._layouts[self.set_layout]
        radius = node_radius(self.node_size)
        for record in self.dm.records:
            x, z = positions[record.id]
            self.stack.add_marker(record, x, z, radius, base_node_color(self.dm, record, self.node_color))

        self.stack.place(self.stack.layout)
        self.bounding_box.visible = self.stack.layout == LayoutMode.STC
        self.filter_data(self.filter.category, self.filter.start, self.filter.end)
        self._restyle()
        logger.info(f"SetCube assembled {len(self.markers)} points in {len(self.stack.slices)} slices.")

    def _random_layout(self) -> Dict[str, Tuple[float, float]]:
        rng = np.random.default_rng(self._seed)
        extent = self.dm.cube_width / 2.0 * _SPREAD
        return {
            record.id: (float(x), float(z))
            for record, (x, z) in zip(self.dm.records, rng.uniform(-extent, extent, size=(len(self.dm), 2)))
        }

    def _category_layout(self) -> Dict[str, Tuple[float, float]]:
        """Each category occupies an equal angular sector around the slice centre."""
        rng = np.random.default_rng(self._seed)
        categories = self.dm.categories
        sector = 2.0 * math.pi / max(len(categories), 1)
        outer = self.dm.cube_width / 2.0 * _SPREAD
        positions: Dict[str, Tuple[float, float]] = {}
        for record in self.dm.records:
            k = categories.index(record.category_1)
            angle = (k + rng.uniform(0.1, 0.9)) * sector
            r = outer * math.sqrt(rng.uniform(0.05, 1.0))
            positions[record.id] = (r * math.cos(angle), r * math.sin(angle))
        return positions

    def render(self) -> None:
        if self.webgl_group.parent is not self.webgl_scene:
            self.webgl_scene.add(self.webgl_group)
        if self.css_group.parent is not self.css_scene:
            self.css_scene.add(self.css_group)

    def update(self, view_state: ViewState) -> None:
        shown = view_state in (ViewState.SET_CUBE, ViewState.POLY_CUBE)
        self.webgl_group.visible = shown
        self.css_group.visible = shown

    def get_cube_position(self) -> npt.NDArray[np.float64]:
        return self.webgl_group.world_position()

    # ------------------------------------------------------------------------------
    # Time / style
    # ------------------------------------------------------------------------------

    def update_time(self, mode: TimeMode) -> None:
        self.stack.apply_time(TimeMode(mode))

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
        self.set_layout = SetLayout(layout)
        positions = self._layouts.get(self.set_layout, {})
        for record_id, marker in self.markers.items():
            x, z = positions[record_id]
            marker.set_position(x, marker.position[1], z)
        self._update_hulls()

    def update_hull(self, enabled: bool) -> None:
        self.hull = bool(enabled)
        self._update_hulls()

    def change_charge_factor(self, factor: float) -> None:
        pass

    def update_size_encoding(self, encoding: SizeEncoding) -> None:
        pass

    # ------------------------------------------------------------------------------
    # Hulls
    # ------------------------------------------------------------------------------

    def _update_hulls(self) -> None:
        for group in self._hull_groups.values():
            group.clear()
        if not self.hull:
            return
        for time_slice in self.stack.slices:
            by_category: Dict[str, List[Tuple[float, float]]] = {}
            for record_id in time_slice.member_ids:
                marker = self.markers.get(record_id)
                record = self.dm.get_record(record_id)
                if marker is None or record is None or not marker.visible:
                    continue
                by_category.setdefault(record.category_1, []).append((marker.position[0], marker.position[2]))
            for category, points in by_category.items():
                self._add_hull(time_slice, category, points)

    def _add_hull(self, time_slice: TimeSlice, category: str, points: List[Tuple[float, float]]) -> None:
        if len(points) < 3:
            return
        pts = np.asarray(points, dtype=np.float64)
        try:
            hull = ConvexHull(pts)
        except QhullError:
            logger.debug(f"Skipping degenerate hull for '{category}' in slice {time_slice.index}.")
            return
        color = self.dm.color_for(category)
        group = self._hull_groups[time_slice.index]
        ring = list(hull.vertices) + [hull.vertices[0]]
        for a, b in zip(ring[:-1], ring[1:]):
            group.add(LineSegment(
                f"SET_HULL_{time_slice.index}_{category}_{a}",
                start=vec3(pts[a, 0], 0.0, pts[a, 1]),
                end=vec3(pts[b, 0], 0.0, pts[b, 1]),
                color=color,
                opacity=0.8,
            ))

    def hull_segments(self, slice_index: int) -> List[LineSegment]:
        group = self._hull_groups.get(slice_index)
        return [] if group is None else [c for c in group.children if isinstance(c, LineSegment)]

    # ------------------------------------------------------------------------------
    # Filtering / selection
    # ------------------------------------------------------------------------------

    def filter_data(self, category: str, start: Optional[datetime], end: Optional[datetime]) -> None:
        self.filter = FilterState(category=category or "", start=start, end=end)
        visible = self.stack.apply_filter(self.filter)
        self._update_hulls()
        logger.debug(f"SetCube filter {self.filter}: {len(visible)}/{len(self.markers)} visible.")

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
        reset_markers(self.dm, self.markers, self.node_color)
        marker = self.markers.get(record_id) if record_id is not None else None
        if marker is not None:
            mark_highlighted(marker)
        self._highlighted_id = record_id if marker is not None else None

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
        logger.info("SetCube: animated layout is not available; keeping the current layout.")

    def _transition(self, layout: LayoutMode) -> None:
        if not self.visible:
            return
        self.bounding_box.visible = layout == LayoutMode.STC
        self.stack.transition(layout)
        logger.debug(f"SetCube transition to {layout}.")
