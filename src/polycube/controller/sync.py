"""
PolyCube Controller
===================
Keeps the three cubes synchronized.

Why is this file needed?
------------------------
1. Fan-out: every style, filter, time-mode and layout command is applied to
   all cubes, so they always show the same subset in the same encoding.
2. Selection: a pointer event is picked against the cubes in a fixed order
   (Geo, Set, Net); the first hit is highlighted in every cube, a miss clears
   the highlight everywhere.
3. Frame loop: the Qt widget calls ``tick`` once per render tick; the
   controller advances the animator and reports whether a redraw is needed.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from polycube import config
from polycube.controller.animation import Animator
from polycube.controller.layout import compute_force_layout
from polycube.controller.picking import CameraModel, Viewport
from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.state import FilterState, LayoutMode, StyleSettings, TimeMode, ViewState
from polycube.view.cubes.base import PolyCube
from polycube.view.cubes.geocube import GeoCube
from polycube.view.cubes.netcube import NetCube
from polycube.view.cubes.setcube import SetCube
from polycube.view.scene import Group

logger = logging.getLogger(__name__)


class PolyCubeController:
    def __init__(self, dm: DataStore, animator: Optional[Animator] = None, seed: Optional[int] = 7) -> None:
        self.dm = dm
        self.animator = animator or Animator()
        self.webgl_scene = Group("WEBGL_SCENE")
        self.css_scene = Group("CSS_SCENE")
        self.style = StyleSettings(num_slices=dm.num_slices)
        self.filter = FilterState()
        self.time_mode: TimeMode = TimeMode.AGGREGATED
        self.layout: LayoutMode = LayoutMode.STC
        self.view_state: ViewState = ViewState.POLY_CUBE
        self.selected_id: Optional[str] = None

        spacing = config.CUBE_SPACING
        self.geo_cube = GeoCube(dm, self.animator, self.webgl_scene, self.css_scene, (0.0, 0.0, 0.0), seed=seed)
        self.set_cube = SetCube(dm, self.animator, self.webgl_scene, self.css_scene, (spacing, 0.0, 0.0), seed=seed)
        self.net_cube = NetCube(dm, self.animator, self.webgl_scene, self.css_scene, (2.0 * spacing, 0.0, 0.0))
        # Pick order
        self.views: List[PolyCube] = [self.geo_cube, self.set_cube, self.net_cube]
        for view in self.views:
            view.render()

        # Set whenever the scene changed outside of a tween
        self.dirty: bool = True
        self._listeners: Dict[str, List[Callable[..., None]]] = {}

    # ------------------------------------------------------------------------------
    # Listeners (GUI side)
    # ------------------------------------------------------------------------------

    def subscribe(self, event: str, callback: Callable[..., None]) -> None:
        """Events: ``selection`` (Optional[Record]), ``background`` (str), ``data`` ()."""
        self._listeners.setdefault(event, []).append(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in self._listeners.get(event, []):
            callback(*args)

    # ------------------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------------------

    def load_records(
        self,
        records: Sequence[Record],
        positions: Optional[Mapping[str, Tuple[float, float]]] = None,
    ) -> None:
        """
        Replace the dataset and reassemble every cube. Without ``positions`` a
        force-directed layout is computed for the network cube.
        """
        self.animator.cancel_all()
        self.dm.set_records(records)
        if positions is None:
            positions = compute_force_layout(self.dm.records)
        self.dm.set_layout_positions(positions)
        # Filter and selection belong to the previous dataset
        self.filter = FilterState()
        self.selected_id = None
        for view in self.views:
            view.filter_data("", None, None)
            view.clear_highlight()
            view.assemble_data()
        self.dirty = True
        logger.info(f"Loaded {len(self.dm)} records into {len(self.views)} cubes.")
        self._emit("selection", None)
        self._emit("data")

    def set_layout_positions(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        self.dm.set_layout_positions(positions)
        self.net_cube.assemble_data()
        self.dirty = True

    # ------------------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------------------

    def apply_style(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate a style event and fan each key out to every cube.

        Raises:
            ValueError: Invalid key or value; nothing is applied.
        """
        changes = self.style.update(dict(event))
        for name, value in changes.items():
            if name == "background_color":
                self._emit("background", value)
                continue
            if name == "num_slices":
                self.dm.set_num_slices(value)
            for view in self.views:
                self._apply_style_key(view, name, value)
        self.dirty = True
        return changes

    @staticmethod
    def _apply_style_key(view: PolyCube, name: str, value: Any) -> None:
        if name == "num_slices":
            view.update_num_slices(value)
        elif name == "node_size":
            view.update_node_size(value)
        elif name == "node_color":
            view.update_node_color(value)
        elif name == "jitter":
            view.update_jitter(value)
        elif name == "set_layout":
            view.update_set_layout(value)
        elif name == "hull":
            view.update_hull(value)
        elif name == "charge_factor":
            view.change_charge_factor(value)
        elif name == "size_encoding":
            view.update_size_encoding(value)

    def filter_data(self, category: str = "", start: Optional[datetime] = None,
                    end: Optional[datetime] = None) -> None:
        self.filter = FilterState(category=category or "", start=start, end=end)
        for view in self.views:
            view.filter_data(self.filter.category, start, end)
        self.dirty = True

    def clear_filter(self) -> None:
        self.filter_data("", None, None)

    def update_time(self, mode: TimeMode) -> None:
        self.time_mode = TimeMode(mode)
        for view in self.views:
            view.update_time(self.time_mode)
        self.dirty = True

    def transition(self, layout: LayoutMode) -> None:
        layout = LayoutMode(layout)
        if layout != LayoutMode.ANI:
            self.layout = layout
        for view in self.views:
            self._transition_view(view, layout)
        self.dirty = True

    @staticmethod
    def _transition_view(view: PolyCube, layout: LayoutMode) -> None:
        {
            LayoutMode.STC: view.transition_stc,
            LayoutMode.JP: view.transition_jp,
            LayoutMode.SI: view.transition_si,
            LayoutMode.ANI: view.transition_ani,
        }[layout]()

    def set_view_state(self, view_state: ViewState) -> None:
        self.view_state = ViewState(view_state)
        for view in self.views:
            view.update(self.view_state)
            # Hidden cubes skip transitions; catch up when they are shown again
            if view.visible and view.layout != self.layout:
                self._transition_view(view, self.layout)
        self.dirty = True

    # ------------------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------------------

    def highlight(self, record_id: str) -> None:
        self.selected_id = record_id
        for view in self.views:
            view.highlight_object(record_id)
        self.dirty = True
        self._emit("selection", self.dm.get_record(record_id))

    def clear_highlight(self) -> None:
        self.selected_id = None
        for view in self.views:
            view.clear_highlight()
        self.dirty = True
        self._emit("selection", None)

    def on_click(self, pointer: Tuple[float, float], viewport: Viewport, camera: CameraModel) -> Optional[Record]:
        """Pick in the order Geo, Set, Net. The first hit is broadcast; a miss clears every cube."""
        hit: Optional[Record] = None
        for view in self.views:
            hit = view.on_click(pointer, viewport, camera)
            if hit is not None:
                break
        if hit is None:
            self.clear_highlight()
        else:
            logger.debug(f"Picked record {hit.id}.")
            self.highlight(hit.id)
        return hit

    # ------------------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> bool:
        """Advance running transitions. Returns True when the scene must be redrawn."""
        running = self.animator.tick(now)
        needs_render = running or self.dirty
        self.dirty = running
        return needs_render
