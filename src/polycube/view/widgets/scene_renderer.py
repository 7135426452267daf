"""
Scene Renderer
Maps scene-graph nodes onto PyVista actors.

Actors are created the first time a node is seen, updated in place on every
sync (position, scale, color, visibility) and removed when their node leaves
the scene. Only labels are re-added when they change, since point labels are
2D actors without a movable world position.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
import pyvista as pv

from polycube.view.scene import Frame, ImageOverlay, Label, LineSegment, NodeKind, PointMarker, SceneNode

logger = logging.getLogger(__name__)


class SceneRenderer:
    def __init__(self, plotter: pv.Plotter) -> None:
        self.plotter = plotter
        self._sphere: pv.PolyData = pv.Sphere(radius=1.0, theta_resolution=12, phi_resolution=12)
        self._actors: Dict[int, pv.Actor] = {}
        self._labels: Dict[int, Tuple[Optional[object], Tuple]] = {}
        self._textures: Dict[int, int] = {}

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def sync(self, *roots: SceneNode) -> None:
        """Bring the actors in line with the current state of the scene graphs."""
        seen: set[int] = set()
        for root in roots:
            for node in root.traverse():
                if node.kind == NodeKind.GROUP:
                    continue
                seen.add(node.uid)
                visible = node.is_visible_in_tree()
                if isinstance(node, PointMarker):
                    self._sync_point(node, visible)
                elif isinstance(node, LineSegment):
                    self._sync_line(node, visible)
                elif isinstance(node, Frame):
                    self._sync_frame(node, visible)
                elif isinstance(node, Label):
                    self._sync_label(node, visible)
                elif isinstance(node, ImageOverlay):
                    self._sync_image(node, visible)

        for uid in [u for u in self._actors if u not in seen]:
            self.plotter.remove_actor(self._actors.pop(uid), render=False)
            self._textures.pop(uid, None)
        for uid in [u for u in self._labels if u not in seen]:
            self._remove_label(uid)

    def clear(self) -> None:
        for actor in self._actors.values():
            self.plotter.remove_actor(actor, render=False)
        for uid in list(self._labels):
            self._remove_label(uid)
        self._actors.clear()
        self._textures.clear()

    # ------------------------------------------------------------------------------
    # Internal: per kind
    # ------------------------------------------------------------------------------

    def _sync_point(self, node: PointMarker, visible: bool) -> None:
        actor = self._actors.get(node.uid)
        if actor is None:
            actor = self.plotter.add_mesh(self._sphere, color=node.color, smooth_shading=True,
                                          pickable=False, reset_camera=False, render=False)
            self._actors[node.uid] = actor
        actor.SetVisibility(visible)
        if not visible:
            return
        actor.position = tuple(node.world_position())
        size = node.radius * node.scale
        actor.scale = (size, size, size)
        actor.prop.color = node.color

    def _sync_line(self, node: LineSegment, visible: bool) -> None:
        start, end = node.world_endpoints()
        points = np.vstack([start, end])
        actor = self._actors.get(node.uid)
        if actor is None:
            poly = pv.PolyData(points, lines=np.array([2, 0, 1], dtype=int))
            actor = self.plotter.add_mesh(poly, color=node.color, opacity=node.opacity, line_width=node.width,
                                          pickable=False, reset_camera=False, render=False)
            self._actors[node.uid] = actor
        actor.SetVisibility(visible)
        if not visible:
            return
        actor.mapper.dataset.points = points
        actor.prop.color = node.color
        actor.prop.opacity = node.opacity

    def _sync_frame(self, node: Frame, visible: bool) -> None:
        actor = self._actors.get(node.uid)
        if actor is None:
            actor = self.plotter.add_mesh(self._frame_polydata(node.width, node.height), color=node.color,
                                          line_width=1, pickable=False, reset_camera=False, render=False)
            self._actors[node.uid] = actor
        actor.SetVisibility(visible)
        if visible:
            actor.position = tuple(node.world_position())

    def _sync_label(self, node: Label, visible: bool) -> None:
        position = tuple(np.round(node.world_position(), 2))
        signature = (position, node.text, node.color, visible)
        current = self._labels.get(node.uid)
        if current is not None and current[1] == signature:
            return
        self._remove_label(node.uid)
        actor = None
        if visible:
            actor = self.plotter.add_point_labels(
                [position], [node.text], font_size=11, text_color=node.color,
                show_points=False, shape=None, always_visible=True, render=False,
            )
        self._labels[node.uid] = (actor, signature)

    def _remove_label(self, uid: int) -> None:
        entry = self._labels.pop(uid, None)
        if entry is not None and entry[0] is not None:
            self.plotter.remove_actor(entry[0], render=False)

    def _sync_image(self, node: ImageOverlay, visible: bool) -> None:
        if node.image is None:
            visible = False
        actor = self._actors.get(node.uid)
        if actor is None and node.image is None:
            return
        if actor is None or self._textures.get(node.uid) != id(node.image):
            if actor is not None:
                self.plotter.remove_actor(actor, render=False)
            plane = pv.Plane(center=(0.0, 0.0, 0.0), direction=(0.0, 1.0, 0.0),
                             i_size=node.size, j_size=node.size)
            texture = pv.numpy_to_texture(np.ascontiguousarray(node.image))
            actor = self.plotter.add_mesh(plane, texture=texture, opacity=node.opacity, lighting=False,
                                          pickable=False, reset_camera=False, render=False)
            self._actors[node.uid] = actor
            self._textures[node.uid] = id(node.image)
        actor.SetVisibility(visible)
        if visible:
            actor.position = tuple(node.world_position())

    @staticmethod
    def _frame_polydata(width: float, height: float) -> pv.PolyData:
        """
        Outline of an axis-aligned box: x, z in [-w/2, w/2], y in [0, h].
        A zero height gives the square outline of a slice.
        """
        h = width / 2.0
        square = [(-h, -h), (h, -h), (h, h), (-h, h)]
        levels: List[float] = [0.0] if height <= 0 else [0.0, height]

        points: List[Tuple[float, float, float]] = []
        for y in levels:
            points.extend((x, y, z) for x, z in square)
        cells: List[int] = []
        for k in range(len(levels)):
            base = 4 * k
            for i in range(4):
                cells.extend((2, base + i, base + (i + 1) % 4))
        if len(levels) == 2:
            for i in range(4):
                cells.extend((2, i, 4 + i))
        return pv.PolyData(np.asarray(points, dtype=float), lines=np.asarray(cells, dtype=int))

