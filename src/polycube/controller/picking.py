"""
Picking
=======
Converts a pointer position into a ray through the camera and intersects it
with the point markers of one cube's scene subtree.

The camera is described by plain values (``CameraModel``) so that picking does
not depend on a live render window; ``view.widgets.plot_3d`` builds one from
the PyVista camera.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, Optional, Tuple

import numpy as np
import numpy.typing as npt

from polycube.view.scene import NodeKind, PointMarker, SceneNode


@dataclass(frozen=True)
class Viewport:
    """Pixel rectangle of the element that received the pointer event (top-left origin)."""
    left: float
    top: float
    width: float
    height: float

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height > 0 else 1.0


@dataclass(frozen=True)
class CameraModel:
    position: Tuple[float, float, float]
    focal_point: Tuple[float, float, float]
    view_up: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    view_angle: float = 30.0  # vertical field of view, degrees
    parallel_projection: bool = False
    parallel_scale: float = 1.0


@dataclass(frozen=True)
class Ray:
    origin: npt.NDArray[np.float64]
    direction: npt.NDArray[np.float64]


def pointer_to_ndc(pointer: Tuple[float, float], viewport: Viewport) -> Tuple[float, float]:
    """Normalized device coordinates in [-1, 1], y pointing up."""
    x, y = pointer
    ndc_x = (x - viewport.left) / viewport.width * 2.0 - 1.0
    ndc_y = -(y - viewport.top) / viewport.height * 2.0 + 1.0
    return ndc_x, ndc_y


def _normalize(v: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    n = np.linalg.norm(v)
    if n == 0:
        raise ValueError("Degenerate camera vector.")
    return v / n


def ray_from_camera(ndc: Tuple[float, float], camera: CameraModel, aspect: float) -> Ray:
    position = np.asarray(camera.position, dtype=np.float64)
    forward = _normalize(np.asarray(camera.focal_point, dtype=np.float64) - position)
    right = _normalize(np.cross(forward, np.asarray(camera.view_up, dtype=np.float64)))
    up = np.cross(right, forward)
    ndc_x, ndc_y = ndc

    if camera.parallel_projection:
        half_h = camera.parallel_scale
        origin = position + right * ndc_x * half_h * aspect + up * ndc_y * half_h
        return Ray(origin=origin, direction=forward)

    tan_half = math.tan(math.radians(camera.view_angle) / 2.0)
    direction = forward + right * ndc_x * tan_half * aspect + up * ndc_y * tan_half
    return Ray(origin=position, direction=_normalize(direction))


def intersect_sphere(ray: Ray, center: npt.NDArray[np.float64], radius: float) -> Optional[float]:
    """Distance along the ray to the first hit in front of the origin, or None."""
    oc = ray.origin - center
    b = float(np.dot(oc, ray.direction))
    c = float(np.dot(oc, oc)) - radius * radius
    disc = b * b - c
    if disc < 0:
        return None
    root = math.sqrt(disc)
    t = -b - root
    if t < 0:
        t = -b + root
    return t if t >= 0 else None


def pick_point(
    root: SceneNode,
    pointer: Tuple[float, float],
    viewport: Viewport,
    camera: CameraModel,
) -> Optional[PointMarker]:
    """
    Nearest visible point marker under the pointer within ``root``'s subtree.
    """
    ray = ray_from_camera(pointer_to_ndc(pointer, viewport), camera, viewport.aspect)
    return nearest_hit(ray, (n for n in root.traverse() if n.kind == NodeKind.POINT))


def nearest_hit(ray: Ray, markers: Iterable[SceneNode]) -> Optional[PointMarker]:
    best: Optional[PointMarker] = None
    best_t = math.inf
    for marker in markers:
        if not isinstance(marker, PointMarker) or not marker.is_visible_in_tree():
            continue
        t = intersect_sphere(ray, marker.world_position(), marker.radius * marker.scale)
        if t is not None and t < best_t:
            best, best_t = marker, t
    return best
