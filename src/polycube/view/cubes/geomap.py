"""
Map Projection
==============
Web-Mercator projection fitted to the dataset's geographic extent, plus a
raster snapshot of the map used as the cube floor and as the per-slice
overlays of the juxtaposed layout.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Tuple

import numpy as np
import numpy.typing as npt
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from polycube.model.records import Record

logger = logging.getLogger(__name__)

MAX_LATITUDE = 85.0511


def mercator(lon: float, lat: float) -> Tuple[float, float]:
    lat = max(min(lat, MAX_LATITUDE), -MAX_LATITUDE)
    x = math.radians(lon)
    y = math.log(math.tan(math.pi / 4.0 + math.radians(lat) / 2.0))
    return x, y


class MapProjection:
    """
    Projects lon/lat into map pixels ``[0, size]`` (x east, y south), keeping
    the aspect ratio and a relative padding around the fitted extent.
    """

    def __init__(self, size: float, padding: float = 0.1) -> None:
        self.size: float = size
        self.padding: float = padding
        # Mercator bounds (x0, y0, x1, y1); whole world until fitted
        self._bounds: Tuple[float, float, float, float] = (-math.pi, -math.pi, math.pi, math.pi)
        self._snapshot: Optional[npt.NDArray[np.uint8]] = None

    def fit(self, records: Iterable[Record]) -> None:
        pts = [mercator(r.longitude, r.latitude) for r in records]
        self._snapshot = None
        if not pts:
            self._bounds = (-math.pi, -math.pi, math.pi, math.pi)
            return
        xs, ys = zip(*pts)
        cx, cy = (min(xs) + max(xs)) / 2.0, (min(ys) + max(ys)) / 2.0
        span = max(max(xs) - min(xs), max(ys) - min(ys))
        # A single location still gets a small neighbourhood around it
        span = max(span, math.radians(1.0)) * (1.0 + 2.0 * self.padding)
        half = span / 2.0
        self._bounds = (cx - half, cy - half, cx + half, cy + half)
        logger.debug(f"Map fitted to mercator bounds {self._bounds}.")

    def project(self, lon: float, lat: float) -> Tuple[float, float]:
        x, y = mercator(lon, lat)
        x0, y0, x1, y1 = self._bounds
        px = (x - x0) / (x1 - x0) * self.size
        # Pixel rows grow southwards
        py = (y1 - y) / (y1 - y0) * self.size
        return px, py

    def geographic_bounds(self) -> Tuple[float, float, float, float]:
        """(lon_min, lat_min, lon_max, lat_max) of the fitted view."""
        x0, y0, x1, y1 = self._bounds
        lat = lambda y: math.degrees(2.0 * math.atan(math.exp(y)) - math.pi / 2.0)
        return math.degrees(x0), lat(y0), math.degrees(x1), lat(y1)

    def snapshot(self, resolution: int = 256) -> npt.NDArray[np.uint8]:
        """
        Rasterize the current map view (graticule and border) into an
        (H, W, 4) uint8 array. Cached until the projection is fitted again.
        """
        if self._snapshot is not None and self._snapshot.shape[0] == resolution:
            return self._snapshot

        lon0, lat0, lon1, lat1 = self.geographic_bounds()
        fig = Figure(figsize=(1, 1), dpi=resolution)
        canvas = FigureCanvasAgg(fig)
        ax = fig.add_axes((0, 0, 1, 1))
        ax.set_xlim(0, self.size)
        ax.set_ylim(self.size, 0)
        ax.set_facecolor("#eef2f5")
        ax.set_axis_off()
        fig.patch.set_facecolor("#eef2f5")

        step = _graticule_step(max(lon1 - lon0, lat1 - lat0))
        for lon in np.arange(math.floor(lon0 / step) * step, lon1 + step, step):
            px0, _ = self.project(lon, lat0)
            ax.plot([px0, px0], [0, self.size], color="#c5ccd3", linewidth=0.6)
        for lat in np.arange(math.floor(lat0 / step) * step, lat1 + step, step):
            _, py0 = self.project(lon0, lat)
            ax.plot([0, self.size], [py0, py0], color="#c5ccd3", linewidth=0.6)
        ax.plot([0, self.size, self.size, 0, 0], [0, 0, self.size, self.size, 0], color="#8a949e", linewidth=1.5)

        canvas.draw()
        self._snapshot = np.asarray(canvas.buffer_rgba(), dtype=np.uint8).copy()
        return self._snapshot


def _graticule_step(extent_deg: float) -> float:
    for step in (0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0):
        if extent_deg / step <= 8:
            return step
    return 30.0
