"""
Scales and Palettes
===================
Pure mapping helpers shared by the DataStore and the cube views.

Classes:
    TimeScale: date -> vertical cube coordinate.
    LinearScale: float -> float (node size encoding).
    TimeBucket: one time slice interval.
    CategoricalPalette: category -> hex color, stable per dataset.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import matplotlib
from matplotlib import colors as mcolors

EPOCH = datetime(1970, 1, 1)


def to_seconds(value: datetime) -> float:
    """Seconds since EPOCH for naive datetimes (no local timezone involved)."""
    return (value - EPOCH).total_seconds()


def from_seconds(seconds: float) -> datetime:
    return EPOCH + timedelta(seconds=seconds)


@dataclass(frozen=True)
class TimeScale:
    """
    Linear mapping of a datetime domain onto a numeric range.

    A degenerate domain (min == max) maps every date to the midpoint of the
    range, an empty domain (None) maps everything to the range start.
    """
    domain: Optional[Tuple[datetime, datetime]]
    range: Tuple[float, float]

    def __call__(self, value: datetime) -> float:
        r0, r1 = self.range
        if self.domain is None:
            return r0
        d0, d1 = (to_seconds(d) for d in self.domain)
        if d1 == d0:
            return (r0 + r1) / 2.0
        t = (to_seconds(value) - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)

    def invert(self, y: float) -> Optional[datetime]:
        r0, r1 = self.range
        if self.domain is None:
            return None
        d0, d1 = (to_seconds(d) for d in self.domain)
        if r1 == r0:
            return self.domain[0]
        t = (y - r0) / (r1 - r0)
        return from_seconds(d0 + t * (d1 - d0))


@dataclass(frozen=True)
class LinearScale:
    domain: Tuple[float, float]
    range: Tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)


@dataclass(frozen=True)
class TimeBucket:
    """
    One time slice interval.

    Boundary policy: ``[start, end)`` for every bucket except the last one,
    which is closed ``[start, end]`` so that the domain maximum belongs to it.
    """
    index: int
    start: datetime
    end: datetime
    closed: bool = False

    def contains(self, value: datetime) -> bool:
        if value < self.start:
            return False
        return value <= self.end if self.closed else value < self.end

    @property
    def label(self) -> str:
        if (self.end - self.start) >= timedelta(days=365):
            return f"{self.start:%Y} - {self.end:%Y}"
        return f"{self.start:%Y-%m-%d} - {self.end:%Y-%m-%d}"


def partition_domain(domain: Optional[Tuple[datetime, datetime]], count: int) -> List[TimeBucket]:
    """
    Split the domain into ``count`` equal-duration buckets.

    Returns an empty list for an empty domain. The buckets are contiguous: the
    end of bucket k is the start of bucket k + 1.
    """
    if domain is None or count < 1:
        return []
    d0, d1 = to_seconds(domain[0]), to_seconds(domain[1])
    step = (d1 - d0) / count
    bounds = [domain[0]] + [from_seconds(d0 + step * k) for k in range(1, count)] + [domain[1]]
    return [
        TimeBucket(index=k, start=bounds[k], end=bounds[k + 1], closed=(k == count - 1))
        for k in range(count)
    ]


def bucket_index(buckets: Sequence[TimeBucket], value: datetime) -> int:
    """
    Index of the bucket containing ``value``; values outside the domain clamp
    to the first/last bucket. Returns -1 when there are no buckets.
    """
    if not buckets:
        return -1
    starts = [b.start for b in buckets]
    idx = bisect_right(starts, value) - 1
    return min(max(idx, 0), len(buckets) - 1)


class CategoricalPalette:
    """
    Ordinal color assignment over a matplotlib qualitative colormap.

    Known categories are assigned in sorted order when the palette is built;
    categories seen later are appended, so a category never changes color while
    the dataset stays loaded.
    """

    def __init__(self, categories: Iterable[str] = (), cmap_name: str = "tab10") -> None:
        cmap = matplotlib.colormaps[cmap_name]
        n = getattr(cmap, "N", 10)
        self._colors: List[str] = [mcolors.to_hex(cmap(i)) for i in range(n)]
        self._assigned: Dict[str, str] = {}
        for category in sorted(set(categories)):
            self.color_for(category)

    def color_for(self, category: str) -> str:
        if category not in self._assigned:
            self._assigned[category] = self._colors[len(self._assigned) % len(self._colors)]
        return self._assigned[category]

    @property
    def categories(self) -> List[str]:
        return list(self._assigned)

    def __len__(self) -> int:
        return len(self._assigned)


def temporal_color(scale: TimeScale, value: datetime, cmap_name: str = "viridis") -> str:
    """Sequential color of a date along the time scale."""
    r0, r1 = scale.range
    t = 0.5 if r1 == r0 else (scale(value) - r0) / (r1 - r0)
    t = min(max(t, 0.0), 1.0)
    return mcolors.to_hex(matplotlib.colormaps[cmap_name](t))
