"""
DataStore
=========
Owns the canonical record set and everything derived from it that the three
cubes must agree on: the time domain, the time scale, the slice buckets, the
category palette and the normalized network layout positions.

Why is this file needed?
------------------------
1. Single source of truth: the cubes only keep presentation objects that
   reference records by id. Scales and palettes computed once here keep the
   cubes synchronized.
2. Degradation: an empty dataset produces an empty-but-valid state instead of
   exceptions, so views simply assemble zero points.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from polycube import config
from polycube.model.records import Record
from polycube.model.scales import (
    CategoricalPalette,
    TimeBucket,
    TimeScale,
    bucket_index,
    partition_domain,
    temporal_color,
)

logger = logging.getLogger(__name__)


class DataStore:
    def __init__(
        self,
        cube_width: float = config.CUBE_WIDTH,
        num_slices: int = config.DEFAULT_NUM_SLICES,
        links_per_node: int = config.DEFAULT_LINKS_PER_NODE,
    ) -> None:
        self.cube_width: float = cube_width
        self.links_per_node: int = links_per_node
        self._num_slices: int = self._validate_num_slices(num_slices)

        self._records: List[Record] = []
        self._index: Dict[str, Record] = {}
        self._time_domain: Optional[Tuple[datetime, datetime]] = None
        self._time_scale: TimeScale = TimeScale(None, self._range())
        self._buckets: List[TimeBucket] = []
        self._palette: CategoricalPalette = CategoricalPalette()

        self._positions: Dict[str, Tuple[float, float]] = {}
        self._normalized: Dict[str, Tuple[float, float]] = {}

        # Set once the network annotation pass ran over the current records
        self.network_annotated: bool = False

    # ------------------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------------------

    @property
    def records(self) -> Sequence[Record]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def set_records(self, records: Iterable[Record]) -> None:
        """
        Replace the record set and recompute the time domain, the time scale,
        the slice buckets and the palette.
        """
        self._records = list(records)
        self._index = {}
        for record in self._records:
            if record.id in self._index:
                logger.warning(f"Duplicate record id '{record.id}'; keeping the first occurrence in the index.")
                continue
            self._index[record.id] = record

        self.network_annotated = False
        self._positions = {}
        self._normalized = {}

        if not self._records:
            logger.warning("DataStore received an empty record set.")
            self._time_domain = None
        else:
            dates = [r.date_time for r in self._records]
            self._time_domain = (min(dates), max(dates))

        self._palette = CategoricalPalette(r.category_1 for r in self._records)
        self._rebuild_time()
        logger.info(
            f"DataStore loaded {len(self._records)} records, "
            f"{len(self._palette)} categories, domain={self._time_domain}."
        )

    def get_record(self, record_id: str) -> Optional[Record]:
        return self._index.get(str(record_id))

    def has_record(self, record_id: str) -> bool:
        return str(record_id) in self._index

    @property
    def index(self) -> Mapping[str, Record]:
        return self._index

    @property
    def categories(self) -> List[str]:
        return sorted({r.category_1 for r in self._records})

    # ------------------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------------------

    @property
    def time_domain(self) -> Optional[Tuple[datetime, datetime]]:
        return self._time_domain

    @property
    def num_slices(self) -> int:
        return self._num_slices

    def set_num_slices(self, num_slices: int) -> None:
        self._num_slices = self._validate_num_slices(num_slices)
        self._rebuild_time()

    def get_time_scale(self) -> TimeScale:
        return self._time_scale

    def slice_buckets(self) -> List[TimeBucket]:
        return list(self._buckets)

    def bucket_index(self, value: datetime) -> int:
        return bucket_index(self._buckets, value)

    def _range(self) -> Tuple[float, float]:
        return (-self.cube_width / 2.0, self.cube_width / 2.0)

    def _rebuild_time(self) -> None:
        self._time_scale = TimeScale(self._time_domain, self._range())
        self._buckets = partition_domain(self._time_domain, self._num_slices)

    @staticmethod
    def _validate_num_slices(num_slices: int) -> int:
        n = int(num_slices)
        if not config.MIN_NUM_SLICES <= n <= config.MAX_NUM_SLICES:
            raise ValueError(
                f"num_slices must be within [{config.MIN_NUM_SLICES}, {config.MAX_NUM_SLICES}], got {n}"
            )
        return n

    # ------------------------------------------------------------------------------
    # Colors
    # ------------------------------------------------------------------------------

    def color_for(self, category: str) -> str:
        return self._palette.color_for(category)

    def temporal_color(self, value: datetime) -> str:
        return temporal_color(self._time_scale, value)

    # ------------------------------------------------------------------------------
    # Layout positions (network cube)
    # ------------------------------------------------------------------------------

    def set_layout_positions(self, positions: Mapping[str, Tuple[float, float]]) -> None:
        """
        Store externally computed 2D positions and normalize them into cube
        X/Z coordinates.

        The extent is scaled uniformly (aspect ratio preserved) and centred so
        the widest axis spans [-W/2, W/2].
        """
        self._positions = {str(k): (float(v[0]), float(v[1])) for k, v in positions.items()}
        self._normalized = {}
        if not self._positions:
            return

        xs = [p[0] for p in self._positions.values()]
        ys = [p[1] for p in self._positions.values()]
        cx = (min(xs) + max(xs)) / 2.0
        cy = (min(ys) + max(ys)) / 2.0
        span = max(max(xs) - min(xs), max(ys) - min(ys))
        factor = self.cube_width / span if span > 0 else 0.0

        for node_id, (x, y) in self._positions.items():
            self._normalized[node_id] = ((x - cx) * factor, (y - cy) * factor)
        logger.info(f"Normalized {len(self._normalized)} layout positions (extent {span:.3g}).")

    @property
    def has_layout_positions(self) -> bool:
        return bool(self._normalized)

    def get_layout_positions(self) -> Dict[str, Tuple[float, float]]:
        return dict(self._positions)

    def get_normalized_position(self, record_id: str) -> Optional[Tuple[float, float]]:
        return self._normalized.get(str(record_id))
