"""
View State (Data Model)
=======================
Enumerations and mutable settings shared by the controller and the views.

Why is this file needed?
------------------------
1. State Management: The style controls, the active filter and the temporal
   encoding are a single shared state; every cube reads the same values.
2. Validation: The control panel emits loosely typed style events. They are
   validated here once, so the views can trust the values they receive.

Classes:
    ViewState: Which cube(s) are shown.
    LayoutMode: STC / JP / SI / ANI temporal layouts.
    TimeMode: Aggregated or absolute time placement inside slices.
    NodeColorMode, SizeEncoding, SetLayout, LinkGroupKind.
    StyleSettings: The style command payload.
    FilterState: Category + date interval.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import StrEnum
import logging
import re
from typing import Any, Dict, Optional, Tuple

from polycube import config

logger = logging.getLogger(__name__)


class ViewState(StrEnum):
    GEO_CUBE = "GEO_CUBE"
    SET_CUBE = "SET_CUBE"
    NET_CUBE = "NET_CUBE"
    POLY_CUBE = "POLY_CUBE"


class LayoutMode(StrEnum):
    STC = "STC"
    JP = "JP"
    SI = "SI"
    ANI = "ANI"


class TimeMode(StrEnum):
    AGGREGATED = "aggregated"
    ABSOLUTE = "absolute"


class NodeColorMode(StrEnum):
    CATEGORICAL = "categorical"
    TEMPORAL = "temporal"
    MONOCHROME = "monochrome"


class SizeEncoding(StrEnum):
    OVERALL_DEGREE = "overall_degree"
    IN_DEGREE = "in_degree"
    OUT_DEGREE = "out_degree"
    CONSTANT = "constant"


class SetLayout(StrEnum):
    RANDOM = "random"
    CATEGORY = "category"


class LinkGroupKind(StrEnum):
    AGGREGATED = "aggregated"
    ABSOLUTE = "absolute"
    SUPERIMPOSED = "superimposed"
    JUXTAPOSED = "juxtaposed"


_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")

# Maps the event keys of the control panel onto StyleSettings attributes
STYLE_EVENT_KEYS: Dict[str, str] = {
    "numSlices": "num_slices",
    "nodeSize": "node_size",
    "backgroundColor": "background_color",
    "nodeColor": "node_color",
    "jitter": "jitter",
    "sLayout": "set_layout",
    "hull": "hull",
    "chargeFactor": "charge_factor",
    "sizeEncoding": "size_encoding",
}


@dataclass
class StyleSettings:
    num_slices: int = config.DEFAULT_NUM_SLICES
    node_size: int = 3
    background_color: str = config.DEFAULT_BACKGROUND
    node_color: NodeColorMode = NodeColorMode.CATEGORICAL
    jitter: int = 0
    set_layout: SetLayout = SetLayout.RANDOM
    hull: bool = False
    charge_factor: float = config.DEFAULT_CHARGE_FACTOR
    size_encoding: SizeEncoding = SizeEncoding.OVERALL_DEGREE

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and apply a style event.

        Args:
            changes: Mapping of event keys (``numSlices``) or attribute names
                (``num_slices``) to new values.

        Returns:
            Attribute name -> coerced value for every applied change.

        Raises:
            ValueError: Unknown key or value outside the allowed range. Nothing
                is applied when any key is invalid.
        """
        coerced: Dict[str, Any] = {}
        known = {f.name for f in fields(self)}
        for key, value in changes.items():
            name = STYLE_EVENT_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown style key '{key}'.")
            coerced[name] = self._coerce(name, value)

        for name, value in coerced.items():
            setattr(self, name, value)
        logger.debug(f"Style updated: {coerced}")
        return coerced

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "num_slices":
            return _int_in_range(name, value, config.MIN_NUM_SLICES, config.MAX_NUM_SLICES)
        if name == "node_size":
            return _int_in_range(name, value, 1, 10)
        if name == "jitter":
            return _int_in_range(name, value, 0, 30)
        if name == "background_color":
            if not isinstance(value, str) or not _COLOR_RE.match(value):
                raise ValueError(f"Invalid color string: {value!r}")
            return value
        if name == "node_color":
            return NodeColorMode(value)
        if name == "set_layout":
            return SetLayout(value)
        if name == "size_encoding":
            return SizeEncoding(value)
        if name == "hull":
            return bool(value)
        if name == "charge_factor":
            factor = float(value)
            if factor <= 0:
                raise ValueError(f"charge_factor must be positive, got {factor}")
            return factor
        return value


def _int_in_range(name: str, value: Any, lo: int, hi: int) -> int:
    number = int(value)
    if not lo <= number <= hi:
        raise ValueError(f"{name} must be within [{lo}, {hi}], got {number}")
    return number


@dataclass
class FilterState:
    """
    Active category + date filter.

    ``None`` bounds mean "use the dataset extrema" and are resolved against the
    time domain when the filter is applied.
    """
    category: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def resolve(self, domain: Optional[Tuple[datetime, datetime]]) -> Tuple[Optional[datetime], Optional[datetime]]:
        start, end = self.start, self.end
        if domain is not None:
            start = start if start is not None else domain[0]
            end = end if end is not None else domain[1]
        if start is not None and end is not None and start > end:
            logger.warning(f"Filter bounds reversed ({start} > {end}); swapping.")
            start, end = end, start
        return start, end

    def matches(self, category_1: str, date_time: datetime,
                bounds: Tuple[Optional[datetime], Optional[datetime]]) -> bool:
        start, end = bounds
        if start is not None and date_time < start:
            return False
        if end is not None and date_time > end:
            return False
        return self.category == "" or category_1 == self.category

    @property
    def is_empty(self) -> bool:
        return self.category == "" and self.start is None and self.end is None
