"""
Dataset Records
===============
Defines the normalized record consumed by the DataStore and every cube.

Why is this file needed?
------------------------
The three cubes read the same rows through different lenses (map position,
set membership, graph links). A single typed record keeps those lenses in
agreement: the loader coerces raw strings once, and everything downstream can
assume already-typed values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Set

NO_CATEGORY: str = "No Category"


@dataclass(eq=False)
class Record:
    """
    One data row.

    The network fields are filled exactly once per dataset load by
    ``polycube.controller.network.add_network_degree_to_nodes``.
    """
    id: str
    date_time: datetime
    category_1: str = NO_CATEGORY
    category_2: str = ""
    category_3: str = ""
    category_4: str = ""
    category_5: str = ""
    longitude: float = 0.0
    latitude: float = 0.0
    target_nodes: List[str] = field(default_factory=list)
    label: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    # Derived (network)
    network_degree_in: int = 0
    network_degree_out: int = 0
    network_degree_overall: int = 0
    incoming_nodes: Set[str] = field(default_factory=set)
    target_by: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.id = str(self.id)
        # Plain dates are promoted so that every comparison happens between datetimes
        if isinstance(self.date_time, date) and not isinstance(self.date_time, datetime):
            self.date_time = datetime(self.date_time.year, self.date_time.month, self.date_time.day)
        if not self.category_1:
            self.category_1 = NO_CATEGORY
        self.target_nodes = [str(t) for t in self.target_nodes]

    def reset_network(self) -> None:
        """Clear derived network fields before a new annotation pass."""
        self.network_degree_in = 0
        self.network_degree_out = 0
        self.network_degree_overall = 0
        self.incoming_nodes = set()
        self.target_by = []

    @property
    def title(self) -> str:
        return str(self.extra.get("title") or self.extra.get("name") or self.id)

    def categories(self) -> List[str]:
        return [c for c in (self.category_1, self.category_2, self.category_3,
                            self.category_4, self.category_5) if c]

    def __repr__(self) -> str:
        return f"Record(id={self.id!r}, date_time={self.date_time:%Y-%m-%d}, category_1={self.category_1!r})"
