"""
Cube Contract
=============
The capability set every cube view must satisfy so the controller can treat
the geographic, set and network cubes uniformly.

The three implementations share almost no internal state, so this is a
structural ``Protocol`` rather than a base class. Views without a concept
(e.g. jitter in the network cube) implement the corresponding method as a
no-op.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import numpy.typing as npt

from polycube.controller.picking import CameraModel, Viewport
from polycube.model.records import Record
from polycube.model.state import LayoutMode, NodeColorMode, SetLayout, SizeEncoding, TimeMode, ViewState
from polycube.view.scene import Group


@runtime_checkable
class PolyCube(Protocol):
    name: str
    webgl_group: Group
    css_group: Group

    @property
    def visible(self) -> bool: ...

    @property
    def layout(self) -> LayoutMode: ...

    # --- Lifecycle ---
    def create_objects(self) -> None: ...

    def assemble_data(self) -> None: ...

    def render(self) -> None: ...

    def update(self, view_state: ViewState) -> None: ...

    # --- Time / style ---
    def update_time(self, mode: TimeMode) -> None: ...

    def update_num_slices(self, num_slices: int) -> None: ...

    def update_node_color(self, mode: NodeColorMode) -> None: ...

    def update_node_size(self, size: int) -> None: ...

    def update_jitter(self, radius: float) -> None: ...

    def update_set_layout(self, layout: SetLayout) -> None: ...

    def update_hull(self, enabled: bool) -> None: ...

    def change_charge_factor(self, factor: float) -> None: ...

    def update_size_encoding(self, encoding: SizeEncoding) -> None: ...

    # --- Filtering / selection ---
    def filter_data(self, category: str, start: Optional[datetime], end: Optional[datetime]) -> None: ...

    def highlight_object(self, record_id: str) -> None: ...

    def clear_highlight(self) -> None: ...

    def on_click(self, pointer: Tuple[float, float], viewport: Viewport, camera: CameraModel) -> Optional[Record]: ...

    # --- Temporal layouts ---
    def transition_stc(self) -> None: ...

    def transition_jp(self) -> None: ...

    def transition_si(self) -> None: ...

    def transition_ani(self) -> None: ...

    def get_cube_position(self) -> npt.NDArray[np.float64]: ...
