"""
Time Slices
===========
Slice construction, layout targets and staggered slice transitions shared by
the three cubes.

Slice positions (cube-local):
    STC: stacked, y = time_scale(bucket.start)
    JP:  small multiples on a grid at the cube floor
    SI:  every slice flattened onto the cube floor
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, List, Optional, Sequence, Set

import numpy as np
import numpy.typing as npt

from polycube import config
from polycube.controller.animation import Animator, Tween
from polycube.model.datastore import DataStore
from polycube.model.records import Record
from polycube.model.scales import TimeBucket
from polycube.model.state import FilterState, LayoutMode, TimeMode
from polycube.view.scene import Frame, Group, Label, PointMarker, SceneNode, vec3

logger = logging.getLogger(__name__)

SliceCallback = Callable[["TimeSlice"], None]


@dataclass(eq=False)
class TimeSlice:
    bucket: TimeBucket
    group: Group
    frame: Frame
    label: Label
    member_ids: List[str] = field(default_factory=list)
    # Overlay objects (css scene) that follow the slice while it moves
    followers: List[SceneNode] = field(default_factory=list)

    @property
    def index(self) -> int:
        return self.bucket.index


def build_slices(dm: DataStore, prefix: str) -> List[TimeSlice]:
    slices: List[TimeSlice] = []
    for bucket in dm.slice_buckets():
        group = Group(f"{prefix}_SLICE_{bucket.index}")
        group.user_data["slice_index"] = bucket.index
        frame = Frame(f"{prefix}_SLICE_FRAME_{bucket.index}", width=dm.cube_width, height=0.0,
                      color=config.FRAME_COLOR)
        group.add(frame)
        label = Label(f"{prefix}_SLICE_LABEL_{bucket.index}", text=bucket.label)
        slices.append(TimeSlice(bucket=bucket, group=group, frame=frame, label=label))
    return slices


def assign_members(dm: DataStore, slices: Sequence[TimeSlice]) -> Dict[str, int]:
    """Bucket membership, computed once per assembly. Returns id -> slice index."""
    membership: Dict[str, int] = {}
    if not slices:
        return membership
    for record in dm.records:
        if record.id in membership:
            continue
        idx = dm.bucket_index(record.date_time)
        slices[idx].member_ids.append(record.id)
        membership[record.id] = idx
    return membership


# ------------------------------------------------------------------------------
# Layout targets
# ------------------------------------------------------------------------------

def stacked_position(dm: DataStore, time_slice: TimeSlice) -> npt.NDArray[np.float64]:
    return vec3(0.0, dm.get_time_scale()(time_slice.bucket.start), 0.0)


def juxtaposed_position(dm: DataStore, time_slice: TimeSlice) -> npt.NDArray[np.float64]:
    step = dm.cube_width + config.JP_GAP
    col = time_slice.index % config.JP_COLUMNS
    row = time_slice.index // config.JP_COLUMNS
    return vec3(col * step, -dm.cube_width / 2.0, row * step)


def superimposed_position(dm: DataStore, time_slice: TimeSlice) -> npt.NDArray[np.float64]:
    return vec3(0.0, -dm.cube_width / 2.0, 0.0)


_TARGETS = {
    LayoutMode.STC: stacked_position,
    LayoutMode.JP: juxtaposed_position,
    LayoutMode.SI: superimposed_position,
}


def layout_position(dm: DataStore, time_slice: TimeSlice, layout: LayoutMode) -> npt.NDArray[np.float64]:
    # ANI has no layout of its own; the slices keep their stacked home
    return _TARGETS.get(layout, stacked_position)(dm, time_slice)


def label_position(dm: DataStore, time_slice: TimeSlice) -> npt.NDArray[np.float64]:
    half = dm.cube_width / 2.0
    return time_slice.group.position + vec3(-half - 0.08 * dm.cube_width, 0.0, half)


def home_followers(dm: DataStore, time_slice: TimeSlice) -> None:
    """Copy the slice position onto its label and overlay followers."""
    time_slice.label.position = label_position(dm, time_slice)
    for follower in time_slice.followers:
        follower.position = time_slice.group.position


def place_slices(dm: DataStore, slices: Sequence[TimeSlice], layout: LayoutMode) -> None:
    """Move slices to their layout position immediately (no animation)."""
    for time_slice in slices:
        time_slice.group.position = layout_position(dm, time_slice, layout)
        home_followers(dm, time_slice)


def animate_slices(
    animator: Animator,
    dm: DataStore,
    slices: Sequence[TimeSlice],
    layout: LayoutMode,
    on_update: Optional[SliceCallback] = None,
    on_complete: Optional[SliceCallback] = None,
) -> List[Tween]:
    """
    Tween every slice to its layout position. Slice i starts after
    ``i * TRANSITION_STAGGER_MS`` and moves for ``TRANSITION_DURATION_MS`` with
    cubic in/out easing; labels and followers are re-homed on every frame.
    """
    tweens: List[Tween] = []
    for i, time_slice in enumerate(slices):
        def _update(_group, s=time_slice):
            home_followers(dm, s)
            if on_update is not None:
                on_update(s)

        def _complete(_group, s=time_slice):
            home_followers(dm, s)
            if on_complete is not None:
                on_complete(s)

        tweens.append(animator.animate(
            time_slice.group,
            "position",
            layout_position(dm, time_slice, layout),
            duration=config.TRANSITION_DURATION_MS,
            delay=i * config.TRANSITION_STAGGER_MS,
            on_update=_update,
            on_complete=_complete,
        ))
    logger.debug(f"Animating {len(tweens)} slices to {layout}.")
    return tweens


# ------------------------------------------------------------------------------
# Point placement inside a slice
# ------------------------------------------------------------------------------

def relative_height(dm: DataStore, record: Record, time_slice: TimeSlice, mode: TimeMode) -> float:
    """
    Slice-relative y of a record: 0 in aggregated time, the distance between
    the record's time-scale height and the slice base in absolute time.
    """
    if mode == TimeMode.AGGREGATED:
        return 0.0
    scale = dm.get_time_scale()
    return scale(record.date_time) - scale(time_slice.bucket.start)


def apply_time_mode(dm: DataStore, slices: Sequence[TimeSlice], markers: Dict[str, PointMarker],
                    mode: TimeMode) -> None:
    for time_slice in slices:
        for record_id in time_slice.member_ids:
            marker = markers.get(record_id)
            record = dm.get_record(record_id)
            if marker is None or record is None:
                continue
            x, _, z = marker.position
            marker.set_position(x, relative_height(dm, record, time_slice, mode), z)


# ------------------------------------------------------------------------------
# Slice stack
# ------------------------------------------------------------------------------

class SliceStack:
    """
    The slices of one cube together with the point markers they hold.

    Each cube owns one stack and delegates the parts that work the same way in
    every cube to it: bucket membership, time-mode placement, filter
    visibility and the staggered layout transitions.
    """

    def __init__(self, dm: DataStore, animator: Animator, prefix: str) -> None:
        self.dm = dm
        self.animator = animator
        self.prefix = prefix
        self.slices: List[TimeSlice] = []
        self.membership: Dict[str, int] = {}
        self.markers: Dict[str, PointMarker] = {}
        self.layout: LayoutMode = LayoutMode.STC
        self.time_mode: TimeMode = TimeMode.AGGREGATED

    def rebuild(self, webgl_parent: Group, css_parent: Group) -> None:
        """Drop the current slices and markers and build empty slices for the current buckets."""
        for time_slice in self.slices:
            self.animator.cancel(time_slice.group)
            webgl_parent.remove(time_slice.group)
            css_parent.remove(time_slice.label, *time_slice.followers)
        self.slices = build_slices(self.dm, self.prefix)
        self.membership = assign_members(self.dm, self.slices)
        self.markers = {}
        for time_slice in self.slices:
            webgl_parent.add(time_slice.group)
            css_parent.add(time_slice.label)

    def slice_of(self, record_id: str) -> Optional[TimeSlice]:
        idx = self.membership.get(record_id)
        return None if idx is None else self.slices[idx]

    def add_marker(self, record: Record, x: float, z: float, radius: float, color: str) -> Optional[PointMarker]:
        time_slice = self.slice_of(record.id)
        if time_slice is None or record.id in self.markers:
            return None
        marker = PointMarker(f"{self.prefix}_POINT_{record.id}", radius=radius, color=color)
        marker.user_data["record_id"] = record.id
        marker.set_position(x, relative_height(self.dm, record, time_slice, self.time_mode), z)
        time_slice.group.add(marker)
        self.markers[record.id] = marker
        return marker

    def apply_time(self, mode: TimeMode) -> None:
        self.time_mode = mode
        apply_time_mode(self.dm, self.slices, self.markers, mode)

    def apply_filter(self, filter_state: FilterState) -> Set[str]:
        """Set marker visibility. Returns the ids of the visible records."""
        bounds = filter_state.resolve(self.dm.time_domain)
        visible: Set[str] = set()
        for record_id, marker in self.markers.items():
            record = self.dm.get_record(record_id)
            marker.visible = record is not None and filter_state.matches(record.category_1, record.date_time, bounds)
            if marker.visible:
                visible.add(record_id)
        return visible

    def place(self, layout: LayoutMode) -> None:
        if layout != LayoutMode.ANI:
            self.layout = layout
        place_slices(self.dm, self.slices, self.layout)

    def transition(
        self,
        layout: LayoutMode,
        on_update: Optional[SliceCallback] = None,
        on_complete: Optional[SliceCallback] = None,
    ) -> List[Tween]:
        self.layout = layout
        return animate_slices(self.animator, self.dm, self.slices, layout, on_update, on_complete)
