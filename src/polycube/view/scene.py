"""
Scene Graph
===========
Lightweight, renderer-independent scene objects owned by the cube views.

Why is this file needed?
------------------------
1. Testability: the cubes build, move, filter and highlight plain Python
   objects. No render window is needed to check their state.
2. Decoupling: ``view.widgets.scene_renderer`` is the only place that turns
   these nodes into PyVista actors, once per render tick.

Every node has a local ``position`` relative to its parent; groups are never
scaled, so the world position is the sum of the positions up the chain.
"""
from __future__ import annotations

from enum import StrEnum
import itertools
from typing import Any, Callable, Dict, Iterator, List, Optional

import numpy as np
import numpy.typing as npt

_uid_counter = itertools.count(1)


class NodeKind(StrEnum):
    GROUP = "group"
    POINT = "point"
    LINE = "line"
    FRAME = "frame"
    LABEL = "label"
    IMAGE = "image"


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> npt.NDArray[np.float64]:
    return np.array([x, y, z], dtype=np.float64)


class SceneNode:
    kind: NodeKind = NodeKind.GROUP

    def __init__(self, name: str = "") -> None:
        self.uid: int = next(_uid_counter)
        self.name: str = name
        self._position: npt.NDArray[np.float64] = vec3()
        self.scale: float = 1.0
        self.visible: bool = True
        self.parent: Optional[SceneNode] = None
        self.children: List[SceneNode] = []
        self.user_data: Dict[str, Any] = {}
        # Incremented on every structural change below this node (only read on roots)
        self.revision: int = 0

    # --- Transform ---
    @property
    def position(self) -> npt.NDArray[np.float64]:
        return self._position

    @position.setter
    def position(self, value) -> None:
        self._position = np.asarray(value, dtype=np.float64).reshape(3).copy()

    def set_position(self, x: float, y: float, z: float) -> None:
        self._position = vec3(x, y, z)

    def world_position(self) -> npt.NDArray[np.float64]:
        pos = self._position.copy()
        node = self.parent
        while node is not None:
            pos += node._position
            node = node.parent
        return pos

    def is_visible_in_tree(self) -> bool:
        node: Optional[SceneNode] = self
        while node is not None:
            if not node.visible:
                return False
            node = node.parent
        return True

    # --- Hierarchy ---
    def add(self, *nodes: SceneNode) -> None:
        for node in nodes:
            if node.parent is not None:
                node.parent.remove(node)
            node.parent = self
            self.children.append(node)
        self._touch()

    def remove(self, *nodes: SceneNode) -> None:
        for node in nodes:
            if node.parent is self:
                self.children.remove(node)
                node.parent = None
        self._touch()

    def clear(self, keep: Optional[Callable[[SceneNode], bool]] = None) -> None:
        """Remove all children, except those for which ``keep`` returns True."""
        for child in list(self.children):
            if keep is not None and keep(child):
                continue
            self.children.remove(child)
            child.parent = None
        self._touch()

    def root(self) -> SceneNode:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def _touch(self) -> None:
        node: Optional[SceneNode] = self
        while node is not None:
            node.revision += 1
            node = node.parent

    def traverse(self) -> Iterator[SceneNode]:
        yield self
        for child in self.children:
            yield from child.traverse()

    def get_object_by_name(self, name: str) -> Optional[SceneNode]:
        for node in self.traverse():
            if node.name == name:
                return node
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, uid={self.uid})"


class Group(SceneNode):
    kind = NodeKind.GROUP


class PointMarker(SceneNode):
    """Sphere standing for one record."""
    kind = NodeKind.POINT

    def __init__(self, name: str = "", radius: float = 1.0, color: str = "#000000") -> None:
        super().__init__(name)
        self.radius: float = radius
        self.color: str = color

    @property
    def record_id(self) -> Optional[str]:
        return self.user_data.get("record_id")


class LineSegment(SceneNode):
    """Straight line between two points given in the parent's coordinates."""
    kind = NodeKind.LINE

    def __init__(self, name: str = "", start=None, end=None, color: str = "#000000",
                 opacity: float = 1.0, width: float = 1.0) -> None:
        super().__init__(name)
        self.start: npt.NDArray[np.float64] = vec3() if start is None else np.asarray(start, dtype=np.float64)
        self.end: npt.NDArray[np.float64] = vec3() if end is None else np.asarray(end, dtype=np.float64)
        self.color: str = color
        self.opacity: float = opacity
        self.width: float = width

    def set_endpoints(self, start, end) -> None:
        self.start = np.asarray(start, dtype=np.float64).reshape(3).copy()
        self.end = np.asarray(end, dtype=np.float64).reshape(3).copy()

    def world_endpoints(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        offset = self.world_position()
        return self.start + offset, self.end + offset


class Frame(SceneNode):
    """
    Wireframe box spanning x, z in [-width/2, width/2] and y in [0, height].
    A height of 0 draws a flat square (slice frame).
    """
    kind = NodeKind.FRAME

    def __init__(self, name: str = "", width: float = 1.0, height: float = 0.0, color: str = "#000000") -> None:
        super().__init__(name)
        self.width: float = width
        self.height: float = height
        self.color: str = color


class Label(SceneNode):
    kind = NodeKind.LABEL

    def __init__(self, name: str = "", text: str = "", color: str = "#000000") -> None:
        super().__init__(name)
        self.text: str = text
        self.color: str = color


class ImageOverlay(SceneNode):
    """Square RGB(A) raster lying in the XZ plane, centred on its position."""
    kind = NodeKind.IMAGE

    def __init__(self, name: str = "", image: Optional[npt.NDArray[np.uint8]] = None,
                 size: float = 1.0, opacity: float = 1.0) -> None:
        super().__init__(name)
        self.image: Optional[npt.NDArray[np.uint8]] = image
        self.size: float = size
        self.opacity: float = opacity
