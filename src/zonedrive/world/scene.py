"""
Scene - Headless stand-ins for the visual layer.

A visual is anything with ``set_transform(position, quaternion)``. The
physics world writes transforms into visuals; nothing else about them is
touched by the simulation core.
"""

from typing import List, Optional
import numpy as np

from zonedrive.physics.math3d import IDENTITY_QUATERNION, yaw_of


class VisualNode:
    """Transform node in the scene graph.

    ``rotation`` holds Euler angles (x, y, z) for local animation such as
    wheel spin and steer; ``quaternion`` holds the orientation written by
    the physics world.
    """

    def __init__(self, name: str = "node", position=(0.0, 0.0, 0.0)):
        self.name = name
        self.position = np.asarray(position, dtype=float).copy()
        self.quaternion = IDENTITY_QUATERNION.copy()
        self.rotation = np.zeros(3)
        self.children: List["VisualNode"] = []
        self.parent: Optional["VisualNode"] = None

    def set_transform(self, position: np.ndarray, quaternion: np.ndarray) -> None:
        self.position = np.asarray(position, dtype=float).copy()
        self.quaternion = np.asarray(quaternion, dtype=float).copy()

    @property
    def heading(self) -> float:
        """Yaw of the node's orientation in radians."""
        return yaw_of(self.quaternion)

    def add(self, child: "VisualNode") -> "VisualNode":
        child.parent = self
        self.children.append(child)
        return child

    def __repr__(self) -> str:
        return f"VisualNode({self.name!r}, position={self.position.tolist()})"


class Scene:
    """Root container for top-level visual nodes."""

    def __init__(self):
        self.nodes: List[VisualNode] = []

    def add(self, node: VisualNode) -> VisualNode:
        self.nodes.append(node)
        return node

    def remove(self, node: VisualNode) -> bool:
        if node not in self.nodes:
            return False
        self.nodes.remove(node)
        return True

    def find(self, name: str) -> Optional[VisualNode]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def __len__(self) -> int:
        return len(self.nodes)
