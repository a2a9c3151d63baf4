"""Scene graph of a .vox file.

The scene is a tree of transform, group and shape nodes. Nodes are read from
nTRN, nGRP and nSHP chunks, which refer to each other by numeric id;
build_scene() resolves the ids into direct links and checks that the result is
a single tree.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from voxscene import rotation
from voxscene.errors import SceneGraphError
from voxscene.models import Layer, Model

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Node:
    name: str = ""
    hidden: bool = False

    def _describe(self) -> str:
        s = type(self).__name__
        if self.name:
            s += f" {self.name!r}"
        if self.hidden:
            s += " (hidden)"
        return s


@dataclass(eq=False)
class TransformNode(Node):
    """A transform node: one frame of rotation and translation, one child."""

    rotation: int = rotation.IDENTITY
    translation: tuple[int, int, int] = (0, 0, 0)
    layer_id: int = -1
    layer: Optional[Layer] = None
    child: Optional["SceneNode"] = None

    def __str__(self):
        return (
            f"{self._describe()} r={self.rotation:#04x} "
            f"t={self.translation} layer={self.layer_id}"
        )


@dataclass(eq=False)
class GroupNode(Node):
    """A group node: any number of ordered children."""

    children: list["SceneNode"] = field(default_factory=list)

    def __str__(self):
        return f"{self._describe()} [{len(self.children)} children]"


@dataclass(eq=False)
class ShapeNode(Node):
    """A shape node: a leaf referring to models."""

    models: list[Model] = field(default_factory=list)

    def __str__(self):
        return f"{self._describe()} models={[str(m) for m in self.models]}"


SceneNode = Union[TransformNode, GroupNode, ShapeNode]


@dataclass
class Scene:
    """The layers of a file and the root of its scene graph."""

    layers: list[Layer]
    root: TransformNode

    def walk(self):
        """Yield (depth, node) for every node, depth first, parents first."""
        stack: list[tuple[int, SceneNode]] = [(0, self.root)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, c) for c in reversed(children_of(node)))


def children_of(node: SceneNode) -> list[SceneNode]:
    """Return the children of node."""
    if isinstance(node, TransformNode):
        return [] if node.child is None else [node.child]
    elif isinstance(node, GroupNode):
        return node.children
    elif isinstance(node, ShapeNode):
        return []
    raise TypeError(f"unexpected scene node {node!r}")


def add_child(parent: SceneNode, child: SceneNode):
    """Attach child to parent, as parent's kind of node allows."""
    if isinstance(parent, TransformNode):
        if parent.child is not None:
            raise SceneGraphError("can't add two children nodes to transform node")
        parent.child = child
    elif isinstance(parent, GroupNode):
        parent.children.append(child)
    elif isinstance(parent, ShapeNode):
        raise SceneGraphError("can't add children to shape node")
    else:
        raise TypeError(f"unexpected scene node {parent!r}")


def count_nodes(root: SceneNode) -> int:
    """Count the nodes reachable from root, raising if a node is reached twice."""
    visited: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in visited:
            raise SceneGraphError(f"cycle found at {node}")
        visited.add(id(node))
        stack.extend(children_of(node))
    return len(visited)


def build_scene(
    nodes: dict[int, SceneNode],
    children: dict[int, list[int]],
    node_layers: dict[int, int],
    layers: dict[int, Layer],
) -> Scene:
    """Link the scene graph nodes together.

    nodes maps node ids to nodes with no links yet, children maps node ids to
    the ids of their children, node_layers maps transform node ids to layer
    ids, and layers maps layer ids to layers.
    """
    sorted_layers = sorted(layers.values(), key=lambda layer: layer.index)

    # The root node in the scene is a transform node with layer -1.
    root = None
    for node_id, node in nodes.items():
        if isinstance(node, TransformNode) and node_layers.get(node_id) == -1:
            if root is not None:
                raise SceneGraphError("scene has two roots")
            root = node
    if root is None:
        raise SceneGraphError("failed to find root node in the scene graph")

    for node_id, layer_id in node_layers.items():
        if layer_id == -1:
            continue
        if layer_id not in layers:
            raise SceneGraphError(f"node {node_id} refers to missing layer {layer_id}")
        node = nodes[node_id]
        if isinstance(node, TransformNode):
            node.layer = layers[layer_id]

    for node_id, child_ids in children.items():
        if node_id not in nodes:
            raise SceneGraphError(
                f"node {node_id} has children, but doesn't exist in the scene graph"
            )
        parent = nodes[node_id]
        for child_id in child_ids:
            if child_id not in nodes:
                raise SceneGraphError(
                    f"missing node {child_id}, listed as a child of node {node_id}"
                )
            try:
                add_child(parent, nodes[child_id])
            except SceneGraphError as e:
                raise SceneGraphError(f"node {node_id}: {e}") from e

    count = count_nodes(root)
    if count != len(nodes):
        raise SceneGraphError(
            f"not all nodes are in scene. {len(nodes)} nodes, but only {count} in scene"
        )

    logger.debug(
        "built scene graph with %d nodes and %d layers", count, len(sorted_layers)
    )
    return Scene(sorted_layers, root)
