"""
VideoMind — Graph Layout Engine
================================
Radial (star) layout: the root topic sits at the origin and every topic node
is a direct child on a circle around it, first node at 12 o'clock, clockwise
in declaration order.

Layout depends on the document only. Highlight changes never move a node;
LayoutCache recomputes when a different document becomes active.
"""

import math
from typing import Dict, List, Optional

from pydantic import BaseModel

from videomind.core.config import settings
from videomind.schemas.mindmap import MindMapDocument

ROOT_ID = "root"


def node_id(index: int) -> str:
    return f"node-{index}"


class Position(BaseModel):
    x: float
    y: float


class GraphVertex(BaseModel):
    id: str
    label: str
    index: Optional[int] = None  # None for the root
    position: Position


class GraphEdge(BaseModel):
    source: str
    target: str


class GraphLayout(BaseModel):
    root: GraphVertex
    vertices: List[GraphVertex]
    edges: List[GraphEdge]
    radius: float

    def positions(self) -> Dict[int, Position]:
        """Node index -> position."""
        return {v.index: v.position for v in self.vertices}


def layout_radius(count: int, base: float, spacing: float) -> float:
    """Grow the circle so neighbouring nodes keep at least `spacing` of arc."""
    return max(base, count * spacing / (2 * math.pi))


def compute_layout(
    document: MindMapDocument,
    base_radius: Optional[float] = None,
    spacing: Optional[float] = None,
) -> GraphLayout:
    base_radius = settings.LAYOUT_RADIUS if base_radius is None else base_radius
    spacing = settings.LAYOUT_NODE_SPACING if spacing is None else spacing

    count = len(document.nodes)
    radius = layout_radius(count, base_radius, spacing) if count else 0.0

    root = GraphVertex(id=ROOT_ID, label=document.root_topic, position=Position(x=0.0, y=0.0))
    vertices: List[GraphVertex] = []
    edges: List[GraphEdge] = []

    for index, node in enumerate(document.nodes):
        # screen coordinates: y grows downwards, so -pi/2 is straight up.
        # "+ 0.0" folds -0.0 into 0.0.
        angle = -math.pi / 2 + 2 * math.pi * index / count
        position = Position(
            x=round(radius * math.cos(angle), 2) + 0.0,
            y=round(radius * math.sin(angle), 2) + 0.0,
        )
        vertices.append(GraphVertex(id=node_id(index), label=node.topic, index=index, position=position))
        edges.append(GraphEdge(source=ROOT_ID, target=node_id(index)))

    return GraphLayout(root=root, vertices=vertices, edges=edges, radius=round(radius, 2))


class LayoutCache:
    """Holds the layout of the last document it was asked about, keyed by identity."""

    def __init__(self):
        self._document: Optional[MindMapDocument] = None
        self._layout: Optional[GraphLayout] = None

    def get(self, document: MindMapDocument) -> GraphLayout:
        if self._layout is None or document is not self._document:
            self._layout = compute_layout(document)
            self._document = document
        return self._layout
