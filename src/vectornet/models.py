"""
Pydantic data models for the vector network.

Nodes, edges, derived cycles and regions, and the persisted graph document
all flow through these validated models.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EdgeKind(str, Enum):
    """Curve variant carried by an edge."""
    LINE = "line"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"


# Number of control points each edge kind carries
CONTROL_COUNTS = {
    EdgeKind.LINE: 0,
    EdgeKind.QUADRATIC: 1,
    EdgeKind.CUBIC: 2,
}


class WindingRule(str, Enum):
    """Fill rule applied to a region's cycle tree."""
    DEFAULT = "default"
    NON_ZERO = "nonzero"


class Severity(str, Enum):
    """Severity levels for validation checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class CubicBezier(BaseModel):
    """A single cubic Bezier curve segment."""
    p0: List[float] = Field(..., min_length=2, max_length=2)  # start point
    p1: List[float] = Field(..., min_length=2, max_length=2)  # control point 1
    p2: List[float] = Field(..., min_length=2, max_length=2)  # control point 2
    p3: List[float] = Field(..., min_length=2, max_length=2)  # end point


class Node(BaseModel):
    """
    An anchor point in the graph.

    The adjacency list is owned by the Graph and lists incident edge
    indices in insertion order, each exactly once.
    """
    position: List[float] = Field(..., min_length=2, max_length=2)
    adjacents: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class Edge(BaseModel):
    """
    A curve segment between two nodes.

    Stored with a canonical start/end. Traversals use directed_from() to get
    a flipped copy; the stored edge is never changed by a traversal.
    """
    kind: EdgeKind
    start: int
    end: int
    controls: List[List[float]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_controls(self):
        expected = CONTROL_COUNTS[self.kind]
        if len(self.controls) != expected:
            raise ValueError(
                f"{self.kind.value} edge needs {expected} control points, got {len(self.controls)}"
            )
        for ctrl in self.controls:
            if len(ctrl) != 2:
                raise ValueError(f"control point must be [x, y], got {ctrl}")
        return self

    @property
    def is_loop(self):
        return self.start == self.end

    def reversed(self):
        """Return a copy running end -> start; cubic control points swap."""
        return self.model_copy(update={
            "start": self.end,
            "end": self.start,
            "controls": [list(c) for c in self.controls[::-1]],
        })

    def directed_from(self, node):
        """Return this edge oriented so that it leaves `node`."""
        if node == self.start:
            return self
        if node == self.end:
            return self.reversed()
        raise ValueError(f"n#{node} is not an endpoint of edge n#{self.start}->n#{self.end}")

    def contains_node(self, node):
        return node == self.start or node == self.end

    def other_node(self, node):
        """Endpoint opposite to `node`."""
        if node == self.start:
            return self.end
        if node == self.end:
            return self.start
        raise ValueError(f"n#{node} is not an endpoint of edge n#{self.start}->n#{self.end}")

    def translated(self, offset):
        """Copy with control points shifted by offset (endpoints are node references)."""
        dx, dy = offset
        return self.model_copy(update={
            "controls": [[c[0] + dx, c[1] + dy] for c in self.controls],
        })


class Cycle(BaseModel):
    """
    A closed directed walk through the graph.

    nodes[i] is the logical start of edges[i]; the walk returns to nodes[0].
    Children are the cycles directly nested inside this one.
    """
    edges: List[int] = Field(default_factory=list)
    nodes: List[int] = Field(default_factory=list)
    filled: bool = True
    children: List["Cycle"] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def iter_tree(self):
        """Yield this cycle and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


Cycle.model_rebuild()


class Region(BaseModel):
    """A fillable area: one outer cycle tree and the winding rule applied to it."""
    winding_rule: WindingRule = WindingRule.NON_ZERO
    cycles: List[Cycle] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def hole_count(self):
        """Number of unfilled cycles anywhere in this region."""
        return sum(
            1 for root in self.cycles for c in root.iter_tree() if not c.filled
        )


class CheckResult(BaseModel):
    """Result of a single validation check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of validation check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        """Check if any errors exist."""
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def error_count(self):
        """Count of failed error-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.ERROR and not c.passed)

    @property
    def warning_count(self):
        """Count of failed warning-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


class NodeRecord(BaseModel):
    """Persisted form of a node."""
    index: int = Field(..., ge=0)
    position: List[float] = Field(..., min_length=2, max_length=2)

    model_config = ConfigDict(extra="forbid")


class EdgeRecord(BaseModel):
    """Persisted form of an edge."""
    index: int = Field(..., ge=0)
    kind: EdgeKind
    start: int
    end: int
    controls: List[List[float]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class GraphDocument(BaseModel):
    """Root persisted document for a graph."""
    format: str = "vectornet.graph"
    version: int = 1
    next_node_index: int = Field(default=0, ge=0)
    next_edge_index: int = Field(default=0, ge=0)
    nodes: List[NodeRecord] = Field(default_factory=list)
    edges: List[EdgeRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
