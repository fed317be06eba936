"""
Exceptions raised by the vector network engine.

Every failure a caller can trigger through malformed input is one of these.
Invariant violations inside the engine surface as AssertionError instead.
"""


class GraphError(Exception):
    """Base class for all vector network errors."""


class EmptyGraph(GraphError):
    """Cycle computation requested on a graph with no edges."""

    def __init__(self):
        super().__init__("graph has no edges")


class MissingNode(GraphError):
    """A node index does not resolve to a live node."""

    def __init__(self, index):
        self.index = index
        super().__init__(f"node not found: n#{index}")


class MissingEdge(GraphError):
    """An edge index does not resolve to a live edge."""

    def __init__(self, index):
        self.index = index
        super().__init__(f"edge not found: e#{index}")


class ClosedWalkDeadEnd(GraphError):
    """No unconsumed edge continues the walk from the trailing node."""

    def __init__(self, node, remaining):
        self.node = node
        self.remaining = sorted(remaining)
        super().__init__(
            f"closed walk dead end at n#{node} with {len(self.remaining)} edges left"
        )


class ClosedWalkTooSmall(GraphError):
    """Too few edges for a cycle, or the walk did not return to its start."""

    def __init__(self, length):
        self.length = length
        super().__init__(f"closed walk too small or not closed (edges={length})")


class TraversalLimit(GraphError):
    """Cycle search exceeded its step budget."""

    def __init__(self, edges, steps=None):
        self.edges = sorted(edges)
        self.steps = steps
        super().__init__(
            f"traversal limit reached after {steps} steps over {len(self.edges)} edges"
        )
