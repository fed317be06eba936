"""
JSON round-trip for graphs.

Indices, counters, edge kinds and control points are stored verbatim;
adjacency is rebuilt from the edges in index order on load, which is the
order the store maintains it in.
"""

import os

from vectornet.errors import MissingNode
from vectornet.graph.store import Graph
from vectornet.models import Edge, EdgeRecord, GraphDocument, Node, NodeRecord
from vectornet.tracer import get_tracer, trace


def to_document(graph):
    """Snapshot a graph into its persisted model."""
    return GraphDocument(
        next_node_index=graph.next_node_index,
        next_edge_index=graph.next_edge_index,
        nodes=[
            NodeRecord(index=idx, position=list(node.position))
            for idx, node in graph.nodes()
        ],
        edges=[
            EdgeRecord(
                index=idx,
                kind=edge.kind,
                start=edge.start,
                end=edge.end,
                controls=[list(c) for c in edge.controls],
            )
            for idx, edge in graph.edges()
        ],
    )


def from_document(doc):
    """
    Rebuild a graph from its persisted model.

    Raises MissingNode when an edge references an absent node and
    ValueError on duplicate indices or counters that would reuse an index.
    """
    graph = Graph()

    for record in doc.nodes:
        if record.index in graph._nodes:
            raise ValueError(f"duplicate node index n#{record.index}")
        graph._nodes[record.index] = Node(position=record.position)

    for record in sorted(doc.edges, key=lambda r: r.index):
        if record.index in graph._edges:
            raise ValueError(f"duplicate edge index e#{record.index}")
        for endpoint in (record.start, record.end):
            if endpoint not in graph._nodes:
                raise MissingNode(endpoint)
        edge = Edge(kind=record.kind, start=record.start, end=record.end, controls=record.controls)
        graph._edges[record.index] = edge
        graph._nodes[edge.start].adjacents.append(record.index)
        if not edge.is_loop:
            graph._nodes[edge.end].adjacents.append(record.index)

    max_node = max(graph._nodes, default=-1)
    max_edge = max(graph._edges, default=-1)
    if doc.next_node_index <= max_node or doc.next_edge_index <= max_edge:
        raise ValueError(
            f"index counters ({doc.next_node_index}, {doc.next_edge_index}) "
            f"would reuse live indices (max n#{max_node}, e#{max_edge})"
        )
    graph._next_node = doc.next_node_index
    graph._next_edge = doc.next_edge_index

    return graph


@trace(label="serialize_graph", arg_names=["graph"])
def serialize(graph, indent=None):
    """Serialize a graph to a JSON string."""
    return to_document(graph).model_dump_json(indent=indent)


@trace(label="deserialize_graph")
def deserialize(text):
    """
    Parse a JSON string produced by serialize().

    Malformed documents raise pydantic.ValidationError.
    """
    graph = from_document(GraphDocument.model_validate_json(text))
    get_tracer().event(f"Loaded graph with {graph.node_count} nodes, {graph.edge_count} edges")
    return graph


def save_graph(graph, path, indent=2):
    """Write a graph to a JSON file, creating parent directories."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(serialize(graph, indent=indent))
    get_tracer().event(f"Saved graph: {path}")


def load_graph(path):
    with open(path, "r", encoding="utf-8") as f:
        return deserialize(f.read())
