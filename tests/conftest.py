"""Pytest fixtures for vector network tests."""

import tempfile

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default engine configuration."""
    from vectornet.config import GraphConfig
    return GraphConfig()


@pytest.fixture(autouse=True)
def quiet_tracer():
    """Keep the global tracer off between tests."""
    from vectornet.tracer import configure_tracer
    configure_tracer(enabled=False)
    yield
    configure_tracer(enabled=False)


@pytest.fixture
def box_graph():
    """A closed 4-node, 4-line box (counter-clockwise)."""
    from vectornet.graph.store import Graph

    graph = Graph()
    graph.polyline([[0, 0], [10, 0], [10, 10], [0, 10]], closed=True)
    return graph


@pytest.fixture
def two_triangles_graph():
    """Two closed triangles sharing no nodes."""
    from vectornet.graph.store import Graph

    graph = Graph()
    graph.polyline([[0, 0], [10, 0], [5, 8]], closed=True)
    graph.polyline([[20, 0], [30, 0], [25, 8]], closed=True)
    return graph


@pytest.fixture
def nested_boxes_graph():
    """A 10x10 box with a separate 4x4 box fully inside it."""
    from vectornet.graph.store import Graph

    graph = Graph()
    graph.polyline([[0, 0], [10, 0], [10, 10], [0, 10]], closed=True)
    graph.polyline([[3, 3], [7, 3], [7, 7], [3, 7]], closed=True)
    return graph


@pytest.fixture
def split_box_graph():
    """A box divided by a vertical line into two faces."""
    from vectornet.graph.store import Graph

    graph = Graph()
    corners = [
        graph.add_node([0, 0]),
        graph.add_node([5, 0]),
        graph.add_node([10, 0]),
        graph.add_node([10, 10]),
        graph.add_node([5, 10]),
        graph.add_node([0, 10]),
    ]
    for a, b in zip(corners, corners[1:] + corners[:1]):
        graph.line_from_to(a, b)
    graph.line_from_to(corners[1], corners[4])
    return graph
