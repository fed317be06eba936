"""Tests for region nesting and the end-to-end region computation."""

import pytest

from vectornet.errors import ClosedWalkDeadEnd, ClosedWalkTooSmall, EmptyGraph, MissingNode
from vectornet.graph.store import Graph
from vectornet.models import EdgeKind, WindingRule


def square(graph, x0, y0, size):
    """Closed counter-clockwise square; returns its edge indices."""
    return graph.polyline(
        [[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size]],
        closed=True,
    )


def oriented_area(graph, cycle):
    from vectornet.curves.adapter import cycle_polyline
    from vectornet.regions.nesting import signed_area

    return signed_area(cycle_polyline(graph, cycle, 8))


class TestRegionComputation:
    """End-to-end behaviour of compute_regions."""

    def test_closed_box_is_single_region(self, box_graph, default_config):
        """Test that a closed box is one region without holes."""
        from vectornet.cycles.mcb import minimum_cycle_basis
        from vectornet.pipeline import compute_regions

        basis = minimum_cycle_basis(box_graph, default_config)
        regions = compute_regions(box_graph, default_config)

        assert len(basis) == 1
        assert len(basis[0]) == 4
        assert len(regions) == 1
        assert regions[0].hole_count == 0
        root = regions[0].cycles[0]
        assert len(root.edges) == 4
        assert root.filled
        assert root.children == []

    def test_disjoint_triangles_are_two_regions(self, two_triangles_graph, default_config):
        from vectornet.cycles.mcb import minimum_cycle_basis
        from vectornet.pipeline import compute_regions

        assert len(minimum_cycle_basis(two_triangles_graph, default_config)) == 2
        regions = compute_regions(two_triangles_graph, default_config)

        assert len(regions) == 2
        assert [sorted(r.cycles[0].edges) for r in regions] == [[0, 1, 2], [3, 4, 5]]

    def test_inner_box_becomes_hole(self, nested_boxes_graph, default_config):
        """Test that the inner box becomes a hole of the outer one."""
        from vectornet.cycles.mcb import minimum_cycle_basis
        from vectornet.pipeline import compute_regions

        assert len(minimum_cycle_basis(nested_boxes_graph, default_config)) == 2
        regions = compute_regions(nested_boxes_graph, default_config)

        assert len(regions) == 1
        outer = regions[0].cycles[0]
        assert sorted(outer.edges) == [0, 1, 2, 3]
        assert len(outer.children) == 1
        hole = outer.children[0]
        assert sorted(hole.edges) == [4, 5, 6, 7]
        assert not hole.filled
        assert regions[0].hole_count == 1

    def test_edge_to_removed_node_rejected(self, box_graph):
        """Test that an edge to a removed node is rejected and nothing changes."""
        from vectornet.graph.persistence import serialize

        box_graph.remove_node(3)
        before = serialize(box_graph)

        with pytest.raises(MissingNode):
            box_graph.add_edge(EdgeKind.LINE, 0, 3)
        with pytest.raises(MissingNode):
            box_graph.line_from_to(2, 3)

        assert serialize(box_graph) == before

    def test_open_path_rejected(self):
        """Test that open chains never produce a partial walk."""
        from vectornet.cycles.closed_walk import order_closed_walk

        graph = Graph()
        edges = graph.polyline([[0, 0], [5, 0], [5, 5], [0, 5]])

        with pytest.raises((ClosedWalkTooSmall, ClosedWalkDeadEnd)):
            order_closed_walk(graph, edges)

    def test_empty_graph(self, default_config):
        from vectornet.pipeline import compute_regions

        with pytest.raises(EmptyGraph):
            compute_regions(Graph(), default_config)


class TestNesting:
    """Tests for containment, fill and orientation."""

    def test_island_in_hole(self, default_config):
        """Test that fill alternates with nesting depth."""
        from vectornet.pipeline import compute_regions

        graph = Graph()
        square(graph, 0, 0, 20)
        square(graph, 4, 4, 12)
        square(graph, 8, 8, 4)

        regions = compute_regions(graph, default_config)

        assert len(regions) == 1
        outer = regions[0].cycles[0]
        middle = outer.children[0]
        inner = middle.children[0]
        assert (outer.filled, middle.filled, inner.filled) == (True, False, True)
        assert regions[0].hole_count == 1

    def test_tightest_parent_wins(self, default_config):
        """Test that two siblings both nest under the smallest encloser."""
        from vectornet.pipeline import compute_regions

        graph = Graph()
        square(graph, 0, 0, 30)
        square(graph, 2, 2, 26)
        square(graph, 5, 5, 4)
        square(graph, 15, 15, 4)

        regions = compute_regions(graph, default_config)

        outer = regions[0].cycles[0]
        assert len(regions) == 1
        assert len(outer.children) == 1
        assert len(outer.children[0].children) == 2

    def test_adjacent_faces_are_separate_regions(self, split_box_graph, default_config):
        from vectornet.pipeline import compute_regions

        regions = compute_regions(split_box_graph, default_config)

        assert len(regions) == 2
        assert all(r.hole_count == 0 for r in regions)

    def test_orientation_follows_fill(self, nested_boxes_graph, default_config):
        """Test that filled cycles wind positively and holes negatively."""
        from vectornet.cycles.closed_walk import is_closed_walk
        from vectornet.pipeline import compute_regions

        regions = compute_regions(nested_boxes_graph, default_config)
        outer = regions[0].cycles[0]
        hole = outer.children[0]

        assert oriented_area(nested_boxes_graph, outer) > 0
        assert oriented_area(nested_boxes_graph, hole) < 0
        assert is_closed_walk(nested_boxes_graph, outer)
        assert is_closed_walk(nested_boxes_graph, hole)

    def test_orientation_can_be_disabled(self, nested_boxes_graph, default_config):
        from vectornet.pipeline import compute_regions

        default_config.region.orient_cycles = False
        regions = compute_regions(nested_boxes_graph, default_config)
        hole = regions[0].cycles[0].children[0]

        assert oriented_area(nested_boxes_graph, hole) > 0

    def test_curved_outline_contains_box(self, default_config):
        """Test containment against a cubic outline."""
        from vectornet.pipeline import compute_regions

        graph = Graph()
        k = 0.5523 * 10
        _, e0 = graph.cubic([10, 0], [10, k], [k, 10], [0, 10])
        _, e1 = graph.cubic_from(e0.end, [-k, 10], [-10, k], [-10, 0])
        _, e2 = graph.cubic_from(e1.end, [-10, -k], [-k, -10], [0, -10])
        graph.cubic_from_to(e2.end, [k, -10], [10, -k], e0.start)
        square(graph, -2, -2, 4)

        regions = compute_regions(graph, default_config)

        assert len(regions) == 1
        assert len(regions[0].cycles[0].edges) == 4
        assert regions[0].hole_count == 1

    def test_forest_has_every_cycle_once(self, default_config):
        """Test that nesting places each cycle exactly once."""
        from vectornet.pipeline import compute_cycles, compute_regions

        graph = Graph()
        square(graph, 0, 0, 40)
        square(graph, 5, 5, 10)
        square(graph, 25, 25, 10)
        square(graph, 50, 0, 10)

        cycles = compute_cycles(graph, default_config)
        regions = compute_regions(graph, default_config)

        placed = [
            frozenset(c.edges)
            for region in regions
            for root in region.cycles
            for c in root.iter_tree()
        ]
        assert sorted(placed, key=min) == sorted((frozenset(c.edges) for c in cycles), key=min)
        assert len(placed) == len(set(placed))


class TestWindingRule:
    """Tests for the region winding rule."""

    def test_default_is_non_zero(self, box_graph, default_config):
        from vectornet.pipeline import compute_regions

        regions = compute_regions(box_graph, default_config)

        assert regions[0].winding_rule == WindingRule.NON_ZERO

    def test_configured_rule_applies_to_all(self, two_triangles_graph, default_config):
        from vectornet.pipeline import compute_regions

        default_config.region.winding_rule = "default"
        regions = compute_regions(two_triangles_graph, default_config)

        assert [r.winding_rule for r in regions] == [WindingRule.DEFAULT, WindingRule.DEFAULT]


class TestAmbiguousContainment:
    """Degenerate containment resolves by insertion order and is reported."""

    def test_coincident_cycles_nest_by_order(self, capsys, default_config):
        from vectornet.pipeline import compute_regions
        from vectornet.tracer import configure_tracer

        graph = Graph()
        square(graph, 0, 0, 10)
        square(graph, 0, 0, 10)

        configure_tracer(enabled=True, level="WARN")
        regions = compute_regions(graph, default_config)
        configure_tracer(enabled=False)

        assert len(regions) == 1
        outer = regions[0].cycles[0]
        assert sorted(outer.edges) == [0, 1, 2, 3]
        assert sorted(outer.children[0].edges) == [4, 5, 6, 7]
        assert "Ambiguous containment" in capsys.readouterr().err

    def test_coincident_resolution_is_deterministic(self, default_config):
        from vectornet.pipeline import compute_regions

        def build():
            graph = Graph()
            square(graph, 0, 0, 10)
            square(graph, 0, 0, 10)
            return compute_regions(graph, default_config)

        assert build() == build()

    def test_zero_area_cycle(self, capsys, default_config):
        """Test that a flat cycle is nested without error and reported."""
        from vectornet.pipeline import compute_regions
        from vectornet.tracer import configure_tracer

        graph = Graph()
        square(graph, 0, 0, 10)
        graph.polyline([[2, 5], [5, 5], [8, 5]], closed=True)

        configure_tracer(enabled=True, level="WARN")
        regions = compute_regions(graph, default_config)
        configure_tracer(enabled=False)

        assert len(regions) == 1
        assert sorted(regions[0].cycles[0].children[0].edges) == [4, 5, 6]
        assert "zero-area" in capsys.readouterr().err


class TestSmallCycles:
    """Basis cycles that cannot be closed walks."""

    def test_lens_skipped_with_warning(self, capsys, default_config):
        from vectornet.pipeline import compute_regions
        from vectornet.tracer import configure_tracer

        graph = Graph()
        a = graph.add_node([0, 0])
        b = graph.add_node([10, 0])
        graph.line_from_to(a, b)
        graph.quadratic_from_to(a, [5, 5], b)

        configure_tracer(enabled=True, level="WARN")
        regions = compute_regions(graph, default_config)
        configure_tracer(enabled=False)

        assert regions == []
        assert "too small" in capsys.readouterr().err
