"""
Structural validation rules for graphs.

The store keeps these invariants on its own; the checks exist for loaded
or hand-assembled graphs and for tests.
"""

from vectornet.models import CheckResult, Severity, ValidationReport
from vectornet.tracer import get_tracer, trace


@trace(label="check_graph")
def check_graph(graph):
    """
    Run all structural checks on a graph.

    Returns ValidationReport with all check results.
    """
    tracer = get_tracer()

    checks = [
        check_edge_endpoints(graph),
        check_adjacency_sync(graph),
        check_adjacency_unique(graph),
        check_index_counters(graph),
        check_isolated_nodes(graph),
    ]

    report = ValidationReport(checks=checks)
    tracer.event(f"Validation complete: {report.error_count} errors, {report.warning_count} warnings")

    return report


def check_edge_endpoints(graph):
    """Every edge must reference live nodes."""
    dangling = {
        idx: [n for n in (edge.start, edge.end) if not graph.has_node(n)]
        for idx, edge in graph.edges()
    }
    dangling = {idx: nodes for idx, nodes in dangling.items() if nodes}

    if dangling:
        return CheckResult(
            rule_id="edge_endpoints",
            severity=Severity.ERROR,
            passed=False,
            message=f"{len(dangling)} edges reference missing nodes",
            evidence={"edges": {str(k): v for k, v in dangling.items()}},
        )
    return CheckResult(
        rule_id="edge_endpoints",
        severity=Severity.ERROR,
        passed=True,
        message="All edge endpoints exist",
    )


def check_adjacency_sync(graph):
    """Each node's adjacency must be exactly its incident edges."""
    expected = {idx: set() for idx in graph.node_indices()}
    for idx, edge in graph.edges():
        for n in (edge.start, edge.end):
            if n in expected:
                expected[n].add(idx)

    mismatched = [
        idx for idx, node in graph.nodes()
        if set(node.adjacents) != expected[idx]
    ]

    if mismatched:
        return CheckResult(
            rule_id="adjacency_sync",
            severity=Severity.ERROR,
            passed=False,
            message=f"{len(mismatched)} nodes have adjacency out of sync with edges",
            evidence={"nodes": mismatched},
        )
    return CheckResult(
        rule_id="adjacency_sync",
        severity=Severity.ERROR,
        passed=True,
        message="Adjacency matches edges",
    )


def check_adjacency_unique(graph):
    duplicated = [
        idx for idx, node in graph.nodes()
        if len(node.adjacents) != len(set(node.adjacents))
    ]

    return CheckResult(
        rule_id="adjacency_unique",
        severity=Severity.ERROR,
        passed=not duplicated,
        message=(
            f"{len(duplicated)} nodes list an edge more than once"
            if duplicated else "No duplicate adjacency entries"
        ),
        evidence={"nodes": duplicated},
    )


def check_index_counters(graph):
    """Counters must be past every live index so indices are never reused."""
    max_node = max(graph.node_indices(), default=-1)
    max_edge = max(graph.edge_indices(), default=-1)
    passed = graph.next_node_index > max_node and graph.next_edge_index > max_edge

    return CheckResult(
        rule_id="index_counters",
        severity=Severity.ERROR,
        passed=passed,
        message="Index counters are ahead of live indices" if passed else "Index counters would reuse a live index",
        evidence={
            "next_node_index": graph.next_node_index,
            "max_node_index": max_node,
            "next_edge_index": graph.next_edge_index,
            "max_edge_index": max_edge,
        },
    )


def check_isolated_nodes(graph):
    isolated = [idx for idx, node in graph.nodes() if not node.adjacents]

    return CheckResult(
        rule_id="isolated_nodes",
        severity=Severity.WARN,
        passed=not isolated,
        message=f"{len(isolated)} nodes have no edges" if isolated else "No isolated nodes",
        evidence={"nodes": isolated},
    )


def assert_graph_consistent(graph):
    """Raise AssertionError listing every failed error-level check."""
    report = check_graph(graph)
    if report.has_errors:
        failures = [
            format_check_result(c) for c in report.checks
            if c.severity == Severity.ERROR and not c.passed
        ]
        raise AssertionError("graph invariants violated: " + "; ".join(failures))
    return report


def format_check_result(check):
    """Format a single check result for display."""
    status = "PASS" if check.passed else "FAIL"
    return f"[{status}] [{check.severity.value.upper()}] {check.rule_id}: {check.message}"


def format_report(report):
    """Human-readable summary of a validation report."""
    lines = [
        "Graph Validation Report",
        "=" * 40,
        f"Total checks: {len(report.checks)}",
        f"Errors: {report.error_count}",
        f"Warnings: {report.warning_count}",
        "-" * 40,
    ]
    lines.extend(format_check_result(c) for c in report.checks)
    return "\n".join(lines)
