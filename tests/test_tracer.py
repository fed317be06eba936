"""Tests for the tracer module."""

import json
import os

import numpy as np
import pytest


class TestSummarize:
    """Tests for object summarization."""

    def test_numpy_array_summary(self):
        """Test that numpy arrays are summarized with shape and type."""
        from vectornet.tracer import summarize

        summary = summarize(np.zeros((10, 2), dtype=np.float64))

        assert "ndarray" in summary
        assert "10x2" in summary
        assert "float64" in summary

    def test_summary_capped_length(self):
        """Test that summary never exceeds max length."""
        from vectornet.tracer import summarize

        large_dict = {f"key_{i}": f"value_{i}" for i in range(100)}

        assert len(summarize(large_dict, max_len=20)) <= 20

    def test_graph_summary(self, box_graph):
        from vectornet.tracer import summarize

        assert summarize(box_graph) == "Graph(nodes=4,edges=4)"

    def test_networkx_summary(self, box_graph):
        from vectornet.tracer import summarize

        summary = summarize(box_graph.to_networkx())

        assert summary == "MultiGraph(nodes=4,edges=4)"

    def test_shapely_summary(self):
        from shapely.geometry import box
        from vectornet.tracer import summarize

        assert summarize(box(0, 0, 2, 3)) == "Polygon(bounds=[0.0,0.0,2.0,3.0])"

    def test_frozenset_summary(self):
        from vectornet.tracer import summarize

        assert summarize(frozenset({1, 2, 3})) == "frozenset(len=3,first=int)"

    def test_pydantic_model_summary(self):
        from vectornet.models import Cycle
        from vectornet.tracer import summarize

        assert "Cycle" in summarize(Cycle(edges=[0, 1, 2], nodes=[0, 1, 2]))

    def test_none_summary(self):
        from vectornet.tracer import summarize

        assert summarize(None) == "None"


class TestTracerSpan:
    """Tests for tracer span functionality."""

    def test_span_nesting(self, capsys):
        """Test that spans produce start/end lines and an indented event."""
        from vectornet.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()

        with tracer.span("outer", module="test"):
            with tracer.span("inner", module="test"):
                tracer.event("inside")

        lines = capsys.readouterr().err.strip().split("\n")

        assert len(lines) == 5
        assert "test:inner  inside" in lines[2]
        assert "end ok" in lines[-1]

    def test_tracer_disabled_no_output(self, capsys):
        from vectornet.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=False)
        tracer = get_tracer()

        with tracer.span("test", module="test"):
            tracer.event("should not appear")

        assert capsys.readouterr().err == ""

    def test_level_filtering(self, capsys):
        """Test that events below the configured level are dropped."""
        from vectornet.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="WARN")
        tracer = get_tracer()
        tracer.event("debug detail", level="DEBUG")
        tracer.event("something odd", level="WARN")

        err = capsys.readouterr().err
        assert "something odd" in err
        assert "debug detail" not in err

    def test_failed_span_unwinds(self, capsys):
        """Test that an exception is logged and the span stack recovers."""
        from vectornet.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()

        with pytest.raises(RuntimeError):
            with tracer.span("boom", module="test"):
                raise RuntimeError("bad")

        tracer.event("after")
        err = capsys.readouterr().err

        assert "failed" in err
        assert tracer._depth == 0
        assert tracer._span_stack == []

    def test_file_and_json_output(self, temp_dir, capsys):
        from vectornet.tracer import configure_tracer, get_tracer

        path = os.path.join(temp_dir, "trace.log")
        configure_tracer(enabled=True, level="INFO", file_path=path, json_output=True)
        get_tracer().event("written", edges=3)
        configure_tracer(enabled=False)

        with open(path, encoding="utf-8") as f:
            lines = f.read().strip().split("\n")

        assert "written edges=3" in lines[0]
        record = json.loads(lines[1])
        assert record["message"] == "written edges=3"
        assert record["meta"] == {"edges": "3"}


class TestTraceDecorator:
    """Tests for the @trace decorator."""

    def test_decorator_runs_function(self):
        from vectornet.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="test_func")
        def my_func(x):
            return x * 2

        assert my_func(5) == 10

    def test_decorator_summarizes_positional_args(self, capsys):
        from vectornet.tracer import configure_tracer, trace

        configure_tracer(enabled=True, level="INFO")

        @trace(label="count_edges", arg_names=["edges"])
        def count_edges(edges):
            return len(edges)

        assert count_edges([1, 2, 3]) == 3
        assert "edges=list(len=3,first=int)" in capsys.readouterr().err

    def test_decorator_with_exception(self):
        from vectornet.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="failing_func")
        def failing_func():
            raise ValueError("test error")

        with pytest.raises(ValueError):
            failing_func()

    def test_pipeline_is_traced(self, box_graph, capsys):
        """Test that region computation reports its stages."""
        from vectornet.pipeline import compute_regions
        from vectornet.tracer import configure_tracer

        configure_tracer(enabled=True, level="INFO")
        compute_regions(box_graph)

        err = capsys.readouterr().err
        assert "compute_regions" in err
        assert "minimum_cycle_basis" in err
        assert "Built 1 regions" in err
