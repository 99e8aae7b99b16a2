"""
Unit tests for manual pipe editing.
"""
import math

import pytest

from irrigation_planner.domain.models import Pipe, PipeType
from irrigation_planner.services.domain.pipe_editor import PipeEditor, pipes_overlap
from irrigation_planner.utils.geo_math import distance


@pytest.fixture
def editor() -> PipeEditor:
    return PipeEditor()


@pytest.fixture
def make_pipe(at):
    def _make(pipe_id, start, end):
        a, b = at(*start), at(*end)
        return Pipe(id=pipe_id, start=a, end=b, type=PipeType.LATERAL, length=distance(a, b))
    return _make


# ============================================================
# Connection Tests
# ============================================================

class TestConnect:
    """Tests for adding manual pipes."""

    def test_connect_two_sprinklers(self, editor, make_sprinkler):
        a = make_sprinkler("a", 0, 0, "lawn")
        b = make_sprinkler("b", 6, 8, "beds")
        pipe = editor.connect_sprinklers(a, b)

        assert pipe.start == a.position
        assert pipe.end == b.position
        assert pipe.type == PipeType.LATERAL
        assert pipe.zone_id == "beds"
        assert pipe.connected_sprinklers == ["a", "b"]
        assert math.isclose(pipe.length, 10.0, rel_tol=1e-2)

    def test_connect_sprinkler_to_pipe(self, editor, at, make_sprinkler, make_pipe):
        sprinkler = make_sprinkler("s", 5, 5)
        target = make_pipe("p", (0, 0), (10, 0))
        pipe = editor.connect_sprinkler_to_pipe(sprinkler, target)

        assert pipe.start == sprinkler.position
        assert distance(pipe.end, at(5, 0)) < 0.05
        assert pipe.zone_id == "lawn"
        assert pipe.connected_sprinklers == ["s"]

    def test_connect_beyond_pipe_end_taps_endpoint(self, editor, make_sprinkler, make_pipe):
        target = make_pipe("p", (0, 0), (10, 0))
        pipe = editor.connect_sprinkler_to_pipe(make_sprinkler("s", 20, 3), target)
        assert distance(pipe.end, target.end) < 1e-6

    def test_manual_ids_are_unique(self, editor, make_sprinkler):
        a, b = make_sprinkler("a", 0, 0), make_sprinkler("b", 5, 0)
        assert editor.connect_sprinklers(a, b).id != editor.connect_sprinklers(a, b).id


# ============================================================
# Lookup and Delete Tests
# ============================================================

class TestLookupAndDelete:
    """Tests for finding and deleting pipes."""

    def test_find_pipes_between_either_direction(self, editor, make_sprinkler, make_pipe):
        a, b = make_sprinkler("a", 0, 0), make_sprinkler("b", 5, 0)
        pipes = [
            make_pipe("forward", (0, 0), (5, 0)),
            make_pipe("backward", (5, 0), (0, 0)),
            make_pipe("other", (0, 0), (0, 5)),
        ]
        assert [p.id for p in editor.find_pipes_between(a, b, pipes)] == ["forward", "backward"]

    def test_delete_pipes(self, editor, make_pipe):
        pipes = [make_pipe("a", (0, 0), (1, 0)), make_pipe("b", (1, 0), (2, 0)), make_pipe("c", (2, 0), (3, 0))]
        assert [p.id for p in editor.delete_pipes(pipes, ["a", "c", "missing"])] == ["b"]


# ============================================================
# Duplicate Removal Tests
# ============================================================

class TestDuplicates:
    """Tests for duplicate and overlap detection."""

    def test_reversed_pipe_is_duplicate(self, make_pipe):
        assert pipes_overlap(make_pipe("a", (0, 0), (5, 0)), make_pipe("b", (5, 0), (0, 0)))

    def test_contained_pipe_is_duplicate(self, make_pipe):
        assert pipes_overlap(make_pipe("a", (0, 0), (10, 0)), make_pipe("b", (2, 0), (6, 0)))

    def test_crossing_pipes_are_distinct(self, make_pipe):
        assert not pipes_overlap(make_pipe("a", (0, 0), (10, 0)), make_pipe("b", (5, -5), (5, 5)))

    def test_chained_pipes_are_distinct(self, make_pipe):
        assert not pipes_overlap(make_pipe("a", (0, 0), (5, 0)), make_pipe("b", (5, 0), (10, 0)))

    def test_add_pipe_skips_overlap(self, editor, make_pipe):
        existing = [make_pipe("a", (0, 0), (10, 0))]
        assert editor.add_pipe(existing, make_pipe("b", (10, 0), (0, 0))) == existing

    def test_add_pipe_keeps_existing_collinear_pipes(self, editor, make_pipe):
        existing = [make_pipe("a", (0, 0), (5, 0)), make_pipe("b", (0, 0), (10, 0))]
        result = editor.add_pipe(existing, make_pipe("c", (0, 0), (0, 5)))
        assert [p.id for p in result] == ["a", "b", "c"]

    def test_first_of_each_group_survives(self, editor, make_pipe):
        pipes = [
            make_pipe("keep", (0, 0), (5, 0)),
            make_pipe("reverse", (5, 0), (0, 0)),
            make_pipe("inside", (1, 0), (4, 0)),
            make_pipe("other", (0, 0), (0, 5)),
        ]
        assert [p.id for p in editor.remove_duplicate_pipes(pipes)] == ["keep", "other"]
