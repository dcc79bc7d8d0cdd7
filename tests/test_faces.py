import sys
import threading

from mc_islands.algorithms.backtrack import IslandSearch
from mc_islands.config import SolverConfig
from mc_islands.faces import solve_faces
from mc_islands.grid import FaceGrid


def test_solves_every_face_in_input_order():
    grids = {
        "north": FaceGrid.from_rows(["PPP", "PPP"], direction="north"),
        "south": FaceGrid.from_rows(["###", "#P#", "###"], direction="south"),
        "up": FaceGrid.empty(4, 4, direction="up"),
    }
    batch = solve_faces(grids, SolverConfig(timeout_ms=1000), max_workers=2)

    assert batch.ok
    assert list(batch.results) == ["north", "south", "up"]
    assert batch.results["north"].harvest_covered == 6
    assert batch.results["south"].harvest_covered == 0
    assert batch.results["up"].coverage_percent == 100.0
    assert batch.results["north"].direction == "north"


def test_failed_face_does_not_affect_others():
    grids = {
        "east": FaceGrid.from_rows(["PPP", "PPP"]),
        "broken": None,
    }
    batch = solve_faces(grids, SolverConfig(timeout_ms=1000))

    assert not batch.ok
    assert "east" in batch.results
    assert isinstance(batch.errors["broken"], AttributeError)


def test_summary_lines():
    grids = {"west": FaceGrid.from_rows(["PPP", "PPP"])}
    batch = solve_faces(grids, SolverConfig(timeout_ms=1000))
    lines = batch.summary_lines()

    assert len(lines) == 1
    assert lines[0].startswith("west: 100% coverage (6/6), 6 blocks, ")


def test_no_faces():
    batch = solve_faces({})

    assert batch.ok
    assert batch.results == {}


def _record_recursion_limit(monkeypatch):
    calls = []
    monkeypatch.setattr(sys, "getrecursionlimit", lambda: 1000)
    monkeypatch.setattr(
        sys, "setrecursionlimit", lambda limit: calls.append((threading.get_ident(), limit))
    )
    return calls


def test_recursion_limit_raised_once_on_calling_thread(monkeypatch):
    calls = _record_recursion_limit(monkeypatch)
    grids = {
        "big": FaceGrid.empty(100, 100),
        "small": FaceGrid.from_rows(["PPP", "PPP"]),
    }
    batch = solve_faces(grids, SolverConfig(timeout_ms=1000), max_workers=2)

    assert batch.ok
    assert calls == [(threading.get_ident(), 100 * 100 // 4 + 64)]


def test_island_search_leaves_recursion_limit_alone(monkeypatch):
    calls = _record_recursion_limit(monkeypatch)
    result = IslandSearch(FaceGrid.from_rows(["PPP", "PPP"]), SolverConfig(timeout_ms=1000)).solve()

    assert result.harvest_covered == 6
    assert calls == []
