from time import perf_counter

import pytest

from mc_islands.algorithms.backtrack import IslandSearch, SearchContext, solve_face
from mc_islands.config import MAX_ISLAND_SIZE, MIN_ISLAND_SIZE, SolverConfig
from mc_islands.grid import FaceGrid
from mc_islands.maps import MAP_TYPES, generate_map
from mc_islands.shapes import DIRECTIONS, find_anchor
from mc_islands.solution import PlacementType


def _mask(cells, width):
    return sum(1 << (r * width + c) for r, c in cells)


def _adjacent(a, b):
    return any((r + dr, c + dc) in b for r, c in a for dr, dc in DIRECTIONS)


def _check_invariants(grid, result):
    islands = list(result.islands)
    for island in islands:
        assert MIN_ISLAND_SIZE <= island.size <= MAX_ISLAND_SIZE
        assert find_anchor(island.cells) is not None
        assert island.anchor <= island.cells
        assert not any(grid.is_blocked(r, c) for r, c in island.cells)
    for i, a in enumerate(islands):
        for b in islands[i + 1:]:
            assert not (a.cells & b.cells)
            if _adjacent(a.cells, b.cells):
                assert a.material != b.material
            assert not _adjacent(a.anchor, b.anchor)
    assert 0 <= result.harvest_covered <= result.total_harvest
    assert 0.0 <= result.coverage_percent <= 100.0


def test_isolated_harvest_cell_stays_uncovered():
    grid = FaceGrid.from_rows(["###", "#P#", "###"])
    result = solve_face(grid, SolverConfig(timeout_ms=1000))

    assert result.islands == ()
    assert result.harvest_covered == 0
    assert result.total_harvest == 1
    assert result.coverage_percent == 0.0
    assert not result.timed_out


def test_grid_without_harvest_returns_empty_result():
    grid = FaceGrid.empty(5, 4, direction="up")
    result = solve_face(grid)

    assert result.islands == ()
    assert result.harvest_covered == 0
    assert result.total_harvest == 0
    assert result.coverage_percent == 100.0
    assert not result.timed_out
    assert result.direction == "up"


def test_corner_harvest_block_gets_an_island(corner_block_grid, fast_config):
    result = solve_face(corner_block_grid, fast_config)

    _check_invariants(corner_block_grid, result)
    best = max(
        sum(1 for r, c in island.cells if corner_block_grid.is_harvest(r, c))
        for island in result.islands
    )
    assert best >= 4
    assert all(1 <= r <= 4 and 1 <= c <= 4 for i in result.islands for r, c in i.cells)


def test_two_distant_l_clusters_are_both_covered(two_l_clusters_grid, fast_config):
    result = solve_face(two_l_clusters_grid, fast_config)

    _check_invariants(two_l_clusters_grid, result)
    assert result.harvest_covered == 8
    assert result.island_count == 2
    assert result.score == pytest.approx(6.0)
    first, second = {(1, 1), (2, 1), (3, 1), (3, 2)}, {(6, 7), (7, 7), (8, 7), (8, 8)}
    owners = [
        {i for i, island in enumerate(result.islands) if cluster <= island.cells}
        for cluster in (first, second)
    ]
    assert len(owners[0]) == 1 and len(owners[1]) == 1
    assert owners[0] != owners[1]


def test_single_block_is_covered_by_one_island():
    grid = FaceGrid.from_rows(["PPP", "PPP"])
    result = solve_face(grid, SolverConfig(timeout_ms=2000))

    assert result.island_count == 1
    assert result.harvest_covered == 6
    assert result.score == pytest.approx(5.0)
    assert not result.timed_out


def test_maximum_island_cost_makes_islands_unprofitable():
    grid = FaceGrid.from_rows(["PPP", "PPP"])
    result = solve_face(grid, SolverConfig(timeout_ms=2000, cost_per_island=12))

    assert result.island_count == 0
    assert result.score == 0.0


def test_zero_timeout_returns_degraded_result(corner_block_grid):
    result = solve_face(corner_block_grid, SolverConfig(timeout_ms=0, max_shapes_per_target=50))

    assert result.timed_out
    assert result.islands == ()
    assert result.harvest_covered == 0


@pytest.mark.parametrize("map_type", MAP_TYPES)
def test_generated_maps_satisfy_invariants(map_type):
    grid, _ = generate_map(map_type, "small", seed=7)
    result = solve_face(grid, SolverConfig(timeout_ms=300, max_shapes_per_target=100))

    _check_invariants(grid, result)
    assert result.placements.shape == grid.shape
    assert result.block_count == sum(island.size for island in result.islands)


def test_longer_budget_never_scores_lower():
    grid, _ = generate_map("open", "small", seed=3)
    short = solve_face(grid, SolverConfig(timeout_ms=20, max_shapes_per_target=100))
    long = solve_face(grid, SolverConfig(timeout_ms=400, max_shapes_per_target=100))

    assert long.score >= short.score


def _prepared_search():
    grid = FaceGrid.from_rows(["PPP", "P..", "..."])
    search = IslandSearch(grid, SolverConfig(timeout_ms=5000))
    search._prepare()
    ctx = SearchContext(deadline=perf_counter() + 5.0, cost_per_island=1.0)
    # 预先占用第三行与 (1,1)、(1,2)，只留下唯一的 L 形
    occupied = _mask([(2, 0), (2, 1), (2, 2), (1, 1), (1, 2)], 3)
    return search, ctx, occupied


def test_island_next_to_slime_takes_honey():
    search, ctx, occupied = _prepared_search()
    slime = _mask([(2, 0), (2, 1), (2, 2)], 3)

    search._search(ctx, 0, occupied, 0, slime, 0, [], 0)

    assert len(ctx.best_islands) == 1
    shape, color = ctx.best_islands[0]
    assert shape.cells == {(0, 0), (0, 1), (0, 2), (1, 0)}
    assert color is PlacementType.HONEY
    assert ctx.best_score == pytest.approx(3.0)


def test_island_next_to_both_colors_is_rejected():
    search, ctx, occupied = _prepared_search()
    slime = _mask([(2, 0), (2, 1), (2, 2)], 3)
    honey = _mask([(1, 1), (1, 2)], 3)

    search._search(ctx, 0, occupied, 0, slime, honey, [], 0)

    assert ctx.best_islands == []
    assert ctx.best_score == 0.0


def test_island_with_adjacent_anchor_is_rejected():
    search, ctx, occupied = _prepared_search()
    anchors = _mask([(2, 0)], 3)

    search._search(ctx, 0, occupied, anchors, 0, 0, [], 0)

    assert ctx.best_islands == []


def test_bound_prunes_hopeless_branches():
    search, ctx, _ = _prepared_search()
    ctx.best_score = 100.0

    search._search(ctx, 0, 0, 0, 0, 0, [], 0)

    assert ctx.nodes_expanded == 0
    assert ctx.best_islands == []


def test_expired_context_stops_immediately():
    search, _, _ = _prepared_search()
    ctx = SearchContext(deadline=perf_counter() - 1.0, cost_per_island=1.0)

    search._search(ctx, 0, 0, 0, 0, 0, [], 0)

    assert ctx.timed_out
    assert ctx.best_score == float("-inf")
    assert ctx.solutions_found == 0
