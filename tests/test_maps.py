import numpy as np
import pytest

from mc_islands.grid import CELL_BLOCKED
from mc_islands.maps import MAP_TYPES, SCALE_DIMS, generate_map


@pytest.mark.parametrize("map_type", MAP_TYPES)
@pytest.mark.parametrize("scale", list(SCALE_DIMS))
def test_generated_dimensions(map_type, scale):
    grid, info = generate_map(map_type, scale, seed=11)

    assert (grid.width, grid.height) == SCALE_DIMS[scale]
    assert info.map_type == map_type
    assert info.scale == scale


@pytest.mark.parametrize("map_type", MAP_TYPES)
def test_generation_is_deterministic(map_type):
    a, _ = generate_map(map_type, "medium", seed=5)
    b, _ = generate_map(map_type, "medium", seed=5)

    assert np.array_equal(a.cells, b.cells)


def test_open_map_has_blocked_border():
    grid, _ = generate_map("open", "small", seed=1)

    assert np.all(grid.cells[0, :] == CELL_BLOCKED)
    assert np.all(grid.cells[:, -1] == CELL_BLOCKED)


def test_pocket_map_contains_harvest():
    grid, _ = generate_map("pocket", "large", seed=2)

    assert grid.harvest_count >= 4


def test_unknown_inputs_raise():
    with pytest.raises(ValueError):
        generate_map("volcano", "small", seed=0)
    with pytest.raises(ValueError):
        generate_map("open", "huge", seed=0)
