import os

os.environ.setdefault("MPLBACKEND", "Agg")

import pytest

from mc_islands.config import SolverConfig
from mc_islands.grid import FaceGrid


@pytest.fixture
def corner_block_grid():
    # 6×6：四周 Blocked，内部左上角 3×4 Harvest
    return FaceGrid.from_rows(
        [
            "######",
            "#PPPP#",
            "#PPPP#",
            "#PPPP#",
            "#....#",
            "######",
        ],
        direction="north",
    )


@pytest.fixture
def two_l_clusters_grid():
    rows = [["."] * 10 for _ in range(10)]
    for r, c in [(1, 1), (2, 1), (3, 1), (3, 2), (6, 7), (7, 7), (8, 7), (8, 8)]:
        rows[r][c] = "P"
    return FaceGrid.from_rows(["".join(row) for row in rows], direction="up")


@pytest.fixture
def fast_config():
    return SolverConfig(timeout_ms=2000, max_shapes_per_target=150)
