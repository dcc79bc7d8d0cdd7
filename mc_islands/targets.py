from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .grid import CELL_HARVEST, FaceGrid


@dataclass
class TargetSet:
    """需覆盖的目标格集合（所有 Harvest 格）。

    attrs
    ------
    coords: List[(row, col)]，按索引顺序存储所有目标格坐标（先行后列）。
    index_map: np.ndarray[int32]，shape 与 grid 相同，目标格为其索引，否则为 -1。
    width: 网格宽度，用于把 (row, col) 映射到展平后的位号 row * width + col。
    """

    coords: List[Tuple[int, int]]
    index_map: np.ndarray
    width: int

    @property
    def size(self) -> int:
        return len(self.coords)

    def bit(self, idx: int) -> int:
        """目标 idx 在展平网格位图中的单个位。"""

        row, col = self.coords[idx]
        return 1 << (row * self.width + col)

    def index_of(self, row: int, col: int) -> int:
        return int(self.index_map[row, col])


def build_targets(grid: FaceGrid) -> TargetSet:
    index_map = np.full(grid.shape, -1, dtype=np.int32)
    coords: List[Tuple[int, int]] = []

    rows, cols = np.nonzero(grid.cells == CELL_HARVEST)
    # np.nonzero 按行优先顺序返回
    for idx, (r, c) in enumerate(zip(rows.tolist(), cols.tolist())):
        index_map[r, c] = idx
        coords.append((r, c))

    return TargetSet(coords=coords, index_map=index_map, width=grid.width)
