from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import MAX_ISLAND_SIZE, MIN_ISLAND_SIZE
from .grid import CELL_HARVEST, FaceGrid
from .shapes import DIRECTIONS, Cell, find_anchor


class PlacementType(IntEnum):
    """每个格子的放置结果：两种材质对应岛屿的两种颜色。"""

    NONE = 0
    SLIME = 1
    HONEY = 2

    def other(self) -> "PlacementType":
        if self is PlacementType.SLIME:
            return PlacementType.HONEY
        if self is PlacementType.HONEY:
            return PlacementType.SLIME
        raise ValueError("NONE 没有对应的另一种颜色")


class SolutionInvariantError(AssertionError):
    """求解结果违反岛屿约束，属于求解器内部逻辑错误。"""


@dataclass(frozen=True)
class Island:
    """已放置的岛屿：格子集合、证明 L 型的 4 格锚点、材质颜色。"""

    cells: FrozenSet[Cell]
    anchor: FrozenSet[Cell]
    material: PlacementType

    @property
    def size(self) -> int:
        return len(self.cells)


@dataclass(frozen=True, eq=False)
class SolverResult:
    """单个投影面的求解结果（不可变）。

    placements[r, c] 为 PlacementType 编码（int8，只读）。
    score = harvest_covered - island_count * cost_per_island。
    """

    width: int
    height: int
    direction: Optional[str]
    placements: np.ndarray
    islands: Tuple[Island, ...]
    harvest_covered: int
    total_harvest: int
    solve_time_ms: float
    timed_out: bool
    score: float = 0.0

    @property
    def island_count(self) -> int:
        return len(self.islands)

    @property
    def coverage_percent(self) -> float:
        if self.total_harvest == 0:
            return 100.0
        return 100.0 * self.harvest_covered / self.total_harvest

    @property
    def block_count(self) -> int:
        return int(np.count_nonzero(self.placements != PlacementType.NONE))

    def placement(self, row: int, col: int) -> PlacementType:
        return PlacementType(int(self.placements[row, col]))

    @classmethod
    def empty(cls, grid: FaceGrid, solve_time_ms: float = 0.0) -> "SolverResult":
        return build_result(grid, [], solve_time_ms=solve_time_ms, timed_out=False)

    def render(self, grid: FaceGrid) -> str:
        """在网格文本上叠加放置结果：'S' = slime，'H' = honey。"""

        lines = []
        for r, row in enumerate(grid.to_rows()):
            chars = list(row)
            for c in range(self.width):
                p = self.placements[r, c]
                if p == PlacementType.SLIME:
                    chars[c] = "S"
                elif p == PlacementType.HONEY:
                    chars[c] = "H"
            lines.append("".join(chars))
        return "\n".join(lines)

    def __str__(self) -> str:
        return (
            f"SolverResult[{self.width}x{self.height}, direction={self.direction}, "
            f"coverage={self.coverage_percent:.1f}% ({self.harvest_covered}/{self.total_harvest}), "
            f"islands={self.island_count}, blocks={self.block_count}, "
            f"time={self.solve_time_ms:.0f}ms{', TIMED OUT' if self.timed_out else ''}]"
        )


def build_result(
    grid: FaceGrid,
    islands: Sequence[Island],
    solve_time_ms: float,
    timed_out: bool,
    cost_per_island: float = 0.0,
) -> SolverResult:
    """把最优岛屿列表组装为逐格放置网格与统计信息。"""

    placements = np.zeros(grid.shape, dtype=np.int8)
    for island in islands:
        for r, c in island.cells:
            placements[r, c] = island.material

    covered = placements != PlacementType.NONE
    harvest_covered = int(np.count_nonzero(covered & (grid.cells == CELL_HARVEST)))
    placements.flags.writeable = False

    return SolverResult(
        width=grid.width,
        height=grid.height,
        direction=grid.direction,
        placements=placements,
        islands=tuple(islands),
        harvest_covered=harvest_covered,
        total_harvest=grid.harvest_count,
        solve_time_ms=solve_time_ms,
        timed_out=timed_out,
        score=harvest_covered - len(islands) * cost_per_island,
    )


def _adjacent(cells_a: Iterable[Cell], cells_b: FrozenSet[Cell]) -> bool:
    for r, c in cells_a:
        for dr, dc in DIRECTIONS:
            if (r + dr, c + dc) in cells_b:
                return True
    return False


def _connected(cells: FrozenSet[Cell]) -> bool:
    start = next(iter(cells))
    stack = [start]
    seen = {start}
    while stack:
        r, c = stack.pop()
        for dr, dc in DIRECTIONS:
            n = (r + dr, c + dc)
            if n in cells and n not in seen:
                seen.add(n)
                stack.append(n)
    return len(seen) == len(cells)


def validate_result(grid: FaceGrid, result: SolverResult) -> None:
    """逐条检查岛屿约束，违反时抛出 SolutionInvariantError。

    - 岛屿两两不重叠，且不覆盖 Blocked 格；
    - 每个岛屿 4~12 格、连通、含合法 L 型锚点且锚点位于岛内；
    - 相邻岛屿颜色不同；任意两个岛屿的锚点互不相邻；
    - 0 <= harvest_covered <= total_harvest。
    """

    islands: List[Island] = list(result.islands)
    for i, island in enumerate(islands):
        if not MIN_ISLAND_SIZE <= island.size <= MAX_ISLAND_SIZE:
            raise SolutionInvariantError(f"岛屿 {i} 尺寸非法: {island.size}")
        if island.material not in (PlacementType.SLIME, PlacementType.HONEY):
            raise SolutionInvariantError(f"岛屿 {i} 没有颜色")
        if any(not grid.in_bounds(r, c) or grid.is_blocked(r, c) for r, c in island.cells):
            raise SolutionInvariantError(f"岛屿 {i} 覆盖了越界或 Blocked 格")
        if not _connected(island.cells):
            raise SolutionInvariantError(f"岛屿 {i} 不连通")
        if len(island.anchor) != 4 or not island.anchor <= island.cells:
            raise SolutionInvariantError(f"岛屿 {i} 的锚点不在岛内")
        if find_anchor(island.anchor) is None:
            raise SolutionInvariantError(f"岛屿 {i} 的锚点不是 L 型")

    for i in range(len(islands)):
        for j in range(i + 1, len(islands)):
            a, b = islands[i], islands[j]
            if a.cells & b.cells:
                raise SolutionInvariantError(f"岛屿 {i} 与 {j} 重叠")
            if a.material == b.material and _adjacent(a.cells, b.cells):
                raise SolutionInvariantError(f"相邻岛屿 {i} 与 {j} 颜色相同")
            if _adjacent(a.anchor, b.anchor):
                raise SolutionInvariantError(f"岛屿 {i} 与 {j} 的锚点相邻")

    if not 0 <= result.harvest_covered <= result.total_harvest:
        raise SolutionInvariantError(
            f"覆盖数越界: {result.harvest_covered}/{result.total_harvest}"
        )
