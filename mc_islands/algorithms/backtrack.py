from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from time import perf_counter
from typing import List, Optional, Tuple

from ..config import MIN_ISLAND_SIZE, SolverConfig
from ..grid import FaceGrid
from ..shapes import Shape, ShapeCatalog, enumerate_shapes
from ..solution import (
    Island,
    PlacementType,
    SolverResult,
    build_result,
    validate_result,
)
from ..targets import TargetSet, build_targets

logger = logging.getLogger(__name__)


@dataclass
class SearchContext:
    """单次求解共享的搜索状态，在递归中按引用传递。"""

    deadline: float
    cost_per_island: float
    best_score: float = float("-inf")
    best_islands: List[Tuple[Shape, PlacementType]] = field(default_factory=list)
    nodes_expanded: int = 0
    solutions_found: int = 0
    timed_out: bool = False

    def expired(self) -> bool:
        if self.timed_out:
            return True
        if perf_counter() > self.deadline:
            self.timed_out = True
        return self.timed_out


class IslandSearch:
    """基于回溯 + 分支限界的岛屿放置求解器。

    目标格按候选数升序排列（稀缺者优先）；在每个目标上依次尝试覆盖它的候选形状，
    再尝试跳过该目标。得分为 harvest_covered - island_count * cost_per_island。
    墙钟时间超限后立即返回当前最优解（anytime）。

    不保证全局最优：上界只统计尚未处理且未被覆盖的目标格。
    """

    def __init__(self, grid: FaceGrid, config: Optional[SolverConfig] = None) -> None:
        self.grid = grid
        self.config = config or SolverConfig.defaults()

        self.targets: TargetSet = build_targets(grid)
        self.catalog: Optional[ShapeCatalog] = None
        self.order: List[int] = []
        self.stats: Optional[SearchContext] = None

        # order[i:] 中全部目标格的位图，用于 O(1) 统计剩余未覆盖目标
        self._suffix_masks: List[int] = []
        self._order_bits: List[int] = []

    def _prepare(self) -> None:
        self.catalog = enumerate_shapes(
            self.grid, self.targets, self.config.max_shapes_per_target
        )
        self.order = self.catalog.scarcity_order()
        self._order_bits = [self.targets.bit(t) for t in self.order]

        n = len(self.order)
        suffix = [0] * (n + 1)
        for i in range(n - 1, -1, -1):
            suffix[i] = suffix[i + 1] | self._order_bits[i]
        self._suffix_masks = suffix

    def _search(
        self,
        ctx: SearchContext,
        i: int,
        occupied: int,
        anchors: int,
        slime: int,
        honey: int,
        islands: List[Tuple[Shape, PlacementType]],
        harvest: int,
    ) -> None:
        n = len(self.order)
        # 跳过分支作为本帧的尾部循环执行，递归深度只随已放置岛屿数增长
        while True:
            # 时间剪枝
            if ctx.expired():
                return

            # 所有目标都已处理
            if i >= n:
                score = harvest - len(islands) * ctx.cost_per_island
                if score > ctx.best_score:
                    ctx.best_score = score
                    ctx.best_islands = list(islands)
                    ctx.solutions_found += 1
                return

            # 目标已被某个岛屿覆盖，无需分支
            if occupied & self._order_bits[i]:
                i += 1
                continue

            # 上界：剩余未覆盖目标全部免费收获也无法超过当前最优
            remaining = (self._suffix_masks[i] & ~occupied).bit_count()
            current = harvest - len(islands) * ctx.cost_per_island
            if current + remaining <= ctx.best_score:
                return

            ctx.nodes_expanded += 1

            for shape in self.catalog.candidates(self.order[i]):
                if shape.mask & occupied:
                    continue
                # 不同岛屿的 L 型锚点不能相邻
                if shape.anchor_halo_mask & anchors:
                    continue
                touches_slime = bool(shape.halo_mask & slime)
                touches_honey = bool(shape.halo_mask & honey)
                if touches_slime and touches_honey:
                    continue
                color = PlacementType.HONEY if touches_slime else PlacementType.SLIME

                islands.append((shape, color))
                self._search(
                    ctx,
                    i + 1,
                    occupied | shape.mask,
                    anchors | shape.anchor_mask,
                    slime | shape.mask if color is PlacementType.SLIME else slime,
                    honey | shape.mask if color is PlacementType.HONEY else honey,
                    islands,
                    harvest + shape.harvest_count,
                )
                islands.pop()

                if ctx.timed_out:
                    return

            # 跳过目标 i
            i += 1

    def solve(self) -> SolverResult:
        start = perf_counter()
        ctx = SearchContext(
            deadline=start + self.config.timeout_sec,
            cost_per_island=self.config.cost_per_island,
        )
        self.stats = ctx

        if self.targets.size == 0:
            logger.info("no harvest cells to solve")
            return SolverResult.empty(self.grid, (perf_counter() - start) * 1000.0)

        logger.info(
            "solving %dx%d grid with %d harvest cells",
            self.grid.width,
            self.grid.height,
            self.targets.size,
        )

        self._prepare()
        self._search(ctx, 0, 0, 0, 0, 0, [], 0)

        runtime_ms = (perf_counter() - start) * 1000.0
        islands = [
            Island(cells=shape.cells, anchor=shape.anchor, material=color)
            for shape, color in ctx.best_islands
        ]
        result = build_result(
            self.grid,
            islands,
            solve_time_ms=runtime_ms,
            timed_out=ctx.timed_out,
            cost_per_island=ctx.cost_per_island,
        )
        validate_result(self.grid, result)

        if ctx.timed_out:
            logger.warning(
                "search timed out after %.0fms; returning best of %d solutions",
                runtime_ms,
                ctx.solutions_found,
            )
        logger.info(
            "solution: %d islands, %d/%d harvest covered, score=%.2f, nodes=%d",
            result.island_count,
            result.harvest_covered,
            result.total_harvest,
            result.score,
            ctx.nodes_expanded,
        )
        return result


def ensure_recursion_limit(max_cells: int) -> None:
    """保证解释器递归上限足以容纳 max_cells 格网格上的搜索。

    会修改进程级状态，只在启动工作线程之前调用，IslandSearch.solve 本身不会调用。
    """

    # 每层递归放置一个岛屿，每个岛屿至少占 MIN_ISLAND_SIZE 格
    depth = max_cells // MIN_ISLAND_SIZE + 64
    if depth > sys.getrecursionlimit():
        sys.setrecursionlimit(depth)


def solve_face(grid: FaceGrid, config: Optional[SolverConfig] = None) -> SolverResult:
    """统一入口：对单个投影面求解岛屿放置。"""

    ensure_recursion_limit(grid.size)
    return IslandSearch(grid, config).solve()
