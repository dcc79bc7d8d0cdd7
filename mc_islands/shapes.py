from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .config import MAX_ISLAND_SIZE, MAX_SHAPES_PER_TARGET, MIN_ISLAND_SIZE
from .grid import FaceGrid
from .targets import TargetSet

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# 四邻接方向 (dr, dc)
DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
)


def find_anchor(cells: Iterable[Cell]) -> Optional[FrozenSet[Cell]]:
    """寻找形状中的 L 型锚点（3 格直线主干 + 1 格拐角）。

    对每个格子 p 与方向 d：若 p-d 与 p+d 都在集合中，则 (p-d, p, p+d) 构成主干；
    再沿与 d 垂直的方向 q 检查主干两端 (p-d)+q、(p+d)+q 是否存在拐角格。
    返回第一个找到的 4 格锚点，找不到时返回 None。纯结构判定，与 Harvest 无关。
    """

    cell_set = cells if isinstance(cells, (set, frozenset)) else set(cells)
    for r, c in sorted(cell_set):
        for dr, dc in DIRECTIONS:
            prev = (r - dr, c - dc)
            nxt = (r + dr, c + dc)
            if prev not in cell_set or nxt not in cell_set:
                continue
            for qr, qc in DIRECTIONS:
                # 跳过与主干共线的方向
                if (qr, qc) == (dr, dc) or (qr, qc) == (-dr, -dc):
                    continue
                for end in (prev, nxt):
                    corner = (end[0] + qr, end[1] + qc)
                    if corner in cell_set:
                        return frozenset((prev, (r, c), nxt, corner))
    return None


def has_l_pattern(cells: Iterable[Cell]) -> bool:
    return find_anchor(cells) is not None


def _cells_mask(cells: Iterable[Cell], width: int) -> int:
    mask = 0
    for r, c in cells:
        mask |= 1 << (r * width + c)
    return mask


def _halo_mask(cells: Iterable[Cell], grid: FaceGrid) -> int:
    """cells 的四邻接邻域（不含越界格）位图。"""

    mask = 0
    for r, c in cells:
        for dr, dc in DIRECTIONS:
            nr, nc = r + dr, c + dc
            if grid.in_bounds(nr, nc):
                mask |= 1 << (nr * grid.width + nc)
    return mask


@dataclass(frozen=True)
class Shape:
    """候选岛屿形状。

    cells 为格子坐标集合；mask 是展平网格上的位图，用于 O(1) 重叠判断；
    halo_mask / anchor_halo_mask 是形状与锚点的四邻域位图，用于邻接判断。
    """

    cells: FrozenSet[Cell]
    mask: int
    harvest_count: int
    anchor: FrozenSet[Cell]
    anchor_mask: int
    halo_mask: int
    anchor_halo_mask: int

    @property
    def size(self) -> int:
        return len(self.cells)

    def overlaps(self, occupied: int) -> bool:
        return bool(self.mask & occupied)

    def touches(self, other_mask: int) -> bool:
        return bool(self.halo_mask & other_mask)

    def anchor_touches(self, other_anchor_mask: int) -> bool:
        return bool(self.anchor_halo_mask & other_anchor_mask)


def make_shape(cells: Iterable[Cell], grid: FaceGrid) -> Optional[Shape]:
    """由格子集合构造 Shape；不含 L 型锚点时返回 None。"""

    frozen = frozenset(cells)
    anchor = find_anchor(frozen)
    if anchor is None:
        return None
    harvest = sum(1 for r, c in frozen if grid.is_harvest(r, c))
    return Shape(
        cells=frozen,
        mask=_cells_mask(frozen, grid.width),
        harvest_count=harvest,
        anchor=anchor,
        anchor_mask=_cells_mask(anchor, grid.width),
        halo_mask=_halo_mask(frozen, grid),
        anchor_halo_mask=_halo_mask(anchor, grid),
    )


@dataclass
class ShapeCatalog:
    """形状枚举结果。

    shapes_by_target[i] 为覆盖目标 i 的全部候选形状，按 harvest_count 降序。
    """

    targets: TargetSet
    shapes_by_target: Dict[int, List[Shape]] = field(default_factory=dict)
    unique_count: int = 0
    capped_targets: int = 0

    def candidates(self, target_idx: int) -> List[Shape]:
        return self.shapes_by_target.get(target_idx, [])

    def scarcity_order(self) -> List[int]:
        """按候选数升序排列的目标索引（稀缺者优先分支）。"""

        return sorted(range(self.targets.size), key=lambda i: len(self.candidates(i)))


def enumerate_shapes(
    grid: FaceGrid,
    targets: TargetSet,
    max_shapes_per_target: int = MAX_SHAPES_PER_TARGET,
) -> ShapeCatalog:
    """对每个目标格做 BFS，枚举包含它的 4~12 格连通形状。

    - 从单格集合 {target} 出发，每步加入一个不在集合中的非 Blocked 邻格；
    - 规模 >= MIN_ISLAND_SIZE 且含 L 型锚点的集合记为候选形状，全局按位图去重；
    - 规模达到 MAX_ISLAND_SIZE 后不再生长；
    - 单个目标新发现的形状达到 max_shapes_per_target 后停止该目标的枚举；
    - 新形状挂到它覆盖的每个目标上，而不仅是生长起点。
    """

    catalog = ShapeCatalog(targets=targets)
    for idx in range(targets.size):
        catalog.shapes_by_target[idx] = []

    width = grid.width
    seen_global: set[int] = set()

    for t_idx, start in enumerate(targets.coords):
        start_mask = 1 << (start[0] * width + start[1])
        q: deque[Tuple[FrozenSet[Cell], int]] = deque([(frozenset((start,)), start_mask)])
        seen_local: set[int] = {start_mask}
        shapes_found = 0

        while q and shapes_found < max_shapes_per_target:
            current, current_mask = q.popleft()
            if len(current) >= MAX_ISLAND_SIZE:
                continue

            neighbors: set[Cell] = set()
            for r, c in current:
                for dr, dc in DIRECTIONS:
                    nr, nc = r + dr, c + dc
                    if not grid.in_bounds(nr, nc) or grid.is_blocked(nr, nc):
                        continue
                    if (nr, nc) not in current:
                        neighbors.add((nr, nc))

            for n in sorted(neighbors):
                grown_mask = current_mask | (1 << (n[0] * width + n[1]))
                if grown_mask in seen_local:
                    continue
                seen_local.add(grown_mask)
                grown = current | {n}
                q.append((grown, grown_mask))

                if len(grown) < MIN_ISLAND_SIZE or grown_mask in seen_global:
                    continue
                shape = make_shape(grown, grid)
                if shape is None:
                    continue

                seen_global.add(grown_mask)
                for r, c in grown:
                    covered = targets.index_of(r, c)
                    if covered >= 0:
                        catalog.shapes_by_target[covered].append(shape)
                shapes_found += 1
                if shapes_found >= max_shapes_per_target:
                    catalog.capped_targets += 1
                    break

    # 贪心启发：先尝试覆盖收获格最多的形状（稳定排序保证结果可复现）
    for shapes in catalog.shapes_by_target.values():
        shapes.sort(key=lambda s: s.harvest_count, reverse=True)

    catalog.unique_count = len(seen_global)
    logger.debug(
        "enumerated %d unique shapes for %d targets (%d capped)",
        catalog.unique_count,
        targets.size,
        catalog.capped_targets,
    )
    return catalog
