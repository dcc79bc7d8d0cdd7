from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from .grid import CELL_AIR, CELL_BLOCKED, CELL_HARVEST, FaceGrid


# 三种尺度的统一尺寸设置 (width, height)
SCALE_DIMS: Dict[str, Tuple[int, int]] = {
    "small": (8, 8),
    "medium": (12, 12),
    "large": (16, 16),
}

MAP_TYPES = ("open", "pocket", "cave")


@dataclass
class MapInfo:
    """地图元信息。"""

    map_type: str  # "open" / "pocket" / "cave"
    scale: str     # "small" / "medium" / "large"
    seed: int


def _dims(scale: str) -> Tuple[int, int]:
    if scale not in SCALE_DIMS:
        raise ValueError(f"未知 scale: {scale}")
    return SCALE_DIMS[scale]


def generate_open_map(scale: str, seed: int, p_harvest: float = 0.3) -> Tuple[FaceGrid, MapInfo]:
    """开阔面：四周一圈 Blocked，内部随机撒 Harvest。"""

    rng = np.random.default_rng(seed)
    width, height = _dims(scale)

    cells = np.full((height, width), CELL_BLOCKED, dtype=np.int8)
    inner = rng.random((height - 2, width - 2))
    cells[1:-1, 1:-1] = np.where(inner < p_harvest, CELL_HARVEST, CELL_AIR)

    return FaceGrid(cells, direction="north"), MapInfo(map_type="open", scale=scale, seed=seed)


def generate_pocket_map(scale: str, seed: int) -> Tuple[FaceGrid, MapInfo]:
    """口袋面：若干矩形 Harvest 簇，簇之间用 Air 隔开。

    - 每个簇的尺寸在 2~4 格之间随机；
    - 簇与簇之间至少留 1 格 Air，避免合并成一大片。
    """

    rng = np.random.default_rng(seed)
    width, height = _dims(scale)

    cells = np.full((height, width), CELL_AIR, dtype=np.int8)
    cells[0, :] = CELL_BLOCKED
    cells[-1, :] = CELL_BLOCKED
    cells[:, 0] = CELL_BLOCKED
    cells[:, -1] = CELL_BLOCKED

    num_pockets = max(1, (width * height) // 40)
    placed = 0
    for _ in range(num_pockets * 4):
        if placed >= num_pockets:
            break
        h = int(rng.integers(2, 5))
        w = int(rng.integers(2, 5))
        r0 = int(rng.integers(1, max(2, height - h - 1)))
        c0 = int(rng.integers(1, max(2, width - w - 1)))
        r1 = min(height - 1, r0 + h)
        c1 = min(width - 1, c0 + w)

        # 连同一圈外框都必须为空，才能放下这个簇
        window = cells[r0 - 1:r1 + 1, c0 - 1:c1 + 1]
        if np.any(window == CELL_HARVEST):
            continue
        cells[r0:r1, c0:c1] = CELL_HARVEST
        placed += 1

    return FaceGrid(cells, direction="east"), MapInfo(map_type="pocket", scale=scale, seed=seed)


def generate_cave_map(scale: str, seed: int, p_blocked: float = 0.25) -> Tuple[FaceGrid, MapInfo]:
    """洞穴面：随机 Blocked 障碍，只保留与中心连通的区域，再在其中撒 Harvest。

    简化实现：
    - 先随机放置 Blocked 噪声；
    - 从靠近中心的空格做一次 BFS，不连通的空格重新填回 Blocked；
    - 最后在保留区域内按 40% 概率标记 Harvest。
    """

    rng = np.random.default_rng(seed)
    width, height = _dims(scale)

    noise = rng.random((height, width))
    open_mask = noise >= p_blocked

    # 选择一个靠近中心的空格作为主连通分量的起点
    cr, cc = height // 2, width // 2
    start = None
    for radius in range(0, max(width, height)):
        for dr in range(-radius, radius + 1):
            for dc in range(-radius, radius + 1):
                r, c = cr + dr, cc + dc
                if 0 <= r < height and 0 <= c < width and open_mask[r, c]:
                    start = (r, c)
                    break
            if start is not None:
                break
        if start is not None:
            break

    cells = np.full((height, width), CELL_BLOCKED, dtype=np.int8)
    if start is None:
        # 极端情况下没有任何空格，直接返回全 Blocked 面
        return FaceGrid(cells, direction="down"), MapInfo(map_type="cave", scale=scale, seed=seed)

    visited = np.zeros((height, width), dtype=bool)
    visited[start] = True
    q: deque[Tuple[int, int]] = deque([start])
    while q:
        r, c = q.popleft()
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            nr, nc = r + dr, c + dc
            if not (0 <= nr < height and 0 <= nc < width):
                continue
            if visited[nr, nc] or not open_mask[nr, nc]:
                continue
            visited[nr, nc] = True
            q.append((nr, nc))

    harvest = rng.random((height, width)) < 0.4
    cells[visited] = CELL_AIR
    cells[visited & harvest] = CELL_HARVEST

    return FaceGrid(cells, direction="down"), MapInfo(map_type="cave", scale=scale, seed=seed)


def generate_map(map_type: str, scale: str, seed: int) -> Tuple[FaceGrid, MapInfo]:
    """统一入口，根据 map_type 和 scale 生成对应地图。"""

    if map_type == "open":
        return generate_open_map(scale, seed)
    if map_type == "pocket":
        return generate_pocket_map(scale, seed)
    if map_type == "cave":
        return generate_cave_map(scale, seed)
    raise ValueError(f"未知 map_type: {map_type}")
