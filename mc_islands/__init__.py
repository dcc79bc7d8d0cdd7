"""Minecraft 投影面岛屿放置求解包。

子模块：
- grid: 二维投影面网格与格子类型
- config: 求解参数与岛屿尺寸常量
- targets: 需覆盖的目标格（Harvest）索引
- shapes: 候选岛屿形状枚举与 L 型锚点判定
- algorithms: 回溯 + 分支限界搜索
- solution: 求解结果组装与约束校验
- faces: 多个投影面的并行求解
- maps: 测试地图生成
- eval: 基准评估与制图
"""

from .config import SolverConfig
from .grid import CELL_AIR, CELL_BLOCKED, CELL_HARVEST, FaceGrid
from .solution import Island, PlacementType, SolverResult

__all__ = [
    "grid",
    "config",
    "targets",
    "shapes",
    "algorithms",
    "solution",
    "faces",
    "maps",
    "CELL_AIR",
    "CELL_BLOCKED",
    "CELL_HARVEST",
    "FaceGrid",
    "Island",
    "PlacementType",
    "SolverConfig",
    "SolverResult",
]
