from __future__ import annotations

from dataclasses import dataclass

# 岛屿尺寸范围（含两端）
MIN_ISLAND_SIZE = 4
MAX_ISLAND_SIZE = 12

# 每个目标格最多枚举的形状数，限制大面积空地上的枚举开销
MAX_SHAPES_PER_TARGET = 1000

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_COST_PER_ISLAND = 1.0

# 低于 1 时，只覆盖 1 个收获格的岛屿也会“免费”
MIN_COST_PER_ISLAND = 1.0
# 高于最大岛屿尺寸时，即使覆盖满 12 格的岛屿也会被罚成负收益
MAX_COST_PER_ISLAND = float(MAX_ISLAND_SIZE)


@dataclass(frozen=True)
class SolverConfig:
    """求解参数配置。

    timeout_ms: 单次求解的墙钟时间预算（毫秒）。
    cost_per_island: 每放置一个岛屿的得分惩罚，构造时截断到
        [MIN_COST_PER_ISLAND, MAX_COST_PER_ISLAND]。
    max_shapes_per_target: 每个目标格的形状枚举上限。

    配置不可变，多个面的求解器共享同一实例。
    """

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    cost_per_island: float = DEFAULT_COST_PER_ISLAND
    max_shapes_per_target: int = MAX_SHAPES_PER_TARGET

    def __post_init__(self) -> None:
        if self.timeout_ms < 0:
            raise ValueError(f"timeout_ms 不能为负: {self.timeout_ms}")
        if self.max_shapes_per_target <= 0:
            raise ValueError(f"max_shapes_per_target 必须为正: {self.max_shapes_per_target}")
        cost = max(MIN_COST_PER_ISLAND, min(MAX_COST_PER_ISLAND, float(self.cost_per_island)))
        object.__setattr__(self, "cost_per_island", cost)

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def defaults(cls) -> "SolverConfig":
        return cls()
