from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

# 格子类型：与投影阶段保持一致的整数编码
CELL_BLOCKED = -1
CELL_AIR = 0
CELL_HARVEST = 1

_CELL_CODES = (CELL_BLOCKED, CELL_AIR, CELL_HARVEST)

_CELL_CHARS = {CELL_AIR: ".", CELL_BLOCKED: "#", CELL_HARVEST: "P"}
_CHAR_CELLS = {ch: value for value, ch in _CELL_CHARS.items()}


@dataclass(eq=False)
class FaceGrid:
    """单个投影面的二维网格。

    使用 shape = (height, width)，按 [row, col] 寻址。
    cells[r, c] 取值为 CELL_BLOCKED / CELL_AIR / CELL_HARVEST。
    direction 只是随网格携带的朝向标记，不参与求解。

    构造时会复制输入数组并设为只读，求解器从不修改网格。
    """

    cells: np.ndarray
    direction: Optional[str] = None

    def __post_init__(self) -> None:
        raw = np.asarray(self.cells)
        if raw.ndim != 2:
            raise ValueError("cells 数组必须是二维的 (height, width)")
        height, width = raw.shape
        if width <= 0 or height <= 0:
            raise ValueError(f"网格尺寸必须为正: width={width}, height={height}")
        # 在原始 dtype 上校验，int8 转换会把 255 回绕成 -1、把 0.7 截断成 0
        if not bool(np.isin(raw, _CELL_CODES).all()):
            raise ValueError("cells 中存在未知的格子编码")
        cells = raw.astype(np.int8, copy=True)
        cells.flags.writeable = False
        self.cells = cells

    @property
    def shape(self) -> Tuple[int, int]:
        return self.cells.shape  # (height, width)

    @property
    def height(self) -> int:
        return self.cells.shape[0]

    @property
    def width(self) -> int:
        return self.cells.shape[1]

    @property
    def size(self) -> int:
        return int(self.cells.size)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def cell(self, row: int, col: int) -> int:
        return int(self.cells[row, col])

    def is_blocked(self, row: int, col: int) -> bool:
        return self.cells[row, col] == CELL_BLOCKED

    def is_harvest(self, row: int, col: int) -> bool:
        return self.cells[row, col] == CELL_HARVEST

    def count_cells(self, value: int) -> int:
        return int(np.count_nonzero(self.cells == value))

    @property
    def harvest_count(self) -> int:
        return self.count_cells(CELL_HARVEST)

    @property
    def blocked_count(self) -> int:
        return self.count_cells(CELL_BLOCKED)

    @classmethod
    def empty(cls, width: int, height: int, direction: Optional[str] = None) -> "FaceGrid":
        """构造一个全部为 Air 的网格。"""

        if width <= 0 or height <= 0:
            raise ValueError(f"网格尺寸必须为正: width={width}, height={height}")
        return cls(np.zeros((height, width), dtype=np.int8), direction)

    @classmethod
    def from_rows(cls, rows: Iterable[str], direction: Optional[str] = None) -> "FaceGrid":
        """从文本行构造网格：'#' = Blocked，'.' = Air，'P' = Harvest。"""

        lines = list(rows)
        if not lines or any(len(line) != len(lines[0]) for line in lines):
            raise ValueError("文本网格必须非空且每行等长")
        try:
            data = [[_CHAR_CELLS[ch] for ch in line] for line in lines]
        except KeyError as exc:
            raise ValueError(f"未知的格子字符: {exc.args[0]!r}") from None
        return cls(np.array(data, dtype=np.int8), direction)

    def clone(self) -> "FaceGrid":
        return FaceGrid(self.cells.copy(), self.direction)

    def to_rows(self) -> list[str]:
        return ["".join(_CELL_CHARS[int(v)] for v in row) for row in self.cells]

    def __str__(self) -> str:
        header = f"FaceGrid[{self.width}x{self.height}, direction={self.direction}]"
        return "\n".join([header, *self.to_rows()])
