from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .algorithms.backtrack import IslandSearch, ensure_recursion_limit
from .config import SolverConfig
from .grid import FaceGrid
from .solution import SolverResult

logger = logging.getLogger(__name__)


@dataclass
class FaceBatch:
    """多个投影面的并行求解结果，results 与输入顺序一致。"""

    results: Dict[str, SolverResult] = field(default_factory=dict)
    errors: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary_lines(self) -> List[str]:
        lines: List[str] = []
        for face, result in self.results.items():
            lines.append(
                f"{face}: {result.coverage_percent:.0f}% coverage "
                f"({result.harvest_covered}/{result.total_harvest}), "
                f"{result.block_count} blocks, {result.solve_time_ms:.0f}ms"
                f"{' (timed out)' if result.timed_out else ''}"
            )
        for face, exc in self.errors.items():
            lines.append(f"{face}: failed to solve - {exc}")
        return lines


def _solve_one(grid: FaceGrid, config: SolverConfig) -> SolverResult:
    return IslandSearch(grid, config).solve()


def solve_faces(
    grids: Mapping[str, FaceGrid],
    config: Optional[SolverConfig] = None,
    max_workers: Optional[int] = None,
) -> FaceBatch:
    """每个面一个独立求解器，在线程池中并行求解。

    各求解器之间没有共享可变状态；全部完成后按输入顺序收集结果。
    单个面求解失败会被记录到 errors 中，不影响其他面。
    """

    config = config or SolverConfig.defaults()
    batch = FaceBatch()
    if not grids:
        return batch

    # 递归上限是进程级状态，只在主线程中调整一次
    ensure_recursion_limit(
        max((grid.size for grid in grids.values() if isinstance(grid, FaceGrid)), default=0)
    )

    workers = max_workers or min(len(grids), os.cpu_count() or 1)
    logger.info("solving %d face(s) with %d worker(s)", len(grids), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            face: executor.submit(_solve_one, grid, config)
            for face, grid in grids.items()
        }

        for face, future in futures.items():
            try:
                batch.results[face] = future.result()
            except Exception as exc:
                logger.exception("failed to solve face %s", face)
                batch.errors[face] = exc

    return batch
