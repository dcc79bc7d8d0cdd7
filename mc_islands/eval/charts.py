from __future__ import annotations

import os
from typing import Dict, Iterable, List

import matplotlib.pyplot as plt
import numpy as np

from ..maps import MAP_TYPES, SCALE_DIMS

MAP_LABELS = {"open": "开阔面", "pocket": "口袋簇", "cave": "洞穴"}


def _group_by(
    results: Iterable[dict], key: str
) -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {}
    for r in results:
        k = r[key]
        grouped.setdefault(k, []).append(r)
    return grouped


def _plot_coverage_per_scale(results: List[dict], output_dir: str) -> None:
    """按 scale 生成柱状图（横轴为地图类型，柱为时间预算）。"""

    by_scale = _group_by(results, "scale")
    for scale in SCALE_DIMS:
        scale_results = by_scale.get(scale)
        if not scale_results:
            continue

        timeouts = sorted({r["timeout_ms"] for r in scale_results})
        map_types = [mt for mt in MAP_TYPES if any(r["map_type"] == mt for r in scale_results)]

        fig, ax = plt.subplots(figsize=(8, 5), dpi=150)
        x = np.arange(len(map_types))
        width = 0.8 / max(1, len(timeouts))

        for i, timeout in enumerate(timeouts):
            vals = []
            for mt in map_types:
                value = np.nan
                for r in scale_results:
                    if r["map_type"] == mt and r["timeout_ms"] == timeout:
                        value = r["coverage_percent"]
                        break
                vals.append(value)
            offset = (i - (len(timeouts) - 1) / 2) * width
            ax.bar(x + offset, vals, width, label=f"{timeout} ms")

        ax.set_xticks(x)
        ax.set_xticklabels([MAP_LABELS.get(mt, mt) for mt in map_types])
        ax.set_ylabel("收获覆盖率 (%)")
        ax.set_ylim(0, 100)
        ax.set_title(f"各时间预算下的覆盖率（{scale}）")

        # 图例放在下方，避免遮挡图形
        ax.legend(loc="lower center", bbox_to_anchor=(0.5, -0.3), ncol=len(timeouts), frameon=False)
        fig.subplots_adjust(bottom=0.3, top=0.88)

        out_path = os.path.join(output_dir, f"coverage_{scale}.png")
        fig.savefig(out_path, bbox_inches="tight")
        plt.close(fig)


def _plot_score_vs_timeout(results: List[dict], output_dir: str) -> None:
    """得分随时间预算变化的折线图，用于观察 anytime 单调性。"""

    fig, ax = plt.subplots(figsize=(8, 5), dpi=150)

    for (map_type, scale), rows in sorted(
        _group_by_pair(results, "map_type", "scale").items()
    ):
        rows = sorted(rows, key=lambda r: r["timeout_ms"])
        ax.plot(
            [r["timeout_ms"] for r in rows],
            [r["score"] for r in rows],
            marker="o",
            label=f"{MAP_LABELS.get(map_type, map_type)} / {scale}",
        )

    ax.set_xscale("log")
    ax.set_xlabel("时间预算 (ms)")
    ax.set_ylabel("得分")
    ax.set_title("得分随时间预算的变化")
    ax.legend(loc="lower center", bbox_to_anchor=(0.5, -0.45), ncol=3, frameon=False)
    fig.subplots_adjust(bottom=0.35, top=0.88)

    out_path = os.path.join(output_dir, "score_vs_timeout.png")
    fig.savefig(out_path, bbox_inches="tight")
    plt.close(fig)


def _group_by_pair(results: Iterable[dict], key_a: str, key_b: str) -> Dict[tuple, List[dict]]:
    grouped: Dict[tuple, List[dict]] = {}
    for r in results:
        grouped.setdefault((r[key_a], r[key_b]), []).append(r)
    return grouped


def plot_all_charts(results_dataclasses, output_dir: str) -> None:
    """从 ExperimentResult 列表生成所有图表。"""

    os.makedirs(output_dir, exist_ok=True)

    # dataclass -> dict
    results: List[dict] = [
        r if isinstance(r, dict) else r.__dict__ for r in results_dataclasses
    ]
    if not results:
        return

    # 1) 覆盖率对比
    _plot_coverage_per_scale(results, output_dir)

    # 2) 得分 vs 时间预算
    _plot_score_vs_timeout(results, output_dir)
