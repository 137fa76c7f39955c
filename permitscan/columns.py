"""列定位：根据词间空隙统计推断每列的起始横坐标。"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from permitscan.context import Column, Layout, Line

log = logging.getLogger(__name__)


def _cluster_column_starts(lines: Sequence[Line], gap: float, alignment: float) -> List[Column]:
    """行首词以及与前一词空隙 >= gap 的词视为候选列起点，按 alignment 聚类计数。"""
    columns: List[Column] = []
    for line in lines:
        previous = None
        for word in line:
            if previous is None or word.x - previous.right >= gap:
                closest = next((c for c in columns if abs(word.x - c.x) < alignment), None)
                if closest is not None:
                    closest.count += 1
                else:
                    columns.append(Column(x=word.x))
            previous = word
    return columns


def locate_columns(lines: Sequence[Line], layout: Layout) -> Optional[List[Column]]:
    """
    从 column_gap 开始逐步减小空隙阈值直到 1，首次恰好得到 column_count 列即返回（按 x 升序）。
    出现次数低于 (总数 / 列数) / 2 的聚类视为噪声。阈值耗尽仍不满足则返回 None。
    """
    expected = layout.column_count
    for gap in range(int(layout.column_gap), 0, -1):
        columns = _cluster_column_starts(lines, gap, layout.column_alignment)
        total = sum(c.count for c in columns)
        min_count = total / expected / 2.0
        columns = sorted((c for c in columns if c.count >= min_count), key=lambda c: c.x)
        if len(columns) == expected:
            log.info("columns: gap=%d 定位到 %d 列 x=%s", gap, expected, [round(c.x, 1) for c in columns])
            return columns
    log.warning("columns: 无法定位 %d 列（词行数=%d）", expected, len(lines))
    return None
