"""行去重：先按纵坐标再按编号文本两轮分组，组内逐列择优合并。"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence

from permitscan.context import (
    COMPACT_COLUMNS,
    FIELD_SEPARATOR,
    RECEIVED_DATE,
    RECORD_NUMBER,
    Cell,
    Row,
)

# 日期与编号列的期望形态
_SHAPE_PATTERNS = {
    RECEIVED_DATE: re.compile(r"^[0-9]{1,2}/[0-9]{1,2}/[0-9]{4}$"),
    RECORD_NUMBER: re.compile(r"^[0-9]{3}/[0-9]{1,3}/[0-9]{4}$"),
}


def _shaped_key(row: Row, index: int) -> tuple:
    text = row.text(index)
    separator_distance = abs(text.count(FIELD_SEPARATOR) - 2)
    shape_mismatch = 0 if _SHAPE_PATTERNS[index].match(text) else 1
    return (separator_distance, shape_mismatch, -row.confidence(index))


def merge_rows(rows: Sequence[Row]) -> Row:
    """
    组内逐列择优。日期/编号列优先选分隔符恰为两个且形态正确的候选，
    再比较置信度（如 "077/586/2018" 优于置信度更高的 "077/586l2018"）；其余列取置信度最高者。
    """
    if len(rows) == 1:
        return rows[0]
    cells: List[Cell] = []
    for index in range(len(rows[0].cells)):
        if index in COMPACT_COLUMNS:
            best = min(rows, key=lambda r: _shaped_key(r, index))
        else:
            best = max(rows, key=lambda r: r.confidence(index))
        cells.append(best.cells[index])
    return Row(cells=cells)


def group_by_line(rows: Sequence[Row], line_alignment: float) -> List[List[Row]]:
    """纵坐标与组锚点相差不超过 line_alignment 的行归为一组；没有 y 的行各自成组。"""
    groups: List[List[Row]] = []
    anchors: List[float] = []
    for row in rows:
        y = row.y
        if y is None:
            groups.append([row])
            anchors.append(float("nan"))
            continue
        for group, anchor in zip(groups, anchors):
            if abs(y - anchor) <= line_alignment:
                group.append(row)
                break
        else:
            groups.append([row])
            anchors.append(y)
    return groups


def group_by_record_number(rows: Sequence[Row]) -> List[List[Row]]:
    groups: Dict[str, List[Row]] = {}
    for row in rows:
        groups.setdefault(row.text(RECORD_NUMBER), []).append(row)
    return list(groups.values())


def deduplicate_rows(rows: Sequence[Row], line_alignment: float) -> List[Row]:
    """同一物理行会因重叠窗口与编号识别不一致而重复出现，两轮分组合并为每个编号一行。"""
    by_line = [merge_rows(group) for group in group_by_line(rows, line_alignment)]
    return [merge_rows(group) for group in group_by_record_number(by_line)]
